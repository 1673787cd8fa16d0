"""
Custom Fields — Declarative specs for extra GraphQL fields.

A CustomField describes one field that the embedding application wants
requested on top of the hand-written base queries. Two mechanisms exist on
the backend, and both are modelled here:

  1. Extended (schema-extension) fields: added to the GraphQL schema by a
     backend plugin and requested as ordinary top-level selections:

         mainUsdzAsset { id name type mimeType source preview }
         calculatedScore
         brand { id name }

  2. Native custom fields: declared through the backend's built-in
     custom-fields mechanism and nested under the entity's own
     "customFields" object:

         customFields { priority internalNotes }

     Several native specs for the same type are merged into a single
     "customFields { ... }" block at injection time (see
     VendureConfiguration.inject_fields).

Specs are built through the factory classmethods rather than the raw
constructor:

    CustomField.extended_asset("mainUsdzAsset", ["Product", "ProductVariant"])
    CustomField.extended_scalar("calculatedScore", ["Product"])
    CustomField.extended_relation("brand", ["id", "name", "logo"], ["Product"])
    CustomField.extended_complex_relation(
        "bundle", {"items": ["id", "sku"], "totalPrice": []}, ["Product"])
    CustomField.vendure_custom_field("priority", ["Order"])
    CustomField.vendure_custom_fields(["priority", "internalNotes"], ["Order"])

Specs are immutable; registration and lookup live in configuration.py.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Sequence, Tuple

NATIVE_CUSTOM_FIELDS_KEY = "customFields"

ASSET_SUBFIELDS = ("id", "name", "type", "mimeType", "source", "preview")
ASSET_DETAILED_SUBFIELDS = (
    "id", "name", "type", "mimeType", "source", "preview",
    "width", "height", "fileSize", "focalPoint { x y }", "tags { id value }",
)
DEFAULT_RELATION_SUBFIELDS = ("id", "name")


class FieldKind(Enum):
    EXTENDED_ASSET = "extended_asset"
    EXTENDED_SCALAR = "extended_scalar"
    EXTENDED_RELATION = "extended_relation"
    EXTENDED_COMPLEX_RELATION = "extended_complex_relation"
    NATIVE_CUSTOM_FIELD = "native_custom_field"
    NATIVE_CUSTOM_FIELD_GROUP = "native_custom_field_group"

    @property
    def is_native(self) -> bool:
        return self in (FieldKind.NATIVE_CUSTOM_FIELD, FieldKind.NATIVE_CUSTOM_FIELD_GROUP)


@dataclass(frozen=True)
class CustomField:
    """One configured field extension.

    Attributes:
        field_name: GraphQL field to request, and the lookup key for its
                    decoded value. Native groups use "customFields".
        kind: Determines the fragment shape and whether the field is a
              schema extension or a native custom field.
        applicable_types: Entity type names ("Product", "Order", ...).
        sub_fields: Selection set under the field (assets, relations) or
                    the native names carried by a native group.
        nested_fields: Complex relations only: sub-key -> its selection set,
                       in insertion order.
    """

    field_name: str
    kind: FieldKind
    applicable_types: Tuple[str, ...]
    sub_fields: Tuple[str, ...] = ()
    nested_fields: Tuple[Tuple[str, Tuple[str, ...]], ...] = field(default=())

    # --- factories ---------------------------------------------------------

    @classmethod
    def extended_asset(cls, name: str, applicable_types: Sequence[str]) -> "CustomField":
        return cls(name, FieldKind.EXTENDED_ASSET, tuple(applicable_types), ASSET_SUBFIELDS)

    @classmethod
    def extended_asset_detailed(cls, name: str, applicable_types: Sequence[str]) -> "CustomField":
        """Asset field with dimensions, file size, focal point and tags."""
        return cls(name, FieldKind.EXTENDED_ASSET, tuple(applicable_types), ASSET_DETAILED_SUBFIELDS)

    @classmethod
    def extended_scalar(cls, name: str, applicable_types: Sequence[str]) -> "CustomField":
        return cls(name, FieldKind.EXTENDED_SCALAR, tuple(applicable_types))

    @classmethod
    def extended_relation(
        cls,
        name: str,
        sub_fields: Optional[Sequence[str]] = None,
        applicable_types: Sequence[str] = (),
    ) -> "CustomField":
        if sub_fields is None:
            sub_fields = DEFAULT_RELATION_SUBFIELDS
        return cls(name, FieldKind.EXTENDED_RELATION, tuple(applicable_types), tuple(sub_fields))

    @classmethod
    def extended_complex_relation(
        cls,
        name: str,
        nested_fields: Dict[str, Sequence[str]],
        applicable_types: Sequence[str],
    ) -> "CustomField":
        nested = tuple((key, tuple(fields)) for key, fields in nested_fields.items())
        return cls(name, FieldKind.EXTENDED_COMPLEX_RELATION, tuple(applicable_types), nested_fields=nested)

    @classmethod
    def vendure_custom_field(cls, name: str, applicable_types: Sequence[str]) -> "CustomField":
        return cls(name, FieldKind.NATIVE_CUSTOM_FIELD, tuple(applicable_types))

    @classmethod
    def vendure_custom_fields(cls, names: Sequence[str], applicable_types: Sequence[str]) -> "CustomField":
        return cls(
            NATIVE_CUSTOM_FIELDS_KEY,
            FieldKind.NATIVE_CUSTOM_FIELD_GROUP,
            tuple(applicable_types),
            tuple(names),
        )

    # --- derived -----------------------------------------------------------

    @property
    def is_extended_field(self) -> bool:
        return not self.kind.is_native

    @property
    def native_names(self) -> List[str]:
        """Names this spec contributes to the "customFields" block."""
        if self.kind is FieldKind.NATIVE_CUSTOM_FIELD:
            return [self.field_name]
        if self.kind is FieldKind.NATIVE_CUSTOM_FIELD_GROUP:
            return list(self.sub_fields)
        return []

    @property
    def graphql_fragment(self) -> str:
        """Selection text for this spec on its own.

        Native specs render their own "customFields { ... }" block here;
        injection merges them per type instead of using this text.
        """
        if self.kind.is_native:
            return f"{NATIVE_CUSTOM_FIELDS_KEY} {{ {' '.join(self.native_names)} }}"
        if self.kind is FieldKind.EXTENDED_SCALAR:
            return self.field_name
        if self.kind is FieldKind.EXTENDED_COMPLEX_RELATION:
            parts = []
            for key, fields in self.nested_fields:
                parts.append(f"{key} {{ {' '.join(fields)} }}" if fields else key)
            return f"{self.field_name} {{ {' '.join(parts)} }}"
        return f"{self.field_name} {{ {' '.join(self.sub_fields)} }}"

    def applies_to(self, type_name: str) -> bool:
        return type_name in self.applicable_types

    def describe(self) -> str:
        label = "Extended" if self.is_extended_field else "CustomField"
        return f"[{label}] {self.field_name} -> [{', '.join(self.applicable_types)}]"
