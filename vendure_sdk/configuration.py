"""
Vendure Configuration — Registry of custom field specs and fragment injection.

One VendureConfiguration is owned by each Vendure session (there is no
process-wide singleton). The application registers its specs at startup;
every request then reads them to build queries and to populate extended
field values at decode time.

Registration rules:
  - Specs keep insertion order.
  - An add() whose field name, extended/native class and set of applicable
    types equal an already registered spec replaces that spec in place
    (last write wins, original position kept).
  - Fragments are sanity-checked on add(): empty text, mutation or
    subscription keywords, and unbalanced braces are rejected with a warning.

Injection (inject_fields):
  For a type name, every applicable extended spec contributes its own
  fragment line, in registration order. All native custom field names
  applicable to the type are then unioned into one trailing
  "customFields { ... }" block:

      mainUsdzAsset { id name type mimeType source preview }
      calculatedScore
      customFields { priority internalNotes }

  No GraphQL parsing is done; callers splice the text at a fixed point in
  their selection set (typically just before the closing brace).

Thread safety:
  All reads and writes hold one re-entrant lock. Readers get list copies,
  so a registration during an in-flight request never mutates what that
  request is iterating.
"""

import re
import threading
from typing import Dict, Iterable, List, Optional, Sequence, Set

from .custom_fields import NATIVE_CUSTOM_FIELDS_KEY, CustomField, FieldKind
from .logging_config import CUSTOM_FIELDS, get_logger

logger = get_logger(CUSTOM_FIELDS)

FRAGMENT_SEPARATOR = "\n"

_FORBIDDEN_KEYWORDS = re.compile(r"\b(mutation|subscription)\b", re.IGNORECASE)


def validate_fragment(fragment: str) -> bool:
    """Basic heuristic check of a GraphQL selection fragment."""
    trimmed = fragment.strip()
    if not trimmed:
        return False
    if _FORBIDDEN_KEYWORDS.search(trimmed):
        return False
    return trimmed.count("{") == trimmed.count("}")


class VendureConfiguration:
    """Registry of CustomField specs for one SDK session."""

    def __init__(self, fields: Optional[Iterable[CustomField]] = None):
        self._fields: List[CustomField] = []
        self._lock = threading.RLock()
        if fields:
            self.add_batch(fields)

    @property
    def fields(self) -> List[CustomField]:
        with self._lock:
            return list(self._fields)

    # --- mutation ----------------------------------------------------------

    def add(self, spec: CustomField) -> bool:
        """Register a spec.

        Returns:
            True if the spec was registered (appended or replacing an
            existing one), False if its fragment was rejected.
        """
        if not validate_fragment(spec.graphql_fragment):
            logger.warning("Invalid GraphQL fragment for field '%s', not registered", spec.field_name)
            return False

        with self._lock:
            for index, existing in enumerate(self._fields):
                if self._same_identity(existing, spec):
                    self._fields[index] = spec
                    logger.debug("Replaced %s", spec.describe())
                    return True
            self._fields.append(spec)

        logger.debug("Registered %s", spec.describe())
        return True

    def add_batch(self, specs: Iterable[CustomField]) -> None:
        with self._lock:
            for spec in specs:
                self.add(spec)

    def remove(self, field_name: str, applicable_types: Sequence[str]) -> int:
        """Remove specs matching the name and exact set of types. Returns the count removed."""
        wanted = set(applicable_types)
        with self._lock:
            before = len(self._fields)
            self._fields = [
                spec for spec in self._fields
                if not (spec.field_name == field_name and set(spec.applicable_types) == wanted)
            ]
            return before - len(self._fields)

    def clear(self) -> None:
        with self._lock:
            self._fields = []

    @staticmethod
    def _same_identity(a: CustomField, b: CustomField) -> bool:
        return (
            a.field_name == b.field_name
            and a.is_extended_field == b.is_extended_field
            and set(a.applicable_types) == set(b.applicable_types)
        )

    # --- lookup ------------------------------------------------------------

    def fields_for(self, type_name: str) -> List[CustomField]:
        """All specs applicable to type_name, in registration order."""
        with self._lock:
            return [spec for spec in self._fields if spec.applies_to(type_name)]

    def extended_fields_for(self, type_name: str) -> List[CustomField]:
        """Extended specs for type_name, one per field name (the latest registration wins)."""
        latest: Dict[str, CustomField] = {}
        for spec in self.fields_for(type_name):
            if spec.is_extended_field:
                latest.pop(spec.field_name, None)
                latest[spec.field_name] = spec
        return list(latest.values())

    def native_field_names_for(self, type_name: str) -> List[str]:
        """Union of native custom field names for type_name, first-seen order."""
        names: List[str] = []
        for spec in self.fields_for(type_name):
            for name in spec.native_names:
                if name not in names:
                    names.append(name)
        return names

    def types_with_configured_fields(self) -> Set[str]:
        with self._lock:
            return {type_name for spec in self._fields for type_name in spec.applicable_types}

    def has_custom_fields(self, type_name: str) -> bool:
        return bool(self.fields_for(type_name))

    def should_include_custom_fields(self, type_name: str, user_requested: Optional[bool] = None) -> bool:
        if user_requested is not None:
            return user_requested
        return self.has_custom_fields(type_name)

    # --- injection ---------------------------------------------------------

    def inject_fields(self, type_name: str) -> str:
        """Selection text to splice into a query for type_name ("" if none)."""
        fragments = [spec.graphql_fragment for spec in self.extended_fields_for(type_name)]
        native_names = self.native_field_names_for(type_name)
        if native_names:
            fragments.append(f"{NATIVE_CUSTOM_FIELDS_KEY} {{ {' '.join(native_names)} }}")
        return FRAGMENT_SEPARATOR.join(fragments)

    def build_fragment(
        self,
        type_name: str,
        base_fields: Sequence[str],
        include_custom_fields: bool = True,
    ) -> str:
        parts = list(base_fields)
        if include_custom_fields:
            injected = self.inject_fields(type_name)
            if injected:
                parts.append(injected)
        return FRAGMENT_SEPARATOR.join(parts)

    # --- diagnostics -------------------------------------------------------

    def validate_configuration(self) -> List[str]:
        """Return warnings about the registered specs. Read-only."""
        warnings: List[str] = []
        kinds_by_type_and_name: Dict[tuple, Set[FieldKind]] = {}

        for spec in self.fields:
            if not spec.applicable_types:
                warnings.append(f"Field '{spec.field_name}' has no applicable types")

            if spec.is_extended_field and spec.field_name == NATIVE_CUSTOM_FIELDS_KEY:
                warnings.append(
                    f"Extended field named '{NATIVE_CUSTOM_FIELDS_KEY}' collides with the native custom fields block"
                )
            if spec.kind in (FieldKind.EXTENDED_ASSET, FieldKind.EXTENDED_RELATION) and not spec.sub_fields:
                warnings.append(f"Field '{spec.field_name}' of kind {spec.kind.value} has no sub-fields")
            if spec.kind is FieldKind.EXTENDED_COMPLEX_RELATION and not spec.nested_fields:
                warnings.append(f"Complex relation '{spec.field_name}' has no nested fields")
            if spec.kind is FieldKind.NATIVE_CUSTOM_FIELD_GROUP and not spec.sub_fields:
                warnings.append("Native custom field group has no field names")

            for type_name in spec.applicable_types:
                for name in spec.native_names or [spec.field_name]:
                    kind = FieldKind.NATIVE_CUSTOM_FIELD if spec.kind.is_native else spec.kind
                    kinds_by_type_and_name.setdefault((type_name, name), set()).add(kind)

        for (type_name, name), kinds in sorted(kinds_by_type_and_name.items()):
            if len(kinds) > 1:
                labels = ", ".join(sorted(kind.value for kind in kinds))
                warnings.append(f"Field '{name}' on {type_name} is configured with incompatible kinds: {labels}")

        return warnings

    def get_configuration_summary(self) -> str:
        fields = self.fields
        lines = [spec.describe() for spec in fields]
        body = "\n".join(lines) if lines else "No custom fields configured."
        return f"VendureConfiguration Summary:\nTotal Custom Fields: {len(fields)}\n{body}"
