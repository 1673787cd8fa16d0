"""
Models — Minimal typed decode targets for Vendure responses.

Only the entities the client itself queries are modelled; applications
decode anything else into their own pydantic models through the custom
operations. All models:

  - use camelCase aliases on the wire and snake_case attributes in Python
    (both accepted on input),
  - keep unrecognized keys in model_extra instead of dropping them, so
    schema-extension fields requested through fragment injection stay
    reachable even when no store is bound.

Entities (VendureEntity subclasses) additionally resolve configured extra
fields. get_extended_field() looks in two tiers:

  1. the extended field store populated at decode time, then the
     entity's own unrecognized keys,
  2. the native "customFields" value (nested object or JSON-encoded
     string), for a key of the same name.

Applications configure one mechanism or the other depending on what the
backend supports, so both tiers are always consulted.
"""

from enum import Enum
from typing import Any, ClassVar, Dict, List, Optional, Type, TypeVar, Union

from pydantic import BaseModel, ConfigDict, PrivateAttr
from pydantic.alias_generators import to_camel

from .extended_fields import ExtendedFieldStore
from .json_values import decode_value, parse_custom_fields_blob

T = TypeVar("T")


class VendureModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")


class VendureEntity(VendureModel):
    """Base for entities that carry an id and may carry extra fields."""

    type_name: ClassVar[str] = ""

    id: str
    custom_fields: Optional[Union[Dict[str, Any], str]] = None

    _extended_store: Optional[ExtendedFieldStore] = PrivateAttr(default=None)

    def bind_extended_fields(self, store: ExtendedFieldStore) -> None:
        self._extended_store = store

    @property
    def unknown_fields(self) -> Dict[str, Any]:
        return dict(self.model_extra or {})

    def _native_blob(self) -> Dict[str, Any]:
        return parse_custom_fields_blob(self.custom_fields) or {}

    def get_extended_field(self, name: str, as_type: Type[T]) -> Optional[T]:
        """Resolve a configured extra field as as_type, or None."""
        if self._extended_store is not None:
            value = self._extended_store.get(self.type_name, self.id, name, as_type)
            if value is not None:
                return value

        extra = self.model_extra or {}
        if name in extra:
            value = decode_value(extra[name], as_type)
            if value is not None:
                return value

        blob = self._native_blob()
        if name in blob:
            return decode_value(blob[name], as_type)
        return None

    def has_extended_field(self, name: str) -> bool:
        if self._extended_store is not None and self._extended_store.has(self.type_name, self.id, name):
            return True
        return name in (self.model_extra or {}) or name in self._native_blob()

    def extended_field_names(self) -> List[str]:
        names = set(self.model_extra or {})
        if self._extended_store is not None:
            names.update(self._extended_store.field_names(self.type_name, self.id))
        return sorted(names)

    def get_custom_field(self, name: str, as_type: Type[T]) -> Optional[T]:
        """Read a native custom field straight from "customFields"."""
        blob = self._native_blob()
        if name not in blob:
            return None
        return decode_value(blob[name], as_type)

    def has_custom_field(self, name: str) -> bool:
        return name in self._native_blob()


class AssetType(str, Enum):
    IMAGE = "IMAGE"
    VIDEO = "VIDEO"
    AUDIO = "AUDIO"
    BINARY = "BINARY"
    OTHER = "OTHER"


class Coordinate(VendureModel):
    x: float
    y: float


class Tag(VendureModel):
    id: str
    value: str


class Asset(VendureModel):
    id: str
    name: str
    type: AssetType
    mime_type: str
    source: str
    preview: str
    file_size: Optional[int] = None
    width: Optional[int] = None
    height: Optional[int] = None
    focal_point: Optional[Coordinate] = None
    tags: Optional[List[Tag]] = None


class ProductVariant(VendureEntity):
    type_name: ClassVar[str] = "ProductVariant"

    name: Optional[str] = None
    sku: Optional[str] = None
    price: Optional[int] = None
    price_with_tax: Optional[int] = None
    currency_code: Optional[str] = None
    stock_level: Optional[str] = None
    enabled: Optional[bool] = None
    featured_asset: Optional[Asset] = None
    product: Optional["Product"] = None


class Product(VendureEntity):
    type_name: ClassVar[str] = "Product"

    name: Optional[str] = None
    slug: Optional[str] = None
    description: Optional[str] = None
    enabled: Optional[bool] = None
    featured_asset: Optional[Asset] = None
    assets: List[Asset] = []
    variants: List[ProductVariant] = []

    @property
    def main_usdz_asset(self) -> Optional[Asset]:
        return self.get_extended_field("mainUsdzAsset", Asset)

    @property
    def supports_ar(self) -> bool:
        asset = self.main_usdz_asset
        return asset is not None and "model" in asset.mime_type

    @property
    def ar_asset_url(self) -> Optional[str]:
        asset = self.main_usdz_asset
        return asset.source if asset else None


ProductVariant.model_rebuild()


class ProductList(VendureModel):
    items: List[Product] = []
    total_items: int = 0


class ProductVariantList(VendureModel):
    items: List[ProductVariant] = []
    total_items: int = 0


class CollectionBreadcrumb(VendureModel):
    id: str
    name: Optional[str] = None
    slug: Optional[str] = None


class Collection(VendureEntity):
    type_name: ClassVar[str] = "Collection"

    name: Optional[str] = None
    slug: Optional[str] = None
    description: Optional[str] = None
    breadcrumbs: List[CollectionBreadcrumb] = []
    position: Optional[int] = None
    is_root: Optional[bool] = None
    parent_id: Optional[str] = None
    parent: Optional["Collection"] = None
    children: List["Collection"] = []
    featured_asset: Optional[Asset] = None
    product_variants: Optional[ProductVariantList] = None


class CollectionList(VendureModel):
    items: List[Collection] = []
    total_items: int = 0


class Country(VendureModel):
    id: Optional[str] = None
    code: str
    name: Optional[str] = None


class Address(VendureEntity):
    type_name: ClassVar[str] = "Address"

    full_name: Optional[str] = None
    company: Optional[str] = None
    street_line1: Optional[str] = None
    street_line2: Optional[str] = None
    city: Optional[str] = None
    province: Optional[str] = None
    postal_code: Optional[str] = None
    country: Optional[Country] = None
    phone_number: Optional[str] = None
    default_shipping_address: Optional[bool] = None
    default_billing_address: Optional[bool] = None


class Customer(VendureEntity):
    type_name: ClassVar[str] = "Customer"

    title: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email_address: Optional[str] = None
    phone_number: Optional[str] = None
    addresses: List[Address] = []


class OrderLine(VendureEntity):
    type_name: ClassVar[str] = "OrderLine"

    quantity: int = 0
    unit_price_with_tax: Optional[int] = None
    line_price: Optional[int] = None
    line_price_with_tax: Optional[int] = None
    product_variant: Optional[ProductVariant] = None


class Order(VendureEntity):
    type_name: ClassVar[str] = "Order"

    code: Optional[str] = None
    state: Optional[str] = None
    active: Optional[bool] = None
    total_quantity: Optional[int] = None
    sub_total: Optional[int] = None
    sub_total_with_tax: Optional[int] = None
    shipping: Optional[int] = None
    shipping_with_tax: Optional[int] = None
    total: Optional[int] = None
    total_with_tax: Optional[int] = None
    currency_code: Optional[str] = None
    lines: List[OrderLine] = []
    customer: Optional[Customer] = None


class CurrentUser(VendureModel):
    id: str
    identifier: str
    channels: List[Dict[str, Any]] = []


# ---------------------------------------------------------------------------
# Inputs
# ---------------------------------------------------------------------------

class VendureInput(BaseModel):
    """Base for mutation inputs.

    to_variables() omits optional fields that were never set; a field
    explicitly set to None is sent as null.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")

    def to_variables(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_unset=True)


class CreateAddressInput(VendureInput):
    full_name: Optional[str] = None
    company: Optional[str] = None
    street_line1: str
    street_line2: Optional[str] = None
    city: str
    province: Optional[str] = None
    postal_code: str
    country_code: str
    phone_number: Optional[str] = None
    default_shipping_address: Optional[bool] = None
    default_billing_address: Optional[bool] = None
    custom_fields: Optional[Dict[str, Any]] = None


class UpdateAddressInput(VendureInput):
    id: str
    full_name: Optional[str] = None
    company: Optional[str] = None
    street_line1: Optional[str] = None
    street_line2: Optional[str] = None
    city: Optional[str] = None
    province: Optional[str] = None
    postal_code: Optional[str] = None
    country_code: Optional[str] = None
    phone_number: Optional[str] = None
    default_shipping_address: Optional[bool] = None
    default_billing_address: Optional[bool] = None
    custom_fields: Optional[Dict[str, Any]] = None


class RegisterCustomerInput(VendureInput):
    email_address: str
    title: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone_number: Optional[str] = None
    password: Optional[str] = None
