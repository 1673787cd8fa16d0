"""
Extended Field Store — Per-entity values for configured extra fields.

When a response sub-object is decoded into an entity, the store scans the
raw JSON for every field spec configured for that entity's type and keeps
the matching raw values, addressed by (type name, entity id, field name):

  - extended specs:   raw[field_name] at the top level of the object
  - native specs:     raw["customFields"][name], where "customFields" is a
                      nested object or a JSON-encoded string object

Values are stored untyped (RawJSON) and decoded on read:

    store.populate("Product", "p1", raw_product, configuration)
    store.get("Product", "p1", "calculatedScore", float)   # 4.5 or None

Reads never raise; a missing value or a failed conversion is None.

Keying by type name as well as id keeps a Product "1" and an Order "1"
apart. The store is bounded: once max_entities entities are held, the least
recently populated or read entity is evicted.
"""

import threading
from collections import OrderedDict
from typing import Any, Dict, List, Optional, Tuple, Type, TypeVar

from .configuration import VendureConfiguration
from .custom_fields import NATIVE_CUSTOM_FIELDS_KEY
from .json_values import RawJSON, parse_custom_fields_blob
from .logging_config import CUSTOM_FIELDS, get_logger

logger = get_logger(CUSTOM_FIELDS)

T = TypeVar("T")

DEFAULT_MAX_ENTITIES = 10000

EntityKey = Tuple[str, str]


class ExtendedFieldStore:
    """Thread-safe, LRU-bounded side table of extended field values."""

    def __init__(self, max_entities: int = DEFAULT_MAX_ENTITIES):
        if max_entities <= 0:
            raise ValueError("max_entities must be positive")
        self.max_entities = max_entities
        self._entries: "OrderedDict[EntityKey, Dict[str, RawJSON]]" = OrderedDict()
        self._lock = threading.Lock()

    def populate(
        self,
        type_name: str,
        entity_id: str,
        raw: Dict[str, Any],
        configuration: VendureConfiguration,
    ) -> List[str]:
        """Capture configured field values from a raw entity object.

        Args:
            type_name: The entity's GraphQL type ("Product").
            entity_id: The entity's id.
            raw: The decoded JSON object the entity was built from.
            configuration: Registry holding the specs for type_name.

        Returns:
            The field names that were captured.
        """
        captured: Dict[str, RawJSON] = {}
        native_blob = None

        for spec in configuration.fields_for(type_name):
            if spec.is_extended_field:
                if spec.field_name in raw:
                    captured[spec.field_name] = RawJSON(raw[spec.field_name])
                continue

            if native_blob is None:
                native_blob = parse_custom_fields_blob(raw.get(NATIVE_CUSTOM_FIELDS_KEY)) or {}
            for name in spec.native_names:
                if name in native_blob:
                    captured[name] = RawJSON(native_blob[name])

        if not captured:
            return []

        key = (type_name, str(entity_id))
        with self._lock:
            values = self._entries.pop(key, {})
            values.update(captured)
            self._entries[key] = values
            while len(self._entries) > self.max_entities:
                evicted, _ = self._entries.popitem(last=False)
                logger.debug("Evicted extended fields for %s %s", *evicted)

        logger.debug("Captured %s for %s %s", sorted(captured), type_name, entity_id)
        return list(captured)

    def raw(self, type_name: str, entity_id: str, field_name: str) -> Optional[RawJSON]:
        key = (type_name, str(entity_id))
        with self._lock:
            values = self._entries.get(key)
            if values is None:
                return None
            self._entries.move_to_end(key)
            return values.get(field_name)

    def get(self, type_name: str, entity_id: str, field_name: str, as_type: Type[T]) -> Optional[T]:
        """Decode a stored value into as_type; None when missing or mismatched."""
        value = self.raw(type_name, entity_id, field_name)
        if value is None:
            return None
        return value.decode(as_type)

    def has(self, type_name: str, entity_id: str, field_name: str) -> bool:
        with self._lock:
            return field_name in self._entries.get((type_name, str(entity_id)), {})

    def field_names(self, type_name: str, entity_id: str) -> List[str]:
        with self._lock:
            return sorted(self._entries.get((type_name, str(entity_id)), {}))

    def discard(self, type_name: str, entity_id: str) -> None:
        with self._lock:
            self._entries.pop((type_name, str(entity_id)), None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
