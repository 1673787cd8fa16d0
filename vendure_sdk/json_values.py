"""
JSON values — Untyped JSON captured during decoding, with typed accessors.

Extended and native custom field values arrive with shapes the client does
not know in advance. They are kept as plain JSON values (dict, list, str,
int, float, bool, None) wrapped in RawJSON, and converted to a concrete
type only when the application asks for one.

Conversion goes through pydantic's TypeAdapter in strict JSON mode, so a
string is never silently coerced to a number, while enums, nested models
and ISO-8601 datetimes decode the way they do from a response body.
Conversion failures return None; extension fields are optional and must
never break the primary decode.
"""

import json
from functools import lru_cache
from typing import Any, Dict, List, Optional, Type, TypeVar, Union

from pydantic import TypeAdapter, ValidationError

from .logging_config import DECODE, get_logger

logger = get_logger(DECODE)

T = TypeVar("T")

JSONValue = Union[None, bool, int, float, str, List[Any], Dict[str, Any]]


@lru_cache(maxsize=256)
def type_adapter(as_type: Any) -> TypeAdapter:
    """Cached TypeAdapter for as_type."""
    return TypeAdapter(as_type)


def decode_value(value: JSONValue, as_type: Type[T]) -> Optional[T]:
    """Strictly decode a JSON value into as_type, or return None."""
    try:
        return type_adapter(as_type).validate_json(json.dumps(value), strict=True)
    except (ValidationError, TypeError, ValueError) as exc:
        logger.debug("Could not decode %r as %s: %s", value, getattr(as_type, "__name__", as_type), exc)
        return None


def parse_custom_fields_blob(value: Any) -> Optional[Dict[str, Any]]:
    """Normalize a native "customFields" value to a dict.

    Backends send either a nested object or a JSON-encoded string object;
    both are accepted. Anything else yields None.
    """
    if isinstance(value, dict):
        return value
    if isinstance(value, str) and value.strip():
        try:
            parsed = json.loads(value)
        except ValueError as exc:
            logger.debug("customFields string is not valid JSON: %s", exc)
            return None
        if isinstance(parsed, dict):
            return parsed
    return None


class RawJSON:
    """Immutable holder for one captured JSON value."""

    __slots__ = ("_value",)

    def __init__(self, value: JSONValue):
        self._value = value

    @classmethod
    def from_json_string(cls, text: str) -> "RawJSON":
        return cls(json.loads(text))

    @property
    def value(self) -> JSONValue:
        return self._value

    @property
    def json_string(self) -> str:
        return json.dumps(self._value)

    @property
    def as_dict(self) -> Optional[Dict[str, Any]]:
        return self._value if isinstance(self._value, dict) else None

    @property
    def is_null(self) -> bool:
        return self._value is None

    def decode(self, as_type: Type[T]) -> Optional[T]:
        return decode_value(self._value, as_type)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, RawJSON):
            return NotImplemented
        return self._value == other._value

    def __hash__(self) -> int:
        return hash(json.dumps(self._value, sort_keys=True))

    def __repr__(self) -> str:
        text = self.json_string
        return f"RawJSON({text[:100]}{'...' if len(text) > 100 else ''})"
