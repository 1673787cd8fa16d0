"""
Operation Dispatcher — Runs an operation and decodes its result.

The dispatcher ties the pipeline together for every typed call:

  1. HEADERS      header_provider() supplies Content-Type, channel,
                  language and Authorization (which may block on a token
                  refresh).
  2. EXECUTE      GraphQLTransport.execute() posts the operation. GraphQL
                  errors short-circuit here; a 401/403 first invalidates the
                  session token through on_auth_failure, then propagates.
  3. EXTRACT      The dotted expected_path ("product", "products.items",
                  a leading "data." is accepted) is followed through the
                  response data. A missing key raises NoDataError.
  4. DECODE       The sub-object is validated into result_type (a pydantic
                  model, or any type pydantic can adapt). Unknown keys are
                  kept on the model, not dropped.
  5. EXTEND       Every VendureEntity in the decoded value, nested ones
                  included, gets its configured extra fields captured into
                  the ExtendedFieldStore and is bound to the store.

List variants apply steps 3-5 to each array element.
"""

from typing import Any, Callable, Dict, List, Optional, Type, TypeVar

from pydantic import BaseModel, ValidationError

from .configuration import VendureConfiguration
from .errors import DecodingError, HttpError, NoDataError
from .extended_fields import ExtendedFieldStore
from .json_values import type_adapter
from .logging_config import CUSTOM_OPS, DECODE, get_logger
from .models import VendureEntity
from .transport import GraphQLEnvelope, GraphQLTransport

logger = get_logger(CUSTOM_OPS)
decode_logger = get_logger(DECODE)

T = TypeVar("T")

_MISSING = object()


def extract_path(data: Optional[Dict[str, Any]], path: Optional[str]) -> Any:
    """Follow a dotted path through the response data.

    Raises:
        NoDataError: data is empty or a path segment is missing.
    """
    if data is None:
        raise NoDataError(path)
    if not path:
        return data

    segments = path.split(".")
    if segments[0] == "data":
        segments = segments[1:]

    current: Any = data
    for segment in segments:
        if isinstance(current, dict):
            current = current.get(segment, _MISSING)
        elif isinstance(current, list) and segment.isdigit() and int(segment) < len(current):
            current = current[int(segment)]
        else:
            current = _MISSING
        if current is _MISSING:
            raise NoDataError(path)
    return current


def decode_result(raw: Any, result_type: Optional[Type[T]]) -> T:
    """Validate raw JSON into result_type; None returns the raw value."""
    if result_type is None:
        return raw
    try:
        if isinstance(result_type, type) and issubclass(result_type, BaseModel):
            return result_type.model_validate(raw)
        return type_adapter(result_type).validate_python(raw)
    except ValidationError as exc:
        decode_logger.error("Decoding %s failed: %s", getattr(result_type, "__name__", result_type), exc)
        raise DecodingError(exc) from exc


def populate_extended_fields(
    value: Any,
    raw: Any,
    store: ExtendedFieldStore,
    configuration: VendureConfiguration,
) -> None:
    """Capture configured extra fields for every entity inside a decoded value."""
    if isinstance(value, list) and isinstance(raw, list):
        for item, raw_item in zip(value, raw):
            populate_extended_fields(item, raw_item, store, configuration)
        return

    if not isinstance(value, BaseModel) or not isinstance(raw, dict):
        return

    if isinstance(value, VendureEntity):
        value.bind_extended_fields(store)
        if value.type_name:
            store.populate(value.type_name, value.id, raw, configuration)

    for name, field_info in type(value).model_fields.items():
        key = field_info.alias or name
        if key not in raw and name in raw:
            key = name
        child = getattr(value, name, None)
        if isinstance(child, (BaseModel, list)):
            populate_extended_fields(child, raw.get(key), store, configuration)


class OperationDispatcher:
    """Executes operations for one session and decodes their results."""

    def __init__(
        self,
        transport: GraphQLTransport,
        configuration: VendureConfiguration,
        store: ExtendedFieldStore,
        header_provider: Callable[[], Dict[str, str]],
        params_provider: Optional[Callable[[], Optional[Dict[str, str]]]] = None,
        on_auth_failure: Optional[Callable[[], None]] = None,
    ):
        self.transport = transport
        self.configuration = configuration
        self.store = store
        self._header_provider = header_provider
        self._params_provider = params_provider
        self._on_auth_failure = on_auth_failure

    def execute(
        self,
        text: str,
        variables: Optional[Dict[str, Any]] = None,
        operation_name: Optional[str] = None,
    ) -> GraphQLEnvelope:
        headers = self._header_provider()
        params = self._params_provider() if self._params_provider else None
        try:
            return self.transport.execute(
                text,
                variables=variables,
                headers=headers,
                operation_name=operation_name,
                params=params,
            )
        except HttpError as exc:
            if exc.is_auth_error and self._on_auth_failure is not None:
                logger.warning("Server rejected credentials (HTTP %s), invalidating token", exc.status)
                self._on_auth_failure()
            raise

    def _run(
        self,
        text: str,
        variables: Optional[Dict[str, Any]],
        expected_path: Optional[str],
        operation_name: Optional[str],
    ) -> Any:
        envelope = self.execute(text, variables, operation_name)
        return extract_path(envelope.data, expected_path)

    def decode(self, raw: Any, result_type: Optional[Type[T]]) -> T:
        """Decode an already-extracted value and capture its extra fields."""
        value = decode_result(raw, result_type)
        populate_extended_fields(value, raw, self.store, self.configuration)
        return value

    def query(
        self,
        text: str,
        variables: Optional[Dict[str, Any]] = None,
        expected_path: Optional[str] = None,
        result_type: Optional[Type[T]] = None,
        operation_name: Optional[str] = None,
        allow_null: bool = False,
    ) -> Optional[T]:
        """Execute an operation and decode the object at expected_path.

        Args:
            text: GraphQL operation text.
            variables: Operation variables.
            expected_path: Dotted path inside "data"; the whole data object
                           when omitted.
            result_type: Decode target; the raw JSON is returned when omitted.
            operation_name: Optional operation to select.
            allow_null: Return None instead of raising when the value at
                        expected_path is null.

        Raises:
            NoDataError: The path is missing (or null without allow_null).
            DecodingError: The value does not match result_type.
        """
        raw = self._run(text, variables, expected_path, operation_name)
        if raw is None:
            if allow_null:
                return None
            raise NoDataError(expected_path)
        return self.decode(raw, result_type)

    def mutate(
        self,
        text: str,
        variables: Optional[Dict[str, Any]] = None,
        expected_path: Optional[str] = None,
        result_type: Optional[Type[T]] = None,
        operation_name: Optional[str] = None,
        allow_null: bool = False,
    ) -> Optional[T]:
        return self.query(text, variables, expected_path, result_type, operation_name, allow_null)

    def query_list(
        self,
        text: str,
        variables: Optional[Dict[str, Any]] = None,
        expected_path: Optional[str] = None,
        result_type: Optional[Type[T]] = None,
        operation_name: Optional[str] = None,
    ) -> List[T]:
        raw = self._run(text, variables, expected_path, operation_name)
        if not isinstance(raw, list):
            raise DecodingError(f"Expected a list at '{expected_path}', got {type(raw).__name__}")
        return [self.decode(item, result_type) for item in raw]

    def mutate_list(
        self,
        text: str,
        variables: Optional[Dict[str, Any]] = None,
        expected_path: Optional[str] = None,
        result_type: Optional[Type[T]] = None,
        operation_name: Optional[str] = None,
    ) -> List[T]:
        return self.query_list(text, variables, expected_path, result_type, operation_name)
