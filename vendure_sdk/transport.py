"""
GraphQL Transport — HTTP communication with the Vendure Shop API.

This module is responsible for all HTTP traffic to the GraphQL endpoint.
Each call is a single POST through a pooled requests.Session:

    POST {endpoint}[?languageCode=..]
    Content-Type: application/json
    Body: {"query": "...", "variables": {...}, "operationName": "..."}

Response handling:
    - Transport failure (DNS, connection, timeout)  -> NetworkError
    - Non-2xx status                                 -> HttpError(status, body)
    - Body that is not a JSON object                 -> DecodingError
    - Non-empty top-level "errors" array             -> GraphQLError(messages)
      (any "data" sent alongside is discarded)
    - Otherwise a GraphQLEnvelope with data and response headers

There are no retries and no backoff: one attempt per call. The transport
holds no per-request state, so any number of threads may call execute()
concurrently.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

import requests
from requests.structures import CaseInsensitiveDict

from .errors import DecodingError, GraphQLError, HttpError, NetworkError
from .logging_config import GRAPHQL, HTTP, get_logger

logger = get_logger(GRAPHQL)
http_logger = get_logger(HTTP)

DEFAULT_TIMEOUT = 10
DEFAULT_HEADERS = {
    "Content-Type": "application/json",
    "Accept": "application/json",
}


@dataclass
class GraphQLErrorDetail:
    message: str
    locations: List[Dict[str, int]] = field(default_factory=list)
    path: List[Any] = field(default_factory=list)
    extensions: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, raw: Any) -> "GraphQLErrorDetail":
        if not isinstance(raw, dict):
            return cls(message=str(raw))
        return cls(
            message=str(raw.get("message", raw)),
            locations=raw.get("locations") or [],
            path=raw.get("path") or [],
            extensions=raw.get("extensions") or {},
        )


@dataclass
class GraphQLEnvelope:
    """One decoded response: the "data" object, errors and response headers."""

    data: Optional[Dict[str, Any]]
    errors: List[GraphQLErrorDetail] = field(default_factory=list)
    headers: Mapping[str, str] = field(default_factory=CaseInsensitiveDict)
    status: int = 200

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)

    def raise_for_errors(self) -> None:
        if self.errors:
            messages = [error.message for error in self.errors]
            logger.error("GraphQL errors: %s", "; ".join(messages))
            raise GraphQLError(
                messages,
                [{"message": e.message, "locations": e.locations, "path": e.path} for e in self.errors],
            )


def build_payload(
    query: str,
    variables: Optional[Dict[str, Any]] = None,
    operation_name: Optional[str] = None,
) -> Dict[str, Any]:
    payload: Dict[str, Any] = {"query": query}
    if variables:
        payload["variables"] = variables
    if operation_name:
        payload["operationName"] = operation_name
    return payload


class GraphQLTransport:
    """Posts GraphQL operations to one endpoint.

    Attributes:
        endpoint: GraphQL endpoint URL.
        timeout: Per-request timeout in seconds.
    """

    def __init__(
        self,
        endpoint: str,
        timeout: float = DEFAULT_TIMEOUT,
        session: Optional[requests.Session] = None,
    ):
        self.endpoint = endpoint
        self.timeout = timeout
        self._session = session or requests.Session()

    def execute(
        self,
        query: str,
        variables: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
        operation_name: Optional[str] = None,
        params: Optional[Dict[str, str]] = None,
    ) -> GraphQLEnvelope:
        """Execute one GraphQL operation.

        Args:
            query: The GraphQL operation text.
            variables: JSON-serializable variables.
            headers: Merged on top of DEFAULT_HEADERS.
            operation_name: Optional operation name to select.
            params: Extra URL query parameters (e.g. languageCode).

        Returns:
            The envelope of a response with no GraphQL errors.

        Raises:
            NetworkError, HttpError, DecodingError, GraphQLError
        """
        payload = build_payload(query, variables, operation_name)
        request_headers = dict(DEFAULT_HEADERS)
        if headers:
            request_headers.update(headers)

        logger.debug("Executing query: %s...", query.strip()[:100])
        if variables:
            logger.debug("Variables: %s", variables)
        http_logger.debug("POST %s", self.endpoint)

        try:
            response = self._session.post(
                self.endpoint,
                json=payload,
                headers=request_headers,
                params=params or None,
                timeout=self.timeout,
            )
        except requests.exceptions.Timeout as exc:
            http_logger.error("Request timed out after %ss: %s", self.timeout, exc)
            raise NetworkError(f"Request timed out after {self.timeout}s") from exc
        except requests.exceptions.RequestException as exc:
            http_logger.error("Request failed: %s", exc)
            raise NetworkError(str(exc)) from exc

        http_logger.debug("Response status: %s", response.status_code)
        if not 200 <= response.status_code < 300:
            http_logger.error("HTTP error %s: %s", response.status_code, response.text[:300])
            raise HttpError(response.status_code, response.text)

        try:
            body = response.json()
        except ValueError as exc:
            logger.error("Response body is not JSON: %s", response.text[:300])
            raise DecodingError(exc) from exc
        if not isinstance(body, dict):
            raise DecodingError("GraphQL response was not a JSON object")

        data = body.get("data")
        if data is not None and not isinstance(data, dict):
            raise DecodingError("GraphQL \"data\" was not a JSON object")

        envelope = GraphQLEnvelope(
            data=data,
            errors=[GraphQLErrorDetail.from_dict(e) for e in body.get("errors") or []],
            headers=CaseInsensitiveDict(response.headers or {}),
            status=response.status_code,
        )
        envelope.raise_for_errors()
        return envelope

    def close(self) -> None:
        self._session.close()
