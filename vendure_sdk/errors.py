"""
Errors - Exception taxonomy raised by the Vendure client.
Every failure surfaced to callers derives from VendureError.
"""

from typing import Any, Dict, List, Optional


class VendureError(Exception):
    """Base class for all client errors."""


class NetworkError(VendureError):
    """Transport-level failure (DNS, connection refused, timeout)."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(f"Network error: {message}")


class HttpError(VendureError):
    """The server answered with a non-2xx status."""

    def __init__(self, status: int, body: str = ""):
        self.status = status
        self.body = body
        super().__init__(f"HTTP error {status}: {body[:300]}")

    @property
    def is_auth_error(self) -> bool:
        return self.status in (401, 403)


class GraphQLError(VendureError):
    """The response envelope carried a non-empty "errors" array.

    Any "data" sent alongside the errors is discarded.
    """

    def __init__(self, messages: List[str], errors: Optional[List[Dict[str, Any]]] = None):
        self.messages = list(messages)
        self.errors = errors or []
        super().__init__(f"GraphQL error: {'; '.join(self.messages)}")


class DecodingError(VendureError):
    """The response did not match the shape of the requested type."""

    def __init__(self, cause: Any):
        self.cause = cause
        super().__init__(f"Decoding error: {cause}")


class NoDataError(VendureError):
    """The expected path was absent (or null) in the response data."""

    def __init__(self, path: Optional[str] = None):
        self.path = path
        if path:
            super().__init__(f"No data returned at '{path}'")
        else:
            super().__init__("No data returned")


class OrderModificationError(VendureError):
    """An order mutation returned an ErrorResult instead of the Order."""

    def __init__(self, error_code: Optional[str], message: str, typename: Optional[str] = None,
                 result: Optional[Dict[str, Any]] = None):
        self.error_code = error_code
        self.message = message
        self.typename = typename
        self.result = result or {}
        super().__init__(f"Order modification failed ({error_code}): {message}")


class InitializationError(VendureError):
    """Invalid configuration supplied when creating a session."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(f"Initialization error: {message}")


class AuthenticationError(VendureError):
    """The credential source failed to produce a session token."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(f"Authentication error: {message}")


class TokenMissingError(AuthenticationError):
    """No token is available and none could be fetched."""

    def __init__(self, message: str = "Authentication token is missing"):
        super().__init__(message)
