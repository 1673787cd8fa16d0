"""
Vendure Session — The SDK handle that owns the whole request pipeline.

A Vendure instance is created once per backend session and owns:

  configuration    VendureConfiguration: custom field specs (register at startup)
  extended_fields  ExtendedFieldStore: values captured at decode time
  transport        GraphQLTransport: pooled HTTP session to the endpoint
  token_manager    TokenManager: session token, single-flight refresh
  auth, catalog, order, customer, custom
                   Operation groups sharing one OperationDispatcher

Nothing is global: two sessions (or two tests) never see each other's
configuration, store or token.

Authentication modes:
  - Direct token:   Vendure.initialize(endpoint, token="...")
  - Native login:   Vendure.with_native_auth(endpoint, username, password)
  - Firebase:       Vendure.with_firebase_auth(endpoint, uid, jwt)
  - Custom fetcher: Vendure.with_custom_auth(endpoint, fetch_token, params)
  - Guest:          Vendure.initialize(endpoint, use_guest_session=True)
  - Environment:    Vendure.from_env("./.env")

Typical usage:
    vendure = Vendure.with_native_auth("https://shop.example.com/shop-api",
                                       "user@example.com", "secret")
    vendure.configuration.add(CustomField.extended_asset("mainUsdzAsset", ["Product"]))
    product = vendure.catalog.get_product_by_id("1")
    asset = product.get_extended_field("mainUsdzAsset", Asset)
"""

import threading
from typing import Any, Dict, Optional
from urllib.parse import urlparse

import requests

from .configuration import VendureConfiguration
from .dispatcher import OperationDispatcher
from .errors import InitializationError, VendureError
from .extended_fields import ExtendedFieldStore
from .logging_config import GENERAL, configure_logging, get_logger
from .operations import (
    AuthOperations,
    CatalogOperations,
    CustomerOperations,
    CustomOperations,
    OrderOperations,
)
from .queries import CONNECTION_CHECK_QUERY, LOGOUT_MUTATION
from .settings import DEFAULT_SETTINGS, load_settings, validate_settings
from .token_manager import TokenFetcher, TokenManager
from .transport import DEFAULT_TIMEOUT, GraphQLTransport

logger = get_logger(GENERAL)

DEFAULT_SESSION_DURATION = DEFAULT_SETTINGS["SESSION_DURATION"]
FIREBASE_SESSION_DURATION = 60 * 60

CHANNEL_TOKEN_HEADER = "vendure-token"


def _no_fetcher(params: Dict[str, Any]) -> Optional[str]:
    return None


class Vendure:
    """Client session for one Vendure Shop API endpoint.

    Attributes:
        endpoint: GraphQL endpoint URL.
        use_guest_session: Send no Authorization header.
        configuration: Custom field specs for this session.
        extended_fields: Extended field values captured by this session.
        token_manager: Session token holder.
    """

    def __init__(
        self,
        endpoint: str,
        token_fetcher: Optional[TokenFetcher] = None,
        token_params: Optional[Dict[str, Any]] = None,
        session_duration: float = DEFAULT_SESSION_DURATION,
        token: Optional[str] = None,
        use_guest_session: bool = False,
        language_code: Optional[str] = None,
        channel_token: Optional[str] = None,
        timeout: float = DEFAULT_TIMEOUT,
        configuration: Optional[VendureConfiguration] = None,
        extended_fields: Optional[ExtendedFieldStore] = None,
        http_session: Optional[requests.Session] = None,
    ):
        parsed = urlparse(endpoint or "")
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise InitializationError(f"Invalid endpoint URL: {endpoint!r}")
        if not use_guest_session and token is None and token_fetcher is None:
            raise InitializationError("A token, a token fetcher or a guest session is required")

        self.endpoint = endpoint
        self.use_guest_session = use_guest_session
        self._language_code = language_code
        self._channel_token = channel_token
        self._lock = threading.Lock()
        self._has_fetcher = token_fetcher is not None

        self.configuration = configuration if configuration is not None else VendureConfiguration()
        self.extended_fields = extended_fields if extended_fields is not None else ExtendedFieldStore()
        self.transport = GraphQLTransport(endpoint, timeout, http_session)
        self.token_manager = TokenManager(token_fetcher or _no_fetcher, token_params, session_duration)
        if token is not None:
            self.token_manager.set_token(token)

        self._dispatcher = OperationDispatcher(
            self.transport,
            self.configuration,
            self.extended_fields,
            header_provider=self.default_headers,
            params_provider=self._url_params,
            on_auth_failure=self.token_manager.invalidate,
        )
        # Token fetchers log in through this one, so it never asks the token manager.
        self._auth_dispatcher = OperationDispatcher(
            self.transport,
            self.configuration,
            self.extended_fields,
            header_provider=self._base_headers,
            params_provider=self._url_params,
        )

        self.auth = AuthOperations(self._auth_dispatcher)
        self.catalog = CatalogOperations(self._dispatcher, self.configuration)
        self.order = OrderOperations(self._dispatcher, self.configuration)
        self.customer = CustomerOperations(self._dispatcher, self.configuration)
        self.custom = CustomOperations(self._dispatcher)

    # --- construction ------------------------------------------------------

    @classmethod
    def initialize(cls, endpoint: str, check_connection: bool = True, **kwargs) -> "Vendure":
        """Create a session and, by default, verify the endpoint answers.

        Accepts the same keyword arguments as the constructor.

        Raises:
            InitializationError: Bad endpoint or no credential source.
            NetworkError, HttpError, GraphQLError: The connection check failed.
        """
        vendure = cls(endpoint, **kwargs)
        if check_connection:
            vendure.check_connection()
        logger.info("Vendure session initialized for %s", endpoint)
        return vendure

    @classmethod
    def with_native_auth(
        cls,
        endpoint: str,
        username: str,
        password: str,
        session_duration: float = DEFAULT_SESSION_DURATION,
        **kwargs,
    ) -> "Vendure":
        def fetch(params: Dict[str, Any]) -> Optional[str]:
            return vendure.auth.get_token(params.get("username", ""), params.get("password", ""))

        vendure = cls.initialize(
            endpoint,
            token_fetcher=fetch,
            token_params={"username": username, "password": password},
            session_duration=session_duration,
            **kwargs,
        )
        return vendure

    @classmethod
    def with_firebase_auth(
        cls,
        endpoint: str,
        uid: str,
        jwt: str,
        session_duration: float = FIREBASE_SESSION_DURATION,
        **kwargs,
    ) -> "Vendure":
        def fetch(params: Dict[str, Any]) -> Optional[str]:
            return vendure.auth.get_token_firebase(params.get("uid", ""), params.get("jwt", ""))

        vendure = cls.initialize(
            endpoint,
            token_fetcher=fetch,
            token_params={"uid": uid, "jwt": jwt},
            session_duration=session_duration,
            **kwargs,
        )
        return vendure

    @classmethod
    def with_custom_auth(
        cls,
        endpoint: str,
        fetch_token: TokenFetcher,
        token_params: Dict[str, Any],
        session_duration: float = DEFAULT_SESSION_DURATION,
        **kwargs,
    ) -> "Vendure":
        return cls.initialize(
            endpoint,
            token_fetcher=fetch_token,
            token_params=token_params,
            session_duration=session_duration,
            **kwargs,
        )

    @classmethod
    def from_env(
        cls,
        env_file: str = "./.env",
        check_connection: bool = True,
        setup_logging: bool = False,
        **overrides,
    ) -> "Vendure":
        """Create a session from VENDURE_* environment variables.

        Keyword overrides use DEFAULT_SETTINGS keys (ENDPOINT="...").
        With setup_logging=True, client logging is also configured at
        VENDURE_LOG_LEVEL; otherwise handlers are left to the application.
        """
        settings = load_settings(env_file, overrides)
        errors = validate_settings(settings)
        if errors:
            for error in errors:
                logger.error("Configuration error: %s", error)
            raise InitializationError("; ".join(errors))

        if setup_logging:
            configure_logging(settings["LOG_LEVEL"])

        common = {
            "check_connection": check_connection,
            "language_code": settings["LANGUAGE_CODE"] or None,
            "channel_token": settings["CHANNEL_TOKEN"] or None,
            "timeout": settings["TIMEOUT"],
            "extended_fields": ExtendedFieldStore(settings["EXTENDED_FIELD_CACHE_SIZE"]),
        }
        endpoint = settings["ENDPOINT"]
        if settings["GUEST_SESSION"]:
            return cls.initialize(endpoint, use_guest_session=True, **common)
        if settings["TOKEN"]:
            return cls.initialize(endpoint, token=settings["TOKEN"], **common)
        return cls.with_native_auth(
            endpoint,
            settings["USERNAME"],
            settings["PASSWORD"],
            session_duration=settings["SESSION_DURATION"],
            **common,
        )

    def check_connection(self) -> None:
        self._auth_dispatcher.execute(CONNECTION_CHECK_QUERY)

    # --- headers -----------------------------------------------------------

    def _base_headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        with self._lock:
            if self._language_code:
                headers["Accept-Language"] = self._language_code
            if self._channel_token:
                headers[CHANNEL_TOKEN_HEADER] = self._channel_token
        return headers

    def _url_params(self) -> Optional[Dict[str, str]]:
        with self._lock:
            if self._language_code:
                return {"languageCode": self._language_code}
        return None

    def default_headers(self) -> Dict[str, str]:
        """Headers for an authenticated request; may block on a token refresh."""
        headers = self._base_headers()
        if not self.use_guest_session:
            headers["Authorization"] = f"Bearer {self.token_manager.get_valid_token()}"
        return headers

    # --- runtime configuration ---------------------------------------------

    @property
    def language_code(self) -> Optional[str]:
        return self._language_code

    @property
    def channel_token(self) -> Optional[str]:
        return self._channel_token

    def set_language_code(self, language_code: Optional[str]) -> None:
        with self._lock:
            self._language_code = language_code

    def set_channel_token(self, channel_token: Optional[str]) -> None:
        with self._lock:
            self._channel_token = channel_token

    def set_auth_token(self, token: str, expires_at: Optional[float] = None) -> None:
        self.token_manager.set_token(token, expires_at)

    def refresh_token(self, params: Optional[Dict[str, Any]] = None) -> str:
        if not self._has_fetcher:
            raise InitializationError("No token fetcher configured")
        return self.token_manager.refresh_token(params)

    def logout(self) -> None:
        """End the server session (when one exists) and clear the local token."""
        try:
            if not self.use_guest_session and self.token_manager.token:
                self._dispatcher.mutate(LOGOUT_MUTATION, expected_path="logout")
        except VendureError as exc:
            logger.warning("Server logout failed: %s", exc)
            raise
        finally:
            self.token_manager.invalidate()

    def close(self) -> None:
        self.transport.close()

    def __enter__(self) -> "Vendure":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
