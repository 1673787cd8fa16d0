"""
Token Manager — Session token caching and single-flight refresh.

Holds the session token used in the Authorization header and fetches a new
one through a pluggable fetcher when it is missing or expired:

    def fetch(params):
        return auth.get_token(params["username"], params["password"])

    manager = TokenManager(fetch, {"username": "...", "password": "..."},
                           session_duration=3600)
    token = manager.get_valid_token()

States:
    UNINITIALIZED -> REFRESHING -> VALID | FAILED
    VALID -> (expired) -> REFRESHING
    any -> invalidate() -> UNINITIALIZED

Concurrency:
    At most one fetch is in flight per manager. The first caller that finds
    no valid token becomes the leader and runs the fetcher on its own thread;
    every other caller blocks on the same Future and receives the same token
    or the same exception. A caller re-checks the cached token under the
    lock before leading, so a refresh that just finished is never repeated.
    A failure is not cached: the next call starts a new fetch. Nothing is
    retried automatically.

    invalidate() and set_token() bump a generation counter; a fetch that
    started before the bump hands its token to its waiters but does not
    cache it.
"""

import threading
import time
from concurrent.futures import Future
from enum import Enum
from typing import Any, Callable, Dict, Optional

from .errors import AuthenticationError, TokenMissingError
from .logging_config import AUTH, get_logger

logger = get_logger(AUTH)

TokenFetcher = Callable[[Dict[str, Any]], Optional[str]]

DEFAULT_SESSION_DURATION = 60 * 60 * 24


class TokenState(Enum):
    UNINITIALIZED = "uninitialized"
    VALID = "valid"
    REFRESHING = "refreshing"
    FAILED = "failed"


class TokenManager:
    """Caches a session token and serializes refreshes.

    Attributes:
        parameters: Default parameters passed to the fetcher.
        session_duration: Seconds a fetched token stays valid.
    """

    def __init__(
        self,
        fetcher: TokenFetcher,
        parameters: Optional[Dict[str, Any]] = None,
        session_duration: float = DEFAULT_SESSION_DURATION,
        clock: Callable[[], float] = time.time,
    ):
        self._fetcher = fetcher
        self.parameters = dict(parameters or {})
        self.session_duration = session_duration
        self._clock = clock
        self._token: Optional[str] = None
        self._expires_at: Optional[float] = None
        self._state = TokenState.UNINITIALIZED
        self._refresh: Optional[Future] = None
        self._generation = 0
        self._lock = threading.Lock()

    @property
    def token(self) -> Optional[str]:
        return self._token

    @property
    def state(self) -> TokenState:
        with self._lock:
            if self._state is TokenState.VALID and not self._is_valid():
                return TokenState.UNINITIALIZED
            return self._state

    def _is_valid(self) -> bool:
        if self._token is None:
            return False
        return self._expires_at is None or self._clock() < self._expires_at

    def get_valid_token(self) -> str:
        """Return the cached token, fetching a new one if needed.

        Raises:
            AuthenticationError: The fetcher raised.
            TokenMissingError: The fetcher returned no token.
        """
        with self._lock:
            if self._is_valid():
                return self._token
        return self._refresh_shared(None, force=False)

    def refresh_token(self, parameters: Optional[Dict[str, Any]] = None) -> str:
        """Force a fetch, joining one already in flight."""
        return self._refresh_shared(parameters, force=True)

    def _refresh_shared(self, parameters: Optional[Dict[str, Any]], force: bool) -> str:
        with self._lock:
            # another caller may have finished a refresh since the fast-path check
            if not force and self._is_valid():
                return self._token
            future = self._refresh
            leader = future is None
            if leader:
                future = Future()
                self._refresh = future
                self._state = TokenState.REFRESHING
            generation = self._generation

        if not leader:
            logger.debug("Waiting for in-flight token refresh")
            return future.result()

        params = self.parameters if parameters is None else parameters
        try:
            token = self._fetch(params)
        except BaseException as exc:
            with self._lock:
                self._state = TokenState.FAILED
                self._refresh = None
            future.set_exception(exc)
            raise

        with self._lock:
            if self._generation == generation:
                self._token = token
                self._expires_at = self._clock() + self.session_duration
                self._state = TokenState.VALID
            else:
                logger.info("Token was invalidated or replaced during refresh, fetched token not cached")
                if self._state is TokenState.REFRESHING:
                    self._state = TokenState.UNINITIALIZED
            self._refresh = None
        future.set_result(token)
        return token

    def _fetch(self, params: Dict[str, Any]) -> str:
        logger.debug("Fetching session token")
        try:
            token = self._fetcher(params)
        except Exception as exc:
            logger.error("Token fetch failed: %s", exc)
            raise AuthenticationError(f"Failed to fetch authentication token: {exc}") from exc

        if not token:
            logger.error("Token fetcher returned no token")
            raise TokenMissingError("Failed to fetch authentication token")

        logger.info("Session token acquired, valid for %ss", self.session_duration)
        return token

    def set_token(self, token: str, expires_at: Optional[float] = None) -> None:
        """Install a pre-obtained token. expires_at is an epoch time; None never expires."""
        with self._lock:
            self._generation += 1
            self._token = token
            self._expires_at = expires_at
            self._state = TokenState.VALID

    def invalidate(self) -> None:
        """Drop the cached token so the next get_valid_token() fetches again.

        A fetch already in flight still resolves its waiters, but its token
        is not cached.
        """
        with self._lock:
            self._generation += 1
            self._token = None
            self._expires_at = None
            if self._state is not TokenState.REFRESHING:
                self._state = TokenState.UNINITIALIZED
        logger.info("Session token invalidated")
