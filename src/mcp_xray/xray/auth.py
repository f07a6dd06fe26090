"""Token management for the Xray Cloud API.

Xray Cloud exchanges a client id/secret pair for a bearer token that expires
after roughly fifteen minutes. ``CloudTokenManager`` keeps one token per
client and refreshes it shortly before expiry. Concurrent callers that find
the token stale while a refresh is already running wait on that refresh
instead of starting another one.
"""

import logging
import threading
import time
from collections.abc import Callable
from concurrent.futures import Future
from enum import Enum

from requests import PreparedRequest
from requests.auth import AuthBase

from .constants import TOKEN_EXPIRY_BUFFER_SECONDS, TOKEN_LIFETIME_SECONDS

logger = logging.getLogger("mcp-xray.auth")


class TokenState(str, Enum):
    UNAUTHENTICATED = "unauthenticated"
    REFRESHING = "refreshing"
    AUTHENTICATED = "authenticated"


class CloudTokenManager:
    """Holds the Xray Cloud token and coordinates refreshes across threads."""

    def __init__(
        self,
        authenticate: Callable[[], str],
        *,
        lifetime: float = TOKEN_LIFETIME_SECONDS,
        expiry_buffer: float = TOKEN_EXPIRY_BUFFER_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """
        Args:
            authenticate: Performs the credential exchange and returns a token.
            lifetime: Seconds a freshly issued token is considered valid.
            expiry_buffer: A token is refreshed once it has less than this
                many seconds left.
            clock: Monotonic time source in seconds.
        """
        self._authenticate = authenticate
        self._lifetime = lifetime
        self._expiry_buffer = expiry_buffer
        self._clock = clock

        self._lock = threading.Lock()
        self._state = TokenState.UNAUTHENTICATED
        self._token: str | None = None
        self._expires_at: float | None = None
        self._pending: Future[str] | None = None

    @property
    def state(self) -> TokenState:
        return self._state

    @property
    def expires_at(self) -> float | None:
        return self._expires_at

    def _is_fresh(self) -> bool:
        if self._token is None or self._expires_at is None:
            return False
        return self._expires_at - self._clock() > self._expiry_buffer

    def get_token(self) -> str:
        """Return a valid token, authenticating first if needed.

        Raises:
            Exception: Whatever the credential exchange raised. Every caller
                waiting on the same refresh receives the same error.
        """
        with self._lock:
            if self._state is TokenState.AUTHENTICATED and self._is_fresh():
                return self._token  # type: ignore[return-value]

            if self._pending is not None:
                pending = self._pending
                owner = False
            else:
                pending = Future()
                self._pending = pending
                self._state = TokenState.REFRESHING
                owner = True

        if not owner:
            logger.debug("Waiting for in-flight Xray Cloud token refresh")
            return pending.result()

        logger.debug("Authenticating with Xray Cloud")
        try:
            token = self._authenticate()
        except BaseException as e:
            with self._lock:
                self._state = TokenState.UNAUTHENTICATED
                self._token = None
                self._expires_at = None
                self._pending = None
            pending.set_exception(e)
            raise

        with self._lock:
            self._token = token
            self._expires_at = self._clock() + self._lifetime
            self._state = TokenState.AUTHENTICATED
            self._pending = None
        pending.set_result(token)
        logger.debug("Xray Cloud token refreshed")
        return token


class XrayCloudAuth(AuthBase):
    """Attach the current Xray Cloud bearer token to each outgoing request."""

    def __init__(self, token_manager: CloudTokenManager) -> None:
        self.token_manager = token_manager

    def __call__(self, request: PreparedRequest) -> PreparedRequest:
        request.headers["Authorization"] = f"Bearer {self.token_manager.get_token()}"
        return request
