"""OAuth2 client-credentials authentication for the Qargo API.

Provides :class:`TokenCache`, which obtains access tokens from
``POST {base_url}/v1/auth/token`` and caches them per environment.

Cached tokens expire at 90% of the lifetime the server declares, so they
are refreshed before the server would reject them.  Refreshes are
single-flight per environment: concurrent callers that find no valid token
wait on the same lock and are served the token the first caller obtained.

Usage::

    from qargo_sync.api.auth import TokenCache

    tokens = TokenCache()
    token = tokens.get_access_token(settings.master)
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass

import httpx
from pydantic import ValidationError

from qargo_sync.api.exceptions import QargoAuthError
from qargo_sync.config import Environment
from qargo_sync.models.resource import TokenResponse

logger = logging.getLogger(__name__)

TOKEN_PATH = "/v1/auth/token"
"""Token endpoint, relative to an environment's base URL."""

# Fraction of the declared lifetime after which a cached token is refreshed.
_EXPIRY_FACTOR = 0.9


@dataclass(frozen=True)
class _CachedToken:
    value: str
    expires_at: float


class TokenCache:
    """Per-environment access token cache with single-flight refresh.

    Args:
        http_client: Optional ``httpx.Client`` used for token requests.
            If ``None``, one is created and owned by the cache.  Pass a
            client with a mock transport in tests.
        timeout: Request timeout in seconds for an owned client.
        clock: Monotonic clock returning seconds.  Override in tests.
    """

    def __init__(
        self,
        http_client: httpx.Client | None = None,
        timeout: float = 30.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._owns_client = http_client is None
        self._http = http_client or httpx.Client(timeout=timeout)
        self._clock = clock
        self._tokens: dict[str, _CachedToken] = {}
        self._locks: dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def get_access_token(self, environment: Environment) -> str:
        """Return a valid access token, refreshing it if needed.

        Raises:
            QargoAuthError: If a refresh was needed and failed.
        """
        cached = self._valid_token(environment)
        if cached is not None:
            logger.debug("Using cached access token for %s", environment.base_url)
            return cached.value

        with self._lock_for(environment):
            # Another caller may have refreshed while we waited.
            cached = self._valid_token(environment)
            if cached is not None:
                logger.debug("Using access token refreshed concurrently for %s", environment.base_url)
                return cached.value

            logger.info("Requesting new access token for %s", environment.base_url)
            return self._exchange(environment).value

    def refresh_access_token(self, environment: Environment, rejected_token: str | None = None) -> str:
        """Force a token exchange for *environment*, bypassing the cache.

        A fresh cached token other than *rejected_token* is returned
        instead of exchanging again: another caller already replaced the
        token the server rejected.  Without *rejected_token*, the token
        cached when the call was made counts as rejected.

        Args:
            environment: Environment whose token was rejected.
            rejected_token: The token value the server answered 401 to.

        Raises:
            QargoAuthError: If the token exchange fails.
        """
        if rejected_token is None:
            seen = self._tokens.get(environment.cache_key)
            rejected_token = seen.value if seen is not None else None

        with self._lock_for(environment):
            current = self._tokens.get(environment.cache_key)
            if current is not None and current.value != rejected_token and self._is_fresh(current):
                logger.debug("Token for %s was already refreshed", environment.base_url)
                return current.value
            return self._exchange(environment).value

    def is_token_valid(self, environment: Environment) -> bool:
        """Whether a cached, unexpired token exists for *environment*."""
        return self._valid_token(environment) is not None

    def invalidate(self, environment: Environment) -> None:
        """Drop the cached token for *environment*, if any."""
        self._tokens.pop(environment.cache_key, None)

    def close(self) -> None:
        """Close the underlying HTTP client if this cache created it."""
        if self._owns_client:
            self._http.close()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _lock_for(self, environment: Environment) -> threading.Lock:
        with self._locks_guard:
            return self._locks.setdefault(environment.cache_key, threading.Lock())

    def _is_fresh(self, token: _CachedToken) -> bool:
        return self._clock() < token.expires_at

    def _valid_token(self, environment: Environment) -> _CachedToken | None:
        token = self._tokens.get(environment.cache_key)
        if token is None or not self._is_fresh(token):
            return None
        return token

    def _exchange(self, environment: Environment) -> _CachedToken:
        """Exchange client credentials for a token and cache it.

        Must be called with the environment's lock held.
        """
        url = f"{environment.base_url}{TOKEN_PATH}"
        body = {
            "grant_type": "client_credentials",
            "client_id": environment.client_id,
            "client_secret": environment.client_secret,
        }

        logger.debug("Requesting token from %s", url)
        try:
            response = self._http.post(
                url,
                json=body,
                auth=(environment.client_id, environment.client_secret),
                headers={"Accept": "application/json"},
            )
        except httpx.HTTPError as exc:
            logger.error("Token request to %s failed: %s", url, exc)
            raise QargoAuthError(
                f"Authentication failed for {environment.base_url}: {exc}",
                status_code=None,
            ) from exc

        if not response.is_success:
            logger.error(
                "Token request failed with status %d: %s",
                response.status_code,
                response.text,
            )
            raise QargoAuthError(
                f"Authentication failed for {environment.base_url}: "
                f"HTTP {response.status_code} - {response.text}",
                status_code=response.status_code,
            )

        try:
            token = TokenResponse.model_validate(response.json())
        except (ValueError, ValidationError) as exc:
            raise QargoAuthError(
                f"Invalid token response from {environment.base_url}: {exc}",
                status_code=response.status_code,
            ) from exc

        if not token.access_token:
            raise QargoAuthError(
                f"Invalid token response from {environment.base_url}: missing access_token",
                status_code=response.status_code,
            )

        cached = _CachedToken(
            value=token.access_token,
            expires_at=self._clock() + token.expires_in * _EXPIRY_FACTOR,
        )
        self._tokens[environment.cache_key] = cached

        logger.info(
            "Obtained access token for %s, expires in %ds",
            environment.base_url,
            token.expires_in,
        )
        return cached
