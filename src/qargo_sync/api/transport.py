"""Authenticated JSON transport for the Qargo API.

Provides :class:`Transport`, which performs GET/POST/PUT/DELETE requests
against one environment at a time over a shared ``httpx.Client``:

- Adds a bearer token obtained from the token cache to every request.
- On HTTP 401, forces one token refresh and replays the request once.
- Decodes JSON response bodies; empty or non-JSON 2xx bodies decode to
  ``None``.
- Converts non-2xx responses and network failures into
  :mod:`qargo_sync.api.exceptions` errors (``delete`` reports a non-2xx
  status as ``False`` instead).
"""

from __future__ import annotations

import logging
from typing import Any, Protocol

import httpx

from qargo_sync import __version__
from qargo_sync.api.exceptions import (
    QargoAuthError,
    QargoTransportError,
    classify_response,
)
from qargo_sync.config import Environment

logger = logging.getLogger(__name__)

USER_AGENT = f"qargo-sync/{__version__}"


class TokenProvider(Protocol):
    """The subset of :class:`~qargo_sync.api.auth.TokenCache` the transport uses."""

    def get_access_token(self, environment: Environment) -> str: ...

    def refresh_access_token(self, environment: Environment, rejected_token: str | None = None) -> str: ...


class Transport:
    """Performs authenticated JSON requests against Qargo environments.

    The transport is stateless apart from the HTTP connection pool, so a
    single instance is shared by the master and target clients and is
    safe to use from several worker threads.

    Args:
        auth: Token provider (normally a :class:`TokenCache`).
        http_client: Optional ``httpx.Client``.  If ``None``, one is
            created and owned by the transport.  Pass a client with a
            mock transport in tests.
        timeout: Request timeout in seconds for an owned client.
    """

    def __init__(
        self,
        auth: TokenProvider,
        http_client: httpx.Client | None = None,
        timeout: float = 30.0,
    ) -> None:
        self._auth = auth
        self._owns_client = http_client is None
        self._http = http_client or httpx.Client(timeout=timeout)

    def __enter__(self) -> Transport:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        """Close the underlying HTTP client if this transport created it."""
        if self._owns_client:
            self._http.close()

    # ------------------------------------------------------------------
    # Verbs
    # ------------------------------------------------------------------

    def get(
        self,
        environment: Environment,
        path: str,
        params: dict[str, str] | None = None,
    ) -> Any:
        """GET *path* and return the decoded body.

        Raises:
            QargoNotFoundError: On HTTP 404.
            QargoAuthError: If the token is rejected after a refresh.
            QargoTransportError: On any other non-2xx status or network error.
        """
        response = self._send(environment, "GET", path, params=params)
        if not response.is_success:
            raise classify_response(response, f"GET {path}")
        return _decode(response)

    def post(self, environment: Environment, path: str, body: Any = None) -> Any:
        """POST a JSON *body* to *path* and return the decoded response."""
        response = self._send(environment, "POST", path, json=body)
        if not response.is_success:
            raise classify_response(response, f"POST {path}")
        return _decode(response)

    def put(self, environment: Environment, path: str, body: Any) -> Any:
        """PUT a JSON *body* to *path* and return the decoded response."""
        response = self._send(environment, "PUT", path, json=body)
        if not response.is_success:
            raise classify_response(response, f"PUT {path}")
        return _decode(response)

    def delete(self, environment: Environment, path: str) -> bool:
        """DELETE *path*.

        Returns:
            ``True`` on a 2xx status, ``False`` on any other status.

        Raises:
            QargoAuthError: If the token is rejected after a refresh.
            QargoTransportError: On network errors.
        """
        response = self._send(environment, "DELETE", path)
        if not response.is_success:
            logger.error(
                "API request failed: DELETE %s returned %d. Response: %s",
                path,
                response.status_code,
                response.text,
            )
            return False
        return True

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _send(
        self,
        environment: Environment,
        method: str,
        path: str,
        **kwargs: Any,
    ) -> httpx.Response:
        """Send one request, replaying it once after a forced token refresh on 401."""
        url = _resolve_url(environment, path)

        token = self._auth.get_access_token(environment)
        response = self._request(method, url, token, **kwargs)

        if response.status_code == 401:
            logger.warning(
                "%s %s returned 401, refreshing token for %s",
                method,
                path,
                environment.base_url,
            )
            token = self._auth.refresh_access_token(environment, rejected_token=token)
            response = self._request(method, url, token, **kwargs)
            if response.status_code == 401:
                logger.error("Token rejected after refresh for %s", environment.base_url)
                raise QargoAuthError(
                    f"{method} {path} rejected with HTTP 401 after token refresh"
                )

        return response

    def _request(self, method: str, url: str, token: str, **kwargs: Any) -> httpx.Response:
        headers = {
            "Authorization": f"Bearer {token}",
            "Accept": "application/json",
            "User-Agent": USER_AGENT,
        }
        logger.debug("%s %s", method, url)
        try:
            response = self._http.request(method, url, headers=headers, **kwargs)
        except httpx.HTTPError as exc:
            logger.error("Error during %s request to %s: %s", method, url, exc)
            raise QargoTransportError(f"{method} {url} failed: {exc}") from exc

        if not response.is_success and response.status_code != 401:
            logger.debug("%s %s returned %d", method, url, response.status_code)
        return response


# ---------------------------------------------------------------------------
# Module-level helpers
# ---------------------------------------------------------------------------


def _resolve_url(environment: Environment, path: str) -> str:
    """Join *path* to the environment base URL unless it is already absolute."""
    if path.startswith(("http://", "https://")):
        return path
    if not path.startswith("/"):
        path = f"/{path}"
    return f"{environment.base_url}{path}"


def _decode(response: httpx.Response) -> Any:
    """Decode a JSON body, returning ``None`` for empty or non-JSON bodies."""
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        logger.warning(
            "Response from %s is not valid JSON, treating as empty",
            response.request.url,
        )
        return None
