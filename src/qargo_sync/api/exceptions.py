"""Custom exceptions for Qargo API operations.

Exception hierarchy::

    QargoAPIError                 (base for all Qargo API errors)
    +-- QargoAuthError            (token exchange failure / 401 after refresh)
    +-- QargoTransportError       (network failure, non-2xx or malformed response)
    |   +-- QargoNotFoundError    (HTTP 404)
    +-- QargoOperationError       (create/update returned no record)
    +-- QargoInvalidArgumentError (rejected before any network call)

Nothing here retries.  The only replay in the stack is the single request
re-sent by :class:`~qargo_sync.api.transport.Transport` after a forced token
refresh on HTTP 401.
"""

from __future__ import annotations

import httpx

# Longest response body fragment quoted in an error message.
_BODY_SNIPPET_LIMIT = 200


class QargoAPIError(Exception):
    """Base exception for Qargo API errors.

    Attributes:
        status_code: HTTP status code from the API, or ``None`` if the
            error did not originate from an HTTP response.
    """

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class QargoAuthError(QargoAPIError):
    """Raised when an access token cannot be obtained or is rejected.

    Fatal to a synchronization run: no call can proceed without a token.
    """

    def __init__(
        self,
        message: str = "Qargo authentication failed",
        status_code: int | None = 401,
    ) -> None:
        super().__init__(message, status_code=status_code)


class QargoTransportError(QargoAPIError):
    """Raised on network failures, non-2xx responses and undecodable bodies."""


class QargoNotFoundError(QargoTransportError):
    """Raised when the API returns HTTP 404."""

    def __init__(self, message: str = "Qargo resource not found") -> None:
        super().__init__(message, status_code=404)


class QargoOperationError(QargoAPIError):
    """Raised when a create or update call did not yield a record."""


class QargoInvalidArgumentError(QargoAPIError, ValueError):
    """Raised when a call is rejected before reaching the network."""


def classify_response(response: httpx.Response, operation: str) -> QargoAPIError:
    """Map a non-2xx response to the matching exception.

    Args:
        response: The failed ``httpx`` response.
        operation: Short label for messages, e.g. ``"GET /v1/..."``.

    Returns:
        A :class:`QargoAPIError` subclass matching the status code.
    """
    status = response.status_code
    body = response.text[:_BODY_SNIPPET_LIMIT]
    message = f"{operation} returned HTTP {status}: {body}" if body else f"{operation} returned HTTP {status}"

    if status == 404:
        return QargoNotFoundError(message)
    if status == 401:
        return QargoAuthError(message)
    return QargoTransportError(message, status_code=status)
