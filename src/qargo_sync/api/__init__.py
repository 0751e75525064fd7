"""Qargo API access for qargo-sync."""

from __future__ import annotations

from qargo_sync.api.auth import TokenCache
from qargo_sync.api.client import ResourceClient
from qargo_sync.api.exceptions import (
    QargoAPIError,
    QargoAuthError,
    QargoInvalidArgumentError,
    QargoNotFoundError,
    QargoOperationError,
    QargoTransportError,
)
from qargo_sync.api.transport import Transport

__all__ = [
    "QargoAPIError",
    "QargoAuthError",
    "QargoInvalidArgumentError",
    "QargoNotFoundError",
    "QargoOperationError",
    "QargoTransportError",
    "ResourceClient",
    "TokenCache",
    "Transport",
]
