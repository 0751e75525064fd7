"""Data models for qargo-sync."""

from __future__ import annotations

from qargo_sync.models.resource import (
    UNAVAILABILITY_REASONS,
    Resource,
    ResourcePage,
    TokenResponse,
    Unavailability,
    UnavailabilityInput,
    UnavailabilityPage,
)
from qargo_sync.models.sync import (
    ResourceSyncOperation,
    SynchronizationSettings,
    SyncResult,
)

__all__ = [
    "UNAVAILABILITY_REASONS",
    "Resource",
    "ResourcePage",
    "ResourceSyncOperation",
    "SyncResult",
    "SynchronizationSettings",
    "TokenResponse",
    "Unavailability",
    "UnavailabilityInput",
    "UnavailabilityPage",
]
