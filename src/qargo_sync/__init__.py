"""qargo-sync: master-to-target unavailability reconciliation.

Brings the resource unavailabilities of a target Qargo environment into
agreement with a master environment for a bounded date window.
"""

from __future__ import annotations

__version__ = "0.1.0"

from qargo_sync.api.exceptions import (  # noqa: E402
    QargoAPIError,
    QargoAuthError,
    QargoInvalidArgumentError,
    QargoNotFoundError,
    QargoOperationError,
    QargoTransportError,
)
from qargo_sync.config import ConfigError, Environment, Settings, load_settings  # noqa: E402
from qargo_sync.models.resource import Resource, Unavailability, UnavailabilityInput  # noqa: E402
from qargo_sync.models.sync import (  # noqa: E402
    ResourceSyncOperation,
    SynchronizationSettings,
    SyncResult,
)
from qargo_sync.sync.orchestrator import SyncOrchestrator  # noqa: E402
from qargo_sync.sync.reconciler import Reconciler  # noqa: E402

__all__ = [
    "ConfigError",
    "Environment",
    "QargoAPIError",
    "QargoAuthError",
    "QargoInvalidArgumentError",
    "QargoNotFoundError",
    "QargoOperationError",
    "QargoTransportError",
    "Reconciler",
    "Resource",
    "ResourceSyncOperation",
    "Settings",
    "SyncOrchestrator",
    "SyncResult",
    "SynchronizationSettings",
    "Unavailability",
    "UnavailabilityInput",
    "load_settings",
]
