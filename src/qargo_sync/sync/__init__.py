"""Master-to-target unavailability reconciliation for qargo-sync."""

from __future__ import annotations

from qargo_sync.sync.diff import (
    as_update,
    determine_changes,
    has_changes,
    same_identity,
    to_input,
)
from qargo_sync.sync.orchestrator import SyncOrchestrator, build_orchestrator
from qargo_sync.sync.reconciler import Reconciler

__all__ = [
    "Reconciler",
    "SyncOrchestrator",
    "as_update",
    "build_orchestrator",
    "determine_changes",
    "has_changes",
    "same_identity",
    "to_input",
]
