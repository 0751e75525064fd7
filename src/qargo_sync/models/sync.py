"""Data models for unavailability synchronization runs.

Defines the run configuration and the structured outcomes produced by the
reconciler and the run orchestrator:

- :class:`SynchronizationSettings` -- date window and run flags.
- :class:`ResourceSyncOperation` -- per-resource working state (fetched
  lists, planned creates/updates/deletes, errors).
- :class:`SyncResult` -- run-level aggregate over all resources.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone

from qargo_sync.models.resource import Unavailability

DEFAULT_START_DATE = datetime(2025, 1, 1)
DEFAULT_END_DATE = datetime(2025, 12, 31, 23, 59, 59)


@dataclass(frozen=True)
class SynchronizationSettings:
    """Configuration for one synchronization run.

    Attributes:
        start_date: Inclusive lower bound of the window.
        end_date: Inclusive upper bound of the window.
        dry_run: If ``True``, differences are computed but no mutation
            calls are issued against the target environment.
        batch_size: Page size hint.  Not used by the reconciliation path.
        max_workers: Number of resources reconciled concurrently.
            ``1`` processes resources sequentially.
    """

    start_date: datetime = DEFAULT_START_DATE
    end_date: datetime = DEFAULT_END_DATE
    dry_run: bool = False
    batch_size: int = 100
    max_workers: int = 1


@dataclass
class ResourceSyncOperation:
    """Working state for reconciling a single resource.

    Created empty at the start of a resource's reconciliation, populated
    by the diff step and consumed by the execute step.

    Attributes:
        resource_id: Identifier of the resource in the master environment.
        resource_name: Display name, filled once the resource is fetched.
        master_unavailabilities: Records fetched from the master.
        target_unavailabilities: Records fetched from the target.
        to_create: Master records with no counterpart in the target.
        to_update: Master field values paired with the matching target
            record's ``id``.
        to_delete: Target ids with no counterpart in the master.
        errors: Human-readable failures for this resource.
        warnings: Non-fatal observations (e.g. ambiguous matches).
        executed: Whether the execute step ran (``False`` for a dry run,
            a comparison, or a resource missing from the master).
    """

    resource_id: str
    resource_name: str = ""
    master_unavailabilities: list[Unavailability] = field(default_factory=list)
    target_unavailabilities: list[Unavailability] = field(default_factory=list)
    to_create: list[Unavailability] = field(default_factory=list)
    to_update: list[Unavailability] = field(default_factory=list)
    to_delete: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    executed: bool = False

    @property
    def has_changes(self) -> bool:
        """Whether the diff planned any mutation."""
        return bool(self.to_create or self.to_update or self.to_delete)

    @property
    def has_errors(self) -> bool:
        return len(self.errors) > 0


@dataclass
class SyncResult:
    """Aggregated outcome of one synchronization run.

    Counts are accumulated additively from each resource's planned
    operations.  ``success`` is evaluated once, at the end of the run.

    Attributes:
        success: ``True`` iff no errors were recorded.
        resources_processed: Number of resources reconciled.
        created: Number of unavailabilities planned for creation.
        updated: Number of unavailabilities planned for update.
        deleted: Number of unavailabilities planned for deletion.
        errors: Error messages, attributed to their resource.
        warnings: Non-fatal warnings.
        duration_seconds: Wall-clock time for the run.
        timestamp: UTC time at which the run started.
        dry_run: Whether the run skipped mutations.
    """

    success: bool = False
    resources_processed: int = 0
    created: int = 0
    updated: int = 0
    deleted: int = 0
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    duration_seconds: float = 0.0
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    dry_run: bool = False

    def add_operation(self, operation: ResourceSyncOperation) -> None:
        """Fold one resource's outcome into this run result."""
        self.resources_processed += 1
        self.created += len(operation.to_create)
        self.updated += len(operation.to_update)
        self.deleted += len(operation.to_delete)
        self.errors.extend(operation.errors)
        self.warnings.extend(operation.warnings)

    @property
    def total_changes(self) -> int:
        """Total number of planned mutations across all resources."""
        return self.created + self.updated + self.deleted

    @property
    def has_errors(self) -> bool:
        return len(self.errors) > 0

    def __str__(self) -> str:
        status = "completed" if self.success else "failed"
        return (
            f"Sync {status} in {self.duration_seconds:.2f}s. "
            f"Processed {self.resources_processed} resources, "
            f"Created {self.created}, "
            f"Updated {self.updated}, "
            f"Deleted {self.deleted} unavailabilities. "
            f"Errors: {len(self.errors)}, Warnings: {len(self.warnings)}"
        )
