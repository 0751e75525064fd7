"""Run orchestrator for unavailability synchronization.

Provides :class:`SyncOrchestrator`, the top-level entry point that lists
every active resource in the master environment, reconciles each one, and
folds the per-resource outcomes into a single
:class:`~qargo_sync.models.sync.SyncResult`.

Resources are independent, so with ``max_workers > 1`` they are reconciled
on a thread pool.  Outcomes are folded in master-list order by the calling
thread as each one becomes available, so the aggregate is only ever
touched from one place.

Partial failures are handled gracefully: a failing resource is recorded
and the run continues.  An authentication failure aborts the run with a
single error; resources folded before it keep their counts and errors,
and resources not yet started are cancelled.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Iterator
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass

import httpx

from qargo_sync.api.auth import TokenCache
from qargo_sync.api.client import ResourceClient
from qargo_sync.api.exceptions import QargoAuthError
from qargo_sync.api.transport import Transport
from qargo_sync.config import Settings
from qargo_sync.interfaces import ResourceRepository, SyncRepository
from qargo_sync.models.resource import Resource
from qargo_sync.models.sync import ResourceSyncOperation, SynchronizationSettings, SyncResult
from qargo_sync.sync.reconciler import Reconciler

logger = logging.getLogger(__name__)


@dataclass
class _Outcome:
    """One resource's operation plus the unexpected error that ended it, if any."""

    resource: Resource
    operation: ResourceSyncOperation
    error: Exception | None = None


class SyncOrchestrator:
    """Drives reconciliation across every active resource of a run.

    Args:
        master: Repository for the master environment (used to list
            resources).
        reconciler: Cross-environment reconciler for a single resource.
        max_workers: Default worker count when the run settings leave it
            at ``1``.
    """

    def __init__(
        self,
        master: ResourceRepository,
        reconciler: SyncRepository,
        max_workers: int = 1,
    ) -> None:
        self._master = master
        self._reconciler = reconciler
        self._max_workers = max_workers

    def run(self, settings: SynchronizationSettings) -> SyncResult:
        """Synchronize every active master resource into the target.

        Args:
            settings: Window bounds, dry-run flag and worker count.

        Returns:
            A :class:`SyncResult`.  ``success`` is ``True`` iff no error
            was recorded for any resource.
        """
        start = time.monotonic()
        result = SyncResult(dry_run=settings.dry_run)

        logger.info(
            "Starting unavailability synchronization for %s to %s%s",
            settings.start_date.isoformat(),
            settings.end_date.isoformat(),
            " (dry run)" if settings.dry_run else "",
        )

        try:
            resources = self._master.list_resources()
            active = [resource for resource in resources if resource.active]
            logger.info(
                "Found %d resource(s) in master, %d active",
                len(resources),
                len(active),
            )

            for outcome in self._reconcile_all(active, settings):
                _fold(result, outcome)

        except QargoAuthError as exc:
            logger.error("Synchronization aborted, authentication failed: %s", exc)
            result.errors.append(f"Authentication failed: {exc}")
        except Exception as exc:
            logger.exception("Synchronization failed with unexpected error")
            result.errors.append(f"Synchronization failed: {exc}")

        result.success = not result.errors
        result.duration_seconds = time.monotonic() - start

        logger.info(
            "Synchronization %s: %d resource(s), %d created, %d updated, %d deleted, "
            "%d error(s), %d warning(s) in %.2fs",
            "completed" if result.success else "failed",
            result.resources_processed,
            result.created,
            result.updated,
            result.deleted,
            len(result.errors),
            len(result.warnings),
            result.duration_seconds,
        )
        return result

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _reconcile_all(
        self,
        resources: list[Resource],
        settings: SynchronizationSettings,
    ) -> Iterator[_Outcome]:
        """Yield each resource's outcome in master-list order.

        An authentication error propagates at the position of the resource
        that raised it; outcomes yielded before it are already folded.
        """
        workers = settings.max_workers if settings.max_workers > 1 else self._max_workers
        if workers <= 1 or len(resources) <= 1:
            for resource in resources:
                yield self._reconcile_one(resource, settings)
            return

        logger.info("Reconciling %d resource(s) with %d workers", len(resources), workers)
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="qargo-sync") as pool:
            futures: list[Future[_Outcome]] = [
                pool.submit(self._reconcile_one, resource, settings) for resource in resources
            ]
            try:
                for future in futures:
                    yield future.result()
            except QargoAuthError:
                cancelled = sum(future.cancel() for future in futures)
                logger.warning("Cancelled %d pending resource(s) after authentication failure", cancelled)
                raise

    def _reconcile_one(self, resource: Resource, settings: SynchronizationSettings) -> _Outcome:
        """Reconcile one resource, capturing any non-authentication error."""
        operation = ResourceSyncOperation(resource_id=resource.id, resource_name=resource.name)
        try:
            self._reconciler.reconcile(resource.id, settings, operation)
        except QargoAuthError:
            raise
        except Exception as exc:
            logger.error("Sync failed for resource %s: %s", resource.id, exc)
            return _Outcome(resource=resource, operation=operation, error=exc)
        return _Outcome(resource=resource, operation=operation)


def _fold(result: SyncResult, outcome: _Outcome) -> None:
    """Add one resource's outcome to the run result."""
    result.add_operation(outcome.operation)
    if outcome.error is not None:
        result.errors.append(
            f"Failed to sync resource {outcome.resource.id} "
            f"({outcome.resource.name}): {outcome.error}"
        )


def build_orchestrator(
    settings: Settings,
    http_client: httpx.Client,
) -> tuple[SyncOrchestrator, Reconciler]:
    """Wire the API clients, reconciler and orchestrator from *settings*.

    Args:
        settings: Loaded application settings.
        http_client: Connection pool shared by token requests and API
            calls.  Owned and closed by the caller.

    Returns:
        The orchestrator and the reconciler (for single-resource commands).
    """
    tokens = TokenCache(http_client=http_client)
    transport = Transport(tokens, http_client=http_client)

    master = ResourceClient(transport, settings.master)
    target = ResourceClient(transport, settings.target)
    reconciler = Reconciler(master, target)

    orchestrator = SyncOrchestrator(master, reconciler, max_workers=settings.sync.max_workers)
    return orchestrator, reconciler
