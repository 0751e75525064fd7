"""Per-resource reconciliation between the master and target environments.

Provides :class:`Reconciler`, which brings one resource's unavailabilities
in the target environment into agreement with the master:

1. Fetch the resource from the master; stop if it does not exist.
2. Fetch both environments' unavailabilities for the settings window.
3. Diff them (:func:`~qargo_sync.sync.diff.determine_changes`).
4. Apply the creates, updates and deletes to the target, unless the run
   is a dry run.

Every individual mutation failure is recorded on the operation and the
remaining mutations are still attempted.  Any other failure while loading
or diffing ends the resource with a single recorded error.  Authentication
failures are the exception: they propagate so the run can be aborted.
"""

from __future__ import annotations

import logging

from qargo_sync.api.exceptions import QargoAPIError, QargoAuthError
from qargo_sync.interfaces import ResourceRepository
from qargo_sync.models.sync import ResourceSyncOperation, SynchronizationSettings
from qargo_sync.sync.diff import determine_changes, to_input

logger = logging.getLogger(__name__)


class Reconciler:
    """Reconciles a single resource from *master* into *target*.

    Args:
        master: Repository for the source-of-truth environment.
        target: Repository for the environment being updated.
    """

    def __init__(self, master: ResourceRepository, target: ResourceRepository) -> None:
        self._master = master
        self._target = target

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def reconcile(
        self,
        resource_id: str,
        settings: SynchronizationSettings,
        operation: ResourceSyncOperation | None = None,
    ) -> ResourceSyncOperation:
        """Fetch, diff and apply the changes for one resource.

        Args:
            resource_id: Identifier of the resource in the master.
            settings: Window bounds and the dry-run flag.
            operation: Optional caller-owned operation to populate.  Lets
                the caller inspect partial state if an unexpected error
                escapes.

        Returns:
            The populated :class:`ResourceSyncOperation`.

        Raises:
            QargoAuthError: If either environment rejects authentication.
        """
        operation = operation if operation is not None else ResourceSyncOperation(resource_id=resource_id)

        try:
            if not self._load(operation, settings):
                return operation

            determine_changes(operation)

            if settings.dry_run:
                self._log_planned(operation)
            else:
                self._execute(operation)
        except QargoAuthError:
            raise
        except QargoAPIError as exc:
            logger.error("Failed to synchronize resource %s: %s", resource_id, exc)
            operation.errors.append(f"Sync failed: {exc}")
            return operation
        except Exception as exc:
            logger.exception("Unexpected error synchronizing resource %s", resource_id)
            operation.errors.append(f"Sync failed: {exc}")
            return operation

        logger.info(
            "%s resource %s (%s): created %d, updated %d, deleted %d, errors %d",
            "Compared" if settings.dry_run else "Synchronized",
            resource_id,
            operation.resource_name,
            len(operation.to_create),
            len(operation.to_update),
            len(operation.to_delete),
            len(operation.errors),
        )
        return operation

    def compare(
        self,
        resource_id: str,
        settings: SynchronizationSettings | None = None,
    ) -> ResourceSyncOperation:
        """Fetch and diff one resource without touching the target.

        Args:
            resource_id: Identifier of the resource in the master.
            settings: Window to compare.  Defaults to
                :class:`SynchronizationSettings`'s full-year window.

        Returns:
            The populated :class:`ResourceSyncOperation`; ``executed`` is
            always ``False``.
        """
        settings = settings or SynchronizationSettings()
        operation = ResourceSyncOperation(resource_id=resource_id)

        try:
            if not self._load(operation, settings):
                return operation
            determine_changes(operation)
        except QargoAuthError:
            raise
        except QargoAPIError as exc:
            logger.error("Failed to compare resource %s: %s", resource_id, exc)
            operation.errors.append(f"Comparison failed: {exc}")
        except Exception as exc:
            logger.exception("Unexpected error comparing resource %s", resource_id)
            operation.errors.append(f"Comparison failed: {exc}")

        return operation

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _load(self, operation: ResourceSyncOperation, settings: SynchronizationSettings) -> bool:
        """Fetch the resource and both unavailability lists.

        Returns:
            ``False`` if the resource does not exist in the master, in
            which case an error is recorded and the target is not called.
        """
        resource_id = operation.resource_id

        resource = self._master.get_resource(resource_id)
        if resource is None:
            logger.warning("Resource %s not found in master", resource_id)
            operation.errors.append(f"resource {resource_id} not found in master")
            return False

        operation.resource_name = resource.name

        operation.master_unavailabilities = self._master.list_unavailabilities(
            resource_id, settings.start_date, settings.end_date
        )
        operation.target_unavailabilities = self._target.list_unavailabilities(
            resource_id, settings.start_date, settings.end_date
        )
        return True

    def _execute(self, operation: ResourceSyncOperation) -> None:
        """Apply the planned changes to the target.

        Each failure is recorded and does not stop the remaining calls.
        """
        resource_id = operation.resource_id
        operation.executed = True

        for record in operation.to_create:
            try:
                self._target.create_unavailability(resource_id, to_input(record))
            except QargoAuthError:
                raise
            except Exception as exc:
                logger.error("Failed to create unavailability for resource %s: %s", resource_id, exc)
                operation.errors.append(f"Failed to create unavailability: {exc}")

        for record in operation.to_update:
            if not record.id:
                operation.errors.append("Cannot update unavailability without ID")
                continue
            try:
                self._target.update_unavailability(resource_id, record.id, to_input(record))
            except QargoAuthError:
                raise
            except Exception as exc:
                logger.error("Failed to update unavailability %s: %s", record.id, exc)
                operation.errors.append(f"Failed to update unavailability {record.id}: {exc}")

        for unavailability_id in operation.to_delete:
            try:
                deleted = self._target.delete_unavailability(resource_id, unavailability_id)
            except QargoAuthError:
                raise
            except Exception as exc:
                logger.error("Failed to delete unavailability %s: %s", unavailability_id, exc)
                operation.errors.append(f"Failed to delete unavailability {unavailability_id}: {exc}")
                continue
            if not deleted:
                operation.errors.append(
                    f"Failed to delete unavailability {unavailability_id}: server rejected the request"
                )

    @staticmethod
    def _log_planned(operation: ResourceSyncOperation) -> None:
        """Log the mutations a dry run would have issued."""
        for record in operation.to_create:
            logger.info(
                "Dry run: would create unavailability %s..%s (%s) for resource %s",
                record.start_time.isoformat(),
                record.end_time.isoformat(),
                record.reason,
                operation.resource_id,
            )
        for record in operation.to_update:
            logger.info(
                "Dry run: would update unavailability %s for resource %s",
                record.id,
                operation.resource_id,
            )
        for unavailability_id in operation.to_delete:
            logger.info(
                "Dry run: would delete unavailability %s for resource %s",
                unavailability_id,
                operation.resource_id,
            )
