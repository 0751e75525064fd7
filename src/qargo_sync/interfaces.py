"""Repository protocols for qargo-sync.

Two narrow capability sets, each independently mockable:

- :class:`ResourceRepository` -- single-environment CRUD over resources
  and their unavailabilities.  Implemented by
  :class:`~qargo_sync.api.client.ResourceClient`.
- :class:`SyncRepository` -- cross-environment reconciliation of one
  resource.  Implemented by :class:`~qargo_sync.sync.reconciler.Reconciler`.
"""

from __future__ import annotations

from datetime import datetime
from typing import Protocol, runtime_checkable

from qargo_sync.models.resource import Resource, Unavailability, UnavailabilityInput
from qargo_sync.models.sync import ResourceSyncOperation, SynchronizationSettings


@runtime_checkable
class ResourceRepository(Protocol):
    """CRUD access to resources and unavailabilities in one environment."""

    def list_resources(self) -> list[Resource]:
        """Return every resource, in server order."""
        ...

    def get_resource(self, resource_id: str) -> Resource | None:
        """Return one resource, or ``None`` if it does not exist."""
        ...

    def list_unavailabilities(
        self,
        resource_id: str,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> list[Unavailability]:
        """Return a resource's unavailabilities within an optional window."""
        ...

    def get_unavailability(self, resource_id: str, unavailability_id: str) -> Unavailability | None:
        """Return one unavailability, or ``None`` if it does not exist."""
        ...

    def create_unavailability(
        self,
        resource_id: str,
        unavailability: UnavailabilityInput,
    ) -> Unavailability:
        """Create an unavailability and return the stored record.

        Raises:
            QargoOperationError: If no record was created.
        """
        ...

    def update_unavailability(
        self,
        resource_id: str,
        unavailability_id: str,
        unavailability: UnavailabilityInput,
    ) -> Unavailability:
        """Update an unavailability and return the stored record.

        Raises:
            QargoInvalidArgumentError: If *unavailability_id* is empty.
            QargoOperationError: If the update did not yield a record.
        """
        ...

    def delete_unavailability(self, resource_id: str, unavailability_id: str) -> bool:
        """Delete an unavailability; ``False`` if the server refused."""
        ...


@runtime_checkable
class SyncRepository(Protocol):
    """Reconciliation of one resource between the master and the target."""

    def reconcile(
        self,
        resource_id: str,
        settings: SynchronizationSettings,
        operation: ResourceSyncOperation | None = None,
    ) -> ResourceSyncOperation:
        """Fetch, diff and apply changes for *resource_id*."""
        ...

    def compare(
        self,
        resource_id: str,
        settings: SynchronizationSettings | None = None,
    ) -> ResourceSyncOperation:
        """Fetch and diff *resource_id* without applying anything."""
        ...
