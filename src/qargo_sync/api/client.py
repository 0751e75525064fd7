"""Resource and unavailability client for one Qargo environment.

Provides :class:`ResourceClient`, a thin wrapper around
:class:`~qargo_sync.api.transport.Transport` bound to a single environment:

- **Read** -- list resources and unavailabilities (following pagination),
  fetch a single resource or unavailability.
- **Create / Update** -- send an :class:`UnavailabilityInput`; a response
  without a decodable record raises :class:`QargoOperationError`.
- **Delete** -- a rejected delete returns ``False`` rather than raising.

Pagination is sequential and follows the server's next-page pointer until
it is absent or empty.  A pointer that looks like a URL or absolute path is
requested as-is; anything else is treated as an opaque cursor.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

from qargo_sync.api.exceptions import (
    QargoInvalidArgumentError,
    QargoNotFoundError,
    QargoOperationError,
    QargoTransportError,
)
from qargo_sync.api.transport import Transport
from qargo_sync.config import Environment
from qargo_sync.models.resource import (
    Resource,
    ResourcePage,
    Unavailability,
    UnavailabilityInput,
    UnavailabilityPage,
)

logger = logging.getLogger(__name__)

RESOURCES_PATH = "/v1/resources/resource"

# Query parameter carrying an opaque pagination cursor.
_CURSOR_PARAM = "cursor"

_WIRE_DATETIME_FORMAT = "%Y-%m-%dT%H:%M:%SZ"

PageT = TypeVar("PageT", ResourcePage, UnavailabilityPage)
ModelT = TypeVar("ModelT", bound=BaseModel)


class ResourceClient:
    """CRUD access to resources and unavailabilities in one environment.

    Args:
        transport: Shared authenticated transport.
        environment: The environment this client talks to.
    """

    def __init__(self, transport: Transport, environment: Environment) -> None:
        self._transport = transport
        self.environment = environment

    def __repr__(self) -> str:
        return f"ResourceClient({self.environment.name!r}, {self.environment.base_url!r})"

    # ------------------------------------------------------------------
    # Resources
    # ------------------------------------------------------------------

    def list_resources(self) -> list[Resource]:
        """Fetch every resource, following pagination.

        Returns:
            Resources in server order, concatenated across pages.
        """
        logger.info("Fetching all resources from %s", self.environment.base_url)
        resources = self._collect(RESOURCES_PATH, ResourcePage, {})
        logger.info("Fetched %d resource(s) from %s", len(resources), self.environment.base_url)
        return resources

    def get_resource(self, resource_id: str) -> Resource | None:
        """Fetch one resource, or ``None`` if it does not exist."""
        logger.debug("Fetching resource %s", resource_id)
        try:
            payload = self._transport.get(self.environment, f"{RESOURCES_PATH}/{resource_id}")
        except QargoNotFoundError:
            logger.warning("Resource %s not found in %s", resource_id, self.environment.base_url)
            return None

        if not payload:
            logger.warning("Resource %s returned an empty body", resource_id)
            return None

        resource = _validate(Resource, payload, f"GET {RESOURCES_PATH}/{resource_id}")
        logger.debug("Fetched resource %s: %s", resource_id, resource.name)
        return resource

    # ------------------------------------------------------------------
    # Unavailabilities
    # ------------------------------------------------------------------

    def list_unavailabilities(
        self,
        resource_id: str,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> list[Unavailability]:
        """Fetch the unavailabilities of one resource, following pagination.

        Args:
            resource_id: The resource whose unavailabilities to list.
            start: Inclusive lower bound on ``start_time``, filtered
                server-side.
            end: Inclusive upper bound on ``end_time``, filtered
                server-side.

        Returns:
            Unavailabilities in server order, concatenated across pages.
        """
        params: dict[str, str] = {}
        if start is not None:
            params["start_time_gte"] = format_wire_datetime(start)
        if end is not None:
            params["end_time_lte"] = format_wire_datetime(end)

        logger.info("Fetching unavailabilities for resource %s from %s", resource_id, self.environment.name)
        records = self._collect(_unavailability_path(resource_id), UnavailabilityPage, params)
        logger.info(
            "Fetched %d unavailability(ies) for resource %s from %s",
            len(records),
            resource_id,
            self.environment.name,
        )
        return records

    def get_unavailability(self, resource_id: str, unavailability_id: str) -> Unavailability | None:
        """Fetch one unavailability, or ``None`` if it does not exist."""
        try:
            payload = self._transport.get(
                self.environment, _unavailability_path(resource_id, unavailability_id)
            )
        except QargoNotFoundError:
            logger.warning(
                "Unavailability %s not found for resource %s",
                unavailability_id,
                resource_id,
            )
            return None
        if not payload:
            return None
        return _validate(
            Unavailability, payload, f"GET {_unavailability_path(resource_id, unavailability_id)}"
        )

    def create_unavailability(
        self,
        resource_id: str,
        unavailability: UnavailabilityInput,
    ) -> Unavailability:
        """Create an unavailability for *resource_id*.

        Raises:
            QargoOperationError: If the call failed or did not return a
                decodable record.
        """
        logger.info(
            "Creating unavailability for resource %s in %s: %s to %s",
            resource_id,
            self.environment.name,
            unavailability.start_time.isoformat(),
            unavailability.end_time.isoformat(),
        )
        try:
            payload = self._transport.post(
                self.environment,
                _unavailability_path(resource_id),
                unavailability.to_payload(),
            )
        except QargoTransportError as exc:
            raise QargoOperationError(
                f"Failed to create unavailability for resource {resource_id}: {exc}",
                status_code=exc.status_code,
            ) from exc

        created = _decode_record(payload)
        if created is None:
            raise QargoOperationError(f"Failed to create unavailability for resource {resource_id}")

        logger.info("Created unavailability %s for resource %s", created.id, resource_id)
        return created

    def update_unavailability(
        self,
        resource_id: str,
        unavailability_id: str,
        unavailability: UnavailabilityInput,
    ) -> Unavailability:
        """Replace the fields of an existing unavailability.

        Raises:
            QargoInvalidArgumentError: If *unavailability_id* is empty.  No
                request is sent.
            QargoOperationError: If the call failed or did not return a
                decodable record.
        """
        if not unavailability_id:
            raise QargoInvalidArgumentError("Cannot update unavailability without ID")

        logger.info(
            "Updating unavailability %s for resource %s in %s",
            unavailability_id,
            resource_id,
            self.environment.name,
        )
        try:
            payload = self._transport.put(
                self.environment,
                _unavailability_path(resource_id, unavailability_id),
                unavailability.to_payload(),
            )
        except QargoTransportError as exc:
            raise QargoOperationError(
                f"Failed to update unavailability {unavailability_id} "
                f"for resource {resource_id}: {exc}",
                status_code=exc.status_code,
            ) from exc

        updated = _decode_record(payload)
        if updated is None:
            raise QargoOperationError(
                f"Failed to update unavailability {unavailability_id} for resource {resource_id}"
            )

        logger.info("Updated unavailability %s", unavailability_id)
        return updated

    def delete_unavailability(self, resource_id: str, unavailability_id: str) -> bool:
        """Delete an unavailability.

        Returns:
            ``True`` if the server accepted the delete, ``False`` if it
            answered with a non-success status.
        """
        logger.info(
            "Deleting unavailability %s for resource %s in %s",
            unavailability_id,
            resource_id,
            self.environment.name,
        )
        deleted = self._transport.delete(
            self.environment, _unavailability_path(resource_id, unavailability_id)
        )
        if deleted:
            logger.info("Deleted unavailability %s", unavailability_id)
        else:
            logger.warning(
                "Failed to delete unavailability %s for resource %s",
                unavailability_id,
                resource_id,
            )
        return deleted

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _collect(
        self,
        path: str,
        page_model: type[PageT],
        params: dict[str, str],
    ) -> list[Any]:
        """Fetch every page of a list endpoint and concatenate the results.

        There is no cap on the number of pages; the loop ends only when the
        server stops returning a next pointer.
        """
        collected: list[Any] = []
        url = path
        query: dict[str, str] | None = params or None

        while True:
            payload = self._transport.get(self.environment, url, params=query)
            page = _validate(page_model, payload or {}, f"GET {url}")
            collected.extend(page.results)
            logger.debug(
                "Fetched %d item(s) from %s, total: %d",
                len(page.results),
                url,
                len(collected),
            )

            next_pointer = (page.next or "").strip()
            if not next_pointer:
                break

            if next_pointer.startswith(("http://", "https://", "/")):
                # Full next-page URLs already carry the original filters.
                url, query = next_pointer, None
            else:
                url, query = path, {**params, _CURSOR_PARAM: next_pointer}

        return collected


# ---------------------------------------------------------------------------
# Module-level helpers
# ---------------------------------------------------------------------------


def format_wire_datetime(value: datetime) -> str:
    """Format a window bound as ``YYYY-MM-DDTHH:MM:SSZ``.

    Naive datetimes are taken to be UTC; aware ones are converted.
    """
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc)
    return value.strftime(_WIRE_DATETIME_FORMAT)


def _unavailability_path(resource_id: str, unavailability_id: str | None = None) -> str:
    path = f"{RESOURCES_PATH}/{resource_id}/unavailability"
    if unavailability_id is not None:
        path = f"{path}/{unavailability_id}"
    return path


def _validate(model: type[ModelT], payload: Any, operation: str) -> ModelT:
    """Decode *payload* as *model*, treating a malformed body as a transport failure."""
    try:
        return model.model_validate(payload)
    except ValidationError as exc:
        raise QargoTransportError(
            f"{operation} returned an invalid {model.__name__}: {exc.error_count()} validation error(s), "
            f"first: {_first_error(exc)}"
        ) from exc


def _first_error(exc: ValidationError) -> str:
    error = exc.errors()[0]
    location = ".".join(str(part) for part in error["loc"])
    return f"{location}: {error['msg']}" if location else error["msg"]


def _decode_record(payload: Any) -> Unavailability | None:
    """Decode a create/update response, or ``None`` if there is no record."""
    if not isinstance(payload, dict) or not payload:
        return None
    try:
        return Unavailability.model_validate(payload)
    except ValidationError as exc:
        logger.warning("Could not decode unavailability from response: %s", exc)
        return None
