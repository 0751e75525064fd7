"""Pydantic models for the Qargo resource API.

Defines the wire-level data types exchanged with a Qargo environment:

- :class:`Resource` -- a driver or vehicle that can be scheduled.
- :class:`Unavailability` -- a time-bounded period during which a resource
  cannot be scheduled.
- :class:`UnavailabilityInput` -- the mutable subset of an unavailability
  sent on create and update.
- :class:`ResourcePage` / :class:`UnavailabilityPage` -- paginated list
  envelopes.
- :class:`TokenResponse` -- the OAuth2 client-credentials token payload.

Wire field names are snake_case and match the attribute names directly.
Unknown fields are ignored and optional fields may be missing.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

# Reason codes known to the remote API.  The ``reason`` field is kept as a
# plain string so unknown codes round-trip untouched.
DRIVER_HOLIDAY = "DRIVER_HOLIDAY"
DRIVER_SICKNESS = "DRIVER_SICKNESS"
VEHICLE_MAINTENANCE = "VEHICLE_MAINTENANCE"
TRAFFIC_DELAY = "TRAFFIC_DELAY"
BREAKDOWN_DELAY = "BREAKDOWN_DELAY"
OTHER = "OTHER"

UNAVAILABILITY_REASONS: frozenset[str] = frozenset(
    {
        DRIVER_HOLIDAY,
        DRIVER_SICKNESS,
        VEHICLE_MAINTENANCE,
        TRAFFIC_DELAY,
        BREAKDOWN_DELAY,
        OTHER,
    }
)


# ---------------------------------------------------------------------------
# Resource
# ---------------------------------------------------------------------------


class Resource(BaseModel):
    """A schedulable resource (driver or vehicle) in a Qargo environment.

    Resources are read-only snapshots fetched once per run.

    Attributes:
        id: Identifier assigned by the environment.
        external_id: Identifier from the upstream system, if any.
        name: Display name.
        type: Resource type code (e.g. ``"DRIVER"``).
        description: Free-text description, if any.
        active: Whether the resource takes part in synchronization.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    external_id: str | None = None
    name: str = ""
    type: str = ""
    description: str | None = None
    active: bool = True


# ---------------------------------------------------------------------------
# Unavailability
# ---------------------------------------------------------------------------


class Unavailability(BaseModel):
    """A period during which a resource cannot be scheduled.

    ``id`` is assigned by the remote environment and is ``None`` for a
    record that has not been created there yet.

    Attributes:
        id: Environment-assigned identifier.
        external_id: Stable identifier shared across environments, if any.
        start_time: Start of the period.
        end_time: End of the period.
        reason: Reason code (see :data:`UNAVAILABILITY_REASONS`).
        description: Optional free-text description.
    """

    model_config = ConfigDict(frozen=True)

    id: str | None = None
    external_id: str | None = None
    start_time: datetime
    end_time: datetime
    reason: str = ""
    description: str | None = None


class UnavailabilityInput(BaseModel):
    """Payload for creating or updating an unavailability.

    Carries every mutable field of :class:`Unavailability` but never the
    environment-assigned ``id``.
    """

    model_config = ConfigDict(frozen=True)

    external_id: str | None = None
    start_time: datetime
    end_time: datetime
    reason: str = ""
    description: str | None = None

    @classmethod
    def from_unavailability(cls, record: Unavailability) -> UnavailabilityInput:
        """Build the mutable payload for *record*, dropping its ``id``."""
        return cls(
            external_id=record.external_id,
            start_time=record.start_time,
            end_time=record.end_time,
            reason=record.reason,
            description=record.description,
        )

    def to_payload(self) -> dict[str, Any]:
        """Return the JSON body for this input, omitting ``None`` fields."""
        return self.model_dump(mode="json", exclude_none=True)


# ---------------------------------------------------------------------------
# List envelopes
# ---------------------------------------------------------------------------


class _Page(BaseModel):
    """Shared behaviour for paginated list envelopes.

    The resource and unavailability endpoints disagree on field names:
    resources use ``items`` / ``next_cursor`` while unavailabilities use
    ``results`` / ``next``.  Both spellings are accepted by both pages.
    """

    count: int | None = None
    next: str | None = Field(
        default=None,
        validation_alias=AliasChoices("next", "next_cursor"),
    )
    previous: str | None = None

    @field_validator("results", mode="before", check_fields=False)
    @classmethod
    def _null_results_to_empty(cls, value: Any) -> Any:
        return [] if value is None else value


class ResourcePage(_Page):
    """One page of ``GET /v1/resources/resource``."""

    results: list[Resource] = Field(
        default_factory=list,
        validation_alias=AliasChoices("items", "results"),
    )


class UnavailabilityPage(_Page):
    """One page of ``GET /v1/resources/resource/{id}/unavailability``."""

    results: list[Unavailability] = Field(
        default_factory=list,
        validation_alias=AliasChoices("results", "items"),
    )


# ---------------------------------------------------------------------------
# Authentication
# ---------------------------------------------------------------------------


class TokenResponse(BaseModel):
    """Response body of ``POST /v1/auth/token``."""

    access_token: str = ""
    token_type: str = ""
    expires_in: int = 0
    scope: str | None = None
