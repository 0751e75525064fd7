"""Pure diff logic for unavailability reconciliation.

Two unavailabilities from different environments are the same real-world
entity when:

- both carry a non-empty ``external_id`` and those ids are equal, or
- at least one side lacks an ``external_id`` and their
  ``(start_time, end_time, reason)`` tuples are equal.

:func:`determine_changes` partitions a master/target pair of lists into
records to create, update and delete.  Nothing in this module performs I/O.
"""

from __future__ import annotations

from qargo_sync.models.resource import Unavailability, UnavailabilityInput
from qargo_sync.models.sync import ResourceSyncOperation


def same_identity(master: Unavailability, target: Unavailability) -> bool:
    """Whether *master* and *target* describe the same unavailability."""
    if master.external_id and target.external_id:
        return master.external_id == target.external_id

    return (
        master.start_time == target.start_time
        and master.end_time == target.end_time
        and master.reason == target.reason
    )


def has_changes(master: Unavailability, target: Unavailability) -> bool:
    """Whether the mutable fields of a matched pair differ.

    ``external_id`` is not compared: it is part of the identity.
    """
    return (
        master.start_time != target.start_time
        or master.end_time != target.end_time
        or master.reason != target.reason
        or master.description != target.description
    )


def identity_key(record: Unavailability) -> str:
    """Human-readable identity of *record* for log and warning messages."""
    if record.external_id:
        return f"external_id={record.external_id}"
    return f"{record.start_time.isoformat()}..{record.end_time.isoformat()} {record.reason}"


def as_update(master: Unavailability, target_id: str | None) -> Unavailability:
    """Pair the master's field values with the target record's ``id``.

    The result describes "make target record *target_id* look like
    *master*" and is what :attr:`ResourceSyncOperation.to_update` holds.
    """
    return master.model_copy(update={"id": target_id})


def to_input(record: Unavailability) -> UnavailabilityInput:
    """Build the create/update payload for *record*."""
    return UnavailabilityInput.from_unavailability(record)


def determine_changes(operation: ResourceSyncOperation) -> None:
    """Populate the create/update/delete sets of *operation*.

    Reads :attr:`~ResourceSyncOperation.master_unavailabilities` and
    :attr:`~ResourceSyncOperation.target_unavailabilities`, then:

    - each master record without a matching target record is created;
    - each master record whose first matching target record (in fetch
      order) differs is updated, carrying that target's ``id``;
    - each target record with an ``id`` and no matching master record is
      deleted.

    When a master record matches several target records, or one target
    record is matched by several master records, the first match still
    wins and a warning is appended to :attr:`~ResourceSyncOperation.warnings`.
    """
    masters = operation.master_unavailabilities
    targets = operation.target_unavailabilities
    claimed_by: dict[int, list[Unavailability]] = {}

    for master in masters:
        matches = [index for index, target in enumerate(targets) if same_identity(master, target)]

        if not matches:
            operation.to_create.append(master)
            continue

        first = matches[0]
        target = targets[first]
        claimed_by.setdefault(first, []).append(master)

        if len(matches) > 1:
            duplicate_ids = ", ".join(str(targets[index].id) for index in matches)
            operation.warnings.append(
                f"Resource {operation.resource_id}: master unavailability "
                f"{identity_key(master)} matches {len(matches)} target records "
                f"({duplicate_ids}); using {target.id}"
            )

        if has_changes(master, target):
            operation.to_update.append(as_update(master, target.id))

    for index, masters_for_target in claimed_by.items():
        if len(masters_for_target) > 1:
            operation.warnings.append(
                f"Resource {operation.resource_id}: target unavailability "
                f"{targets[index].id} is matched by {len(masters_for_target)} master records"
            )

    for target in targets:
        if not target.id:
            continue
        if not any(same_identity(master, target) for master in masters):
            operation.to_delete.append(target.id)
