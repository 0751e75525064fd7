"""Console output for synchronization results.

Renders a :class:`~qargo_sync.models.sync.SyncResult` (a full run) or a
:class:`~qargo_sync.models.sync.ResourceSyncOperation` (a single resource)
as structured console output.

:func:`format_sync_result` and :func:`format_operation` return the
formatted string; the ``print_*`` variants write directly to stdout.
"""

from __future__ import annotations

import sys

from qargo_sync.models.resource import Unavailability
from qargo_sync.models.sync import ResourceSyncOperation, SyncResult

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

_BANNER_WIDTH = 60
_SEPARATOR = "=" * _BANNER_WIDTH


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def format_sync_result(result: SyncResult) -> str:
    """Render a run-level :class:`SyncResult`.

    Args:
        result: The run result to format.

    Returns:
        A multi-line string ready for console display.
    """
    lines: list[str] = []

    title = "UNAVAILABILITY SYNC (DRY RUN)" if result.dry_run else "UNAVAILABILITY SYNC"
    _append_banner(lines, title)

    lines.append("")
    lines.append(f"  Started: {result.timestamp.strftime('%Y-%m-%d %H:%M:%S UTC')}")
    lines.append(f"  Status: {'SUCCESS' if result.success else 'FAILED'}")
    lines.append(f"  Resources processed: {result.resources_processed}")
    verb = "Would " if result.dry_run else ""
    lines.append(f"  {verb}Create: {result.created}")
    lines.append(f"  {verb}Update: {result.updated}")
    lines.append(f"  {verb}Delete: {result.deleted}")
    lines.append(f"  Duration: {result.duration_seconds:.2f}s")

    _append_messages(lines, "Errors", result.errors)
    _append_messages(lines, "Warnings", result.warnings)

    lines.append(_SEPARATOR)
    return "\n".join(lines)


def format_operation(operation: ResourceSyncOperation) -> str:
    """Render the planned and applied changes for one resource.

    Args:
        operation: The reconciled or compared resource.

    Returns:
        A multi-line string ready for console display.
    """
    lines: list[str] = []

    name = f" ({operation.resource_name})" if operation.resource_name else ""
    _append_banner(lines, f"RESOURCE {operation.resource_id}{name}")

    lines.append("")
    lines.append(f"  Master unavailabilities: {len(operation.master_unavailabilities)}")
    lines.append(f"  Target unavailabilities: {len(operation.target_unavailabilities)}")
    lines.append(f"  Applied to target: {'yes' if operation.executed else 'no'}")

    lines.append("")
    lines.append(f"--- Create ({len(operation.to_create)}) ---")
    for record in operation.to_create:
        lines.append(f"  [+] {_describe(record)}")

    lines.append("")
    lines.append(f"--- Update ({len(operation.to_update)}) ---")
    for record in operation.to_update:
        lines.append(f"  [~] {record.id}: {_describe(record)}")

    lines.append("")
    lines.append(f"--- Delete ({len(operation.to_delete)}) ---")
    for unavailability_id in operation.to_delete:
        lines.append(f"  [-] {unavailability_id}")

    if not operation.has_changes and not operation.errors:
        lines.append("")
        lines.append("  Target is in sync with master.")

    _append_messages(lines, "Errors", operation.errors)
    _append_messages(lines, "Warnings", operation.warnings)

    lines.append(_SEPARATOR)
    return "\n".join(lines)


def print_sync_result(result: SyncResult) -> None:
    """Format and print a :class:`SyncResult` to stdout."""
    sys.stdout.write(format_sync_result(result) + "\n")


def print_operation(operation: ResourceSyncOperation) -> None:
    """Format and print a :class:`ResourceSyncOperation` to stdout."""
    sys.stdout.write(format_operation(operation) + "\n")


# ---------------------------------------------------------------------------
# Internal formatters
# ---------------------------------------------------------------------------


def _append_banner(lines: list[str], title: str) -> None:
    lines.append(_SEPARATOR)
    lines.append(f"  {title}")
    lines.append(_SEPARATOR)


def _append_messages(lines: list[str], heading: str, messages: list[str]) -> None:
    if not messages:
        return
    lines.append("")
    lines.append(f"--- {heading} ({len(messages)}) ---")
    for message in messages:
        lines.append(f"  * {message}")


def _describe(record: Unavailability) -> str:
    """One-line summary of an unavailability."""
    span = f"{record.start_time.strftime('%Y-%m-%d %H:%M')} -> {record.end_time.strftime('%Y-%m-%d %H:%M')}"
    text = f"{span} {record.reason}"
    if record.external_id:
        text += f" [external_id={record.external_id}]"
    if record.description:
        text += f" - {record.description}"
    return text
