"""Entry point for ``python -m qargo_sync``.

Provides a CLI that loads settings from the environment and synchronizes
unavailabilities from the master environment into the target.  Uses stdlib
:mod:`argparse` for argument parsing.

Subcommands:
    run       -- Default. Synchronize every active resource.
    resource  -- Synchronize a single resource.
    compare   -- Show the differences for one resource without applying them.

Exit codes:
    0 -- Completed without errors.
    1 -- Configuration error, authentication failure, or a run with errors.
    2 -- Argument parsing error (handled by argparse).
"""

from __future__ import annotations

import argparse
import dataclasses
import sys

import httpx

from qargo_sync.api.exceptions import QargoAuthError
from qargo_sync.config import ConfigError, Settings, check_window, load_settings, parse_date
from qargo_sync.log import setup_logging
from qargo_sync.report import print_operation, print_sync_result
from qargo_sync.sync.orchestrator import build_orchestrator

_KNOWN_SUBCOMMANDS = {"run", "resource", "compare"}


def build_parser() -> argparse.ArgumentParser:
    """Build and return the CLI argument parser with subcommands.

    Returns:
        Configured :class:`argparse.ArgumentParser` with ``run``,
        ``resource`` and ``compare`` subcommands.
    """
    parser = argparse.ArgumentParser(
        prog="qargo-sync",
        description="Synchronize resource unavailabilities from a master Qargo environment to a target.",
    )

    subparsers = parser.add_subparsers(dest="command")

    # --- "run" subcommand (default) -----------------------------------
    run_parser = subparsers.add_parser(
        "run",
        help="Synchronize every active resource.",
    )
    _add_window_arguments(run_parser)
    run_parser.add_argument(
        "--dry-run",
        action="store_true",
        default=False,
        help="Compute differences but do not modify the target.",
    )
    run_parser.add_argument(
        "--workers",
        type=int,
        default=None,
        help="Number of resources reconciled concurrently (default: SYNC_MAX_WORKERS).",
    )
    _add_verbose_argument(run_parser)

    # --- "resource" subcommand ----------------------------------------
    resource_parser = subparsers.add_parser(
        "resource",
        help="Synchronize a single resource.",
    )
    resource_parser.add_argument("resource_id", help="Resource id in the master environment.")
    _add_window_arguments(resource_parser)
    resource_parser.add_argument(
        "--dry-run",
        action="store_true",
        default=False,
        help="Compute differences but do not modify the target.",
    )
    _add_verbose_argument(resource_parser)

    # --- "compare" subcommand -----------------------------------------
    compare_parser = subparsers.add_parser(
        "compare",
        help="Show the differences for one resource without applying them.",
    )
    compare_parser.add_argument("resource_id", help="Resource id in the master environment.")
    _add_window_arguments(compare_parser)
    _add_verbose_argument(compare_parser)

    return parser


def _add_window_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--start",
        type=str,
        default=None,
        help="Window start, ISO 8601 (default: SYNC_START_DATE).",
    )
    parser.add_argument(
        "--end",
        type=str,
        default=None,
        help="Window end, ISO 8601, inclusive (default: SYNC_END_DATE).",
    )


def _add_verbose_argument(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        default=False,
        help="Enable debug-level logging.",
    )


def _resolve_command(
    parser: argparse.ArgumentParser,
    argv: list[str],
) -> argparse.Namespace:
    """Parse *argv*, routing to ``run`` when no subcommand is given.

    Args:
        parser: The top-level argument parser.
        argv: Command-line arguments.

    Returns:
        Parsed :class:`argparse.Namespace`.
    """
    if not argv:
        argv = ["run"]
    elif argv[0] in {"-h", "--help"}:
        pass
    elif argv[0] not in _KNOWN_SUBCOMMANDS:
        argv = ["run", *argv]

    return parser.parse_args(argv)


def _apply_overrides(settings: Settings, args: argparse.Namespace) -> Settings:
    """Return *settings* with command-line overrides applied.

    Raises:
        ConfigError: If an override is invalid.
    """
    sync = settings.sync
    changes: dict[str, object] = {}

    if args.start is not None:
        try:
            changes["start_date"] = parse_date(args.start)
        except ValueError as exc:
            raise ConfigError(f"--start must be an ISO 8601 date, got {args.start!r}") from exc
    if args.end is not None:
        try:
            changes["end_date"] = parse_date(args.end, end_of_day=True)
        except ValueError as exc:
            raise ConfigError(f"--end must be an ISO 8601 date, got {args.end!r}") from exc
    if getattr(args, "dry_run", False):
        changes["dry_run"] = True
    workers = getattr(args, "workers", None)
    if workers is not None:
        if workers < 1:
            raise ConfigError(f"--workers must be at least 1, got {workers}")
        changes["max_workers"] = workers

    sync = dataclasses.replace(sync, **changes)
    check_window(sync.start_date, sync.end_date, "Window start", "window end")
    return dataclasses.replace(settings, sync=sync)


def _dispatch(args: argparse.Namespace, settings: Settings) -> int:
    """Run the selected subcommand against live environments."""
    with httpx.Client(timeout=settings.http_timeout) as http_client:
        orchestrator, reconciler = build_orchestrator(settings, http_client)

        if args.command == "compare":
            operation = reconciler.compare(args.resource_id, settings.sync)
            print_operation(operation)
            return 1 if operation.errors else 0

        if args.command == "resource":
            operation = reconciler.reconcile(args.resource_id, settings.sync)
            print_operation(operation)
            return 1 if operation.errors else 0

        result = orchestrator.run(settings.sync)
        print_sync_result(result)
        return 0 if result.success else 1


def main(argv: list[str] | None = None) -> int:
    """Run the qargo-sync CLI.

    Args:
        argv: Command-line arguments.  Defaults to ``sys.argv[1:]``
            when ``None`` (the normal case).

    Returns:
        Exit code: ``0`` on success, ``1`` on error.
    """
    parser = build_parser()
    args = _resolve_command(parser, argv if argv is not None else sys.argv[1:])

    try:
        settings = load_settings()
    except ConfigError as exc:
        setup_logging("INFO")
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    # --- Configure logging --------------------------------------------
    log_level = "DEBUG" if args.verbose else settings.log_level
    try:
        setup_logging(log_level)
    except ValueError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    try:
        settings = _apply_overrides(settings, args)
    except ConfigError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    try:
        return _dispatch(args, settings)
    except QargoAuthError as exc:
        print(f"Error: Authentication failed: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
