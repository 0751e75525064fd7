"""Logging setup for qargo-sync.

Every module logs through ``logging.getLogger(__name__)``;
:func:`setup_logging` is called once by the CLI to attach a single stderr
handler with pipe-separated fields and ISO 8601 timestamps::

    2025-03-01T08:00:00 | INFO     | qargo_sync.sync.orchestrator | Found 12 resource(s) ...
"""

from __future__ import annotations

import logging
import sys

_LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
_DATE_FORMAT = "%Y-%m-%dT%H:%M:%S"

# Attribute set on the handler we install, so a second call reuses it.
_HANDLER_ATTR = "_qargo_sync_log_handler"

# The transport logs each request itself; these would duplicate it at DEBUG.
_QUIET_LOGGERS = ("httpx", "httpcore")


def setup_logging(level: str = "INFO") -> None:
    """Configure the root logger for a CLI run.

    Safe to call repeatedly: the handler installed by an earlier call is
    reused and only its level changes.  The ``httpx`` and ``httpcore``
    loggers never go below WARNING.

    Args:
        level: A standard logging level name, case-insensitive.

    Raises:
        ValueError: If *level* is not a recognised logging level name.
    """
    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        raise ValueError(f"Invalid log level: {level!r}")

    root = logging.getLogger()
    root.setLevel(numeric_level)
    _own_handler(root).setLevel(numeric_level)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(numeric_level, logging.WARNING))


def _own_handler(root: logging.Logger) -> logging.Handler:
    """Return the handler installed by :func:`setup_logging`, adding it if absent."""
    for handler in root.handlers:
        if getattr(handler, _HANDLER_ATTR, False):
            return handler

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(_LOG_FORMAT, datefmt=_DATE_FORMAT))
    setattr(handler, _HANDLER_ATTR, True)
    root.addHandler(handler)
    return handler
