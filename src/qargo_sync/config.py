"""Configuration loading for qargo-sync.

Reads settings from environment variables (with .env support via python-dotenv)
and validates that all required values are present.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from datetime import datetime, time

from dotenv import load_dotenv

from qargo_sync.models.sync import (
    DEFAULT_END_DATE,
    DEFAULT_START_DATE,
    SynchronizationSettings,
)

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


class ConfigError(Exception):
    """Raised when required configuration is missing or invalid."""


@dataclass(frozen=True)
class Environment:
    """Connection details for one Qargo API environment.

    Attributes:
        name: Label used in logs (``"master"`` or ``"target"``).
        base_url: API base URL without a trailing slash.
        client_id: OAuth2 client id.
        client_secret: OAuth2 client secret.
    """

    name: str
    base_url: str
    client_id: str
    client_secret: str

    def __post_init__(self) -> None:
        object.__setattr__(self, "base_url", self.base_url.strip().rstrip("/"))

    @property
    def cache_key(self) -> str:
        """Key under which this environment's access token is cached."""
        return self.base_url

    def __repr__(self) -> str:
        return (
            f"Environment(name={self.name!r}, "
            f"base_url={self.base_url!r}, "
            f"client_id={self.client_id!r}, "
            f"client_secret='***')"
        )


@dataclass(frozen=True)
class Settings:
    """Application settings loaded from environment variables.

    Attributes:
        master: The source-of-truth environment.
        target: The environment brought into agreement with the master.
        sync: Date window and run flags.
        http_timeout: Per-request timeout in seconds.
        log_level: Logging level (default ``"INFO"``).
    """

    master: Environment
    target: Environment
    sync: SynchronizationSettings = field(default_factory=SynchronizationSettings)
    http_timeout: float = 30.0
    log_level: str = "INFO"


def load_settings() -> Settings:
    """Load and validate settings from environment variables.

    Calls :func:`dotenv.load_dotenv` so a ``.env`` file in the working
    directory is picked up automatically.

    Returns:
        A validated :class:`Settings` instance.

    Raises:
        ConfigError: If any required environment variable is missing,
            empty, or whitespace-only (the message names **all** of
            them), or if an optional value cannot be parsed.
    """
    load_dotenv()

    required = (
        "MASTER_BASE_URL",
        "MASTER_CLIENT_ID",
        "MASTER_CLIENT_SECRET",
        "TARGET_BASE_URL",
        "TARGET_CLIENT_ID",
        "TARGET_CLIENT_SECRET",
    )

    values: dict[str, str] = {}
    missing: list[str] = []

    for env_var in required:
        raw = os.environ.get(env_var, "")
        if not raw.strip():
            missing.append(env_var)
        else:
            values[env_var] = raw.strip()

    if missing:
        names = ", ".join(missing)
        raise ConfigError(f"Missing required environment variables: {names}")

    master = Environment(
        name="master",
        base_url=values["MASTER_BASE_URL"],
        client_id=values["MASTER_CLIENT_ID"],
        client_secret=values["MASTER_CLIENT_SECRET"],
    )
    target = Environment(
        name="target",
        base_url=values["TARGET_BASE_URL"],
        client_id=values["TARGET_CLIENT_ID"],
        client_secret=values["TARGET_CLIENT_SECRET"],
    )

    start_date = _optional_datetime("SYNC_START_DATE", DEFAULT_START_DATE)
    end_date = _optional_datetime("SYNC_END_DATE", DEFAULT_END_DATE, end_of_day=True)
    check_window(start_date, end_date, "SYNC_START_DATE", "SYNC_END_DATE")

    sync = SynchronizationSettings(
        start_date=start_date,
        end_date=end_date,
        dry_run=_optional_bool("SYNC_DRY_RUN", False),
        batch_size=_optional_positive_int("SYNC_BATCH_SIZE", 100),
        max_workers=_optional_positive_int("SYNC_MAX_WORKERS", 1),
    )

    timeout_raw = os.environ.get("HTTP_TIMEOUT", "").strip()
    http_timeout = 30.0
    if timeout_raw:
        try:
            http_timeout = float(timeout_raw)
        except ValueError as exc:
            raise ConfigError(f"HTTP_TIMEOUT must be a number, got {timeout_raw!r}") from exc
        if http_timeout <= 0:
            raise ConfigError(f"HTTP_TIMEOUT must be positive, got {timeout_raw!r}")

    log_level = os.environ.get("LOG_LEVEL", "").strip() or "INFO"

    return Settings(
        master=master,
        target=target,
        sync=sync,
        http_timeout=http_timeout,
        log_level=log_level,
    )


def check_window(start: datetime, end: datetime, start_label: str, end_label: str) -> None:
    """Raise :class:`ConfigError` unless *start* <= *end*.

    Both bounds must be naive or both timezone-aware.
    """
    if (start.tzinfo is None) != (end.tzinfo is None):
        raise ConfigError(f"{start_label} and {end_label} must both include a UTC offset or both omit it")
    if start > end:
        raise ConfigError(f"{start_label} ({start.isoformat()}) is after {end_label} ({end.isoformat()})")


def parse_date(raw: str, *, end_of_day: bool = False) -> datetime:
    """Parse an ISO 8601 date or datetime string.

    A date-only value is widened to the start of that day, or to its last
    second when *end_of_day* is set, so inclusive window bounds cover the
    whole day.

    Raises:
        ValueError: If *raw* is not a valid ISO 8601 date or datetime.
    """
    raw = raw.strip()
    parsed = datetime.fromisoformat(raw)
    if end_of_day and "T" not in raw and " " not in raw:
        parsed = datetime.combine(parsed.date(), time(23, 59, 59))
    return parsed


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _optional_datetime(env_var: str, default: datetime, *, end_of_day: bool = False) -> datetime:
    raw = os.environ.get(env_var, "").strip()
    if not raw:
        return default
    try:
        return parse_date(raw, end_of_day=end_of_day)
    except ValueError as exc:
        raise ConfigError(f"{env_var} must be an ISO 8601 date, got {raw!r}") from exc


def _optional_bool(env_var: str, default: bool) -> bool:
    raw = os.environ.get(env_var, "").strip().lower()
    if not raw:
        return default
    if raw in _TRUE_VALUES:
        return True
    if raw in _FALSE_VALUES:
        return False
    raise ConfigError(f"{env_var} must be a boolean, got {raw!r}")


def _optional_positive_int(env_var: str, default: int) -> int:
    raw = os.environ.get(env_var, "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        raise ConfigError(f"{env_var} must be an integer, got {raw!r}") from exc
    if value < 1:
        raise ConfigError(f"{env_var} must be at least 1, got {value}")
    return value
