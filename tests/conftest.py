"""Shared fixtures for qargo-sync tests."""

from __future__ import annotations

import logging
from collections.abc import Generator

import pytest

_ALL_VARS = (
    "MASTER_BASE_URL",
    "MASTER_CLIENT_ID",
    "MASTER_CLIENT_SECRET",
    "TARGET_BASE_URL",
    "TARGET_CLIENT_ID",
    "TARGET_CLIENT_SECRET",
    "SYNC_START_DATE",
    "SYNC_END_DATE",
    "SYNC_DRY_RUN",
    "SYNC_BATCH_SIZE",
    "SYNC_MAX_WORKERS",
    "HTTP_TIMEOUT",
    "LOG_LEVEL",
)


@pytest.fixture()
def monkeypatch_env(monkeypatch: pytest.MonkeyPatch) -> dict[str, str]:
    """Set all required environment variables to valid defaults.

    Also patches ``load_dotenv`` so that a real ``.env`` file on disk does not
    override the test values.  Optional variables are removed.

    Returns the dict of variables so tests can inspect or override values.
    """
    monkeypatch.setattr("qargo_sync.config.load_dotenv", lambda *_a, **_kw: None)
    for key in _ALL_VARS:
        monkeypatch.delenv(key, raising=False)
    env_vars = {
        "MASTER_BASE_URL": "https://master.example.com/",
        "MASTER_CLIENT_ID": "master-client",
        "MASTER_CLIENT_SECRET": "master-secret-12345",
        "TARGET_BASE_URL": "https://target.example.com",
        "TARGET_CLIENT_ID": "target-client",
        "TARGET_CLIENT_SECRET": "target-secret-67890",
    }
    for key, value in env_vars.items():
        monkeypatch.setenv(key, value)
    return env_vars


@pytest.fixture()
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Remove all qargo-sync-related environment variables.

    Patches ``load_dotenv`` so a real ``.env`` file cannot re-inject values
    that the test explicitly removed.
    """
    monkeypatch.setattr("qargo_sync.config.load_dotenv", lambda *_a, **_kw: None)
    for key in _ALL_VARS:
        monkeypatch.delenv(key, raising=False)


@pytest.fixture(autouse=True)
def _reset_root_logger() -> Generator[None, None, None]:
    """Reset the root logger after each test to prevent handler leaks."""
    root = logging.getLogger()
    original_handlers = root.handlers[:]
    original_level = root.level
    yield
    root.handlers = original_handlers
    root.setLevel(original_level)
