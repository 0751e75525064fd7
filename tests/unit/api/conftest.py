"""Shared fixtures for Qargo API unit tests."""

from __future__ import annotations

from collections.abc import Callable, Generator

import httpx
import pytest

from qargo_sync.config import Environment

Handler = Callable[[httpx.Request], httpx.Response]


@pytest.fixture()
def master_env() -> Environment:
    """Return the master environment used across API tests."""
    return Environment("master", "https://master.example.com", "master-client", "master-secret")


@pytest.fixture()
def target_env() -> Environment:
    """Return the target environment used across API tests."""
    return Environment("target", "https://target.example.com", "target-client", "target-secret")


@pytest.fixture()
def make_http_client() -> Generator[Callable[[Handler], httpx.Client], None, None]:
    """Return a factory for ``httpx.Client`` instances backed by a handler function."""
    clients: list[httpx.Client] = []

    def factory(handler: Handler) -> httpx.Client:
        client = httpx.Client(transport=httpx.MockTransport(handler))
        clients.append(client)
        return client

    yield factory

    for client in clients:
        client.close()


class FakeTokens:
    """Token provider that hands out numbered tokens and counts calls."""

    def __init__(self) -> None:
        self.get_calls = 0
        self.refresh_calls = 0
        self.rejected: list[str | None] = []

    def get_access_token(self, environment: Environment) -> str:
        self.get_calls += 1
        return f"token-{self.refresh_calls}"

    def refresh_access_token(self, environment: Environment, rejected_token: str | None = None) -> str:
        self.rejected.append(rejected_token)
        self.refresh_calls += 1
        return f"token-{self.refresh_calls}"


@pytest.fixture()
def fake_tokens() -> FakeTokens:
    """Return a fresh :class:`FakeTokens`."""
    return FakeTokens()
