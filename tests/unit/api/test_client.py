"""Tests for the resource and unavailability client."""

from __future__ import annotations

import json
from datetime import datetime, timedelta, timezone

import httpx
import pytest
from pydantic import ValidationError

from qargo_sync.api.client import RESOURCES_PATH, ResourceClient, format_wire_datetime
from qargo_sync.api.exceptions import (
    QargoInvalidArgumentError,
    QargoOperationError,
    QargoTransportError,
)
from qargo_sync.api.transport import Transport
from qargo_sync.config import Environment
from qargo_sync.models.resource import UnavailabilityInput

_UNAVAILABILITY_PATH = f"{RESOURCES_PATH}/r1/unavailability"


def _record(uid: str, **overrides: object) -> dict:
    record = {
        "id": uid,
        "external_id": f"EXT-{uid}",
        "start_time": "2025-03-01T08:00:00Z",
        "end_time": "2025-03-02T08:00:00Z",
        "reason": "DRIVER_HOLIDAY",
    }
    record.update(overrides)
    return record


def _input() -> UnavailabilityInput:
    return UnavailabilityInput(
        external_id="EXT-1",
        start_time=datetime(2025, 3, 1, 8, 0, tzinfo=timezone.utc),
        end_time=datetime(2025, 3, 2, 8, 0, tzinfo=timezone.utc),
        reason="DRIVER_HOLIDAY",
    )


@pytest.fixture()
def recorded(make_http_client, fake_tokens, master_env: Environment):
    """Build a client whose requests are recorded and answered by *handler*."""

    def build(handler) -> tuple[ResourceClient, list[httpx.Request]]:
        seen: list[httpx.Request] = []

        def wrapper(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return handler(request)

        transport = Transport(fake_tokens, http_client=make_http_client(wrapper))
        return ResourceClient(transport, master_env), seen

    return build


class TestListResources:
    """Resource listing and pagination."""

    def test_single_page(self, recorded) -> None:
        client, seen = recorded(
            lambda request: httpx.Response(200, json={"items": [{"id": "r1"}, {"id": "r2"}]})
        )

        resources = client.list_resources()

        assert [r.id for r in resources] == ["r1", "r2"]
        assert len(seen) == 1
        assert seen[0].url.path == RESOURCES_PATH

    def test_follows_opaque_cursor(self, recorded) -> None:
        """A bare next_cursor token is sent back as the cursor parameter."""

        def handler(request: httpx.Request) -> httpx.Response:
            cursor = request.url.params.get("cursor")
            if cursor is None:
                return httpx.Response(200, json={"items": [{"id": "r1"}], "next_cursor": "page-2"})
            if cursor == "page-2":
                return httpx.Response(200, json={"items": [{"id": "r2"}], "next_cursor": "page-3"})
            return httpx.Response(200, json={"items": [{"id": "r3"}], "next_cursor": None})

        client, seen = recorded(handler)

        resources = client.list_resources()

        assert [r.id for r in resources] == ["r1", "r2", "r3"]
        assert [r.url.params.get("cursor") for r in seen] == [None, "page-2", "page-3"]
        assert all(r.url.path == RESOURCES_PATH for r in seen)

    def test_follows_absolute_next_url(self, recorded) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.params.get("page") == "2":
                return httpx.Response(200, json={"items": [{"id": "r2"}]})
            return httpx.Response(
                200,
                json={"items": [{"id": "r1"}], "next": "https://master.example.com/v1/resources/resource?page=2"},
            )

        client, seen = recorded(handler)

        assert [r.id for r in client.list_resources()] == ["r1", "r2"]
        assert str(seen[1].url) == "https://master.example.com/v1/resources/resource?page=2"

    def test_null_items_is_empty_page(self, recorded) -> None:
        client, _ = recorded(lambda request: httpx.Response(200, json={"items": None}))

        assert client.list_resources() == []

    def test_empty_body_is_empty_list(self, recorded) -> None:
        client, _ = recorded(lambda request: httpx.Response(200))

        assert client.list_resources() == []

    def test_empty_next_pointer_stops(self, recorded) -> None:
        client, seen = recorded(
            lambda request: httpx.Response(200, json={"items": [{"id": "r1"}], "next_cursor": "  "})
        )

        client.list_resources()

        assert len(seen) == 1

    def test_listing_error_propagates(self, recorded) -> None:
        client, _ = recorded(lambda request: httpx.Response(503, text="unavailable"))

        with pytest.raises(QargoTransportError):
            client.list_resources()

    def test_listing_malformed_record_raises_transport_error(self, recorded) -> None:
        client, _ = recorded(lambda request: httpx.Response(200, json={"items": [{"name": "no id"}]}))

        with pytest.raises(QargoTransportError, match="invalid ResourcePage"):
            client.list_resources()


class TestGetResource:
    def test_returns_resource(self, recorded) -> None:
        client, seen = recorded(
            lambda request: httpx.Response(200, json={"id": "r1", "name": "Truck 1", "active": False})
        )

        resource = client.get_resource("r1")

        assert resource is not None
        assert resource.name == "Truck 1"
        assert resource.active is False
        assert seen[0].url.path == f"{RESOURCES_PATH}/r1"

    def test_not_found_returns_none(self, recorded) -> None:
        client, _ = recorded(lambda request: httpx.Response(404))

        assert client.get_resource("missing") is None

    def test_server_error_raises(self, recorded) -> None:
        client, _ = recorded(lambda request: httpx.Response(500))

        with pytest.raises(QargoTransportError):
            client.get_resource("r1")

    def test_malformed_resource_raises_transport_error(self, recorded) -> None:
        client, _ = recorded(lambda request: httpx.Response(200, json={"name": "Truck 1"}))

        with pytest.raises(QargoTransportError, match=r"GET /v1/resources/resource/r1 returned an invalid Resource"):
            client.get_resource("r1")


class TestListUnavailabilities:
    """Window filters and envelope handling."""

    def test_window_sent_as_query_filters(self, recorded) -> None:
        client, seen = recorded(
            lambda request: httpx.Response(200, json={"results": [_record("u1")], "next": None})
        )

        records = client.list_unavailabilities(
            "r1", datetime(2025, 1, 1), datetime(2025, 12, 31, 23, 59, 59)
        )

        assert [r.id for r in records] == ["u1"]
        params = seen[0].url.params
        assert seen[0].url.path == _UNAVAILABILITY_PATH
        assert params["start_time_gte"] == "2025-01-01T00:00:00Z"
        assert params["end_time_lte"] == "2025-12-31T23:59:59Z"

    def test_cursor_page_keeps_window_filters(self, recorded) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.params.get("cursor") == "c2":
                return httpx.Response(200, json={"results": [_record("u2")]})
            return httpx.Response(200, json={"results": [_record("u1")], "next": "c2"})

        client, seen = recorded(handler)

        records = client.list_unavailabilities("r1", datetime(2025, 1, 1), datetime(2025, 2, 1))

        assert [r.id for r in records] == ["u1", "u2"]
        assert seen[1].url.params["start_time_gte"] == "2025-01-01T00:00:00Z"
        assert seen[1].url.params["cursor"] == "c2"

    def test_no_window_sends_no_filters(self, recorded) -> None:
        client, seen = recorded(lambda request: httpx.Response(200, json={"results": []}))

        client.list_unavailabilities("r1")

        assert "start_time_gte" not in seen[0].url.params
        assert "end_time_lte" not in seen[0].url.params

    def test_malformed_record_raises_transport_error(self, recorded) -> None:
        """A record missing its start time is reported, not silently dropped."""
        client, _ = recorded(
            lambda request: httpx.Response(
                200, json={"results": [{"id": "u1", "end_time": "2025-01-02T00:00:00Z"}]}
            )
        )

        with pytest.raises(QargoTransportError, match="start_time") as exc_info:
            client.list_unavailabilities("r1")

        assert exc_info.value.status_code is None
        assert isinstance(exc_info.value.__cause__, ValidationError)

    def test_get_unavailability_not_found(self, recorded) -> None:
        client, seen = recorded(lambda request: httpx.Response(404))

        assert client.get_unavailability("r1", "u9") is None
        assert seen[0].url.path == f"{_UNAVAILABILITY_PATH}/u9"

    def test_get_unavailability(self, recorded) -> None:
        client, _ = recorded(lambda request: httpx.Response(200, json=_record("u1")))

        record = client.get_unavailability("r1", "u1")

        assert record is not None
        assert record.external_id == "EXT-u1"


class TestMutations:
    """Create, update and delete."""

    def test_create_posts_payload_without_id(self, recorded) -> None:
        client, seen = recorded(lambda request: httpx.Response(201, json=_record("new")))

        created = client.create_unavailability("r1", _input())

        assert created.id == "new"
        request = seen[0]
        assert request.method == "POST"
        assert request.url.path == _UNAVAILABILITY_PATH
        body = json.loads(request.content)
        assert "id" not in body
        assert body["external_id"] == "EXT-1"
        assert body["reason"] == "DRIVER_HOLIDAY"

    def test_create_without_record_raises_operation_error(self, recorded) -> None:
        client, _ = recorded(lambda request: httpx.Response(201))

        with pytest.raises(QargoOperationError, match="Failed to create unavailability for resource r1"):
            client.create_unavailability("r1", _input())

    def test_create_http_error_becomes_operation_error(self, recorded) -> None:
        client, _ = recorded(lambda request: httpx.Response(422, text="bad reason"))

        with pytest.raises(QargoOperationError) as exc_info:
            client.create_unavailability("r1", _input())

        assert exc_info.value.status_code == 422

    def test_update_puts_to_record_path(self, recorded) -> None:
        client, seen = recorded(lambda request: httpx.Response(200, json=_record("u1")))

        updated = client.update_unavailability("r1", "u1", _input())

        assert updated.id == "u1"
        assert seen[0].method == "PUT"
        assert seen[0].url.path == f"{_UNAVAILABILITY_PATH}/u1"

    def test_update_without_id_makes_no_request(self, recorded) -> None:
        client, seen = recorded(lambda request: httpx.Response(200, json=_record("u1")))

        with pytest.raises(QargoInvalidArgumentError, match="Cannot update unavailability without ID"):
            client.update_unavailability("r1", "", _input())

        assert seen == []

    def test_update_without_record_raises_operation_error(self, recorded) -> None:
        client, _ = recorded(lambda request: httpx.Response(200, text=""))

        with pytest.raises(QargoOperationError):
            client.update_unavailability("r1", "u1", _input())

    def test_delete_success(self, recorded) -> None:
        client, seen = recorded(lambda request: httpx.Response(204))

        assert client.delete_unavailability("r1", "u1") is True
        assert seen[0].method == "DELETE"
        assert seen[0].url.path == f"{_UNAVAILABILITY_PATH}/u1"

    def test_delete_rejected_returns_false(self, recorded) -> None:
        client, _ = recorded(lambda request: httpx.Response(400))

        assert client.delete_unavailability("r1", "u1") is False


class TestFormatWireDatetime:
    def test_naive_is_treated_as_utc(self) -> None:
        assert format_wire_datetime(datetime(2025, 6, 1, 12, 30)) == "2025-06-01T12:30:00Z"

    def test_aware_is_converted_to_utc(self) -> None:
        value = datetime(2025, 6, 1, 14, 30, tzinfo=timezone(timedelta(hours=2)))

        assert format_wire_datetime(value) == "2025-06-01T12:30:00Z"
