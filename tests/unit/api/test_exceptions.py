"""Tests for the Qargo API exception hierarchy."""

from __future__ import annotations

import httpx
import pytest

from qargo_sync.api.exceptions import (
    QargoAPIError,
    QargoAuthError,
    QargoInvalidArgumentError,
    QargoNotFoundError,
    QargoOperationError,
    QargoTransportError,
    classify_response,
)


class TestHierarchy:
    @pytest.mark.parametrize(
        "exc_type",
        [QargoAuthError, QargoTransportError, QargoNotFoundError, QargoOperationError, QargoInvalidArgumentError],
    )
    def test_all_derive_from_base(self, exc_type: type[Exception]) -> None:
        assert issubclass(exc_type, QargoAPIError)

    def test_not_found_is_transport_error(self) -> None:
        assert issubclass(QargoNotFoundError, QargoTransportError)

    def test_invalid_argument_is_value_error(self) -> None:
        assert issubclass(QargoInvalidArgumentError, ValueError)

    def test_auth_error_defaults(self) -> None:
        exc = QargoAuthError()

        assert str(exc) == "Qargo authentication failed"
        assert exc.status_code == 401

    def test_base_status_code_optional(self) -> None:
        assert QargoAPIError("boom").status_code is None


class TestClassifyResponse:
    """Mapping of non-2xx responses to exceptions."""

    def test_404(self) -> None:
        exc = classify_response(httpx.Response(404, text="nope"), "GET /x")

        assert isinstance(exc, QargoNotFoundError)
        assert str(exc) == "GET /x returned HTTP 404: nope"

    def test_401(self) -> None:
        exc = classify_response(httpx.Response(401), "GET /x")

        assert isinstance(exc, QargoAuthError)
        assert str(exc) == "GET /x returned HTTP 401"

    def test_other_status(self) -> None:
        exc = classify_response(httpx.Response(502, text="bad gateway"), "PUT /x")

        assert type(exc) is QargoTransportError
        assert exc.status_code == 502

    def test_long_body_is_truncated(self) -> None:
        exc = classify_response(httpx.Response(500, text="x" * 1000), "POST /x")

        assert str(exc).endswith("x" * 200)
        assert "x" * 201 not in str(exc)
