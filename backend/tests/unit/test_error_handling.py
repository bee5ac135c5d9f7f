"""
Unit Tests for Error Handling

Tests for:
- ServiceError subclasses (status and error codes)
- handle_endpoint_errors translation
- Error response rendering through the exception handler and middleware
"""

import pytest
from fastapi import FastAPI, HTTPException
from fastapi.testclient import TestClient

from app.middleware.error_handling import (
    NotFoundError,
    ServiceError,
    ShapeMismatchError,
    StoreUnavailableError,
    ValidationError,
    handle_endpoint_errors,
    setup_error_handling,
)


class TestExceptionClasses:
    """Status and error codes of the service exceptions."""

    @pytest.mark.parametrize(
        "exc_class,status_code,error_code",
        [
            pytest.param(ServiceError, 500, "service_error", id="service"),
            pytest.param(StoreUnavailableError, 503, "store_unavailable", id="store"),
            pytest.param(ShapeMismatchError, 500, "shape_mismatch", id="shape"),
            pytest.param(ValidationError, 422, "validation_error", id="validation"),
            pytest.param(NotFoundError, 404, "not_found", id="not_found"),
        ],
    )
    def test_codes(self, exc_class, status_code, error_code) -> None:
        exc = exc_class("message")

        assert exc.status_code == status_code
        assert exc.error_code == error_code
        assert exc.message == "message"

    def test_overrides(self) -> None:
        exc = ServiceError("teapot", status_code=418, error_code="teapot", details={"a": 1})

        assert (exc.status_code, exc.error_code, exc.details) == (418, "teapot", {"a": 1})


class TestHandleEndpointErrors:
    """Tests for the route decorator."""

    @pytest.mark.asyncio
    async def test_passes_result_through(self) -> None:
        @handle_endpoint_errors("Echo")
        async def echo(value: int) -> int:
            return value

        assert await echo(3) == 3

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "exc",
        [
            pytest.param(NotFoundError("gone"), id="service_error"),
            pytest.param(HTTPException(status_code=401, detail="no"), id="http_exception"),
        ],
    )
    async def test_known_errors_reraised(self, exc) -> None:
        @handle_endpoint_errors("Fail")
        async def fail() -> None:
            raise exc

        with pytest.raises(type(exc)) as exc_info:
            await fail()

        assert exc_info.value is exc

    @pytest.mark.asyncio
    async def test_unexpected_error_wrapped(self) -> None:
        @handle_endpoint_errors("Get streak")
        async def fail() -> None:
            raise KeyError("boom")

        with pytest.raises(ServiceError) as exc_info:
            await fail()

        assert exc_info.value.message == "Get streak failed"
        assert exc_info.value.status_code == 500
        assert exc_info.value.details == {"exception": "KeyError"}

    def test_preserves_signature_metadata(self) -> None:
        @handle_endpoint_errors("Named")
        async def named_handler() -> None:
            """Docstring."""

        assert named_handler.__name__ == "named_handler"
        assert named_handler.__doc__ == "Docstring."


def build_app(debug: bool) -> FastAPI:
    app = FastAPI()
    setup_error_handling(app, debug=debug)

    @app.get("/missing")
    async def missing():
        raise NotFoundError("Problem p1 not found", details={"problem_id": "p1"})

    @app.get("/down")
    async def down():
        raise StoreUnavailableError("Progress store unavailable")

    @app.get("/crash")
    async def crash():
        raise RuntimeError("db password leaked")

    @app.get("/forbidden")
    async def forbidden():
        raise HTTPException(status_code=403, detail="Forbidden")

    return app


class TestErrorRendering:
    """Tests for the JSON error format."""

    def test_service_error_format(self) -> None:
        client = TestClient(build_app(debug=False))

        response = client.get("/missing")

        assert response.status_code == 404
        body = response.json()
        assert body["error"] == "not_found"
        assert body["message"] == "Problem p1 not found"
        assert len(body["error_id"]) == 8
        assert body["details"] is None
        assert "timestamp" in body

    def test_details_shown_in_debug(self) -> None:
        client = TestClient(build_app(debug=True))

        assert client.get("/missing").json()["details"] == {"problem_id": "p1"}

    def test_store_unavailable_is_503(self) -> None:
        client = TestClient(build_app(debug=False))

        response = client.get("/down")

        assert response.status_code == 503
        assert response.json()["error"] == "store_unavailable"

    def test_unhandled_error_is_sanitized(self) -> None:
        client = TestClient(build_app(debug=False))

        response = client.get("/crash")

        assert response.status_code == 500
        body = response.json()
        assert body["error"] == "internal_server_error"
        assert body["details"] is None
        assert "db password leaked" not in response.text

    def test_http_exception_untouched(self) -> None:
        client = TestClient(build_app(debug=False))

        response = client.get("/forbidden")

        assert response.status_code == 403
        assert response.json() == {"detail": "Forbidden"}
