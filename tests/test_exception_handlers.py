"""Tests for global exception handlers.

Validates that domain errors and unexpected failures are returned with
consistent status codes and JSON shape, without leaking internals.
"""

import asyncio
import json
from unittest.mock import AsyncMock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from showroom.core.errors import AppError, AuthenticationAppError, ValidationAppError
from showroom.core.exception_handlers import general_exception_handler, setup_exception_handlers


@pytest.fixture
def app_with_handlers() -> FastAPI:
    app = FastAPI()
    setup_exception_handlers(app)

    @app.get("/bad-filter")
    async def bad_filter():
        raise ValidationAppError(
            code="unknown_rate_limit_category",
            message="Unknown rate limit category 'bulk'",
            details={"field": "category", "hint": "general, auth, search"},
        )

    @app.get("/forbidden")
    async def forbidden():
        raise AuthenticationAppError(code="invalid_api_key", message="Invalid or missing API key")

    @app.get("/plain-app-error")
    async def plain_app_error():
        raise AppError(code="inventory_conflict", message="Conflict")

    @app.get("/crash")
    async def crash():
        raise RuntimeError("index store at 10.0.0.5 unreachable")

    return app


@pytest.fixture
def client(app_with_handlers: FastAPI) -> TestClient:
    return TestClient(app_with_handlers, raise_server_exceptions=False)


class TestAppErrorHandler:
    def test_validation_error_returns_400_with_details(self, client: TestClient):
        response = client.get("/bad-filter")

        assert response.status_code == 400
        error = response.json()["error"]
        assert error["code"] == "unknown_rate_limit_category"
        assert error["details"]["field"] == "category"
        assert "request_id" in error

    def test_authentication_error_returns_403(self, client: TestClient):
        response = client.get("/forbidden")

        assert response.status_code == 403
        assert response.json()["error"]["code"] == "invalid_api_key"

    def test_base_app_error_returns_400_without_details(self, client: TestClient):
        response = client.get("/plain-app-error")

        assert response.status_code == 400
        assert "details" not in response.json()["error"]


class TestGeneralExceptionHandler:
    def test_unexpected_error_returns_generic_500(self, client: TestClient):
        response = client.get("/crash")

        assert response.status_code == 500
        error = response.json()["error"]
        assert error["code"] == "internal_server_error"
        assert "10.0.0.5" not in error["message"]

    def test_never_leaks_stack_trace(self):
        request = AsyncMock()
        request.url.path = "/v1/search"
        request.method = "GET"

        response = asyncio.run(general_exception_handler(request, ValueError("boom")))

        body = json.loads(bytes(response.body).decode())
        text = json.dumps(body)
        assert "Traceback" not in text
        assert "ValueError" not in text
        assert body["error"]["code"] == "internal_server_error"


class TestErrorHandlerIntegration:
    def test_setup_registers_handlers(self, app_with_handlers: FastAPI):
        assert AppError in app_with_handlers.exception_handlers
        assert Exception in app_with_handlers.exception_handlers

    def test_multiple_setups_are_safe(self):
        app = FastAPI()
        setup_exception_handlers(app)
        setup_exception_handlers(app)

        assert AppError in app.exception_handlers
