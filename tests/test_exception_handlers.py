"""Tests for global exception handlers.

Validates that all exception types are handled consistently with
proper HTTP status codes, error format, and no information leakage.
"""

import asyncio
import json
from unittest.mock import MagicMock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from app.core.config import settings
from app.core.errors import (
    NotifierAppError,
    RateLimitAppError,
    ValidationAppError,
)
from app.core.exception_handlers import general_exception_handler, setup_exception_handlers


@pytest.fixture
def app_with_handlers() -> FastAPI:
    """Create FastAPI app with exception handlers registered."""
    app = FastAPI()
    setup_exception_handlers(app)
    return app


@pytest.fixture
def client(app_with_handlers: FastAPI) -> TestClient:
    return TestClient(app_with_handlers, raise_server_exceptions=False)


class TestAppErrorHandler:
    def test_validation_error_returns_400(self, client: TestClient, app_with_handlers: FastAPI):
        @app_with_handlers.get("/test-validation")
        async def endpoint():
            raise ValidationAppError(code="missing_fields", message="All fields are required.")

        response = client.get("/test-validation")

        assert response.status_code == 400
        data = response.json()
        assert data["error"]["code"] == "missing_fields"
        assert data["error"]["message"] == "All fields are required."
        assert "request_id" in data["error"]
        assert "details" not in data["error"]

    def test_validation_error_includes_details(self, client: TestClient, app_with_handlers: FastAPI):
        @app_with_handlers.get("/test-details")
        async def endpoint():
            raise ValidationAppError(
                code="invalid_body",
                message="bad",
                details={"context": {"fields": ["source"]}},
            )

        data = client.get("/test-details").json()

        assert data["error"]["details"] == {"context": {"fields": ["source"]}}

    def test_rate_limit_error_returns_429_with_retry_after(
        self, client: TestClient, app_with_handlers: FastAPI
    ):
        @app_with_handlers.post("/test-rate")
        async def endpoint():
            raise RateLimitAppError(code="rate_limited", message="slow down", details={"retry_after": 12})

        response = client.post("/test-rate")

        assert response.status_code == 429
        assert response.headers["Retry-After"] == "12"
        assert response.json()["error"]["code"] == "rate_limited"

    def test_retry_after_omitted_when_headers_disabled(
        self, client: TestClient, app_with_handlers: FastAPI, monkeypatch: pytest.MonkeyPatch
    ):
        monkeypatch.setattr(settings.app, "rate_limit_include_headers", False)

        @app_with_handlers.post("/test-rate-quiet")
        async def endpoint():
            raise RateLimitAppError(code="rate_limited", message="slow down", details={"retry_after": 12})

        response = client.post("/test-rate-quiet")

        assert response.status_code == 429
        assert "Retry-After" not in response.headers

    def test_notifier_error_returns_500(self, client: TestClient, app_with_handlers: FastAPI):
        @app_with_handlers.post("/test-notifier")
        async def endpoint():
            raise NotifierAppError(code="notifier_rejected", message="Failed to send message.")

        response = client.post("/test-notifier")

        assert response.status_code == 500
        assert response.json()["error"]["code"] == "notifier_rejected"


class TestGeneralExceptionHandler:
    def test_unexpected_error_returns_generic_500(self, client: TestClient, app_with_handlers: FastAPI):
        @app_with_handlers.get("/test-boom")
        async def endpoint():
            raise RuntimeError("database password is hunter2")

        response = client.get("/test-boom")

        assert response.status_code == 500
        assert response.json()["error"]["code"] == "internal_server_error"
        assert "hunter2" not in response.text

    def test_handler_can_be_called_directly(self):
        request = MagicMock()
        request.url.path = "/contact"
        request.method = "POST"

        response = asyncio.run(general_exception_handler(request, ValueError("boom")))

        assert response.status_code == 500
        body = json.loads(response.body)
        assert body["error"]["message"] == "An unexpected error occurred. Please try again later."
