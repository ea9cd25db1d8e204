from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from app.core.app_factory import create_app


@pytest.fixture
def client(relay_config, fake_notifier) -> TestClient:
    return TestClient(create_app(relay_config, notifier=fake_notifier))


def test_preserves_incoming_request_id_header(client: TestClient):
    incoming_id = "test-request-id-123"
    resp = client.get("/health", headers={"X-Request-ID": incoming_id})

    assert resp.status_code == 200
    assert resp.headers.get("X-Request-ID") == incoming_id


def test_generates_request_id_when_missing(client: TestClient):
    resp = client.get("/health")

    assert resp.status_code == 200
    generated = resp.headers.get("X-Request-ID")
    assert generated
    assert isinstance(generated, str)
    assert len(generated) > 0

    duration = resp.headers.get("X-Request-Duration-ms")
    assert duration is not None


def test_error_envelope_carries_request_id(client: TestClient):
    resp = client.post(
        "/contact",
        json={"name": "A"},
        headers={"X-Request-ID": "trace-me", "X-Forwarded-For": "203.0.113.7"},
    )

    assert resp.status_code == 400
    assert resp.json()["error"]["request_id"] == "trace-me"
    assert resp.headers["X-Request-ID"] == "trace-me"
