"""Pytest configuration and fixtures shared across all test modules.

This file is automatically loaded by pytest before running any tests.
It pins the environment before any ``app`` import so settings never pick
up a developer's .env file or a real relay document.
"""

import os

# CRITICAL: Set this before any imports that might load settings
os.environ["APP_ENV"] = "testing"
os.environ.setdefault("APP_CONFIG_PATH", "/nonexistent/relay.yaml")
os.environ.setdefault("APP_TRUST_PROXY_HEADERS", "true")
os.environ.setdefault("LOG_FORMAT", "plain")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from typing import Any, Callable

import pytest

from app.adapters.notifier.base import AbstractNotifier
from app.core.errors import NotifierAppError
from app.core.relay_config import RelayConfig, parse_relay_config


class FakeNotifier(AbstractNotifier):
    """Records deliveries instead of calling the chat provider."""

    def __init__(self, *, fail: bool = False) -> None:
        self.fail = fail
        self.calls: list[dict[str, Any]] = []
        self.closed = False

    async def send(
        self,
        destination_token: str,
        destination_channel: str,
        *,
        name: str,
        email: str,
        message: str,
        source: str | None = None,
    ) -> None:
        self.calls.append(
            {
                "destination_token": destination_token,
                "destination_channel": destination_channel,
                "name": name,
                "email": email,
                "message": message,
                "source": source,
            }
        )
        if self.fail:
            raise NotifierAppError(code="notifier_rejected", message="telegram API error: chat not found")

    async def aclose(self) -> None:
        self.closed = True


RELAY_YAML = """
server:
  port: 8080
  rate_limit: "1/m"
  allowed_origins: "https://a.com, https://b.com"
routes:
  - path: /contact
    bot_token: "123456:AAAA-contact-token"
    chat_id: "-1001"
  - path: /support
    bot_token: "654321:BBBB-support-token"
    chat_id: "-1002"
    rate_limit: "2/h"
"""


@pytest.fixture
def fake_notifier() -> FakeNotifier:
    return FakeNotifier()


@pytest.fixture
def relay_config() -> RelayConfig:
    """Two routes: /contact (1/m) and /support (2/h), restricted origins."""
    return parse_relay_config(RELAY_YAML, environ={})


@pytest.fixture
def make_relay_config() -> Callable[..., RelayConfig]:
    def _make(text: str = RELAY_YAML, environ: dict[str, str] | None = None) -> RelayConfig:
        return parse_relay_config(text, environ=environ or {})

    return _make


@pytest.fixture
def valid_payload() -> dict[str, str]:
    return {
        "name": "Ada Lovelace",
        "email": "ada@example.com",
        "message": "Hello <there> & welcome",
        "source": "landing-page",
    }
