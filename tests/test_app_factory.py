"""Tests for application assembly and lifecycle."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from app.adapters.rate_limit.in_memory import InMemoryCooldownRateLimiter
from app.core.app_factory import build_rate_limiter, create_app
from app.core.config import AppSettings
from app.core.errors import ConfigurationAppError
from app.services.route_table import build_route_table


def test_retention_raised_to_longest_window(relay_config):
    table = build_route_table(relay_config)

    limiter = build_rate_limiter(
        table, AppSettings(rate_limit_retention_seconds=600, rate_limit_sweep_interval_seconds=30)
    )

    # /support allows 2/h, the longest window in the fixture
    assert limiter.retention_seconds == 1800


def test_configured_retention_kept_when_longer(relay_config):
    table = build_route_table(relay_config)

    limiter = build_rate_limiter(table, AppSettings(rate_limit_retention_seconds=7200))

    assert limiter.retention_seconds == 7200


def test_injected_limiter_is_used_even_when_empty(relay_config, fake_notifier):
    limiter = InMemoryCooldownRateLimiter(retention_seconds=7200)
    assert len(limiter) == 0

    app = create_app(relay_config, notifier=fake_notifier, limiter=limiter)

    assert app.state.rate_limiter is limiter


def test_state_exposes_shared_collaborators(relay_config, fake_notifier):
    app = create_app(relay_config, notifier=fake_notifier)

    assert app.state.notifier is fake_notifier
    assert [b.path for b in app.state.route_table] == ["/contact", "/support"]
    assert app.state.rate_limiter.running is False


def test_lifespan_starts_sweeper_and_releases_resources(relay_config, fake_notifier):
    app = create_app(relay_config, notifier=fake_notifier)
    limiter = app.state.rate_limiter

    with TestClient(app) as client:
        assert limiter.running is True
        assert client.get("/health").status_code == 200

    assert limiter.running is False
    assert fake_notifier.closed is True


def test_invalid_route_rate_fails_at_build_time(make_relay_config, fake_notifier):
    config = make_relay_config(
        """
routes:
  - path: /contact
    bot_token: t
    chat_id: c
    rate_limit: "5/s"
"""
    )

    with pytest.raises(ConfigurationAppError) as exc_info:
        create_app(config, notifier=fake_notifier)

    assert exc_info.value.code == "invalid_rate_limit"
    assert exc_info.value.message.startswith("route /contact: ")


def test_missing_config_file_fails_at_build_time(fake_notifier):
    with pytest.raises(ConfigurationAppError) as exc_info:
        create_app(notifier=fake_notifier)

    assert exc_info.value.code == "config_unreadable"
