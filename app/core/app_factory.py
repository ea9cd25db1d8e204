"""Application factory for the relay.

Centralizes app construction (relay document, route table, shared limiter
and notifier, middleware, handlers, routers) so tests can build an app from
an in-memory config with fake collaborators.
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from app.adapters.notifier.base import AbstractNotifier
from app.adapters.notifier.factory import create_notifier
from app.adapters.rate_limit.base import AbstractRateLimiter
from app.adapters.rate_limit.in_memory import InMemoryCooldownRateLimiter
from app.api.routes import build_contact_router, health_router
from app.core.config import AppSettings, settings
from app.core.cors import build_cors_middleware
from app.core.exception_handlers import setup_exception_handlers
from app.core.logging import configure_logging
from app.core.middleware import request_id_middleware
from app.core.relay_config import RelayConfig, load_relay_config
from app.services.route_table import RouteBinding, build_route_table, longest_window

logger = logging.getLogger(__name__)


def build_rate_limiter(
    route_table: tuple[RouteBinding, ...],
    app_settings: AppSettings | None = None,
) -> InMemoryCooldownRateLimiter:
    """Create the shared limiter with a retention horizon covering every window.

    A route whose window exceeds the configured retention would otherwise have
    live cooldown state evicted, silently resetting its throttling.
    """

    cfg = app_settings or settings.app
    retention = max(cfg.rate_limit_retention_seconds, longest_window(route_table))
    if retention > cfg.rate_limit_retention_seconds:
        logger.warning(
            "rate_limit.retention_raised",
            extra={
                "configured_s": cfg.rate_limit_retention_seconds,
                "effective_s": retention,
            },
        )
    return InMemoryCooldownRateLimiter(
        retention_seconds=retention,
        sweep_interval_seconds=cfg.rate_limit_sweep_interval_seconds,
    )


def create_app(
    relay_config: RelayConfig | None = None,
    *,
    notifier: AbstractNotifier | None = None,
    limiter: AbstractRateLimiter | None = None,
) -> FastAPI:
    """Create and configure the relay application.

    Args:
        relay_config: Parsed relay document; loaded from APP_CONFIG_PATH when omitted.
        notifier: Outbound notifier; built from NOTIFIER_* settings when omitted.
        limiter: Rate limiter; an in-memory limiter when omitted.

    Returns:
        Configured FastAPI app with middleware, handlers and routers.

    Raises:
        ConfigurationAppError: If the relay document or its rate limits are invalid.
    """
    # Logging first so subsequent init logs are formatted as desired
    configure_logging(settings.log)

    config = relay_config if relay_config is not None else load_relay_config(settings.app.config_path)
    route_table = build_route_table(config)
    shared_limiter = limiter if limiter is not None else build_rate_limiter(route_table)
    shared_notifier = notifier if notifier is not None else create_notifier(settings.notifier)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        shared_limiter.start()
        logger.info("relay.ready", extra={"route_count": len(route_table)})
        try:
            yield
        finally:
            logger.info("relay.shutting_down")
            # stop() joins the sweeper thread
            await asyncio.to_thread(shared_limiter.stop)
            await shared_notifier.aclose()

    app = FastAPI(
        title="Contact Relay",
        description=(
            "Relays contact-form submissions to Telegram chats. Each configured "
            "route forwards to its own bot and chat and enforces a minimum "
            "interval between submissions per client."
        ),
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.relay_config = config
    app.state.route_table = route_table
    app.state.rate_limiter = shared_limiter
    app.state.notifier = shared_notifier

    # Middleware (last registered runs first)
    app.middleware("http")(build_cors_middleware(config.server.allowed_origins))
    app.middleware("http")(request_id_middleware)

    # Exception handlers
    setup_exception_handlers(app)

    # Routers
    app.include_router(health_router)
    app.include_router(
        build_contact_router(
            route_table,
            limiter=shared_limiter,
            notifier=shared_notifier,
            trust_proxy_headers=settings.app.trust_proxy_headers,
        )
    )

    return app
