"""Run the relay: ``python -m app``.

Configuration errors are fatal: they are logged and the process exits with
status 1 before any traffic is served. Uvicorn handles SIGINT/SIGTERM,
stops accepting connections and gives in-flight requests
APP_SHUTDOWN_GRACE_SECONDS to finish.
"""

from __future__ import annotations

import logging
import sys

import uvicorn

from app.core.app_factory import create_app
from app.core.config import settings
from app.core.errors import ConfigurationAppError
from app.core.logging import configure_logging
from app.core.relay_config import load_relay_config

logger = logging.getLogger("app")


def main() -> int:
    configure_logging(settings.log)
    logger.info("relay.starting", extra={"config_path": settings.app.config_path})

    try:
        relay_config = load_relay_config(settings.app.config_path)
        app = create_app(relay_config)
    except ConfigurationAppError as exc:
        logger.error(
            "relay.config_invalid",
            extra={"error_code": exc.code, "error_msg": exc.message},
        )
        return 1

    port = settings.app.port or relay_config.server.port
    logger.info("relay.listening", extra={"host": settings.app.host, "port": port})

    uvicorn.run(
        app,
        host=settings.app.host,
        port=port,
        timeout_graceful_shutdown=int(settings.app.shutdown_grace_seconds),
    )
    logger.info("relay.stopped")
    return 0


if __name__ == "__main__":
    sys.exit(main())
