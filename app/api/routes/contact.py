from __future__ import annotations

import logging
from typing import Awaitable, Callable, Iterable

from fastapi import APIRouter, Request

from app.adapters.notifier.base import AbstractNotifier
from app.adapters.rate_limit.base import AbstractRateLimiter
from app.core.logging import mask_secret
from app.schemas.contact import ContactAccepted
from app.services.contact_dispatcher import ContactDispatcher
from app.services.route_table import RouteBinding

logger = logging.getLogger(__name__)

ContactEndpoint = Callable[[Request], Awaitable[ContactAccepted]]


def _make_endpoint(dispatcher: ContactDispatcher) -> ContactEndpoint:
    async def submit_contact(request: Request) -> ContactAccepted:
        """Relay a contact-form submission to this route's chat.

        Accepts JSON ``{name, email, message, source?}``. Responds 429 while
        the caller is cooling down, 400 for malformed or incomplete payloads
        and 500 when delivery fails.
        """
        return await dispatcher.handle(request)

    return submit_contact


def build_contact_router(
    route_table: Iterable[RouteBinding],
    *,
    limiter: AbstractRateLimiter,
    notifier: AbstractNotifier,
    trust_proxy_headers: bool = True,
) -> APIRouter:
    """Create a router with one POST endpoint per configured route.

    Args:
        route_table: Bindings built from the relay document.
        limiter: Shared rate limiter instance.
        notifier: Shared notifier instance.
        trust_proxy_headers: Whether identity resolution honours proxy headers.

    Returns:
        APIRouter ready to be included in the application.
    """

    router = APIRouter(tags=["Contact"])

    for binding in route_table:
        dispatcher = ContactDispatcher(
            binding,
            limiter=limiter,
            notifier=notifier,
            trust_proxy_headers=trust_proxy_headers,
        )
        router.add_api_route(
            binding.path,
            _make_endpoint(dispatcher),
            methods=["POST"],
            response_model=ContactAccepted,
            name=f"contact:{binding.path}",
        )
        logger.info(
            "contact_route.registered",
            extra={
                "path": binding.path,
                "bot": mask_secret(binding.destination_token),
                "chat_id": binding.destination_channel,
                "window_s": binding.window_seconds,
            },
        )

    return router
