"""Telegram Bot API notifier adapter."""

from __future__ import annotations

import html
import logging
from typing import Any

import httpx

from app.adapters.notifier.base import AbstractNotifier
from app.core.errors import NotifierAppError

logger = logging.getLogger(__name__)


def format_contact_message(
    name: str,
    email: str,
    message: str,
    source: str | None = None,
) -> str:
    """Render a submission as Telegram HTML.

    Only ``&``, ``<`` and ``>`` are escaped; quotes are legal in HTML text
    nodes and Telegram keeps them verbatim.
    """

    text = (
        "📩 <b>New Contact Message</b>\n\n"
        f"<b>Name:</b> {html.escape(name, quote=False)}\n"
        f"<b>Email:</b> {html.escape(email, quote=False)}\n\n"
        f"<b>Message:</b>\n{html.escape(message, quote=False)}"
    )
    if source:
        text += f"\n\n🌐 <b>Source:</b> {html.escape(source, quote=False)}"
    return text


class TelegramNotifier(AbstractNotifier):
    """Deliver contact messages through the Telegram Bot API ``sendMessage``.

    A single ``httpx.AsyncClient`` is shared by every route; each route only
    contributes its own bot token to the request path.
    """

    def __init__(
        self,
        *,
        base_url: str = "https://api.telegram.org",
        timeout_seconds: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the notifier.

        Args:
            base_url: Bot API base URL.
            timeout_seconds: Timeout for each delivery in seconds.
            client: Optional pre-built client (tests inject a MockTransport one).
        """
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout_seconds
        self._client = client
        self._owns_client = client is None

    def _ensure_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout)
        return self._client

    async def aclose(self) -> None:
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None

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
        """Send one formatted message; see AbstractNotifier.send."""
        params = {
            "chat_id": destination_channel,
            "text": format_contact_message(name, email, message, source),
            "parse_mode": "HTML",
        }
        url = f"{self._base_url}/bot{destination_token}/sendMessage"

        try:
            response = await self._ensure_client().post(url, data=params)
        except httpx.HTTPError as exc:
            # The exception text may contain the URL, and with it the token.
            raise NotifierAppError(
                code="notifier_transport_error",
                message=f"telegram request failed: {type(exc).__name__}",
                details={"provider": "telegram"},
            ) from exc

        try:
            payload: Any = response.json()
        except ValueError as exc:
            raise NotifierAppError(
                code="notifier_invalid_response",
                message="decoding telegram response failed",
                details={"provider": "telegram", "http_status": response.status_code},
            ) from exc

        if not isinstance(payload, dict) or not payload.get("ok"):
            description = (
                payload.get("description", "unknown error")
                if isinstance(payload, dict)
                else "unexpected response shape"
            )
            raise NotifierAppError(
                code="notifier_rejected",
                message=f"telegram API error: {description}",
                details={"provider": "telegram", "http_status": response.status_code},
            )

        logger.debug(
            "notifier.sent",
            extra={"provider": "telegram", "chat_id": destination_channel},
        )
