"""Notifier adapter layer - abstracts over outbound chat providers."""

from app.adapters.notifier.base import AbstractNotifier
from app.adapters.notifier.factory import create_notifier
from app.adapters.notifier.telegram_client import TelegramNotifier

__all__ = [
    "AbstractNotifier",
    "TelegramNotifier",
    "create_notifier",
]
