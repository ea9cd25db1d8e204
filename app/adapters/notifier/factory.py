"""Factory pattern for creating notifier instances."""

from app.adapters.notifier.base import AbstractNotifier
from app.adapters.notifier.telegram_client import TelegramNotifier
from app.core.config import NotifierSettings, settings
from app.core.errors import ConfigurationAppError


def create_notifier(notifier_settings: NotifierSettings | None = None) -> AbstractNotifier:
    """Instantiate the notifier for the configured provider.

    Args:
        notifier_settings: Optional settings; defaults to the global settings.

    Returns:
        AbstractNotifier: Configured notifier instance.

    Raises:
        ConfigurationAppError: If the provider is unknown.
    """
    cfg = notifier_settings or settings.notifier
    provider = cfg.provider.lower()

    if provider == "telegram":
        return TelegramNotifier(
            base_url=cfg.base_url,
            timeout_seconds=cfg.timeout_seconds,
        )

    raise ConfigurationAppError(
        code="notifier_unknown_provider",
        message=f"Unknown notifier provider: '{provider}'. Supported providers: telegram",
    )
