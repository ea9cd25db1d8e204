"""Application configuration using Pydantic Settings.

Configuration is environment-aware:
- APP_ENV determines which .env file to load
- Supports: development, testing, staging, production
- Each environment has its own .env.{environment} file

Routes and destinations live in a separate YAML document (see
``app.core.relay_config``); these settings only describe the process.
"""

from __future__ import annotations

import os
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


# Determine which environment to load (default: development)
APP_ENV = os.getenv("APP_ENV", "development")

# Project root (so .env resolution doesn't depend on current working directory)
PROJECT_ROOT = Path(__file__).resolve().parents[2]

# Map environments to their respective .env files (relative to PROJECT_ROOT)
ENV_FILE_MAP = {
    "development": ".env.development",
    "testing": ".env.testing",
    "staging": ".env.staging",
    "production": ".env.production",
}

# Select the .env file for the current environment
_env_filename = ENV_FILE_MAP.get(APP_ENV, ".env.development")
_env_path = PROJECT_ROOT / _env_filename

# Only load from file if it exists (production might inject via env vars only)
_env_file = str(_env_path) if _env_path.is_file() else None


# Load .env file early to populate os.environ before creating nested settings
# This is necessary because Pydantic nested BaseSettings don't inherit env_file
if _env_file:
    from dotenv import load_dotenv
    load_dotenv(_env_file, override=True)


def _build_app_settings() -> "AppSettings":
    """Build app settings from environment."""

    return AppSettings()


def _build_notifier_settings() -> "NotifierSettings":
    return NotifierSettings()


def _build_log_settings() -> "LogSettings":
    return LogSettings()


class AppSettings(BaseSettings):
    """Process-wide relay configuration."""

    config_path: str = Field(
        "/config.yaml",
        description="Path to the YAML document listing routes and destinations",
    )
    host: str = Field(
        "0.0.0.0",
        description="Interface the HTTP server binds to",
    )
    port: int | None = Field(
        None,
        description="Overrides server.port from the relay document when set",
        ge=1,
        le=65535,
    )
    trust_proxy_headers: bool = Field(
        True,
        description="Resolve client identity from X-Forwarded-For / X-Real-IP",
    )
    rate_limit_retention_seconds: float = Field(
        3600.0,
        description=(
            "Age after which idle rate limit entries are swept; raised at startup "
            "to the longest configured route window"
        ),
        gt=0,
    )
    rate_limit_sweep_interval_seconds: float = Field(
        300.0,
        description="Period of the background sweep that evicts stale entries",
        gt=0,
    )
    rate_limit_include_headers: bool = Field(
        True,
        description="Include a Retry-After header when throttling",
    )
    shutdown_grace_seconds: float = Field(
        5.0,
        description="Time in-flight requests get to finish on shutdown",
        ge=0,
    )

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        case_sensitive=False,
    )


class NotifierSettings(BaseSettings):
    """Outbound chat provider configuration."""

    provider: str = Field(
        "telegram",
        description="Notifier provider name (currently only telegram)",
    )
    base_url: str = Field(
        "https://api.telegram.org",
        description="Bot API base URL (override for a self-hosted Bot API server)",
    )
    timeout_seconds: float = Field(
        10.0,
        description="Request timeout in seconds",
        gt=0,
    )

    model_config = SettingsConfigDict(
        env_prefix="NOTIFIER_",
        case_sensitive=False,
    )


class LogSettings(BaseSettings):
    """Logging output configuration."""

    level: str = Field("INFO", description="Root log level")
    format: str = Field("json", description="json or plain")
    output: str = Field("stdout", description="stdout or file")
    file_path: str | None = Field(None, description="Log file path when output=file")
    max_bytes: int = Field(
        0,
        description="Rotate the log file at this size (0 disables rotation)",
        ge=0,
    )
    backup_count: int = Field(5, description="Rotated files to keep", ge=0)
    request_id_header: str = Field(
        "X-Request-ID",
        description="Header used to accept and propagate request ids",
    )

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        case_sensitive=False,
    )


class Settings(BaseSettings):
    """Main application settings container.

    Automatically loads from the appropriate .env.{APP_ENV} file.
    Raises validation errors on startup if settings are malformed.
    """

    app_env: str = APP_ENV
    app: AppSettings = Field(default_factory=_build_app_settings)
    notifier: NotifierSettings = Field(default_factory=_build_notifier_settings)
    log: LogSettings = Field(default_factory=_build_log_settings)

    model_config = SettingsConfigDict(
        case_sensitive=False,
    )


# Global settings instance - composed from domain-specific settings
# Nested settings are created via default_factory so env loading works.
settings = Settings()
