"""Relay configuration document: routes, destinations and rate policy.

The document is YAML. ``${NAME}`` placeholders are replaced with environment
values before parsing so bot tokens can stay out of the file::

    server:
      port: 8080
      rate_limit: "1/m"
      allowed_origins: "https://example.com, https://www.example.com"
    routes:
      - path: /contact
        bot_token: ${CONTACT_BOT_TOKEN}
        chat_id: "-1001234567890"
        rate_limit: "2/h"

Any problem with the document is a ``ConfigurationAppError``; the process is
expected to exit before serving traffic.
"""

from __future__ import annotations

import logging
import os
import re
from pathlib import Path
from typing import Any, Mapping

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from app.core.errors import ConfigurationAppError

logger = logging.getLogger(__name__)

DEFAULT_PORT = 8080
DEFAULT_RATE_LIMIT = "1/m"
DEFAULT_ALLOWED_ORIGINS = "*"

_ENV_PLACEHOLDER = re.compile(r"\$\{([^}]*)\}")


class ServerSection(BaseModel):
    """``server:`` block. Empty values fall back to defaults."""

    model_config = ConfigDict(coerce_numbers_to_str=True, extra="ignore")

    port: int = DEFAULT_PORT
    rate_limit: str = DEFAULT_RATE_LIMIT
    allowed_origins: str = DEFAULT_ALLOWED_ORIGINS

    @field_validator("port", mode="before")
    @classmethod
    def _default_port(cls, value: Any) -> Any:
        return DEFAULT_PORT if value in (None, "", 0) else value

    @field_validator("rate_limit", mode="before")
    @classmethod
    def _default_rate_limit(cls, value: Any) -> Any:
        return DEFAULT_RATE_LIMIT if value in (None, "") else value

    @field_validator("allowed_origins", mode="before")
    @classmethod
    def _default_origins(cls, value: Any) -> Any:
        return DEFAULT_ALLOWED_ORIGINS if value in (None, "") else value


class RouteSection(BaseModel):
    """One entry of ``routes:``.

    Required fields default to empty strings so the loader can report which
    one is missing on which route.
    """

    model_config = ConfigDict(coerce_numbers_to_str=True, extra="ignore")

    path: str = ""
    bot_token: str = ""
    chat_id: str = ""
    rate_limit: str | None = None


class RelayConfig(BaseModel):
    """Validated relay document."""

    model_config = ConfigDict(extra="ignore")

    server: ServerSection = Field(default_factory=ServerSection)
    routes: list[RouteSection] = Field(default_factory=list)

    @field_validator("server", mode="before")
    @classmethod
    def _empty_server(cls, value: Any) -> Any:
        return {} if value is None else value

    @field_validator("routes", mode="before")
    @classmethod
    def _empty_routes(cls, value: Any) -> Any:
        return [] if value is None else value


def expand_env(text: str, environ: Mapping[str, str] | None = None) -> str:
    """Replace ``${NAME}`` placeholders with environment values.

    Unset variables expand to an empty string; an unterminated ``${`` is left
    untouched.

    Examples:
        >>> expand_env("token: ${TOKEN}", {"TOKEN": "abc"})
        'token: abc'
        >>> expand_env("token: ${MISSING}", {})
        'token: '
    """

    env = os.environ if environ is None else environ
    return _ENV_PLACEHOLDER.sub(lambda match: env.get(match.group(1), ""), text)


def parse_relay_config(text: str, environ: Mapping[str, str] | None = None) -> RelayConfig:
    """Parse and validate a relay document from its YAML text.

    Args:
        text: Raw YAML, before placeholder expansion.
        environ: Environment used for ``${NAME}`` expansion (defaults to os.environ).

    Returns:
        RelayConfig with defaults applied and per-route rate limits inherited.

    Raises:
        ConfigurationAppError: On YAML syntax errors, wrong shapes, missing
            route fields, or an empty route list.
    """

    try:
        raw = yaml.safe_load(expand_env(text, environ))
    except yaml.YAMLError as exc:
        raise ConfigurationAppError(
            code="config_parse_error",
            message=f"parsing config: {exc}",
        ) from exc

    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise ConfigurationAppError(
            code="config_invalid_document",
            message="config document must be a mapping with 'server' and 'routes'",
        )

    try:
        config = RelayConfig.model_validate(raw)
    except ValidationError as exc:
        raise ConfigurationAppError(
            code="config_invalid_document",
            message=f"invalid config: {exc.errors(include_url=False)}",
        ) from exc

    for index, route in enumerate(config.routes):
        if not route.path:
            raise ConfigurationAppError(
                code="config_route_missing_field",
                message=f"route {index}: path is required",
                details={"field": "path"},
            )
        if not route.path.startswith("/"):
            raise ConfigurationAppError(
                code="config_invalid_route_path",
                message=f"route {index} ({route.path}): path must start with '/'",
                details={"field": "path", "route": route.path},
            )
        for field in ("bot_token", "chat_id"):
            if not getattr(route, field):
                raise ConfigurationAppError(
                    code="config_route_missing_field",
                    message=f"route {index} ({route.path}): {field} is required",
                    details={"field": field, "route": route.path},
                )
        if not route.rate_limit:
            route.rate_limit = config.server.rate_limit

    if not config.routes:
        raise ConfigurationAppError(
            code="config_no_routes",
            message="at least one route is required",
        )

    return config


def load_relay_config(path: str | Path) -> RelayConfig:
    """Read and validate the relay document at ``path``.

    Raises:
        ConfigurationAppError: If the file cannot be read or is invalid.
    """

    config_path = Path(path)
    try:
        text = config_path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigurationAppError(
            code="config_unreadable",
            message=f"reading config: {exc}",
            details={"hint": "Set APP_CONFIG_PATH to the relay YAML document"},
        ) from exc

    config = parse_relay_config(text)
    logger.info(
        "relay_config.loaded",
        extra={"config_path": str(config_path), "route_count": len(config.routes)},
    )
    return config
