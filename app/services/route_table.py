"""Route table: configured contact routes with their parsed rate windows."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass

from app.core.errors import ConfigurationAppError
from app.core.logging import mask_secret
from app.core.relay_config import RelayConfig

logger = logging.getLogger(__name__)

_UNIT_SECONDS = {
    "m": 60.0,
    "h": 3600.0,
}

_COUNT = re.compile(r"\d+", re.ASCII)


@dataclass(frozen=True)
class RouteBinding:
    """A route bound to one destination and a minimum request spacing."""

    path: str
    destination_token: str
    destination_channel: str
    window_seconds: float

    def __repr__(self) -> str:
        return (
            f"RouteBinding(path={self.path!r}, "
            f"destination_token={mask_secret(self.destination_token)!r}, "
            f"destination_channel={self.destination_channel!r}, "
            f"window_seconds={self.window_seconds!r})"
        )


def parse_rate_limit(value: str) -> float:
    """Convert ``"N/m"`` or ``"N/h"`` into seconds between admitted requests.

    Examples:
        >>> parse_rate_limit("5/m")
        12.0
        >>> parse_rate_limit("2/h")
        1800.0

    Raises:
        ConfigurationAppError: If the format, count or unit is invalid.
    """

    parts = value.split("/")
    if len(parts) != 2:
        raise ConfigurationAppError(
            code="invalid_rate_limit",
            message=f"invalid rate limit format: {value} (expected N/m or N/h)",
        )

    count_text, unit = parts
    count = int(count_text) if _COUNT.fullmatch(count_text) else 0
    if count <= 0:
        raise ConfigurationAppError(
            code="invalid_rate_limit",
            message=f"invalid rate limit count: {count_text}",
        )

    unit_seconds = _UNIT_SECONDS.get(unit)
    if unit_seconds is None:
        raise ConfigurationAppError(
            code="invalid_rate_limit",
            message=f"invalid rate limit unit: {unit} (use m or h)",
        )

    return unit_seconds / count


def build_route_table(config: RelayConfig) -> tuple[RouteBinding, ...]:
    """Bind every configured route to its destination and window.

    Raises:
        ConfigurationAppError: On an invalid rate limit or a duplicate path.
    """

    bindings: list[RouteBinding] = []
    seen: set[str] = set()

    for route in config.routes:
        if route.path in seen:
            raise ConfigurationAppError(
                code="config_duplicate_route",
                message=f"route {route.path}: path is configured more than once",
                details={"route": route.path},
            )
        seen.add(route.path)

        try:
            window = parse_rate_limit(route.rate_limit or config.server.rate_limit)
        except ConfigurationAppError as exc:
            raise ConfigurationAppError(
                code=exc.code,
                message=f"route {route.path}: {exc.message}",
                details={"route": route.path},
            ) from exc

        bindings.append(
            RouteBinding(
                path=route.path,
                destination_token=route.bot_token,
                destination_channel=route.chat_id,
                window_seconds=window,
            )
        )

    return tuple(bindings)


def longest_window(route_table: tuple[RouteBinding, ...]) -> float:
    """Largest window across routes (0.0 for an empty table)."""

    return max((binding.window_seconds for binding in route_table), default=0.0)
