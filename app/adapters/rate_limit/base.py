"""Rate limiter interfaces.

The dispatcher depends on this abstraction (not the concrete implementation)
so the storage backend can be swapped later with minimal changes.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class RateLimitDecision:
    """Outcome of a rate limit check.

    Attributes:
        allowed: Whether the request is admitted.
        retry_after_seconds: Whole seconds until the caller may retry
            (None when admitted).
    """

    allowed: bool
    retry_after_seconds: int | None = None


class AbstractRateLimiter(ABC):
    """Interface for per-(identity, route) minimum-interval limiters."""

    @abstractmethod
    def check(self, identity: str, route_key: str, window_seconds: float) -> RateLimitDecision:
        """Admit or reject a request, recording the admission atomically.

        Args:
            identity: Resolved caller identity.
            route_key: Route the request targets (its path).
            window_seconds: Minimum spacing between admitted requests.

        Returns:
            RateLimitDecision describing whether it was admitted.
        """
        raise NotImplementedError

    def allow(self, identity: str, route_key: str, window_seconds: float) -> bool:
        """Boolean shortcut for :meth:`check`."""
        return self.check(identity, route_key, window_seconds).allowed

    def start(self) -> None:
        """Start background maintenance, if the backend has any."""

    def stop(self) -> None:
        """Stop background maintenance started by :meth:`start`."""
