"""In-memory minimum-interval rate limiter.

Notes:
- Per-process only: running multiple workers multiplies the effective limit.
- Thread-safe: a single lock guards the check-then-set and the sweep, and is
  never held across I/O, so it is safe to call from the event loop.
- Memory is bounded by a background sweeper thread that evicts entries idle
  for longer than the retention horizon.
"""

from __future__ import annotations

import logging
import math
import threading
import time
from typing import Callable

from app.adapters.rate_limit.base import AbstractRateLimiter, RateLimitDecision

logger = logging.getLogger(__name__)

RateLimitKey = tuple[str, str]


class InMemoryCooldownRateLimiter(AbstractRateLimiter):
    """Admit at most one request per window for each (identity, route) key.

    Each key stores the clock reading of its last admitted request. A request
    is admitted when there is no entry or the window has fully elapsed since
    that reading; a rejected request leaves the entry untouched.

    Important:
        This limiter is per-process only. If the relay runs with multiple
        workers, each worker enforces its own independent limits.
    """

    def __init__(
        self,
        *,
        retention_seconds: float = 3600.0,
        sweep_interval_seconds: float = 300.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize the limiter.

        Args:
            retention_seconds: Entries older than this are evicted by the sweep.
                Must be at least the longest window the limiter will see.
            sweep_interval_seconds: Period of the background sweeper.
            clock: Monotonic time source in seconds.

        Raises:
            ValueError: If retention_seconds or sweep_interval_seconds are invalid.
        """
        if retention_seconds <= 0:
            raise ValueError("retention_seconds must be > 0")
        if sweep_interval_seconds <= 0:
            raise ValueError("sweep_interval_seconds must be > 0")

        self._retention_seconds = retention_seconds
        self._sweep_interval_seconds = sweep_interval_seconds
        self._clock = clock
        self._lock = threading.Lock()
        self._last_allowed: dict[RateLimitKey, float] = {}
        self._stop_event = threading.Event()
        self._sweeper: threading.Thread | None = None

    def __len__(self) -> int:
        with self._lock:
            return len(self._last_allowed)

    @property
    def retention_seconds(self) -> float:
        return self._retention_seconds

    @property
    def running(self) -> bool:
        return self._sweeper is not None and self._sweeper.is_alive()

    def check(self, identity: str, route_key: str, window_seconds: float) -> RateLimitDecision:
        """Admit or reject a request for ``(identity, route_key)``.

        Raises:
            ValueError: If identity or route_key is empty, or window_seconds <= 0.
        """
        if not identity:
            raise ValueError("identity must be a non-empty string")
        if not route_key:
            raise ValueError("route_key must be a non-empty string")
        if window_seconds <= 0:
            raise ValueError("window_seconds must be > 0")

        key = (identity, route_key)
        with self._lock:
            now = self._clock()
            last = self._last_allowed.get(key)
            if last is None or now - last >= window_seconds:
                self._last_allowed[key] = now
                return RateLimitDecision(allowed=True)
            remaining = window_seconds - (now - last)

        return RateLimitDecision(
            allowed=False,
            retry_after_seconds=max(1, math.ceil(remaining)),
        )

    def sweep(self) -> int:
        """Evict entries older than the retention horizon.

        Returns:
            Number of evicted entries.
        """
        with self._lock:
            cutoff = self._clock() - self._retention_seconds
            stale = [key for key, last in self._last_allowed.items() if last < cutoff]
            for key in stale:
                del self._last_allowed[key]
            remaining = len(self._last_allowed)

        if stale:
            logger.debug(
                "rate_limit.sweep",
                extra={"evicted": len(stale), "tracked": remaining},
            )
        return len(stale)

    def start(self) -> None:
        """Start the background sweeper thread (no-op when already running)."""
        if self.running:
            return
        self._stop_event.clear()
        self._sweeper = threading.Thread(
            target=self._sweep_loop,
            name="rate-limit-sweeper",
            daemon=True,
        )
        self._sweeper.start()
        logger.info(
            "rate_limit.sweeper_started",
            extra={
                "interval_s": self._sweep_interval_seconds,
                "retention_s": self._retention_seconds,
            },
        )

    def stop(self, timeout: float | None = 5.0) -> None:
        """Signal the sweeper to exit and wait for it."""
        sweeper = self._sweeper
        if sweeper is None:
            return
        self._stop_event.set()
        sweeper.join(timeout)
        self._sweeper = None
        logger.info("rate_limit.sweeper_stopped")

    def _sweep_loop(self) -> None:
        while not self._stop_event.wait(self._sweep_interval_seconds):
            self.sweep()
