"""Rate limiting adapters.

This package provides a small abstraction layer so the relay can start with
an in-memory limiter and later migrate to a shared store without changing
the dispatcher.
"""

from app.adapters.rate_limit.base import AbstractRateLimiter, RateLimitDecision
from app.adapters.rate_limit.in_memory import InMemoryCooldownRateLimiter

__all__ = [
    "AbstractRateLimiter",
    "InMemoryCooldownRateLimiter",
    "RateLimitDecision",
]
