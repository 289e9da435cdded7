"""Rate limiting adapters.

A small abstraction layer so the API can start with in-memory limiters and
later move to a shared store without changing the HTTP layer.
"""

from blog_api.adapters.rate_limit.base import AbstractRateLimiter, RateLimitResult
from blog_api.adapters.rate_limit.factory import create_rate_limiter
from blog_api.adapters.rate_limit.in_memory import (
    InMemoryFixedWindowRateLimiter,
    InMemorySlidingWindowRateLimiter,
)

__all__ = [
    "AbstractRateLimiter",
    "InMemoryFixedWindowRateLimiter",
    "InMemorySlidingWindowRateLimiter",
    "RateLimitResult",
    "create_rate_limiter",
]
