"""Factory for building rate limiter instances from configuration."""

from __future__ import annotations

import time
from typing import Callable

from blog_api.adapters.rate_limit.base import AbstractRateLimiter
from blog_api.adapters.rate_limit.in_memory import (
    InMemoryFixedWindowRateLimiter,
    InMemorySlidingWindowRateLimiter,
)
from blog_api.core.errors import ValidationAppError

SUPPORTED_STRATEGIES = ("fixed_window", "sliding_window")


def create_rate_limiter(
    *,
    strategy: str,
    limit: int,
    window_seconds: float,
    max_entries: int | None = 10_000,
    sweep_interval_seconds: float | None = None,
    clock: Callable[[], float] = time.time,
) -> AbstractRateLimiter:
    """Instantiate a limiter for the requested strategy.

    Args:
        strategy: ``fixed_window`` or ``sliding_window``.
        limit: Maximum requests per window.
        window_seconds: Window length in seconds.
        max_entries: Cap on tracked keys; None for unbounded.
        sweep_interval_seconds: Interval between opportunistic sweeps.
        clock: Time source returning UNIX seconds.

    Returns:
        AbstractRateLimiter: Configured limiter.

    Raises:
        ValidationAppError: If the strategy is unknown.
    """
    normalized = strategy.strip().lower()
    kwargs = {
        "limit": limit,
        "window_seconds": window_seconds,
        "clock": clock,
        "max_entries": max_entries,
        "sweep_interval_seconds": sweep_interval_seconds,
    }

    if normalized == "fixed_window":
        return InMemoryFixedWindowRateLimiter(**kwargs)
    if normalized == "sliding_window":
        return InMemorySlidingWindowRateLimiter(**kwargs)

    raise ValidationAppError(
        code="rate_limit_unknown_strategy",
        message=(
            f"Unknown rate limit strategy: '{strategy}'. "
            f"Supported strategies: {', '.join(SUPPORTED_STRATEGIES)}"
        ),
    )
