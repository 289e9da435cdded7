"""Rate limiter interfaces.

The API layer depends on this abstraction (not the concrete implementation)
so the fixed-window and sliding-window limiters are interchangeable, and a
shared store could be added later behind the same contract.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class RateLimitResult:
    """Admission decision for one request.

    Attributes:
        allowed: Whether the request may proceed (Allow) or not (Reject).
        limit: Max requests per window.
        remaining: Remaining requests in the current window (0 when blocked).
        reset_at: UNIX epoch seconds when the current window ends.
        retry_after_seconds: Suggested wait time in seconds when blocked.
    """

    allowed: bool
    limit: int
    remaining: int
    reset_at: int
    retry_after_seconds: int | None


class AbstractRateLimiter(ABC):
    """Interface for per-key rate limiters."""

    @abstractmethod
    def consume(self, key: str) -> RateLimitResult:
        """Count one request for ``key`` and decide whether it is admitted.

        Args:
            key: Client identifier (e.g., ``ip:203.0.113.7``).

        Returns:
            RateLimitResult describing whether it was allowed.
        """
        raise NotImplementedError

    @abstractmethod
    def sweep(self) -> int:
        """Drop state for keys whose window has already ended.

        Returns:
            Number of removed entries.
        """
        raise NotImplementedError

    @abstractmethod
    def __len__(self) -> int:
        """Number of keys currently tracked."""
        raise NotImplementedError
