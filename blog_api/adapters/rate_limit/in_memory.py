"""In-memory rate limiters.

Notes:
- Per-process only: running multiple workers multiplies the effective limit.
- Thread-safe: the check-and-increment runs under a lock, so concurrent
  requests for the same key never race on the counter.
- Bounded: expired entries are swept periodically and the map is capped with
  least-recently-used eviction.
"""

from __future__ import annotations

import logging
import math
import threading
import time
from abc import abstractmethod
from collections import OrderedDict, deque
from dataclasses import dataclass
from typing import Callable

from blog_api.adapters.rate_limit.base import AbstractRateLimiter, RateLimitResult

logger = logging.getLogger(__name__)


@dataclass
class RateLimitEntry:
    """Counter for one key within its current window."""

    count: int
    window_reset_at: float


class _BoundedInMemoryLimiter(AbstractRateLimiter):
    """Shared bookkeeping: validation, lock, periodic sweep, LRU cap."""

    def __init__(
        self,
        *,
        limit: int,
        window_seconds: float,
        clock: Callable[[], float] = time.time,
        max_entries: int | None = 10_000,
        sweep_interval_seconds: float | None = None,
    ) -> None:
        if limit < 1:
            raise ValueError("limit must be >= 1")
        if window_seconds <= 0:
            raise ValueError("window_seconds must be > 0")
        if max_entries is not None and max_entries < 1:
            raise ValueError("max_entries must be >= 1 or None")

        self._limit = limit
        self._window_seconds = window_seconds
        self._clock = clock
        self._max_entries = max_entries
        self._sweep_interval = sweep_interval_seconds
        self._last_sweep_at: float | None = None
        self._lock = threading.Lock()
        self._entries: OrderedDict = OrderedDict()

    @property
    def limit(self) -> int:
        return self._limit

    @property
    def window_seconds(self) -> float:
        return self._window_seconds

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def sweep(self) -> int:
        now = self._clock()
        with self._lock:
            return self._sweep_locked(now)

    @abstractmethod
    def _is_expired(self, entry, now: float) -> bool:
        """Return True when ``entry`` no longer affects any decision at ``now``."""

    def _sweep_locked(self, now: float) -> int:
        expired = [key for key, entry in self._entries.items() if self._is_expired(entry, now)]
        for key in expired:
            del self._entries[key]
        self._last_sweep_at = now
        if expired:
            logger.debug(
                "rate_limit.swept",
                extra={"removed": len(expired), "entries": len(self._entries)},
            )
        return len(expired)

    def _maybe_sweep_locked(self, now: float) -> None:
        if self._sweep_interval is None:
            return
        if self._last_sweep_at is None:
            self._last_sweep_at = now
            return
        if now - self._last_sweep_at >= self._sweep_interval:
            self._sweep_locked(now)

    def _evict_if_over_capacity_locked(self) -> None:
        if self._max_entries is None:
            return
        while len(self._entries) > self._max_entries:
            # popitem(last=False) removes the least recently used key
            self._entries.popitem(last=False)
            logger.debug("rate_limit.evicted", extra={"max_entries": self._max_entries})

    def _build_allowed_result(self, *, count: int, reset_at: float) -> RateLimitResult:
        return RateLimitResult(
            allowed=True,
            limit=self._limit,
            remaining=max(0, self._limit - count),
            reset_at=int(math.ceil(reset_at)),
            retry_after_seconds=None,
        )

    def _build_blocked_result(self, *, now: float, reset_at: float) -> RateLimitResult:
        return RateLimitResult(
            allowed=False,
            limit=self._limit,
            remaining=0,
            reset_at=int(math.ceil(reset_at)),
            retry_after_seconds=max(0, int(math.ceil(reset_at - now))),
        )


class InMemoryFixedWindowRateLimiter(_BoundedInMemoryLimiter):
    """Fixed-window counter per key.

    A key's window starts with its first request and lasts ``window_seconds``.
    Every request inside the window increments the counter, rejected ones
    included; requests beyond ``limit`` are rejected. The first request after
    the window ends starts a new window with a count of 1.

    Bursts straddling a window boundary can admit up to ``2 * limit`` requests
    in a short span. Use :class:`InMemorySlidingWindowRateLimiter` when that
    matters.
    """

    def __init__(
        self,
        *,
        limit: int,
        window_seconds: float,
        clock: Callable[[], float] = time.time,
        max_entries: int | None = 10_000,
        sweep_interval_seconds: float | None = None,
    ) -> None:
        """Initialize the fixed-window limiter.

        Args:
            limit: Maximum number of allowed requests per window.
            window_seconds: Length of the window in seconds.
            clock: Time source returning UNIX time in seconds.
            max_entries: Cap on tracked keys (LRU eviction); None for unbounded.
            sweep_interval_seconds: Minimum time between sweeps of expired
                entries performed during ``consume``; None disables them.

        Raises:
            ValueError: If any argument is out of range.
        """
        super().__init__(
            limit=limit,
            window_seconds=window_seconds,
            clock=clock,
            max_entries=max_entries,
            sweep_interval_seconds=sweep_interval_seconds,
        )

    def _is_expired(self, entry: RateLimitEntry, now: float) -> bool:
        return now > entry.window_reset_at

    def get_entry(self, key: str) -> RateLimitEntry | None:
        """Return a copy of the entry tracked for ``key``, if any."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            return RateLimitEntry(count=entry.count, window_reset_at=entry.window_reset_at)

    def consume(self, key: str) -> RateLimitResult:
        """Count one request for ``key`` and return the admission decision.

        Raises:
            ValueError: If key is empty.
        """
        if not key:
            raise ValueError("key must be a non-empty string")

        now = self._clock()

        with self._lock:
            self._maybe_sweep_locked(now)

            entry = self._entries.get(key)
            if entry is None or now > entry.window_reset_at:
                entry = RateLimitEntry(count=1, window_reset_at=now + self._window_seconds)
                self._entries[key] = entry
                self._entries.move_to_end(key)
                self._evict_if_over_capacity_locked()
                return self._build_allowed_result(count=1, reset_at=entry.window_reset_at)

            entry.count += 1
            self._entries.move_to_end(key)

            if entry.count > self._limit:
                return self._build_blocked_result(now=now, reset_at=entry.window_reset_at)
            return self._build_allowed_result(count=entry.count, reset_at=entry.window_reset_at)


class InMemorySlidingWindowRateLimiter(_BoundedInMemoryLimiter):
    """Sliding-window log per key.

    Keeps the timestamps of admitted requests from the last ``window_seconds``
    and rejects a request when ``limit`` of them are still inside the window.
    Unlike the fixed window it never admits more than ``limit`` requests in
    any span of ``window_seconds``, at the cost of O(limit) memory per key.
    """

    def _is_expired(self, entry: deque, now: float) -> bool:
        return not entry or entry[-1] <= now - self._window_seconds

    def consume(self, key: str) -> RateLimitResult:
        if not key:
            raise ValueError("key must be a non-empty string")

        now = self._clock()
        cutoff = now - self._window_seconds

        with self._lock:
            self._maybe_sweep_locked(now)

            timestamps = self._entries.get(key)
            if timestamps is None:
                timestamps = deque()
                self._entries[key] = timestamps
            self._entries.move_to_end(key)

            while timestamps and timestamps[0] <= cutoff:
                timestamps.popleft()

            if len(timestamps) >= self._limit:
                return self._build_blocked_result(
                    now=now, reset_at=timestamps[0] + self._window_seconds
                )

            timestamps.append(now)
            self._evict_if_over_capacity_locked()
            return self._build_allowed_result(
                count=len(timestamps), reset_at=timestamps[0] + self._window_seconds
            )
