"""In-memory sliding-window rate limiter.

Notes:
- Per-process only: running multiple workers multiplies the effective limit.
- Thread-safe: uses a lock around shared state.
"""

from __future__ import annotations

import math
import threading
import time
from collections import deque
from typing import Callable

from chirp.adapters.rate_limit.base import AbstractRateLimiter, RateLimitResult


class InMemorySlidingWindowRateLimiter(AbstractRateLimiter):
    """Rate limiter keeping a log of accepted timestamps per key.

    A request is allowed when fewer than ``limit`` accepted requests fall
    inside the last ``window_seconds``. Unlike a fixed window, the budget
    frees up one entry at a time as the oldest timestamps age out.

    Important:
        This limiter is per-process only. If the API runs with multiple workers
        each worker will enforce its own independent limits; use the Redis
        backend there.
    """

    def __init__(
        self,
        *,
        limit: int,
        window_seconds: int,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the in-memory rate limiter.

        Args:
            limit: Maximum number of allowed units per window.
            window_seconds: Size of the sliding window in seconds.
            clock: Time source function returning UNIX time in seconds.

        Raises:
            ValueError: If limit or window_seconds are invalid.
        """
        if limit < 1:
            raise ValueError("limit must be >= 1")
        if window_seconds < 1:
            raise ValueError("window_seconds must be >= 1")

        self.limit = limit
        self.window_seconds = window_seconds
        self._clock = clock
        self._lock = threading.RLock()
        self._log_by_key: dict[str, deque[float]] = {}
        self._last_sweep = clock()

    def _prune(self, log: deque[float], now: float) -> None:
        """Drop timestamps that have left the window ending at ``now``."""
        cutoff = now - self.window_seconds
        while log and log[0] <= cutoff:
            log.popleft()

    def _sweep(self, now: float) -> None:
        """Forget keys whose whole log has aged out, at most once per window."""
        if now - self._last_sweep < self.window_seconds:
            return
        self._last_sweep = now
        cutoff = now - self.window_seconds
        stale = [key for key, log in self._log_by_key.items() if not log or log[-1] <= cutoff]
        for key in stale:
            del self._log_by_key[key]

    def _reset_at(self, log: deque[float], now: float) -> float:
        return (log[0] if log else now) + self.window_seconds

    def consume_sync(self, key: str, *, cost: int = 1) -> RateLimitResult:
        """Synchronous core of :meth:`consume`.

        Raises:
            ValueError: If key is empty or cost is invalid.
        """
        if cost < 1:
            raise ValueError("cost must be >= 1")
        if not key:
            raise ValueError("key must be a non-empty string")

        now = self._clock()

        with self._lock:
            self._sweep(now)
            log = self._log_by_key.get(key) or deque()
            self._prune(log, now)

            if len(log) + cost <= self.limit:
                log.extend([now] * cost)
                self._log_by_key[key] = log
                return RateLimitResult(
                    allowed=True,
                    limit=self.limit,
                    remaining=max(0, self.limit - len(log)),
                    reset_at=int(math.ceil(self._reset_at(log, now))),
                    retry_after_seconds=None,
                )

            if not log:
                self._log_by_key.pop(key, None)

            reset_at = self._reset_at(log, now)
            return RateLimitResult(
                allowed=False,
                limit=self.limit,
                remaining=max(0, self.limit - len(log)),
                reset_at=int(math.ceil(reset_at)),
                retry_after_seconds=max(1, int(math.ceil(reset_at - now))),
            )

    async def consume(self, key: str, *, cost: int = 1) -> RateLimitResult:
        return self.consume_sync(key, cost=cost)

    def reset(self, key: str | None = None) -> None:
        """Forget recorded requests for one key, or for every key."""
        with self._lock:
            if key is None:
                self._log_by_key.clear()
            else:
                self._log_by_key.pop(key, None)
