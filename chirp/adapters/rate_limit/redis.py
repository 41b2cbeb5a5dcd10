"""Redis-backed sliding-window rate limiter.

Each key is a sorted set of accepted requests scored by their timestamp in
milliseconds. A consume call runs one MULTI/EXEC pipeline that drops expired
entries, adds the new entry and counts the set. If the count overshoots the
limit, the new entry is removed again, so denied requests never eat budget.
Under contention two racing callers can both be denied at the boundary,
never both admitted.
"""

from __future__ import annotations

import logging
import math
import time
import uuid
from typing import Callable

import redis.asyncio as aioredis

from chirp.adapters.rate_limit.base import AbstractRateLimiter, RateLimitResult

logger = logging.getLogger(__name__)

ANALYTICS_BUCKET_SECONDS = 3600
ANALYTICS_TTL_SECONDS = 7 * 24 * 3600


class RedisSlidingWindowRateLimiter(AbstractRateLimiter):
    """Sliding-log limiter whose state is shared by every worker."""

    def __init__(
        self,
        client: aioredis.Redis,
        *,
        limit: int,
        window_seconds: int,
        prefix: str = "chirp:ratelimit",
        analytics: bool = False,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if limit < 1:
            raise ValueError("limit must be >= 1")
        if window_seconds < 1:
            raise ValueError("window_seconds must be >= 1")

        self.limit = limit
        self.window_seconds = window_seconds
        self.prefix = prefix
        self.analytics = analytics
        self._redis = client
        self._clock = clock

    @classmethod
    def from_url(cls, url: str, **kwargs) -> "RedisSlidingWindowRateLimiter":
        """Build a limiter with its own connection pool for ``url``."""
        client = aioredis.from_url(
            url,
            decode_responses=True,
            socket_keepalive=True,
            socket_connect_timeout=5,
            health_check_interval=30,
        )
        return cls(client, **kwargs)

    def _key(self, key: str) -> str:
        return f"{self.prefix}:{key}"

    def _analytics_key(self, now: float) -> str:
        bucket = int(now // ANALYTICS_BUCKET_SECONDS) * ANALYTICS_BUCKET_SECONDS
        return f"{self.prefix}:analytics:{bucket}"

    async def _record_analytics(self, key: str, *, allowed: bool, now: float) -> None:
        analytics_key = self._analytics_key(now)
        field = f"{key}:{'success' if allowed else 'blocked'}"
        async with self._redis.pipeline(transaction=False) as pipe:
            pipe.hincrby(analytics_key, field, 1)
            pipe.expire(analytics_key, ANALYTICS_TTL_SECONDS)
            await pipe.execute()

    async def _oldest_score_ms(self, redis_key: str, fallback_ms: int) -> int:
        oldest = await self._redis.zrange(redis_key, 0, 0, withscores=True)
        if not oldest:
            return fallback_ms
        _, score = oldest[0]
        return int(score)

    async def consume(self, key: str, *, cost: int = 1) -> RateLimitResult:
        """Consume budget for ``key``; see module docstring for the algorithm.

        Raises:
            ValueError: If key is empty or cost is invalid.
            redis.RedisError: If the store is unreachable (not translated).
        """
        if cost < 1:
            raise ValueError("cost must be >= 1")
        if not key:
            raise ValueError("key must be a non-empty string")

        now = self._clock()
        now_ms = int(now * 1000)
        window_ms = self.window_seconds * 1000
        redis_key = self._key(key)
        members = {f"{now_ms}:{uuid.uuid4().hex}": now_ms for _ in range(cost)}

        async with self._redis.pipeline(transaction=True) as pipe:
            pipe.zremrangebyscore(redis_key, 0, now_ms - window_ms)
            pipe.zadd(redis_key, members)
            pipe.zcard(redis_key)
            pipe.pexpire(redis_key, window_ms)
            _, _, count, _ = await pipe.execute()

        allowed = count <= self.limit
        if not allowed:
            await self._redis.zrem(redis_key, *members.keys())
            count -= cost

        reset_at_ms = await self._oldest_score_ms(redis_key, now_ms) + window_ms

        if self.analytics:
            await self._record_analytics(key, allowed=allowed, now=now)

        if allowed:
            return RateLimitResult(
                allowed=True,
                limit=self.limit,
                remaining=max(0, self.limit - count),
                reset_at=int(math.ceil(reset_at_ms / 1000)),
                retry_after_seconds=None,
            )

        logger.debug(
            "rate_limit.redis_denied",
            extra={"window_count": count, "limit": self.limit},
        )
        return RateLimitResult(
            allowed=False,
            limit=self.limit,
            remaining=max(0, self.limit - count),
            reset_at=int(math.ceil(reset_at_ms / 1000)),
            retry_after_seconds=max(1, int(math.ceil((reset_at_ms - now_ms) / 1000))),
        )

    async def analytics_snapshot(self, *, now: float | None = None) -> dict[str, int]:
        """Return the success/blocked counters for the current hour bucket."""
        raw = await self._redis.hgetall(self._analytics_key(now or self._clock()))
        return {field: int(value) for field, value in raw.items()}

    async def aclose(self) -> None:
        await self._redis.aclose()
