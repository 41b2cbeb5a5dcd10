"""Rate limiter construction from settings.

This module picks the limiter backend for post creation.

- ``memory``: sliding log held in-process (development, single worker).
- ``redis``: sorted-set sliding log shared by every worker.

Limiting strategy: at most ``APP_RATE_LIMIT_REQUESTS`` creations per
``APP_RATE_LIMIT_WINDOW_SECONDS`` sliding window, keyed by caller identity.
"""

from __future__ import annotations

import logging

from chirp.adapters.rate_limit.base import AbstractRateLimiter
from chirp.adapters.rate_limit.in_memory import InMemorySlidingWindowRateLimiter
from chirp.adapters.rate_limit.redis import RedisSlidingWindowRateLimiter
from chirp.core.config import Settings

logger = logging.getLogger(__name__)


def build_rate_limiter(cfg: Settings) -> AbstractRateLimiter | None:
    """Create the configured limiter, or None when limiting is disabled.

    Args:
        cfg: Resolved application settings.

    Returns:
        AbstractRateLimiter | None: Limiter to share across requests.
    """

    if not cfg.app.rate_limit_enabled:
        logger.info("rate_limit.disabled")
        return None

    if cfg.app.rate_limit_backend == "redis":
        limiter: AbstractRateLimiter = RedisSlidingWindowRateLimiter.from_url(
            cfg.redis.url,
            limit=cfg.app.rate_limit_requests,
            window_seconds=cfg.app.rate_limit_window_seconds,
            prefix=cfg.app.rate_limit_prefix,
            analytics=cfg.app.rate_limit_analytics,
        )
    else:
        limiter = InMemorySlidingWindowRateLimiter(
            limit=cfg.app.rate_limit_requests,
            window_seconds=cfg.app.rate_limit_window_seconds,
        )

    logger.info(
        "rate_limit.configured",
        extra={
            "backend": cfg.app.rate_limit_backend,
            "limit": cfg.app.rate_limit_requests,
            "window_s": cfg.app.rate_limit_window_seconds,
        },
    )
    return limiter
