"""Rate limiting adapters.

Post creation depends on the abstract limiter only, so the in-process
sliding log used in development can be swapped for the shared Redis
backend without touching the service layer.
"""

from chirp.adapters.rate_limit.base import AbstractRateLimiter, RateLimitResult
from chirp.adapters.rate_limit.in_memory import InMemorySlidingWindowRateLimiter
from chirp.adapters.rate_limit.redis import RedisSlidingWindowRateLimiter

__all__ = [
    "AbstractRateLimiter",
    "InMemorySlidingWindowRateLimiter",
    "RateLimitResult",
    "RedisSlidingWindowRateLimiter",
]
