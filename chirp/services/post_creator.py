"""Creation of posts under a per-caller rate limit."""

import hashlib
import logging

from chirp.adapters.rate_limit.base import AbstractRateLimiter
from chirp.core.errors import RateLimitAppError
from chirp.repositories.post_repository import PostRepository
from chirp.schemas.post import PostOut

logger = logging.getLogger(__name__)


def hash_limiter_key(key: str) -> str:
    """Hash the rate limit key for logging without exposing identities."""
    return hashlib.sha256(key.encode()).hexdigest()[:16]


class PostCreator:
    """Service inserting a post once the caller's quota allows it.

    Input shape is validated by the request schema before this service is
    reached; the service only applies the quota and writes.

    Attributes:
        posts: Repository bound to the request's database session.
        limiter: Shared sliding-window limiter, or None when limiting is off.
    """

    def __init__(self, posts: PostRepository, limiter: AbstractRateLimiter | None) -> None:
        self.posts = posts
        self.limiter = limiter

    async def _enforce_quota(self, caller_id: str) -> None:
        """Consume one unit of the caller's budget.

        Raises:
            RateLimitAppError: When the caller has exhausted the window.
        """
        if self.limiter is None:
            return

        result = await self.limiter.consume(caller_id)
        key_hash = hash_limiter_key(caller_id)

        if result.allowed:
            logger.info(
                "rate_limit.allowed",
                extra={
                    "key_hash": key_hash,
                    "limit": result.limit,
                    "remaining": result.remaining,
                    "window_s": self.limiter.window_seconds,
                },
            )
            return

        logger.warning(
            "rate_limit.exceeded",
            extra={
                "key_hash": key_hash,
                "limit": result.limit,
                "remaining": result.remaining,
                "window_s": self.limiter.window_seconds,
                "retry_after_s": result.retry_after_seconds,
            },
        )
        raise RateLimitAppError(
            code="too_many_requests",
            message="Rate limit exceeded. Try again later.",
            details={
                "limit": result.limit,
                "remaining": result.remaining,
                "reset_at": result.reset_at,
                "retry_after": result.retry_after_seconds or 0,
            },
        )

    async def create_post(self, caller_id: str, content: str) -> PostOut:
        """Create a post owned by ``caller_id``.

        Args:
            caller_id: Authenticated caller identity; becomes ``authorID``.
            content: Validated emoji-only content.

        Returns:
            The stored post, including storage-assigned id and timestamp.

        Raises:
            RateLimitAppError: If the caller is over quota (nothing is written).
        """
        await self._enforce_quota(caller_id)

        row = await self.posts.create(author_id=caller_id, content=content)
        logger.info(
            "posts.created",
            extra={"post_id": row.id, "content_length": len(content)},
        )
        return PostOut.from_row(row)
