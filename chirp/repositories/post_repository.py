"""Storage access for posts."""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from chirp.models.post import Post


class PostRepository:
    """Thin query layer over an ``AsyncSession``.

    Errors from the driver are not caught here; they propagate to the
    request layer as generic failures.
    """

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def list_recent(self, limit: int = 100) -> list[Post]:
        """Return up to ``limit`` posts, newest first."""
        stmt = select(Post).order_by(Post.created_at.desc()).limit(limit)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def create(self, *, author_id: str, content: str) -> Post:
        """Insert a single post and return it with ``id``/``created_at`` populated."""
        post = Post(author_id=author_id, content=content)
        self.session.add(post)
        await self.session.commit()
        await self.session.refresh(post)
        return post
