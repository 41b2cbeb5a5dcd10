"""Listing of recent posts enriched with author profiles.

The lister reads the newest posts from storage, resolves their authors in
one batched directory call and joins the two in memory. Any post whose
author cannot be resolved to a profile with a username fails the whole
request: a post is never shown attributed to an unknown identity.
"""

import logging

from chirp.adapters.directory.base import AbstractDirectoryClient, DirectoryUser
from chirp.core.errors import DataIntegrityAppError
from chirp.repositories.post_repository import PostRepository
from chirp.schemas.post import AuthorProfile, EnrichedPost, PostAuthor, PostOut

logger = logging.getLogger(__name__)

MAX_POSTS = 100


def filter_user_for_client(user: DirectoryUser) -> AuthorProfile:
    """Project a directory record to the fields clients may see.

    Args:
        user: Raw directory record.

    Returns:
        AuthorProfile with id, username and profile picture URL only.
    """
    return AuthorProfile(
        id=user.id,
        username=user.username,
        profile_picture=user.profile_image_url or user.image_url,
    )


class PostLister:
    """Service returning the most recent posts with their authors.

    Attributes:
        posts: Repository bound to the request's database session.
        directory: Directory client used to resolve author ids.
        limit: Maximum number of posts returned.
    """

    def __init__(
        self,
        posts: PostRepository,
        directory: AbstractDirectoryClient,
        *,
        limit: int = MAX_POSTS,
    ) -> None:
        self.posts = posts
        self.directory = directory
        self.limit = min(limit, MAX_POSTS)

    async def _resolve_authors(self, author_ids: list[str]) -> dict[str, AuthorProfile]:
        users = await self.directory.lookup_by_ids(author_ids, limit=MAX_POSTS)
        authors = [filter_user_for_client(user) for user in users]
        logger.debug(
            "posts.authors_resolved",
            extra={"authors": [author.model_dump() for author in authors]},
        )
        return {author.id: author for author in authors}

    async def list_posts(self) -> list[EnrichedPost]:
        """List posts newest first, each paired with its author.

        Returns:
            Up to ``limit`` EnrichedPost values in storage order.

        Raises:
            DataIntegrityAppError: If any post's author is missing from the
                directory or has no username.
        """
        rows = await self.posts.list_recent(limit=self.limit)
        if not rows:
            return []

        # Distinct ids, first-seen order
        author_ids = list(dict.fromkeys(row.author_id for row in rows))
        authors_by_id = await self._resolve_authors(author_ids)

        enriched: list[EnrichedPost] = []
        for row in rows:
            author = authors_by_id.get(row.author_id)
            if author is None or not author.username:
                logger.error(
                    "posts.author_not_found",
                    extra={
                        "post_id": row.id,
                        "author_id": row.author_id,
                        "author_present": author is not None,
                    },
                )
                raise DataIntegrityAppError(
                    code="author_not_found",
                    message="Author for post not found",
                    details={"post_id": row.id},
                )

            enriched.append(
                EnrichedPost(
                    post=PostOut.from_row(row),
                    author=PostAuthor(
                        id=author.id,
                        username=author.username,
                        profile_picture=author.profile_picture,
                    ),
                )
            )

        return enriched
