"""Pydantic schemas for posts and their authors.

Field aliases carry the wire names (``authorID``, ``createdAt``,
``profilePicture``) while Python code uses snake_case attributes.
"""

from __future__ import annotations

from datetime import datetime, timezone

import regex
from pydantic import BaseModel, ConfigDict, Field, field_validator

from chirp.models.post import CONTENT_MAX_LENGTH

# Every code point must be pictographic or an emoji component (ZWJ,
# variation selectors, skin tones, keycap bases, regional indicators).
EMOJI_ONLY_PATTERN = regex.compile(r"(?:\p{Extended_Pictographic}|\p{Emoji_Component})+")


def is_emoji_only(value: str) -> bool:
    return EMOJI_ONLY_PATTERN.fullmatch(value) is not None


class CreatePostRequest(BaseModel):
    """Body of ``POST /v1/posts``."""

    content: str = Field(
        ...,
        min_length=1,
        max_length=CONTENT_MAX_LENGTH,
        description="Emoji-only post body, 1 to 280 characters.",
        examples=["🎉", "🐍🚀"],
    )

    @field_validator("content")
    @classmethod
    def content_must_be_emoji(cls, value: str) -> str:
        if not is_emoji_only(value):
            raise ValueError("Only emojis are allowed")
        return value


def _as_utc(value: datetime) -> datetime:
    # SQLite drops the offset; stored values are always UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class PostOut(BaseModel):
    """A stored post as returned to clients."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    author_id: str = Field(..., alias="authorID")
    content: str
    created_at: datetime = Field(..., alias="createdAt")

    @classmethod
    def from_row(cls, row) -> "PostOut":
        return cls(
            id=row.id,
            author_id=row.author_id,
            content=row.content,
            created_at=_as_utc(row.created_at),
        )


class AuthorProfile(BaseModel):
    """Client-safe projection of a directory user.

    ``username`` is optional here because the directory may not have one;
    the list operation refuses to emit a post whose author lacks it.
    """

    model_config = ConfigDict(populate_by_name=True)

    id: str
    username: str | None = None
    profile_picture: str | None = Field(None, alias="profilePicture")


class PostAuthor(AuthorProfile):
    """Author attached to a listed post; username is guaranteed."""

    username: str = Field(..., min_length=1)


class EnrichedPost(BaseModel):
    """A post paired with its resolved author."""

    post: PostOut
    author: PostAuthor
