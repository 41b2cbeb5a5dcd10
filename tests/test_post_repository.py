"""Tests for the post repository against in-memory SQLite."""

import pytest

from chirp.repositories.post_repository import PostRepository


@pytest.mark.asyncio
async def test_list_recent_orders_newest_first(db_session, seed_posts) -> None:
    await seed_posts(["user_a", "user_b", "user_c"])

    rows = await PostRepository(db_session).list_recent()

    assert [row.author_id for row in rows] == ["user_c", "user_b", "user_a"]


@pytest.mark.asyncio
async def test_list_recent_respects_limit(db_session, seed_posts) -> None:
    await seed_posts([f"user_{i}" for i in range(5)])

    rows = await PostRepository(db_session).list_recent(limit=2)

    assert [row.author_id for row in rows] == ["user_4", "user_3"]


@pytest.mark.asyncio
async def test_list_recent_empty(db_session) -> None:
    assert await PostRepository(db_session).list_recent() == []


@pytest.mark.asyncio
async def test_create_assigns_id_and_timestamp(db_session) -> None:
    repo = PostRepository(db_session)

    post = await repo.create(author_id="user_a", content="🎉")

    assert post.id
    assert post.created_at is not None
    assert post.author_id == "user_a"

    rows = await repo.list_recent()
    assert [row.id for row in rows] == [post.id]


@pytest.mark.asyncio
async def test_create_generates_distinct_ids(db_session) -> None:
    repo = PostRepository(db_session)

    first = await repo.create(author_id="user_a", content="🎉")
    second = await repo.create(author_id="user_a", content="🎉")

    assert first.id != second.id
