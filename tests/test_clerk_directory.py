"""Tests for the Clerk directory adapter using httpx.MockTransport."""

import httpx
import pytest

from chirp.adapters.directory.clerk import ClerkDirectoryClient


def _client(handler) -> ClerkDirectoryClient:
    return ClerkDirectoryClient(
        secret_key="sk_test_123",
        base_url="https://api.clerk.test/v1",
        transport=httpx.MockTransport(handler),
    )


@pytest.mark.asyncio
async def test_lookup_sends_ids_limit_and_secret_key() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=[])

    client = _client(handler)
    await client.lookup_by_ids(["user_a", "user_b"], limit=100)
    await client.aclose()

    request = seen[0]
    assert request.method == "GET"
    assert request.url.path == "/v1/users"
    assert request.url.params.get_list("user_id") == ["user_a", "user_b"]
    assert request.url.params["limit"] == "100"
    assert request.headers["Authorization"] == "Bearer sk_test_123"


@pytest.mark.asyncio
async def test_lookup_parses_bare_array() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            200,
            json=[
                {
                    "id": "user_a",
                    "username": "alice",
                    "profile_image_url": "https://img.example/a.png",
                    "email_addresses": [{"email_address": "a@example.com"}],
                },
            ],
        )

    client = _client(handler)
    users = await client.lookup_by_ids(["user_a"])
    await client.aclose()

    assert len(users) == 1
    assert users[0].id == "user_a"
    assert users[0].username == "alice"
    assert users[0].profile_image_url == "https://img.example/a.png"


@pytest.mark.asyncio
async def test_lookup_parses_paginated_envelope() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            200,
            json={
                "data": [
                    {"id": "user_a", "username": None, "image_url": "https://img.example/a.png"},
                ],
                "total_count": 1,
            },
        )

    client = _client(handler)
    users = await client.lookup_by_ids(["user_a"])
    await client.aclose()

    assert users[0].username is None
    assert users[0].image_url == "https://img.example/a.png"


@pytest.mark.asyncio
async def test_unknown_ids_are_simply_absent() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"data": []})

    client = _client(handler)
    users = await client.lookup_by_ids(["user_missing"])
    await client.aclose()

    assert users == []


@pytest.mark.asyncio
async def test_error_status_propagates() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(503, json={"errors": [{"message": "unavailable"}]})

    client = _client(handler)
    with pytest.raises(httpx.HTTPStatusError):
        await client.lookup_by_ids(["user_a"])
    await client.aclose()
