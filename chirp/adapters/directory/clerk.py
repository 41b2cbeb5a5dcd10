"""Clerk Backend API directory adapter."""

import logging
from typing import Any, Sequence

import httpx

from chirp.adapters.directory.base import AbstractDirectoryClient, DirectoryUser

logger = logging.getLogger(__name__)


class ClerkDirectoryClient(AbstractDirectoryClient):
    """Resolve user ids through Clerk's ``GET /users`` endpoint.

    Uses a single long-lived ``httpx.AsyncClient`` so connections are pooled
    across requests.
    """

    def __init__(
        self,
        secret_key: str,
        base_url: str = "https://api.clerk.com/v1",
        timeout_seconds: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the HTTP client.

        Args:
            secret_key: Clerk secret key, sent as a Bearer token.
            base_url: Backend API base URL.
            timeout_seconds: Timeout for each request in seconds.
            transport: Optional transport override (used by tests).
        """
        self.client = httpx.AsyncClient(
            base_url=base_url,
            headers={"Authorization": f"Bearer {secret_key}"},
            timeout=timeout_seconds,
            transport=transport,
        )

    @staticmethod
    def _unwrap(payload: Any) -> list[dict[str, Any]]:
        # Older API versions return a bare array, newer ones a paginated envelope
        if isinstance(payload, dict):
            return payload.get("data") or []
        return payload or []

    async def lookup_by_ids(
        self,
        ids: Sequence[str],
        *,
        limit: int = 100,
    ) -> list[DirectoryUser]:
        """List users matching ``ids``.

        Raises:
            httpx.HTTPStatusError: If Clerk answers with an error status.
            httpx.TransportError: If Clerk cannot be reached.
        """
        params = [("user_id", user_id) for user_id in ids]
        params.append(("limit", str(limit)))

        response = await self.client.get("/users", params=params)
        response.raise_for_status()

        users = [DirectoryUser.model_validate(item) for item in self._unwrap(response.json())]
        logger.debug(
            "directory.lookup",
            extra={"requested": len(ids), "returned": len(users)},
        )
        return users

    async def aclose(self) -> None:
        await self.client.aclose()
