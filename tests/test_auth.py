"""Unit tests for session authentication."""

from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest
from fastapi import HTTPException
from fastapi.security import HTTPAuthorizationCredentials

from chirp.core.auth import extract_session_token, require_caller_id
from chirp.core.config import ClerkSettings, parse_csv
from chirp.core.errors import AuthenticationAppError
from chirp.core.logging import clear_request_id, get_caller_id


def _bearer(token: str) -> HTTPAuthorizationCredentials:
    return HTTPAuthorizationCredentials(scheme="Bearer", credentials=token)


def _container(verifier: AsyncMock) -> SimpleNamespace:
    return SimpleNamespace(session_verifier=verifier)


class TestParseCsv:
    """Test comma-separated settings parsing."""

    def test_parse_multiple_values(self) -> None:
        assert parse_csv("a,b,c") == {"a", "b", "c"}

    def test_parse_trims_whitespace_and_duplicates(self) -> None:
        assert parse_csv(" a , b ,a ") == {"a", "b"}

    def test_parse_none_or_blank_returns_empty_set(self) -> None:
        assert parse_csv(None) == set()
        assert parse_csv("") == set()
        assert parse_csv("  ,  ") == set()

    def test_authorized_party_list(self) -> None:
        cfg = ClerkSettings(authorized_parties="http://localhost:3000, https://chirp.example")
        assert cfg.authorized_party_list == {"http://localhost:3000", "https://chirp.example"}


class TestExtractSessionToken:
    """Test where the session token is read from."""

    def test_header_wins_over_cookie(self) -> None:
        assert extract_session_token(_bearer("from-header"), "from-cookie") == "from-header"

    def test_cookie_used_without_header(self) -> None:
        assert extract_session_token(None, "from-cookie") == "from-cookie"

    def test_nothing_presented(self) -> None:
        assert extract_session_token(None, None) is None
        assert extract_session_token(None, "") is None


class TestRequireCallerId:
    """Test the FastAPI dependency guarding private endpoints."""

    @pytest.mark.asyncio
    async def test_returns_verified_caller(self) -> None:
        verifier = AsyncMock()
        verifier.verify.return_value = "user_123"

        caller = await require_caller_id(
            credentials=_bearer("tok"),
            container=_container(verifier),
            session_cookie=None,
        )

        assert caller == "user_123"
        verifier.verify.assert_awaited_once_with("tok")
        assert get_caller_id() == "user_123"
        clear_request_id()

    @pytest.mark.asyncio
    async def test_missing_token_is_401(self) -> None:
        verifier = AsyncMock()

        with pytest.raises(HTTPException) as exc_info:
            await require_caller_id(
                credentials=None,
                container=_container(verifier),
                session_cookie=None,
            )

        assert exc_info.value.status_code == 401
        assert "Missing session token" in exc_info.value.detail
        assert exc_info.value.headers == {"WWW-Authenticate": "Bearer"}
        verifier.verify.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_rejected_token_is_401(self) -> None:
        verifier = AsyncMock()
        verifier.verify.side_effect = AuthenticationAppError(
            code="session_expired",
            message="Session token has expired",
        )

        with pytest.raises(HTTPException) as exc_info:
            await require_caller_id(
                credentials=None,
                container=_container(verifier),
                session_cookie="stale",
            )

        assert exc_info.value.status_code == 401
        assert exc_info.value.detail == "Session token has expired"

    @pytest.mark.asyncio
    async def test_unexpected_verifier_failure_propagates(self) -> None:
        verifier = AsyncMock()
        verifier.verify.side_effect = ConnectionError("jwks unreachable")

        with pytest.raises(ConnectionError):
            await require_caller_id(
                credentials=_bearer("tok"),
                container=_container(verifier),
                session_cookie=None,
            )
