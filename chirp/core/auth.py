"""Caller authentication for private endpoints.

Session issuance belongs to the identity provider. This module only reads
the session token the client already holds, asks the configured verifier
who it belongs to, and hands the caller id to the route.

The token is taken from the ``Authorization: Bearer`` header, falling back
to the ``__session`` cookie that Clerk sets for same-origin requests.
"""

from __future__ import annotations

import hashlib
import logging
from typing import Annotated

from fastapi import Cookie, Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from chirp.core.container import ServiceContainer, get_container
from chirp.core.errors import AuthenticationAppError
from chirp.core.logging import bind_caller_id

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False, description="Clerk session token")

SESSION_COOKIE = "__session"


def _token_fingerprint(token: str) -> str:
    return hashlib.sha256(token.encode()).hexdigest()[:16]


def extract_session_token(
    credentials: HTTPAuthorizationCredentials | None,
    session_cookie: str | None,
) -> str | None:
    """Pick the session token from the header or the cookie.

    Examples:
        >>> extract_session_token(None, None) is None
        True
        >>> extract_session_token(None, "abc")
        'abc'
    """
    if credentials is not None and credentials.credentials:
        return credentials.credentials
    return session_cookie or None


async def require_caller_id(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
    container: Annotated[ServiceContainer, Depends(get_container)],
    session_cookie: Annotated[str | None, Cookie(alias=SESSION_COOKIE)] = None,
) -> str:
    """FastAPI dependency resolving the authenticated caller.

    Usage:
        @router.post("/posts")
        async def create(caller_id: str = Depends(require_caller_id)): ...

    Returns:
        str: The caller's user id.

    Raises:
        HTTPException: 401 Unauthorized if no valid session is presented.
    """
    token = extract_session_token(credentials, session_cookie)
    if not token:
        logger.warning(
            "auth.missing_session",
            extra={"has_authorization": credentials is not None},
        )
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing session token. Sign in first.",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        caller_id = await container.session_verifier.verify(token)
    except AuthenticationAppError as exc:
        logger.warning(
            "auth.rejected",
            extra={"reason": exc.code, "token_hash": _token_fingerprint(token)},
        )
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=exc.message,
            headers={"WWW-Authenticate": "Bearer"},
        ) from exc

    bind_caller_id(caller_id)
    logger.debug("auth.success", extra={"token_hash": _token_fingerprint(token)})
    return caller_id
