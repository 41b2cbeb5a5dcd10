"""Clerk session token verification.

Clerk session tokens are short-lived RS256 JWTs signed with the instance's
JWKS. The ``sub`` claim is the user id; ``azp`` names the origin that
requested the token.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Iterable, Protocol

import jwt

from chirp.adapters.session.base import AbstractSessionVerifier
from chirp.core.errors import AuthenticationAppError

logger = logging.getLogger(__name__)


class SigningKeySource(Protocol):
    def get_signing_key_from_jwt(self, token: str) -> Any: ...


class ClerkSessionVerifier(AbstractSessionVerifier):
    """Verify Clerk session JWTs against the instance JWKS."""

    algorithms = ["RS256"]

    def __init__(
        self,
        *,
        jwks_url: str | None = None,
        jwks_headers: dict[str, str] | None = None,
        authorized_parties: Iterable[str] = (),
        leeway_seconds: int = 5,
        key_source: SigningKeySource | None = None,
    ) -> None:
        """Initialize the verifier.

        Args:
            jwks_url: JWKS endpoint; required unless ``key_source`` is given.
            jwks_headers: Extra headers for the JWKS request (the Backend API
                endpoint needs the secret key).
            authorized_parties: Accepted ``azp`` values; empty accepts any.
            leeway_seconds: Clock skew tolerated on ``exp``/``nbf``.
            key_source: Object resolving the signing key for a token.
        """
        if key_source is None:
            if not jwks_url:
                raise ValueError("jwks_url is required when no key_source is given")
            key_source = jwt.PyJWKClient(jwks_url, headers=jwks_headers or {})
        self._keys = key_source
        self._authorized_parties = frozenset(authorized_parties)
        self._leeway = leeway_seconds

    def _decode(self, token: str) -> dict[str, Any]:
        signing_key = self._keys.get_signing_key_from_jwt(token)
        return jwt.decode(
            token,
            signing_key.key,
            algorithms=self.algorithms,
            leeway=self._leeway,
            options={"require": ["exp", "iat", "sub"], "verify_aud": False},
        )

    async def verify(self, token: str) -> str:
        # The JWKS fetch is blocking I/O the first time (then cached)
        try:
            claims = await asyncio.to_thread(self._decode, token)
        except jwt.PyJWKClientConnectionError:
            # JWKS outage is an upstream failure, not a bad token
            raise
        except jwt.ExpiredSignatureError as exc:
            raise AuthenticationAppError(
                code="session_expired",
                message="Session token has expired",
            ) from exc
        except jwt.PyJWTError as exc:
            logger.warning(
                "session.invalid_token",
                extra={"reason": type(exc).__name__},
            )
            raise AuthenticationAppError(
                code="invalid_session_token",
                message="Invalid session token",
            ) from exc

        azp = claims.get("azp")
        if self._authorized_parties and azp not in self._authorized_parties:
            logger.warning(
                "session.unauthorized_party",
                extra={"azp": azp},
            )
            raise AuthenticationAppError(
                code="unauthorized_party",
                message="Session token was issued for an unknown origin",
            )

        return claims["sub"]
