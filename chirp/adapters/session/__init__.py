"""Session verification adapters - resolve a caller identity from a session token."""

from chirp.adapters.session.base import AbstractSessionVerifier
from chirp.adapters.session.clerk import ClerkSessionVerifier

__all__ = [
    "AbstractSessionVerifier",
    "ClerkSessionVerifier",
]
