"""Directory adapter layer - user profile lookups against the identity provider."""

from chirp.adapters.directory.base import AbstractDirectoryClient, DirectoryUser
from chirp.adapters.directory.clerk import ClerkDirectoryClient

__all__ = [
    "AbstractDirectoryClient",
    "ClerkDirectoryClient",
    "DirectoryUser",
]
