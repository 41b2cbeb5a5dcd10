from abc import ABC, abstractmethod


class AbstractSessionVerifier(ABC):
    """Interface for turning a session token into a caller identity."""

    @abstractmethod
    async def verify(self, token: str) -> str:
        """Verify ``token`` and return the caller's user id.

        Raises:
            AuthenticationAppError: If the token is invalid, expired or was
                issued for a party this service does not accept.
        """
        ...
