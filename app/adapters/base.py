"""Abstract base class for identity providers.

Swap the hosted auth service for another one by implementing this interface.
"""

from abc import ABC, abstractmethod


class IdentityProvider(ABC):
    """Contract that any session/identity backend must satisfy."""

    @abstractmethod
    async def get_user_id(self, access_token: str) -> str | None:
        """Return the verified user id for a bearer token, or None if it is invalid."""

    @abstractmethod
    async def close(self) -> None:
        """Release any open connections."""
