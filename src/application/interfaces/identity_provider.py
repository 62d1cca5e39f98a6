from abc import ABC, abstractmethod

from src.domain.value_objects import Principal


class IdentityProvider(ABC):
    """Port for turning a bearer credential into a verified principal."""

    @abstractmethod
    async def authenticate(self, credential: str) -> Principal:
        """Raises UnauthorizedError when the credential is missing, invalid or expired."""
        ...
