from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class StoredObject:
    url: str
    storage_id: str


class ObjectStore(ABC):
    """Port for durable media storage."""

    @abstractmethod
    async def upload(self, data: bytes, filename: str) -> StoredObject:
        """Raises UploadError if the store rejects or cannot receive the file."""
        ...
