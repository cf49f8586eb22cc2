from abc import ABC, abstractmethod
from datetime import timedelta
from pathlib import Path


class UploadStore(ABC):
    @abstractmethod
    async def save(self, file_content: bytes, suffix: str = ".pdf") -> str:
        """Store an upload and return its generated file id."""
        ...

    @abstractmethod
    async def path_for(self, file_id: str) -> Path:
        """Return the absolute path of a stored upload."""
        ...

    @abstractmethod
    async def delete(self, file_id: str) -> bool:
        """Delete an upload; False when nothing was stored under the id."""
        ...

    @abstractmethod
    async def exists(self, file_id: str) -> bool:
        ...

    @abstractmethod
    async def sweep(self, max_age: timedelta) -> int:
        """Remove uploads older than ``max_age`` and return how many were removed."""
        ...
