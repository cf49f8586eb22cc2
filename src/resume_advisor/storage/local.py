import asyncio
import logging
import time
import uuid
from datetime import timedelta
from pathlib import Path

from resume_advisor.storage.base import UploadStore

logger = logging.getLogger(__name__)


def _valid_file_id(file_id: str) -> bool:
    try:
        return str(uuid.UUID(file_id)) == file_id.lower()
    except ValueError:
        return False


class LocalUploadStore(UploadStore):
    """Uploads kept as ``<uuid><suffix>`` files in a single directory."""

    def __init__(self, base_dir: str) -> None:
        self.base_dir = Path(base_dir).resolve()
        self.base_dir.mkdir(parents=True, exist_ok=True)

    async def save(self, file_content: bytes, suffix: str = ".pdf") -> str:
        file_id = str(uuid.uuid4())
        file_path = self.base_dir / f"{file_id}{suffix.lower()}"
        await asyncio.to_thread(file_path.write_bytes, file_content)
        logger.info("Stored upload %s (%d bytes)", file_path.name, len(file_content))
        return file_id

    def _find(self, file_id: str) -> Path | None:
        # Only well-formed ids reach the filesystem, so no path can escape base_dir
        if not _valid_file_id(file_id):
            return None
        return next(self.base_dir.glob(f"{file_id.lower()}.*"), None)

    async def path_for(self, file_id: str) -> Path:
        path = await asyncio.to_thread(self._find, file_id)
        if path is None:
            raise FileNotFoundError(f"File not found: {file_id}")
        return path

    async def delete(self, file_id: str) -> bool:
        path = await asyncio.to_thread(self._find, file_id)
        if path is None:
            return False
        await asyncio.to_thread(path.unlink, missing_ok=True)
        logger.info("Deleted upload %s", path.name)
        return True

    async def exists(self, file_id: str) -> bool:
        return await asyncio.to_thread(self._find, file_id) is not None

    async def sweep(self, max_age: timedelta) -> int:
        return await asyncio.to_thread(self._sweep, max_age)

    def _sweep(self, max_age: timedelta) -> int:
        cutoff = time.time() - max_age.total_seconds()
        removed = 0
        for path in self.base_dir.iterdir():
            if path.is_file() and path.stat().st_mtime < cutoff:
                path.unlink(missing_ok=True)
                removed += 1
        if removed:
            logger.info("Removed %d uploads older than %s", removed, max_age)
        return removed
