"""Local file store for uploaded audio payloads."""
import mimetypes
import os
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import AsyncIterator, BinaryIO, Optional

from fastapi import Request
from starlette.concurrency import run_in_threadpool

from .exceptions import PayloadTooLargeError, StorageError
from .logging import get_logger

logger = get_logger(__name__)

CHUNK_SIZE = 64 * 1024
DEFAULT_MEDIA_TYPE = "application/octet-stream"


@dataclass(frozen=True)
class StoredFile:
    """Result of a successful write: the generated location and byte count."""
    location: str
    size: int


class FileStream:
    """An opened stored file, read lazily in chunks.

    The handle is closed when iteration finishes, fails, or is cancelled
    (for example when the client disconnects mid-stream).
    """

    def __init__(self, handle: BinaryIO, location: str, size: int, media_type: str):
        self._handle = handle
        self.location = location
        self.size = size
        self.media_type = media_type

    async def iter_bytes(self, start: int = 0, end: Optional[int] = None) -> AsyncIterator[bytes]:
        """Yield bytes from start to end inclusive (end defaults to the last byte)."""
        if end is None:
            end = self.size - 1
        remaining = end - start + 1
        try:
            await run_in_threadpool(self._handle.seek, start)
            while remaining > 0:
                chunk = await run_in_threadpool(self._handle.read, min(CHUNK_SIZE, remaining))
                if not chunk:
                    break
                remaining -= len(chunk)
                yield chunk
        finally:
            self.close()

    def close(self) -> None:
        if not self._handle.closed:
            self._handle.close()


class LocalFileStorage:
    """Persists binary payloads under generated names inside a root directory."""

    def __init__(self, root: Path, max_bytes: Optional[int] = None):
        self.root = Path(root)
        self.max_bytes = max_bytes

    def ensure_root(self) -> None:
        self.root.mkdir(parents=True, exist_ok=True)

    def _resolve(self, location: str) -> Path:
        root = self.root.resolve()
        path = (root / location).resolve()
        if root not in path.parents:
            raise StorageError(
                message="Storage location escapes the storage root",
                details={"location": location},
            )
        return path

    @staticmethod
    def _generate_name(original_name: Optional[str]) -> str:
        suffix = Path(original_name or "").suffix.lower()
        return f"{uuid.uuid4().hex}{suffix}"

    async def save(self, chunks: AsyncIterator[bytes], original_name: Optional[str] = None) -> StoredFile:
        """Write chunks to a newly generated location.

        Args:
            chunks: Async iterator of payload bytes
            original_name: Client-declared file name; only its extension is kept

        Returns:
            StoredFile with the location relative to the storage root

        Raises:
            PayloadTooLargeError: the payload exceeds max_bytes
            StorageError: the file could not be written
        """
        location = self._generate_name(original_name)
        path = self._resolve(location)
        size = 0
        try:
            await run_in_threadpool(self.ensure_root)
            handle = await run_in_threadpool(open, path, "xb")
            try:
                async for chunk in chunks:
                    size += len(chunk)
                    if self.max_bytes is not None and size > self.max_bytes:
                        raise PayloadTooLargeError(
                            message="File too large",
                            details={"max_bytes": self.max_bytes},
                        )
                    await run_in_threadpool(handle.write, chunk)
            finally:
                await run_in_threadpool(handle.close)
        except PayloadTooLargeError:
            await self._discard(path)
            raise
        except OSError as e:
            await self._discard(path)
            raise StorageError(
                message="Failed to write uploaded file",
                details={"location": location},
            ) from e

        logger.info("file_stored", location=location, size=size)
        return StoredFile(location=location, size=size)

    async def _discard(self, path: Path) -> None:
        try:
            await run_in_threadpool(path.unlink, True)
        except OSError as e:
            logger.warning("partial_file_discard_failed", path=str(path), error=str(e))

    async def open(self, location: str) -> FileStream:
        """Open a stored file for reading.

        Raises:
            StorageError: the file is missing or unreadable
        """
        path = self._resolve(location)
        try:
            handle = await run_in_threadpool(open, path, "rb")
        except OSError as e:
            raise StorageError(
                message="Failed to open stored file",
                details={"location": location},
            ) from e
        try:
            size = (await run_in_threadpool(os.fstat, handle.fileno())).st_size
        except OSError as e:
            await run_in_threadpool(handle.close)
            raise StorageError(
                message="Failed to stat stored file",
                details={"location": location},
            ) from e

        media_type, _ = mimetypes.guess_type(path.name)
        return FileStream(handle, location, size, media_type or DEFAULT_MEDIA_TYPE)

    async def remove(self, location: str) -> bool:
        """Delete a stored file.

        Returns:
            True if a file was removed, False if it was already gone

        Raises:
            StorageError: the file exists but could not be removed
        """
        path = self._resolve(location)
        try:
            await run_in_threadpool(path.unlink)
        except FileNotFoundError:
            logger.debug("file_already_absent", location=location)
            return False
        except OSError as e:
            raise StorageError(
                message="Failed to remove stored file",
                details={"location": location},
            ) from e
        logger.info("file_removed", location=location)
        return True


def get_storage(request: Request) -> LocalFileStorage:
    """FastAPI dependency returning the app's file store."""
    return request.app.state.storage
