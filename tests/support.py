"""Fixtures shared by the service and API tests."""
import io
import tempfile
import unittest
from pathlib import Path
from typing import Optional

from medialib.shared.db import Database
from medialib.shared.storage import LocalFileStorage


class FakeUpload:
    """Minimal stand-in for an UploadFile."""

    def __init__(self, data: bytes, filename: Optional[str] = "song.mp3"):
        self.filename = filename
        self._buffer = io.BytesIO(data)

    async def read(self, size: int = -1) -> bytes:
        return self._buffer.read(size)


class StoreTestCase(unittest.IsolatedAsyncioTestCase):
    """Provides a fresh SQLite database, session and file store per test."""

    async def asyncSetUp(self) -> None:
        self._tmpdir = tempfile.TemporaryDirectory()
        self.tmp = Path(self._tmpdir.name)
        self.database = Database(f"sqlite+aiosqlite:///{self.tmp / 'library.db'}")
        await self.database.create_all()
        self.storage = LocalFileStorage(self.tmp / "uploads", max_bytes=1024 * 1024)
        self.session = self.database.session_factory()

    async def asyncTearDown(self) -> None:
        await self.session.close()
        await self.database.dispose()
        self._tmpdir.cleanup()

    def stored_files(self) -> list:
        if not self.storage.root.exists():
            return []
        return sorted(p.name for p in self.storage.root.iterdir())
