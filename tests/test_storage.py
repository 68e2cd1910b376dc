import tempfile
import unittest
from pathlib import Path

from medialib.shared.exceptions import StorageError
from medialib.shared.storage import LocalFileStorage


async def _chunks(*parts: bytes):
    for part in parts:
        yield part


class TestLocalFileStorage(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self) -> None:
        self._tmpdir = tempfile.TemporaryDirectory()
        self.root = Path(self._tmpdir.name) / "uploads"
        self.storage = LocalFileStorage(self.root)

    async def asyncTearDown(self) -> None:
        self._tmpdir.cleanup()

    async def test_save_generates_unique_locations_keeping_extension(self) -> None:
        first = await self.storage.save(_chunks(b"ab", b"cd"), "Track One.MP3")
        second = await self.storage.save(_chunks(b"ef"), "Track One.MP3")

        self.assertNotEqual(first.location, second.location)
        self.assertTrue(first.location.endswith(".mp3"))
        self.assertEqual(first.size, 4)
        self.assertEqual((self.root / first.location).read_bytes(), b"abcd")

    async def test_save_without_name_has_no_extension(self) -> None:
        stored = await self.storage.save(_chunks(b"x"), None)
        self.assertEqual(Path(stored.location).suffix, "")

    async def test_remove_reports_whether_file_existed(self) -> None:
        stored = await self.storage.save(_chunks(b"x"), "a.ogg")
        self.assertTrue(await self.storage.remove(stored.location))
        self.assertFalse(await self.storage.remove(stored.location))

    async def test_open_missing_file_raises(self) -> None:
        self.root.mkdir(parents=True)
        with self.assertRaises(StorageError):
            await self.storage.open("missing.mp3")

    async def test_locations_cannot_escape_root(self) -> None:
        self.root.mkdir(parents=True)
        (self.root.parent / "secret.txt").write_text("x", encoding="utf-8")
        with self.assertRaises(StorageError):
            await self.storage.open("../secret.txt")
        with self.assertRaises(StorageError):
            await self.storage.remove("../secret.txt")
        self.assertTrue((self.root.parent / "secret.txt").exists())


if __name__ == "__main__":
    unittest.main()
