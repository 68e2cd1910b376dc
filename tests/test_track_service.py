import unittest

from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError

from medialib.models import Track
from medialib.services.track_service import TrackService
from medialib.shared.exceptions import (
    NotFoundError,
    PayloadTooLargeError,
    StorageError,
    ValidationError,
)
from medialib.shared.storage import LocalFileStorage
from tests.support import FakeUpload, StoreTestCase


class _UnremovableStorage(LocalFileStorage):
    async def remove(self, location: str) -> bool:
        raise StorageError(message="Failed to remove stored file", details={"location": location})


class _FailingCommitSession:
    def __init__(self) -> None:
        self.rolled_back = False

    def add(self, _obj) -> None:
        pass

    async def commit(self) -> None:
        raise OperationalError("INSERT INTO tracks", {}, Exception("database is locked"))

    async def rollback(self) -> None:
        self.rolled_back = True


class TestTrackIngest(StoreTestCase):
    async def _count_tracks(self) -> int:
        result = await self.session.execute(select(func.count()).select_from(Track))
        return result.scalar_one()

    async def test_defaults_title_to_filename_and_blank_artist_album(self) -> None:
        service = TrackService(self.session, self.storage)
        track = await service.ingest(FakeUpload(b"ID3audio", filename="Song A.mp3"))

        self.assertIsNotNone(track.id)
        self.assertEqual(track.title, "Song A.mp3")
        self.assertEqual(track.artist, "")
        self.assertEqual(track.album, "")
        self.assertTrue(track.file_path.endswith(".mp3"))
        self.assertEqual((self.storage.root / track.file_path).read_bytes(), b"ID3audio")

    async def test_supplied_metadata_is_kept(self) -> None:
        service = TrackService(self.session, self.storage)
        track = await service.ingest(
            FakeUpload(b"x" * 200_000, filename="a.flac"),
            title="Song A",
            artist="Band",
            album="Record",
        )
        self.assertEqual((track.title, track.artist, track.album), ("Song A", "Band", "Record"))
        self.assertEqual((self.storage.root / track.file_path).stat().st_size, 200_000)

    async def test_missing_payload_creates_nothing(self) -> None:
        service = TrackService(self.session, self.storage)
        with self.assertRaises(ValidationError):
            await service.ingest(None, title="Nothing")
        self.assertEqual(await self._count_tracks(), 0)
        self.assertEqual(self.stored_files(), [])

    async def test_empty_payload_creates_nothing(self) -> None:
        service = TrackService(self.session, self.storage)
        with self.assertRaises(ValidationError):
            await service.ingest(FakeUpload(b""))
        self.assertEqual(await self._count_tracks(), 0)
        self.assertEqual(self.stored_files(), [])

    async def test_oversized_payload_is_rejected_and_discarded(self) -> None:
        storage = LocalFileStorage(self.storage.root, max_bytes=10)
        service = TrackService(self.session, storage)
        with self.assertRaises(PayloadTooLargeError):
            await service.ingest(FakeUpload(b"x" * 11))
        self.assertEqual(await self._count_tracks(), 0)
        self.assertEqual(self.stored_files(), [])

    async def test_failed_insert_removes_stored_file(self) -> None:
        session = _FailingCommitSession()
        service = TrackService(session, self.storage)
        with self.assertRaises(StorageError):
            await service.ingest(FakeUpload(b"audio"))
        self.assertTrue(session.rolled_back)
        self.assertEqual(self.stored_files(), [])


class TestTrackListing(StoreTestCase):
    async def test_lists_most_recent_first_without_file_location(self) -> None:
        service = TrackService(self.session, self.storage)
        first = await service.ingest(FakeUpload(b"1"), title="First")
        second = await service.ingest(FakeUpload(b"2"), title="Second", artist="B")

        rows = await service.list_tracks()

        self.assertEqual([r.id for r in rows], [second.id, first.id])
        self.assertEqual(rows[0].title, "Second")
        self.assertEqual(rows[0].artist, "B")
        self.assertIsNone(rows[0].cover_url)
        self.assertIsNone(rows[0].duration_seconds)
        self.assertNotIn("file_path", rows[0]._mapping)

    async def test_empty_library_lists_nothing(self) -> None:
        service = TrackService(self.session, self.storage)
        self.assertEqual(await service.list_tracks(), [])


class TestTrackDelete(StoreTestCase):
    async def test_delete_unknown_track_raises_not_found(self) -> None:
        service = TrackService(self.session, self.storage)
        with self.assertRaises(NotFoundError):
            await service.delete_track(999)

    async def test_delete_removes_row_and_file(self) -> None:
        service = TrackService(self.session, self.storage)
        track = await service.ingest(FakeUpload(b"audio"))

        await service.delete_track(track.id)

        self.assertEqual(await service.list_tracks(), [])
        self.assertEqual(self.stored_files(), [])
        with self.assertRaises(NotFoundError):
            await service.delete_track(track.id)

    async def test_file_removal_failure_does_not_fail_delete(self) -> None:
        service = TrackService(self.session, _UnremovableStorage(self.storage.root))
        track = await service.ingest(FakeUpload(b"audio"))

        await service.delete_track(track.id)

        self.assertEqual(await service.list_tracks(), [])
        self.assertEqual(self.stored_files(), [track.file_path])

    async def test_delete_when_file_already_gone(self) -> None:
        service = TrackService(self.session, self.storage)
        track = await service.ingest(FakeUpload(b"audio"))
        (self.storage.root / track.file_path).unlink()

        await service.delete_track(track.id)

        self.assertEqual(await service.list_tracks(), [])


if __name__ == "__main__":
    unittest.main()
