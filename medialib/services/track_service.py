"""Track service: ingestion, listing, and deletion of tracks."""
from typing import AsyncIterator, List, Optional, Protocol

from sqlalchemy import delete, select
from sqlalchemy.engine import Row
from sqlalchemy.ext.asyncio import AsyncSession

from ..metrics import (
    track_file_removal_failures_total,
    tracks_deleted_total,
    tracks_ingested_total,
    upload_bytes_total,
)
from ..models import Track
from ..shared.db import db_errors
from ..shared.exceptions import NotFoundError, StorageError, ValidationError
from ..shared.logging import get_logger
from ..shared.storage import CHUNK_SIZE, LocalFileStorage

logger = get_logger(__name__)


class UploadPayload(Protocol):
    """What ingest needs from an upload; FastAPI's UploadFile satisfies it."""

    filename: Optional[str]

    async def read(self, size: int = -1) -> bytes: ...


async def _chunks(first: bytes, upload: UploadPayload) -> AsyncIterator[bytes]:
    yield first
    while True:
        chunk = await upload.read(CHUNK_SIZE)
        if not chunk:
            break
        yield chunk


class TrackService:
    """Service for managing tracks and their stored files."""

    def __init__(self, db: AsyncSession, storage: LocalFileStorage):
        """Initialize service with a database session and a file store."""
        self.db = db
        self.storage = storage

    async def ingest(
        self,
        upload: Optional[UploadPayload],
        title: Optional[str] = None,
        artist: Optional[str] = None,
        album: Optional[str] = None,
    ) -> Track:
        """
        Store an uploaded payload and create its Track row.

        The file is written first; the row is inserted only once the file is
        safely stored. If the insert fails, the stored file is removed again.

        Args:
            upload: The uploaded file, or None when the request carried none
            title: Track title; defaults to the upload's original filename
            artist: Artist name; defaults to ""
            album: Album name; defaults to ""

        Returns:
            The created Track, including its file location

        Raises:
            ValidationError: no payload, or an empty one
            StorageError: the file or the row could not be written
        """
        if upload is None:
            raise ValidationError(message="No file provided")

        first = await upload.read(CHUNK_SIZE)
        if not first:
            raise ValidationError(message="No file provided")

        stored = await self.storage.save(_chunks(first, upload), upload.filename)

        track = Track(
            title=title or upload.filename or stored.location,
            artist=artist or "",
            album=album or "",
            file_path=stored.location,
        )
        try:
            async with db_errors(self.db, "track_insert", file_path=stored.location):
                self.db.add(track)
                await self.db.commit()
        except StorageError:
            await self._remove_file_quietly(stored.location, reason="insert_failed")
            raise

        tracks_ingested_total.inc()
        upload_bytes_total.inc(stored.size)
        logger.info(
            "track_ingested",
            track_id=track.id,
            title=track.title,
            file_path=track.file_path,
            size=stored.size,
        )
        return track

    async def list_tracks(self) -> List[Row]:
        """List all tracks, most recent first, without their file locations."""
        query = select(
            Track.id,
            Track.title,
            Track.artist,
            Track.album,
            Track.cover_url,
            Track.duration_seconds,
        ).order_by(Track.created_at.desc(), Track.id.desc())

        async with db_errors(self.db, "track_list"):
            result = await self.db.execute(query)
            rows = list(result.all())

        logger.info("retrieved_tracks", count=len(rows))
        return rows

    async def get_track(self, track_id: int) -> Track:
        """Get a track by ID, raising NotFoundError if it does not exist."""
        async with db_errors(self.db, "track_lookup", track_id=track_id):
            result = await self.db.execute(select(Track).where(Track.id == track_id))
            track = result.scalar_one_or_none()

        if track is None:
            raise NotFoundError(
                message=f"Track {track_id} not found",
                details={"track_id": track_id},
            )
        return track

    async def delete_track(self, track_id: int) -> None:
        """
        Delete a track row, then remove its stored file.

        The steps run in order: lookup, row delete (committed), file removal.
        Once the row is gone the deletion counts as done; a failed file
        removal is logged and leaves an orphaned file behind.

        Raises:
            NotFoundError: no track with this ID
            StorageError: the row could not be deleted (the file is untouched)
        """
        track = await self.get_track(track_id)
        file_path = track.file_path

        async with db_errors(self.db, "track_delete", track_id=track_id):
            await self.db.execute(delete(Track).where(Track.id == track_id))
            await self.db.commit()

        tracks_deleted_total.inc()
        logger.info("track_deleted", track_id=track_id, file_path=file_path)

        if file_path:
            await self._remove_file_quietly(file_path, reason="track_deleted", track_id=track_id)

    async def _remove_file_quietly(self, location: str, reason: str, **context) -> None:
        try:
            await self.storage.remove(location)
        except StorageError as e:
            track_file_removal_failures_total.inc()
            logger.warning(
                "track_file_removal_failed",
                file_path=location,
                reason=reason,
                error=e.message,
                cause=repr(e.__cause__),
                **context,
            )
