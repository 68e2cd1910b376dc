"""Streaming resolver: maps a track ID to a readable byte stream."""
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models import Track
from ..shared.db import db_errors
from ..shared.exceptions import NotFoundError
from ..shared.logging import get_logger
from ..shared.storage import FileStream, LocalFileStorage

logger = get_logger(__name__)


class StreamingResolver:
    """Resolves tracks to their stored audio."""

    def __init__(self, db: AsyncSession, storage: LocalFileStorage):
        self.db = db
        self.storage = storage

    async def resolve(self, track_id: int) -> FileStream:
        """
        Open the stored file behind a track.

        The file is not checked for existence beforehand; if it was removed
        out from under the row, opening it raises StorageError.

        Raises:
            NotFoundError: no track with this ID
            StorageError: the stored file could not be opened
        """
        async with db_errors(self.db, "stream_lookup", track_id=track_id):
            result = await self.db.execute(select(Track.file_path).where(Track.id == track_id))
            file_path = result.scalar_one_or_none()

        if file_path is None:
            logger.warning("track_not_found", track_id=track_id)
            raise NotFoundError(
                message=f"Track {track_id} not found",
                details={"track_id": track_id},
            )

        stream = await self.storage.open(file_path)
        logger.info("stream_resolved", track_id=track_id, file_path=file_path, size=stream.size)
        return stream
