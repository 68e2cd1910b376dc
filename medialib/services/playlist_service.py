"""Playlist service for managing playlists and their memberships."""
from typing import List, Optional

from sqlalchemy import and_, delete, insert, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.engine import Row
from sqlalchemy.ext.asyncio import AsyncSession

from ..metrics import playlist_memberships_added_total
from ..models import Playlist, PlaylistTrack
from ..shared.db import db_errors
from ..shared.exceptions import StorageError, ValidationError
from ..shared.logging import get_logger

logger = get_logger(__name__)


def insert_membership_if_absent(dialect_name: str, values: dict):
    """Build an INSERT for a membership that is a no-op when the pair exists."""
    if dialect_name == "postgresql":
        return postgresql.insert(PlaylistTrack).values(**values).on_conflict_do_nothing(
            index_elements=[PlaylistTrack.playlist_id, PlaylistTrack.track_id]
        )
    if dialect_name == "sqlite":
        return sqlite.insert(PlaylistTrack).values(**values).on_conflict_do_nothing(
            index_elements=[PlaylistTrack.playlist_id, PlaylistTrack.track_id]
        )
    if dialect_name in ("mysql", "mariadb"):
        return insert(PlaylistTrack).values(**values).prefix_with("IGNORE")
    raise StorageError(
        message="Idempotent membership insert is not supported for this database",
        details={"dialect": dialect_name},
    )


class PlaylistService:
    """Service for managing playlists. Touches the relational store only."""

    def __init__(self, db: AsyncSession):
        """Initialize service with database session."""
        self.db = db

    async def create_playlist(self, name: Optional[str]) -> Playlist:
        """Create a playlist; the name must be non-empty."""
        if not name or not name.strip():
            raise ValidationError(message="Name required")

        playlist = Playlist(name=name.strip())
        async with db_errors(self.db, "playlist_insert"):
            self.db.add(playlist)
            await self.db.commit()

        logger.info("playlist_created", playlist_id=playlist.id, name=playlist.name)
        return playlist

    async def list_playlists(self) -> List[Playlist]:
        """Get all playlists, most recent first."""
        query = select(Playlist).order_by(Playlist.created_at.desc(), Playlist.id.desc())

        async with db_errors(self.db, "playlist_list"):
            result = await self.db.execute(query)
            playlists = list(result.scalars().all())

        logger.info("retrieved_playlists", count=len(playlists))
        return playlists

    async def delete_playlist(self, playlist_id: int) -> None:
        """Delete a playlist row. Missing playlists are fine; memberships are kept."""
        async with db_errors(self.db, "playlist_delete", playlist_id=playlist_id):
            result = await self.db.execute(delete(Playlist).where(Playlist.id == playlist_id))
            await self.db.commit()

        logger.info("playlist_deleted", playlist_id=playlist_id, rows=result.rowcount)

    async def add_track(self, playlist_id: int, track_id: Optional[int], position: int = 0) -> None:
        """Add a track to a playlist. Adding an existing pair again does nothing."""
        if track_id is None:
            raise ValidationError(message="trackId required")

        values = {
            "playlist_id": playlist_id,
            "track_id": track_id,
            "position": position,
        }
        stmt = insert_membership_if_absent(self.db.get_bind().dialect.name, values)

        async with db_errors(self.db, "membership_insert", playlist_id=playlist_id, track_id=track_id):
            result = await self.db.execute(stmt)
            await self.db.commit()

        playlist_memberships_added_total.inc()
        logger.info(
            "playlist_track_added",
            playlist_id=playlist_id,
            track_id=track_id,
            position=position,
            inserted=result.rowcount == 1,
        )

    async def remove_track(self, playlist_id: int, track_id: int) -> None:
        """Remove a track from a playlist. Removing a missing pair is not an error."""
        stmt = delete(PlaylistTrack).where(
            and_(
                PlaylistTrack.playlist_id == playlist_id,
                PlaylistTrack.track_id == track_id,
            )
        )
        async with db_errors(self.db, "membership_delete", playlist_id=playlist_id, track_id=track_id):
            result = await self.db.execute(stmt)
            await self.db.commit()

        logger.info(
            "playlist_track_removed",
            playlist_id=playlist_id,
            track_id=track_id,
            removed=result.rowcount,
        )

    async def list_memberships(self) -> List[Row]:
        """Get every (playlist_id, track_id) pair across all playlists, unordered."""
        query = select(PlaylistTrack.playlist_id, PlaylistTrack.track_id)

        async with db_errors(self.db, "membership_list"):
            result = await self.db.execute(query)
            rows = list(result.all())

        logger.info("retrieved_memberships", count=len(rows))
        return rows
