"""PlaylistTrack membership model for the media library."""
from sqlalchemy import Column, Integer

from ..shared.db import Base, TimestampMixin


class PlaylistTrack(Base, TimestampMixin):
    """Membership linking one playlist to one track.

    The (playlist_id, track_id) pair is the primary key, so a pair exists at
    most once. There are no foreign keys: deleting a playlist or a track
    leaves its membership rows in place.
    """

    __tablename__ = "playlist_tracks"

    playlist_id = Column(Integer, primary_key=True, autoincrement=False)
    track_id = Column(Integer, primary_key=True, autoincrement=False, index=True)
    position = Column(Integer, nullable=False, default=0)  # Stored, not used for ordering yet

    def __repr__(self) -> str:
        return (
            f"<PlaylistTrack(playlist_id={self.playlist_id}, track_id={self.track_id}, "
            f"position={self.position})>"
        )
