"""Playlist model for the media library."""
from sqlalchemy import Column, Integer, String

from ..shared.db import Base, TimestampMixin


class Playlist(Base, TimestampMixin):
    """Playlist model representing a named collection of tracks."""

    __tablename__ = "playlists"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)

    def __repr__(self) -> str:
        return f"<Playlist(id={self.id}, name='{self.name}')>"
