"""Track model for the media library."""
from sqlalchemy import Column, Integer, String

from ..shared.db import Base, TimestampMixin


class Track(Base, TimestampMixin):
    """Track model: one uploaded audio file's metadata row.

    file_path is assigned once at creation and never updated.
    """

    __tablename__ = "tracks"

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(255), nullable=False, index=True)
    artist = Column(String(255), nullable=False, default="")
    album = Column(String(255), nullable=False, default="")
    file_path = Column(String(512), nullable=False)  # Location inside the file store
    cover_url = Column(String(1024), nullable=True)
    duration_seconds = Column(Integer, nullable=True)

    def __repr__(self) -> str:
        return f"<Track(id={self.id}, title='{self.title}', file_path='{self.file_path}')>"
