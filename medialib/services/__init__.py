"""Services for the media library."""
from .playlist_service import PlaylistService
from .streaming_service import StreamingResolver
from .track_service import TrackService

__all__ = ["PlaylistService", "StreamingResolver", "TrackService"]
