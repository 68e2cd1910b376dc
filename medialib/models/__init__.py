"""Models for the media library service."""
from .track import Track
from .playlist import Playlist
from .playlist_track import PlaylistTrack

__all__ = ["Track", "Playlist", "PlaylistTrack"]
