"""Playlist API endpoints."""
from typing import List, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ..services.playlist_service import PlaylistService
from ..shared.db import get_db
from ..shared.logging import get_logger
from .schemas import (
    OkResponse,
    PlaylistCreateRequest,
    PlaylistResponse,
    PlaylistTrackAddRequest,
    PlaylistTrackResponse,
)

logger = get_logger(__name__)

router = APIRouter(tags=["playlists"])


@router.post("/playlists", response_model=PlaylistResponse)
async def create_playlist(
    body: Optional[PlaylistCreateRequest] = None,
    db: AsyncSession = Depends(get_db),
) -> PlaylistResponse:
    """Create a playlist."""
    service = PlaylistService(db)
    playlist = await service.create_playlist(body.name if body else None)
    return PlaylistResponse.model_validate(playlist)


@router.get("/playlists", response_model=List[PlaylistResponse])
async def list_playlists(db: AsyncSession = Depends(get_db)) -> List[PlaylistResponse]:
    """List all playlists, most recent first."""
    service = PlaylistService(db)
    playlists = await service.list_playlists()
    return [PlaylistResponse.model_validate(p) for p in playlists]


@router.delete("/playlists/{playlist_id}", response_model=OkResponse)
async def delete_playlist(playlist_id: int, db: AsyncSession = Depends(get_db)) -> OkResponse:
    """Delete a playlist. Its memberships are left in place."""
    service = PlaylistService(db)
    await service.delete_playlist(playlist_id)
    return OkResponse()


@router.post("/playlists/{playlist_id}/tracks", response_model=OkResponse)
async def add_playlist_track(
    playlist_id: int,
    body: Optional[PlaylistTrackAddRequest] = None,
    db: AsyncSession = Depends(get_db),
) -> OkResponse:
    """Add a track to a playlist. Repeating the same add is a no-op."""
    body = body or PlaylistTrackAddRequest()
    service = PlaylistService(db)
    await service.add_track(playlist_id, body.track_id, position=body.position)
    return OkResponse()


@router.delete("/playlists/{playlist_id}/tracks/{track_id}", response_model=OkResponse)
async def remove_playlist_track(
    playlist_id: int,
    track_id: int,
    db: AsyncSession = Depends(get_db),
) -> OkResponse:
    """Remove a track from a playlist."""
    service = PlaylistService(db)
    await service.remove_track(playlist_id, track_id)
    return OkResponse()


@router.get("/playlist-tracks", response_model=List[PlaylistTrackResponse])
async def list_playlist_tracks(db: AsyncSession = Depends(get_db)) -> List[PlaylistTrackResponse]:
    """List every playlist/track pair, for client-side assembly of playlists."""
    service = PlaylistService(db)
    rows = await service.list_memberships()
    return [PlaylistTrackResponse.model_validate(row) for row in rows]
