"""Track API endpoints: upload, list, delete."""
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from ..services.track_service import TrackService
from ..shared.db import get_db
from ..shared.logging import get_logger
from ..shared.storage import LocalFileStorage, get_storage
from .schemas import OkResponse, TrackCreatedResponse, TrackResponse

logger = get_logger(__name__)

router = APIRouter(prefix="/tracks", tags=["tracks"])


@router.post("", response_model=TrackCreatedResponse)
async def upload_track(
    file: Optional[UploadFile] = File(None, description="Audio file"),
    title: Optional[str] = Form(None),
    artist: Optional[str] = Form(None),
    album: Optional[str] = Form(None),
    db: AsyncSession = Depends(get_db),
    storage: LocalFileStorage = Depends(get_storage),
) -> TrackCreatedResponse:
    """Upload an audio file and create its track.

    Title defaults to the uploaded file's name; artist and album default to "".
    """
    logger.info("uploading_track", filename=file.filename if file else None)

    service = TrackService(db, storage)
    try:
        track = await service.ingest(file, title=title, artist=artist, album=album)
    finally:
        if file is not None:
            await file.close()

    return TrackCreatedResponse.model_validate(track)


@router.get("", response_model=List[TrackResponse])
async def list_tracks(
    db: AsyncSession = Depends(get_db),
    storage: LocalFileStorage = Depends(get_storage),
) -> List[TrackResponse]:
    """List all tracks, most recent first."""
    service = TrackService(db, storage)
    rows = await service.list_tracks()
    return [TrackResponse.model_validate(row) for row in rows]


@router.delete("/{track_id}", response_model=OkResponse)
async def delete_track(
    track_id: int,
    db: AsyncSession = Depends(get_db),
    storage: LocalFileStorage = Depends(get_storage),
) -> OkResponse:
    """Delete a track and, best-effort, its stored file."""
    logger.info("deleting_track", track_id=track_id)

    service = TrackService(db, storage)
    await service.delete_track(track_id)
    return OkResponse()
