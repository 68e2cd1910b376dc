"""Request and response models shared by the API routers."""
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Serializes to camelCase keys and accepts camelCase or snake_case input."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class OkResponse(BaseModel):
    ok: bool = True


class TrackCreatedResponse(CamelModel):
    """Track as echoed back after an upload, including its file location."""
    id: int
    title: str = Field(..., description="Track title")
    artist: str = Field("", description="Artist name")
    album: str = Field("", description="Album name")
    file_path: str = Field(..., description="Location of the audio file in the file store")


class TrackResponse(CamelModel):
    """Track listing entry. The file location is never exposed here."""
    id: int
    title: str
    artist: str
    album: str
    cover_url: Optional[str] = None
    duration_seconds: Optional[int] = None


class PlaylistCreateRequest(CamelModel):
    name: Optional[str] = None


class PlaylistResponse(CamelModel):
    id: int
    name: str


class PlaylistTrackAddRequest(CamelModel):
    track_id: Optional[int] = None
    position: int = 0


class PlaylistTrackResponse(CamelModel):
    playlist_id: int
    track_id: int
