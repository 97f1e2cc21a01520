# app/schemas/video.py

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
    """Wire models use camelCase keys; Python code uses snake_case."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class VideoOut(_CamelModel):
    id: int
    original_name: str
    file_name: str = Field(..., description="Opaque storage key.")
    size: int
    mime_type: str
    expires_at: datetime
    created_at: datetime

    @classmethod
    def from_row(cls, video) -> "VideoOut":
        return cls(
            id=video.id,
            original_name=video.original_name,
            file_name=video.storage_key,
            size=video.file_size,
            mime_type=video.mime_type,
            expires_at=video.expires_at,
            created_at=video.created_at,
        )


class VideoListItem(VideoOut):
    url: Optional[str] = None
    shareable_url: Optional[str] = None


class UploadResponse(_CamelModel):
    success: bool = True
    message: str = "Video uploaded successfully"
    video: VideoOut


class VideoListResponse(_CamelModel):
    videos: List[VideoListItem]


class DeleteResponse(_CamelModel):
    success: bool = True
    message: str = "Video deleted successfully"
