"""
Owner video endpoints (bearer auth)
===================================

POST   /videos/upload   multipart field `video`
GET    /videos          caller's videos with fresh presigned URLs
DELETE /videos/{id}     owner-only delete

Listing responses embed presigned URLs, so they are never cached.
"""

import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, File, Path, Response, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.dependencies import get_current_identity, get_now, get_storage
from app.core.storage import MAX_VIDEO_ID
from app.db.session import get_async_db
from app.schemas.auth import TokenIdentity
from app.schemas.video import DeleteResponse, UploadResponse, VideoListResponse, VideoOut
from app.security_headers import set_sensitive_cache
from app.services.video_directory_service import delete_video, list_videos
from app.services.video_ingest_service import upload_video
from app.utils.aws import S3Client

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/videos", tags=["Videos"])


@router.post("/upload", response_model=UploadResponse, summary="Upload a video (kept for 5 days)")
async def upload(
    video: Optional[UploadFile] = File(None, description="The video file (video/* only, ≤200 MiB)."),
    identity: TokenIdentity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_async_db),
    storage: S3Client = Depends(get_storage),
    now: datetime = Depends(get_now),
) -> UploadResponse:
    row = await upload_video(db, storage, owner_id=identity.id, upload=video, now=now)
    return UploadResponse(video=VideoOut.from_row(row))


@router.get("", response_model=VideoListResponse, summary="List my videos")
async def my_videos(
    response: Response,
    identity: TokenIdentity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_async_db),
    storage: S3Client = Depends(get_storage),
) -> VideoListResponse:
    set_sensitive_cache(response)
    items = await list_videos(db, storage, owner_id=identity.id)
    return VideoListResponse(videos=items)


@router.delete("/{video_id}", response_model=DeleteResponse, summary="Delete one of my videos")
async def remove_video(
    video_id: int = Path(..., ge=1, le=MAX_VIDEO_ID),
    identity: TokenIdentity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_async_db),
    storage: S3Client = Depends(get_storage),
) -> DeleteResponse:
    await delete_video(db, storage, owner_id=identity.id, video_id=video_id)
    return DeleteResponse()


__all__ = ["router"]
