from __future__ import annotations

"""
Video directory service
=======================

Read and delete side of the video lifecycle:

- `list_videos`          owner listing with freshly presigned URLs
- `get_shareable`        public share view (404 unknown / 410 expired)
- `get_thumbnail_state`  which SVG variant the thumbnail route renders
- `delete_video`         owner-only delete, remote first then row

Presigned URLs are generated per call and never stored or logged.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import List, Literal, Optional, Tuple

import anyio
from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import (
    GoneException,
    NotFoundException,
    PersistenceException,
    StorageException,
)
from app.core.storage import (
    SHARE_REFRESH_MARGIN_SECONDS,
    SHARE_URL_TTL_SECONDS,
    STREAM_URL_TTL_SECONDS,
)
from app.db.models import Video
from app.schemas.video import VideoListItem
from app.utils.aws import S3Client, S3StorageError

logger = logging.getLogger(__name__)

ThumbnailState = Literal["fallback", "expired", "ready"]


@dataclass(frozen=True)
class ShareView:
    video_id: int
    title: str
    mime_type: str
    stream_url: str
    expires_at: datetime
    refresh_after_seconds: int


def is_expired(video: Video, now: datetime) -> bool:
    return now > video.expires_at


# ─────────────────────────────────────────────────────────────
# 📚 Owner listing
# ─────────────────────────────────────────────────────────────
def _sign_pair(storage: S3Client, key: str) -> Tuple[str, str]:
    return (
        storage.presigned_get(key, expires_in=STREAM_URL_TTL_SECONDS),
        storage.presigned_get(key, expires_in=SHARE_URL_TTL_SECONDS),
    )


async def list_videos(
    db: AsyncSession,
    storage: S3Client,
    *,
    owner_id: int,
) -> List[VideoListItem]:
    """Owner's videos, newest first, each with a stream URL and a share URL.

    A signing failure on one row yields nulls for that row only.
    """
    try:
        rows = (
            await db.execute(
                select(Video)
                .where(Video.user_id == owner_id)
                .order_by(Video.created_at.desc(), Video.id.desc())
            )
        ).scalars().all()
    except SQLAlchemyError as e:
        logger.exception("Failed to list videos for owner=%s", owner_id)
        raise PersistenceException("Failed to fetch videos") from e

    items: List[VideoListItem] = []
    for video in rows:
        url: Optional[str] = None
        share_url: Optional[str] = None
        try:
            url, share_url = await anyio.to_thread.run_sync(_sign_pair, storage, video.storage_key)
        except S3StorageError as e:
            logger.warning("Could not sign URLs for video id=%s: %s", video.id, e)
        base = VideoListItem.from_row(video)
        items.append(base.model_copy(update={"url": url, "shareable_url": share_url}))
    return items


# ─────────────────────────────────────────────────────────────
# 🔗 Public share view
# ─────────────────────────────────────────────────────────────
async def get_shareable(
    db: AsyncSession,
    storage: S3Client,
    *,
    video_id: int,
    now: datetime,
) -> ShareView:
    try:
        video = await db.get(Video, video_id)
    except SQLAlchemyError as e:
        logger.exception("Failed to load video id=%s for sharing", video_id)
        raise PersistenceException("Failed to load video") from e
    if video is None:
        raise NotFoundException("Video not found")
    if is_expired(video, now):
        raise GoneException("Video has expired")

    try:
        stream_url = await anyio.to_thread.run_sync(
            lambda: storage.presigned_get(video.storage_key, expires_in=STREAM_URL_TTL_SECONDS)
        )
    except S3StorageError as e:
        logger.error("Could not sign share URL for video id=%s: %s", video.id, e)
        raise StorageException("Failed to load video") from e

    return ShareView(
        video_id=video.id,
        title=video.original_name,
        mime_type=video.mime_type,
        stream_url=stream_url,
        expires_at=video.expires_at,
        refresh_after_seconds=STREAM_URL_TTL_SECONDS - SHARE_REFRESH_MARGIN_SECONDS,
    )


# ─────────────────────────────────────────────────────────────
# 🖼️ Thumbnail
# ─────────────────────────────────────────────────────────────
async def get_thumbnail_state(
    db: AsyncSession,
    *,
    video_id: int,
    now: datetime,
) -> Tuple[ThumbnailState, Optional[Video]]:
    """Pick the thumbnail variant; lookup errors degrade to the fallback."""
    try:
        video = await db.get(Video, video_id)
    except SQLAlchemyError as e:
        logger.warning("Thumbnail lookup failed for video id=%s: %s", video_id, e)
        return "fallback", None
    if video is None:
        return "fallback", None
    if is_expired(video, now):
        return "expired", video
    return "ready", video


# ─────────────────────────────────────────────────────────────
# 🗑️ Owner delete
# ─────────────────────────────────────────────────────────────
async def delete_video(
    db: AsyncSession,
    storage: S3Client,
    *,
    owner_id: int,
    video_id: int,
) -> None:
    """Delete an owned video: remote object best-effort, then the row.

    Not found and not owned are the same 404.
    """
    video = (
        await db.execute(select(Video).where(Video.id == video_id, Video.user_id == owner_id))
    ).scalar_one_or_none()
    if video is None:
        raise NotFoundException("Video not found")

    key = video.storage_key
    try:
        removed = await anyio.to_thread.run_sync(storage.delete, key)
    except S3StorageError as e:
        logger.warning("Remote delete raised for video id=%s: %s", video_id, e)
        removed = False
    if not removed:
        logger.warning("Remote object may remain after delete video id=%s key=%s", video_id, key)

    try:
        result = await db.execute(delete(Video).where(Video.id == video_id))
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        logger.exception("Failed to delete video row id=%s", video_id)
        raise PersistenceException("Failed to delete video") from e

    if result.rowcount == 0:
        logger.info("Video id=%s was already removed", video_id)
    else:
        logger.info("Deleted video id=%s owner=%s", video_id, owner_id)


__all__ = [
    "ShareView",
    "ThumbnailState",
    "is_expired",
    "list_videos",
    "get_shareable",
    "get_thumbnail_state",
    "delete_video",
]
