from __future__ import annotations

"""
Video ingest service
====================

Turns one multipart upload into one stored object plus one `videos` row.

Order of operations
-------------------
1) Validate presence, declared type and size (bounded chunked read). Nothing
   remote happens until all three pass.
2) Derive the storage key and the expiry from a single clock reading.
3) `put_bytes` with audit metadata (worker thread; boto3 is blocking).
4) Insert + commit the row. If that fails, the just-written object is
   deleted again before `PersistenceException` propagates.
"""

import logging
import secrets
from datetime import datetime
from typing import Optional
from urllib.parse import quote

import anyio
from fastapi import UploadFile
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.http_utils import sanitize_filename
from app.core.exceptions import PersistenceException, StorageException, ValidationException
from app.core.storage import (
    ALLOWED_MIME_PREFIX,
    MAX_UPLOAD_BYTES,
    META_EXPIRES_AT,
    META_ORIGINAL_NAME,
    META_USER_ID,
    RETENTION_PERIOD,
    STORAGE_KEY_FALLBACK_NAME,
    STORAGE_KEY_NAME_MAX,
    UPLOAD_READ_CHUNK_BYTES,
)
from app.db.models import Video
from app.utils.aws import S3Client, S3StorageError

logger = logging.getLogger(__name__)


# ─────────────────────────────────────────────────────────────
# 🔧 Helpers
# ─────────────────────────────────────────────────────────────
def build_storage_key(original_name: Optional[str], now: datetime) -> str:
    """`{epoch_millis}-{8 hex}-{sanitized name}`; unique and opaque."""
    safe = sanitize_filename(
        original_name,
        fallback=STORAGE_KEY_FALLBACK_NAME,
        max_length=STORAGE_KEY_NAME_MAX,
    )
    return f"{int(now.timestamp() * 1000)}-{secrets.token_hex(4)}-{safe}"


async def read_bounded(upload: UploadFile, limit: int = MAX_UPLOAD_BYTES) -> bytes:
    """Read the whole upload, refusing as soon as more than `limit` bytes arrive."""
    chunks: list[bytes] = []
    total = 0
    while True:
        chunk = await upload.read(UPLOAD_READ_CHUNK_BYTES)
        if not chunk:
            break
        total += len(chunk)
        if total > limit:
            raise ValidationException(
                "File too large",
                details={"max_bytes": limit},
            )
        chunks.append(chunk)
    return b"".join(chunks)


def _validate_upload(upload: Optional[UploadFile]) -> str:
    if upload is None or not (upload.filename or "").strip():
        raise ValidationException("No video file provided")
    content_type = (upload.content_type or "").strip().lower()
    if not content_type.startswith(ALLOWED_MIME_PREFIX):
        raise ValidationException("Only video files are allowed")
    return content_type


async def _compensate(storage: S3Client, key: str) -> None:
    try:
        removed = await anyio.to_thread.run_sync(storage.delete, key)
    except S3StorageError:
        removed = False
    if removed:
        logger.info("Removed orphaned object after metadata failure key=%s", key)
    else:
        logger.error("Orphaned object left in bucket, manual cleanup needed key=%s", key)


# ─────────────────────────────────────────────────────────────
# 📤 Upload
# ─────────────────────────────────────────────────────────────
async def upload_video(
    db: AsyncSession,
    storage: S3Client,
    *,
    owner_id: int,
    upload: Optional[UploadFile],
    now: datetime,
) -> Video:
    """Validate, store and record one uploaded video for `owner_id`."""
    content_type = _validate_upload(upload)
    data = await read_bounded(upload, MAX_UPLOAD_BYTES)

    original_name = upload.filename.strip()
    key = build_storage_key(original_name, now)
    expires_at = now + RETENTION_PERIOD

    metadata = {
        META_ORIGINAL_NAME: quote(original_name, safe=""),
        META_USER_ID: str(owner_id),
        META_EXPIRES_AT: expires_at.isoformat(),
    }

    try:
        await anyio.to_thread.run_sync(
            lambda: storage.put_bytes(key, data, content_type=content_type, metadata=metadata)
        )
    except S3StorageError as e:
        logger.error("Upload to object storage failed key=%s: %s", key, e)
        raise StorageException("Upload failed") from e

    video = Video(
        user_id=owner_id,
        original_name=original_name[:255],
        storage_key=key,
        file_size=len(data),
        mime_type=content_type,
        created_at=now,
        expires_at=expires_at,
    )
    try:
        db.add(video)
        await db.commit()
        await db.refresh(video)
    except SQLAlchemyError as e:
        await db.rollback()
        logger.exception("Failed to save video metadata key=%s", key)
        await _compensate(storage, key)
        raise PersistenceException("Failed to save video metadata") from e

    logger.info(
        "Stored video id=%s owner=%s size=%s expires_at=%s",
        video.id, owner_id, video.file_size, expires_at.isoformat(),
    )
    return video


__all__ = ["upload_video", "build_storage_key", "read_bounded"]
