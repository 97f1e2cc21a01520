# app/utils/video_reaper.py
from __future__ import annotations

"""
VidShare • expired video reaper
-------------------------------
- `sweep_expired_videos` deletes every video whose `expires_at` has passed:
  remote object first, then the row, one video at a time.
- A failed remote delete keeps the row so the next sweep retries it.
- "Already gone" (object or row) counts as success; a sweep never raises
  for a single bad row.
- `start_video_reaper_scheduler` runs the sweep on an APScheduler interval
  inside the API process; `scripts/reap_expired.py` runs it once from cron.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import List, Optional, Tuple

import anyio
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger
from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.db.models import Video
from app.utils.aws import S3Client, S3StorageError

logger = logging.getLogger("video-reaper")

JOB_ID = "video_reaper"


@dataclass(frozen=True)
class SweepResult:
    scanned: int = 0
    deleted: int = 0
    failed: int = 0


# ─────────────────────────────────────────────
# 🔎 Selection
# ─────────────────────────────────────────────
async def _expired_rows(
    session_maker: async_sessionmaker[AsyncSession], now: datetime
) -> List[Tuple[int, str]]:
    async with session_maker() as db:
        result = await db.execute(
            select(Video.id, Video.storage_key)
            .where(Video.expires_at < now)
            .order_by(Video.expires_at, Video.id)
        )
        return [(row.id, row.storage_key) for row in result]


async def _delete_row(session_maker: async_sessionmaker[AsyncSession], video_id: int) -> int:
    async with session_maker() as db:
        result = await db.execute(delete(Video).where(Video.id == video_id))
        await db.commit()
        return int(result.rowcount or 0)


# ─────────────────────────────────────────────
# 🧹 Public task
# ─────────────────────────────────────────────
async def sweep_expired_videos(
    session_maker: async_sessionmaker[AsyncSession],
    storage: S3Client,
    *,
    now: Optional[datetime] = None,
) -> SweepResult:
    """Delete every expired video once; safe to run repeatedly or concurrently."""
    now = now or datetime.now(timezone.utc)
    try:
        rows = await _expired_rows(session_maker, now)
    except SQLAlchemyError:
        logger.exception("Reaper could not query expired videos")
        return SweepResult()

    deleted = failed = 0
    for video_id, key in rows:
        try:
            removed = await anyio.to_thread.run_sync(storage.delete, key)
        except S3StorageError as e:
            logger.warning("Reaper remote delete raised for id=%s: %s", video_id, e)
            removed = False
        if not removed:
            logger.warning("Reaper kept id=%s for retry; remote delete failed key=%s", video_id, key)
            failed += 1
            continue

        try:
            count = await _delete_row(session_maker, video_id)
        except SQLAlchemyError:
            logger.exception("Reaper could not delete row id=%s", video_id)
            failed += 1
            continue

        deleted += 1
        if count == 0:
            logger.debug("Reaper found id=%s already removed", video_id)

    result = SweepResult(scanned=len(rows), deleted=deleted, failed=failed)
    if rows:
        logger.info(
            "Video reaper: scanned=%s deleted=%s failed=%s cutoff=%s",
            result.scanned, result.deleted, result.failed, now.isoformat(),
        )
    else:
        logger.debug("Video reaper: nothing to purge")
    return result


# ─────────────────────────────────────────────
# ⏰ Scheduler
# ─────────────────────────────────────────────
def start_video_reaper_scheduler(
    session_maker: async_sessionmaker[AsyncSession],
    storage: S3Client,
    *,
    interval_minutes: int = 60,
    jitter_seconds: int = 15,
) -> AsyncIOScheduler:
    """
    Start the in-process APScheduler job and return the scheduler so the
    caller can shut it down.

    Must be called with a running event loop (the app lifespan).
    """
    scheduler = AsyncIOScheduler(timezone=timezone.utc)
    scheduler.add_job(
        sweep_expired_videos,
        IntervalTrigger(minutes=interval_minutes, jitter=jitter_seconds, timezone=timezone.utc),
        args=[session_maker, storage],
        id=JOB_ID,
        max_instances=1,
        coalesce=True,
        replace_existing=True,
    )
    scheduler.start()
    logger.info("Video reaper scheduler started | interval=%sm, jitter=%ss", interval_minutes, jitter_seconds)
    return scheduler


__all__ = ["SweepResult", "sweep_expired_videos", "start_video_reaper_scheduler"]
