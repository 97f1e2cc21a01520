# tests/test_reaper/test_video_reaper.py

from datetime import timedelta

import pytest
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger
from sqlalchemy import select
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models import Video
from app.utils import video_reaper
from app.utils.video_reaper import SweepResult, start_video_reaper_scheduler, sweep_expired_videos
from tests.fixtures.app import FROZEN_NOW


async def _remaining_ids(db: AsyncSession):
    db.expire_all()
    return set((await db.execute(select(Video.id))).scalars().all())


@pytest.mark.anyio
async def test_sweep_removes_only_expired(
    session_maker, db_session: AsyncSession, user, create_video, fake_storage
):
    expired = await create_video(user, created_at=FROZEN_NOW - timedelta(days=6))
    live = await create_video(user, created_at=FROZEN_NOW - timedelta(days=1))

    result = await sweep_expired_videos(session_maker, fake_storage, now=FROZEN_NOW)

    assert result == SweepResult(scanned=1, deleted=1, failed=0)
    assert fake_storage.deletes == [expired.storage_key]
    assert await _remaining_ids(db_session) == {live.id}


@pytest.mark.anyio
async def test_row_expiring_exactly_now_is_kept(session_maker, db_session, user, create_video, fake_storage):
    boundary = await create_video(user, created_at=FROZEN_NOW - timedelta(days=5))

    result = await sweep_expired_videos(session_maker, fake_storage, now=FROZEN_NOW)

    assert result.scanned == 0
    assert await _remaining_ids(db_session) == {boundary.id}


@pytest.mark.anyio
async def test_remote_failure_keeps_row_for_next_sweep(
    session_maker, db_session: AsyncSession, user, create_video, fake_storage
):
    video = await create_video(user, created_at=FROZEN_NOW - timedelta(days=7))
    fake_storage.fail_delete = True

    first = await sweep_expired_videos(session_maker, fake_storage, now=FROZEN_NOW)

    assert first == SweepResult(scanned=1, deleted=0, failed=1)
    assert await _remaining_ids(db_session) == {video.id}

    fake_storage.fail_delete = False
    second = await sweep_expired_videos(session_maker, fake_storage, now=FROZEN_NOW)

    assert second == SweepResult(scanned=1, deleted=1, failed=0)
    assert await _remaining_ids(db_session) == set()


@pytest.mark.anyio
async def test_one_remote_failure_does_not_stop_the_sweep(
    session_maker, db_session: AsyncSession, user, create_video, fake_storage
):
    first, stuck, last = [
        await create_video(user, created_at=FROZEN_NOW - timedelta(days=days)) for days in (6, 7, 8)
    ]
    fake_storage.fail_delete_keys.add(stuck.storage_key)

    result = await sweep_expired_videos(session_maker, fake_storage, now=FROZEN_NOW)

    assert result == SweepResult(scanned=3, deleted=2, failed=1)
    assert sorted(fake_storage.deletes) == sorted([first.storage_key, last.storage_key])
    assert await _remaining_ids(db_session) == {stuck.id}


@pytest.mark.anyio
async def test_one_row_delete_failure_does_not_stop_the_sweep(
    session_maker, db_session: AsyncSession, user, create_video, fake_storage, monkeypatch
):
    videos = [await create_video(user, created_at=FROZEN_NOW - timedelta(days=days)) for days in (6, 7, 8)]
    stuck = videos[1]
    real_delete_row = video_reaper._delete_row

    async def _flaky_delete_row(maker, video_id):
        if video_id == stuck.id:
            raise OperationalError("DELETE FROM videos", {}, Exception("database is locked"))
        return await real_delete_row(maker, video_id)

    monkeypatch.setattr(video_reaper, "_delete_row", _flaky_delete_row)

    result = await sweep_expired_videos(session_maker, fake_storage, now=FROZEN_NOW)

    assert result == SweepResult(scanned=3, deleted=2, failed=1)
    assert len(fake_storage.deletes) == 3
    assert await _remaining_ids(db_session) == {stuck.id}

@pytest.mark.anyio
async def test_sweep_is_idempotent(session_maker, db_session, user, create_video, fake_storage):
    for days in (6, 8, 10):
        await create_video(user, created_at=FROZEN_NOW - timedelta(days=days))

    first = await sweep_expired_videos(session_maker, fake_storage, now=FROZEN_NOW)
    second = await sweep_expired_videos(session_maker, fake_storage, now=FROZEN_NOW)

    assert first.deleted == 3
    assert second == SweepResult()
    assert len(fake_storage.deletes) == 3


@pytest.mark.anyio
async def test_already_missing_object_counts_as_deleted(
    session_maker, db_session, user, create_video, fake_storage
):
    # the fake store never held this key; delete of a missing key still succeeds
    await create_video(user, created_at=FROZEN_NOW - timedelta(days=6))

    result = await sweep_expired_videos(session_maker, fake_storage, now=FROZEN_NOW)

    assert result.deleted == 1
    assert await _remaining_ids(db_session) == set()


@pytest.mark.anyio
async def test_scheduler_registers_single_interval_job(session_maker, fake_storage):
    scheduler = start_video_reaper_scheduler(session_maker, fake_storage, interval_minutes=30, jitter_seconds=5)
    try:
        assert isinstance(scheduler, AsyncIOScheduler)
        assert scheduler.running
        job = scheduler.get_job("video_reaper")
        assert job is not None
        assert isinstance(job.trigger, IntervalTrigger)
        assert job.trigger.interval == timedelta(minutes=30)
        assert job.max_instances == 1
        assert job.coalesce is True
    finally:
        scheduler.shutdown(wait=False)
