# tests/test_videos/test_thumbnail.py

from datetime import timedelta

import pytest
from httpx import AsyncClient

THUMB_URL = "/api/videos/thumbnail/{}"


def _assert_svg(resp):
    assert resp.status_code == 200, resp.text
    assert resp.headers["content-type"].startswith("image/svg+xml")
    assert resp.headers.get("Cache-Control") == "public, max-age=300"
    assert resp.text.lstrip().startswith("<svg")


@pytest.mark.anyio
async def test_ready_thumbnail_shows_title(async_client: AsyncClient, user, create_video, frozen_now):
    video = await create_video(user, original_name="Sunset Timelapse.mp4", created_at=frozen_now)

    resp = await async_client.get(THUMB_URL.format(video.id))

    _assert_svg(resp)
    assert "Sunset Timelapse.mp4" in resp.text
    assert "Click to play video" in resp.text


@pytest.mark.anyio
async def test_long_title_is_truncated(async_client: AsyncClient, user, create_video, frozen_now):
    name = "x" * 80 + ".mp4"
    video = await create_video(user, original_name=name, created_at=frozen_now)

    resp = await async_client.get(THUMB_URL.format(video.id))

    _assert_svg(resp)
    assert name not in resp.text
    assert "x" * 59 + "…" in resp.text


@pytest.mark.anyio
async def test_title_is_escaped(async_client: AsyncClient, user, create_video, frozen_now):
    video = await create_video(user, original_name="a<b>&c.mp4", created_at=frozen_now)

    resp = await async_client.get(THUMB_URL.format(video.id))

    _assert_svg(resp)
    assert "a&lt;b&gt;&amp;c.mp4" in resp.text


@pytest.mark.anyio
async def test_expired_thumbnail(async_client: AsyncClient, user, create_video, frozen_now):
    video = await create_video(user, created_at=frozen_now - timedelta(days=6))

    resp = await async_client.get(THUMB_URL.format(video.id))

    _assert_svg(resp)
    assert "Video Expired" in resp.text


@pytest.mark.anyio
@pytest.mark.parametrize(
    "video_id",
    ["987654", "not-a-number", "0", "%C2%B2", "9" * 30, "2147483648", "1" * 5000],
)
async def test_unknown_or_malformed_id_gets_fallback(async_client: AsyncClient, video_id):
    resp = await async_client.get(THUMB_URL.format(video_id))

    _assert_svg(resp)
    assert "Video Player" in resp.text
