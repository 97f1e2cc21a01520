# tests/test_videos/test_list.py

from datetime import timedelta

import pytest
from httpx import AsyncClient

from tests.fixtures.app import FROZEN_NOW
from tests.fixtures.users import bearer

LIST_URL = "/api/videos"


@pytest.mark.anyio
async def test_list_is_owner_only_and_newest_first(
    async_client: AsyncClient, create_user, create_video
):
    owner = await create_user()
    stranger = await create_user()
    oldest = await create_video(owner, original_name="a.mp4", created_at=FROZEN_NOW - timedelta(days=2))
    newest = await create_video(owner, original_name="c.mp4", created_at=FROZEN_NOW)
    middle = await create_video(owner, original_name="b.mp4", created_at=FROZEN_NOW - timedelta(days=1))
    await create_video(stranger, original_name="theirs.mp4", created_at=FROZEN_NOW)

    resp = await async_client.get(LIST_URL, headers=bearer(owner))

    assert resp.status_code == 200, resp.text
    ids = [v["id"] for v in resp.json()["videos"]]
    assert ids == [newest.id, middle.id, oldest.id]
    assert "no-store" in resp.headers.get("Cache-Control", "")


@pytest.mark.anyio
async def test_list_items_carry_stream_and_share_urls(
    async_client: AsyncClient, user, auth_headers, create_video, fake_storage
):
    video = await create_video(user, original_name="trip.webm", mime_type="video/webm", size=4096)

    resp = await async_client.get(LIST_URL, headers=auth_headers)

    assert resp.status_code == 200
    [item] = resp.json()["videos"]
    assert item["id"] == video.id
    assert item["originalName"] == "trip.webm"
    assert item["fileName"] == video.storage_key
    assert item["size"] == 4096
    assert item["mimeType"] == "video/webm"
    assert "X-Amz-Expires=3600" in item["url"]
    assert "X-Amz-Expires=86400" in item["shareableUrl"]
    assert sorted(fake_storage.presigns) == sorted(
        [(video.storage_key, 3600), (video.storage_key, 86400)]
    )


@pytest.mark.anyio
async def test_signing_failure_nulls_only_that_row(
    async_client: AsyncClient, user, auth_headers, create_video, fake_storage
):
    good = await create_video(user, original_name="good.mp4", created_at=FROZEN_NOW)
    bad = await create_video(user, original_name="bad.mp4", created_at=FROZEN_NOW - timedelta(hours=1))
    fake_storage.fail_sign_keys.add(bad.storage_key)

    resp = await async_client.get(LIST_URL, headers=auth_headers)

    assert resp.status_code == 200
    by_id = {v["id"]: v for v in resp.json()["videos"]}
    assert by_id[good.id]["url"] and by_id[good.id]["shareableUrl"]
    assert by_id[bad.id]["url"] is None
    assert by_id[bad.id]["shareableUrl"] is None


@pytest.mark.anyio
async def test_empty_list(async_client: AsyncClient, auth_headers):
    resp = await async_client.get(LIST_URL, headers=auth_headers)

    assert resp.status_code == 200
    assert resp.json() == {"videos": []}


@pytest.mark.anyio
async def test_list_requires_auth(async_client: AsyncClient):
    resp = await async_client.get(LIST_URL)

    assert resp.status_code == 401
