# tests/test_auth/test_login.py

import pytest
from fastapi import status
from httpx import AsyncClient

from app.core.limiter import limiter
from app.services.auth import account_service
from tests.fixtures.users import DEFAULT_PASSWORD
from tests.test_settings import build_test_settings

LOGIN_URL = "/api/auth/login"


def _error_view(resp):
    body = resp.json()
    return resp.status_code, body["message"], body["detail"], body["code"]


@pytest.mark.anyio
async def test_login_success(async_client: AsyncClient, create_user):
    user = await create_user(username="bob", email="bob@example.com")

    resp = await async_client.post(LOGIN_URL, json={"email": "bob@example.com", "password": DEFAULT_PASSWORD})

    assert resp.status_code == status.HTTP_200_OK, resp.text
    data = resp.json()
    assert data["success"] is True
    assert data["token"]
    assert data["user"] == {"id": user.id, "username": "bob", "email": "bob@example.com"}
    assert "no-store" in resp.headers.get("Cache-Control", "")


@pytest.mark.anyio
async def test_login_email_is_case_insensitive(async_client: AsyncClient, create_user):
    await create_user(email="carol@example.com")

    resp = await async_client.post(LOGIN_URL, json={"email": "Carol@Example.com", "password": DEFAULT_PASSWORD})

    assert resp.status_code == 200, resp.text


@pytest.mark.anyio
async def test_wrong_password_and_unknown_email_look_identical(async_client: AsyncClient, create_user):
    await create_user(email="dave@example.com")

    wrong_pw = await async_client.post(LOGIN_URL, json={"email": "dave@example.com", "password": "nope-nope"})
    unknown = await async_client.post(LOGIN_URL, json={"email": "nobody@example.com", "password": "nope-nope"})

    assert wrong_pw.status_code == status.HTTP_400_BAD_REQUEST
    assert _error_view(wrong_pw) == _error_view(unknown)
    assert wrong_pw.json()["message"] == "Invalid credentials"
    assert "token" not in wrong_pw.json()


@pytest.mark.parametrize("rounds", [10, 12])
def test_unknown_email_hash_uses_configured_cost(rounds):
    settings = build_test_settings(BCRYPT_ROUNDS=rounds)

    dummy = account_service._dummy_hash(settings.BCRYPT_ROUNDS)

    assert dummy.startswith(f"$2b${rounds:02d}$")
    assert account_service._dummy_hash(rounds) is dummy


@pytest.mark.anyio
async def test_login_missing_fields_is_422(async_client: AsyncClient):
    resp = await async_client.post(LOGIN_URL, json={"email": "x@example.com"})

    assert resp.status_code == 422


@pytest.fixture()
def ratelimit_on(app):
    """Temporarily enforce SlowAPI limits for a single test."""
    limiter.reset()
    limiter.enabled = True
    yield
    limiter.enabled = False
    limiter.reset()


@pytest.mark.anyio
async def test_login_is_rate_limited(ratelimit_on, async_client: AsyncClient):
    headers = {"X-Forwarded-For": "203.0.113.77"}
    body = {"email": "ghost@example.com", "password": "whatever"}

    statuses = [
        (await async_client.post(LOGIN_URL, json=body, headers=headers)).status_code
        for _ in range(11)
    ]

    assert statuses[:10] == [400] * 10
    assert statuses[10] == status.HTTP_429_TOO_MANY_REQUESTS
