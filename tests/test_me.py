"""Tests for profile self-service and the access control gate."""

import pytest
from httpx import AsyncClient

from classboard.core.security import create_access_token


@pytest.mark.asyncio
async def test_me_requires_bearer_token(async_client: AsyncClient):
    resp = await async_client.get("/me")
    assert resp.status_code == 401
    assert resp.json()["message"] == "Unauthorized"
    assert resp.headers.get("www-authenticate") == "Bearer"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "header",
    ["Bearer not-a-token", "Basic dXNlcjpwYXNz", "Bearer "],
)
async def test_me_rejects_bad_credentials(async_client: AsyncClient, header):
    resp = await async_client.get("/me", headers={"Authorization": header})
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_me_returns_profile_without_digest(async_client: AsyncClient, user_factory, headers_for):
    user = await user_factory(name="Ann Lee", bio="Hello", role="teacher")
    resp = await async_client.get("/me", headers=headers_for(user))
    assert resp.status_code == 200
    data = resp.json()
    assert data["id"] == user.id
    assert data["name"] == "Ann Lee"
    assert data["role"] == "teacher"
    assert data["preferences"]["theme"] == "system"
    assert "passwordHash" not in data
    assert "password_hash" not in data
    assert "createdAt" in data


@pytest.mark.asyncio
async def test_me_for_deleted_account(async_client: AsyncClient):
    headers = {"Authorization": f"Bearer {create_access_token('gone', 'student')}"}
    resp = await async_client.get("/me", headers=headers)
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_update_me_merges_preferences(async_client: AsyncClient, user_factory, headers_for):
    user = await user_factory(preferences={"theme": "dark", "density": "comfortable", "language": "fr"})
    resp = await async_client.patch(
        "/me",
        json={
            "name": "New Name",
            "avatarUrl": "https://cdn.example.com/a.png",
            "preferences": {"density": "compact"},
        },
        headers=headers_for(user),
    )
    assert resp.status_code == 200
    data = resp.json()
    assert data["name"] == "New Name"
    assert data["avatarUrl"] == "https://cdn.example.com/a.png"
    assert data["preferences"] == {"theme": "dark", "density": "compact", "language": "fr"}


@pytest.mark.asyncio
async def test_update_me_ignores_privileged_fields(async_client: AsyncClient, user_factory, headers_for):
    user = await user_factory(role="student")
    resp = await async_client.patch(
        "/me", json={"bio": "hi", "role": "admin", "disabled": True}, headers=headers_for(user)
    )
    assert resp.status_code == 200
    assert resp.json()["role"] == "student"
    assert resp.json()["disabled"] is False


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "body",
    [
        {"bio": "x" * 301},
        {"avatarUrl": "not a url"},
        {"preferences": {"theme": "neon"}},
    ],
)
async def test_update_me_validation(async_client: AsyncClient, user_factory, headers_for, body):
    user = await user_factory()
    resp = await async_client.patch("/me", json=body, headers=headers_for(user))
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_change_password(async_client: AsyncClient, user_factory, headers_for):
    user = await user_factory(email="pw@example.com", password="oldpass1")
    headers = headers_for(user)

    resp = await async_client.post(
        "/me/change-password", json={"current": "wrongpass", "next": "newpass1"}, headers=headers
    )
    assert resp.status_code == 400
    assert resp.json()["message"] == "Current password incorrect"

    resp = await async_client.post(
        "/me/change-password", json={"current": "oldpass1", "next": "newpass1"}, headers=headers
    )
    assert resp.status_code == 200
    assert resp.json() == {"ok": True}

    old = await async_client.post("/auth/login", json={"email": "pw@example.com", "password": "oldpass1"})
    new = await async_client.post("/auth/login", json={"email": "pw@example.com", "password": "newpass1"})
    assert old.status_code == 401
    assert new.status_code == 200


@pytest.mark.asyncio
async def test_change_password_requires_min_length(async_client: AsyncClient, user_factory, headers_for):
    user = await user_factory(password="oldpass1")
    resp = await async_client.post(
        "/me/change-password", json={"current": "oldpass1", "next": "123"}, headers=headers_for(user)
    )
    assert resp.status_code == 422
