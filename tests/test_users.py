"""Tests for sign-in, profiles, bans and role changes."""

import uuid

import pytest
from httpx import AsyncClient

from app.config import settings
from tests.conftest import create_user


@pytest.mark.asyncio
async def test_dev_login_creates_then_reuses_user(client: AsyncClient) -> None:
    first_id, headers = await create_user(client, "Ravi@Example.com", "Ravi")
    second_id, _ = await create_user(client, "ravi@example.com", "Ravi K")
    assert first_id == second_id

    resp = await client.get("/users/me", headers=headers)
    assert resp.status_code == 200
    body = resp.json()
    assert body["email"] == "ravi@example.com"
    assert body["name"] == "Ravi K"
    assert body["role"] == "user"
    assert body["is_online"] is True


@pytest.mark.asyncio
async def test_dev_login_disabled(client: AsyncClient) -> None:
    object.__setattr__(settings, "dev_login_enabled", False)
    resp = await client.post("/auth/dev-login", json={"email": "a@example.com", "name": "A"})
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_dev_login_never_in_production(client: AsyncClient) -> None:
    object.__setattr__(settings, "env", "production")
    resp = await client.post("/auth/dev-login", json={"email": "a@example.com", "name": "A"})
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_dev_login_rejects_bad_email(client: AsyncClient) -> None:
    resp = await client.post("/auth/dev-login", json={"email": "not-an-email", "name": "A"})
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_update_profile(client: AsyncClient) -> None:
    _, headers = await create_user(client, "profile@example.com")
    resp = await client.patch(
        "/users/me", json={"city": "Nagpur", "phone": "+91 98765 43210"}, headers=headers
    )
    assert resp.status_code == 200
    assert resp.json()["city"] == "Nagpur"
    assert resp.json()["phone"] == "+91 98765 43210"


@pytest.mark.asyncio
async def test_invalid_token_rejected(client: AsyncClient) -> None:
    resp = await client.get("/users/me", headers={"Authorization": "Bearer garbage"})
    assert resp.status_code == 401
    resp = await client.get("/users/me", headers={"Authorization": "Basic abc"})
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_ban_blocks_requests_until_unban(client: AsyncClient) -> None:
    target_id, target = await create_user(client, "target@example.com")
    _, admin = await create_user(client, "admin@example.com", role="admin")

    resp = await client.post(
        f"/admin/users/{target_id}/ban", json={"reason": "Fraudulent listings"}, headers=admin
    )
    assert resp.status_code == 200
    assert resp.json()["is_banned"] is True

    resp = await client.get("/users/me", headers=target)
    assert resp.status_code == 403

    resp = await client.post(f"/admin/users/{target_id}/unban", headers=admin)
    assert resp.status_code == 200
    assert resp.json()["is_banned"] is False

    resp = await client.get("/users/me", headers=target)
    assert resp.status_code == 200


@pytest.mark.asyncio
async def test_admin_cannot_ban_admin_or_self(client: AsyncClient) -> None:
    admin_id, admin = await create_user(client, "admin@example.com", role="admin")
    other_admin_id, _ = await create_user(client, "admin2@example.com", role="admin")

    resp = await client.post(f"/admin/users/{admin_id}/ban", json={"reason": "Testing self"}, headers=admin)
    assert resp.status_code == 403
    resp = await client.post(
        f"/admin/users/{other_admin_id}/ban", json={"reason": "Turf war"}, headers=admin
    )
    assert resp.status_code == 403


@pytest.mark.asyncio
async def test_regular_user_cannot_ban(client: AsyncClient) -> None:
    target_id, _ = await create_user(client, "target@example.com")
    _, user = await create_user(client, "user@example.com")
    resp = await client.post(f"/admin/users/{target_id}/ban", json={"reason": "Because"}, headers=user)
    assert resp.status_code == 403


@pytest.mark.asyncio
async def test_role_change_superadmin_only(client: AsyncClient) -> None:
    target_id, _ = await create_user(client, "target@example.com")
    _, admin = await create_user(client, "admin@example.com", role="admin")
    _, superadmin = await create_user(client, "root@example.com", role="superadmin")

    resp = await client.patch(f"/admin/users/{target_id}/role", json={"role": "vendor"}, headers=admin)
    assert resp.status_code == 403

    resp = await client.patch(
        f"/admin/users/{target_id}/role", json={"role": "vendor"}, headers=superadmin
    )
    assert resp.status_code == 200
    assert resp.json()["role"] == "vendor"


@pytest.mark.asyncio
async def test_ban_missing_user_404(client: AsyncClient) -> None:
    _, admin = await create_user(client, "admin@example.com", role="admin")
    resp = await client.post(f"/admin/users/{uuid.uuid4()}/ban", json={"reason": "Ghost"}, headers=admin)
    assert resp.status_code == 404
