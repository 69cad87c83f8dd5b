"""
Integration tests for sign-in and the current user endpoints.
"""

import pytest
from httpx import AsyncClient
from sqlmodel.ext.asyncio.session import AsyncSession

from taskmaster.core.config import settings
from taskmaster.testing import create_user, get_auth_headers


@pytest.mark.integration
async def test_dev_login_creates_user(client: AsyncClient):
    """Test that the development login issues a working token."""
    response = await client.post("/api/v1/auth/dev-login", json={"email": "New.Person@Example.com"})

    assert response.status_code == 200
    token = response.json()["access_token"]
    assert response.json()["token_type"] == "bearer"

    me = await client.get("/api/v1/users/me", headers={"Authorization": f"Bearer {token}"})
    assert me.status_code == 200
    assert me.json()["email"] == "new.person@example.com"
    assert me.json()["name"] == "new.person"
    assert me.json()["week_starts_on"] == 0


@pytest.mark.integration
async def test_dev_login_reuses_existing_user(client: AsyncClient, session: AsyncSession):
    """Test that signing in twice returns the same account."""
    user = await create_user(session, email="repeat@example.com")

    response = await client.post("/api/v1/auth/dev-login", json={"email": "repeat@example.com"})
    me = await client.get(
        "/api/v1/users/me",
        headers={"Authorization": f"Bearer {response.json()['access_token']}"},
    )

    assert me.json()["id"] == user.id


@pytest.mark.integration
async def test_dev_login_disabled(client: AsyncClient, monkeypatch: pytest.MonkeyPatch):
    """Test that the development login is hidden when turned off."""
    monkeypatch.setattr(settings, "DEV_LOGIN_ENABLED", False)

    response = await client.post("/api/v1/auth/dev-login", json={"email": "someone@example.com"})

    assert response.status_code == 404


@pytest.mark.integration
async def test_dev_login_rejects_invalid_email(client: AsyncClient):
    """Test that a malformed email is a validation error."""
    response = await client.post("/api/v1/auth/dev-login", json={"email": "not-an-email"})

    assert response.status_code == 422


@pytest.mark.integration
async def test_inactive_user_is_rejected(client: AsyncClient, session: AsyncSession):
    """Test that deactivated accounts cannot use the API."""
    user = await create_user(session, is_active=False)

    response = await client.get("/api/v1/users/me", headers=get_auth_headers(user))

    assert response.status_code == 400


@pytest.mark.integration
async def test_update_week_start(client: AsyncClient, session: AsyncSession):
    """Test updating the profile and week start."""
    user = await create_user(session)
    headers = get_auth_headers(user)

    response = await client.patch("/api/v1/users/me", headers=headers, json={"name": "Casey", "week_starts_on": 1})
    invalid = await client.patch("/api/v1/users/me", headers=headers, json={"week_starts_on": 7})

    assert response.status_code == 200
    assert response.json()["name"] == "Casey"
    assert response.json()["week_starts_on"] == 1
    assert invalid.status_code == 422
