"""
Integration tests for notification endpoints.

Tests the notification API endpoints at /api/v1/notifications including:
- Listing with unread counts
- Marking one or all as read
- Deleting and clearing
- Reading and updating preferences
"""

import pytest
from httpx import AsyncClient
from sqlmodel.ext.asyncio.session import AsyncSession

from taskmaster.testing import create_notification, create_user, get_auth_headers


@pytest.mark.integration
async def test_list_notifications(client: AsyncClient, session: AsyncSession):
    """Test listing only the caller's notifications, newest first."""
    user = await create_user(session)
    other = await create_user(session)
    await create_notification(session, user, title="Older")
    await create_notification(session, user, title="Newer")
    await create_notification(session, other, title="Not mine")

    response = await client.get("/api/v1/notifications/", headers=get_auth_headers(user))

    assert response.status_code == 200
    data = response.json()
    assert data["unread_count"] == 2
    assert [item["title"] for item in data["notifications"]] == ["Newer", "Older"]


@pytest.mark.integration
async def test_mark_notification_read(client: AsyncClient, session: AsyncSession):
    """Test marking a single notification as read."""
    user = await create_user(session)
    headers = get_auth_headers(user)
    notification = await create_notification(session, user)

    response = await client.post(f"/api/v1/notifications/{notification.id}/read", headers=headers)
    count = await client.get("/api/v1/notifications/unread-count", headers=headers)

    assert response.status_code == 200
    assert response.json()["is_read"] is True
    assert count.json() == {"unread_count": 0}


@pytest.mark.integration
async def test_mark_other_users_notification(client: AsyncClient, session: AsyncSession):
    """Test that another user's notification looks missing."""
    user = await create_user(session)
    other = await create_user(session)
    notification = await create_notification(session, other)

    response = await client.post(
        f"/api/v1/notifications/{notification.id}/read",
        headers=get_auth_headers(user),
    )

    assert response.status_code == 404
    assert response.json()["detail"] == "Notification not found"


@pytest.mark.integration
async def test_mark_all_read(client: AsyncClient, session: AsyncSession):
    """Test marking every notification as read."""
    user = await create_user(session)
    await create_notification(session, user)
    await create_notification(session, user)

    response = await client.post("/api/v1/notifications/read-all", headers=get_auth_headers(user))

    assert response.status_code == 200
    assert response.json() == {"unread_count": 0}


@pytest.mark.integration
async def test_delete_and_clear_notifications(client: AsyncClient, session: AsyncSession):
    """Test deleting one notification and then clearing the rest."""
    user = await create_user(session)
    headers = get_auth_headers(user)
    first = await create_notification(session, user)
    await create_notification(session, user)
    await create_notification(session, user)

    deleted = await client.delete(f"/api/v1/notifications/{first.id}", headers=headers)
    again = await client.delete(f"/api/v1/notifications/{first.id}", headers=headers)
    after_delete = await client.get("/api/v1/notifications/", headers=headers)
    cleared = await client.delete("/api/v1/notifications/", headers=headers)
    after_clear = await client.get("/api/v1/notifications/", headers=headers)

    assert deleted.status_code == 204
    assert again.status_code == 404
    assert len(after_delete.json()["notifications"]) == 2
    assert cleared.status_code == 204
    assert after_clear.json() == {"notifications": [], "unread_count": 0}


@pytest.mark.integration
async def test_notification_preferences(client: AsyncClient, session: AsyncSession):
    """Test default preferences and a partial update."""
    user = await create_user(session)
    headers = get_auth_headers(user)

    defaults = await client.get("/api/v1/notifications/preferences", headers=headers)
    updated = await client.patch(
        "/api/v1/notifications/preferences",
        headers=headers,
        json={"reminder_days_before": 2, "daily_digest": True, "digest_time": "08:30"},
    )

    assert defaults.status_code == 200
    assert defaults.json()["in_app_enabled"] is True
    assert defaults.json()["reminder_days_before"] == 1
    assert updated.status_code == 200
    body = updated.json()
    assert body["reminder_days_before"] == 2
    assert body["daily_digest"] is True
    assert body["digest_time"] == "08:30"
    assert body["due_date_reminder"] is True


@pytest.mark.integration
async def test_notification_preferences_validation(client: AsyncClient, session: AsyncSession):
    """Test that malformed digest times and lead times are rejected."""
    user = await create_user(session)
    headers = get_auth_headers(user)

    bad_time = await client.patch("/api/v1/notifications/preferences", headers=headers, json={"digest_time": "25:00"})
    bad_days = await client.patch(
        "/api/v1/notifications/preferences",
        headers=headers,
        json={"reminder_days_before": 45},
    )

    assert bad_time.status_code == 422
    assert bad_days.status_code == 422
