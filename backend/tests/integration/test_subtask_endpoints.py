"""
Integration tests for subtask endpoints.

Tests creating, updating, toggling, deleting and reordering subtasks
under /api/v1/tasks/{task_id}/subtasks and /api/v1/subtasks.
"""

import pytest
from httpx import AsyncClient
from sqlmodel.ext.asyncio.session import AsyncSession

from taskmaster.testing import create_subtask, create_task, create_user, get_auth_headers


@pytest.mark.integration
async def test_create_subtask_appends(client: AsyncClient, session: AsyncSession):
    """Test that subtasks are appended after the last position."""
    user = await create_user(session)
    headers = get_auth_headers(user)
    task = await create_task(session, user)

    first = await client.post(f"/api/v1/tasks/{task.id}/subtasks", headers=headers, json={"title": "Draft"})
    second = await client.post(f"/api/v1/tasks/{task.id}/subtasks", headers=headers, json={"title": "Review"})

    assert first.status_code == 201
    assert first.json()["position"] == 0
    assert second.json()["position"] == 1
    assert second.json()["task_id"] == task.id
    assert second.json()["is_completed"] is False


@pytest.mark.integration
async def test_create_subtask_on_foreign_task(client: AsyncClient, session: AsyncSession):
    """Test that subtasks cannot be added to another user's task."""
    user = await create_user(session)
    other = await create_user(session)
    task = await create_task(session, other)

    response = await client.post(
        f"/api/v1/tasks/{task.id}/subtasks",
        headers=get_auth_headers(user),
        json={"title": "Sneaky"},
    )

    assert response.status_code == 404


@pytest.mark.integration
async def test_update_and_toggle_subtask(client: AsyncClient, session: AsyncSession):
    """Test renaming and toggling a subtask."""
    user = await create_user(session)
    headers = get_auth_headers(user)
    task = await create_task(session, user)
    subtask = await create_subtask(session, task, title="Old")

    renamed = await client.patch(f"/api/v1/subtasks/{subtask.id}", headers=headers, json={"title": "New"})
    toggled = await client.post(f"/api/v1/subtasks/{subtask.id}/toggle", headers=headers)

    assert renamed.status_code == 200
    assert renamed.json()["title"] == "New"
    assert toggled.json() == {"is_completed": True}


@pytest.mark.integration
async def test_subtask_of_other_user_is_not_found(client: AsyncClient, session: AsyncSession):
    """Test that another user's subtask cannot be touched."""
    user = await create_user(session)
    other = await create_user(session)
    task = await create_task(session, other)
    subtask = await create_subtask(session, task)
    headers = get_auth_headers(user)

    toggled = await client.post(f"/api/v1/subtasks/{subtask.id}/toggle", headers=headers)
    deleted = await client.delete(f"/api/v1/subtasks/{subtask.id}", headers=headers)

    assert toggled.status_code == 404
    assert deleted.status_code == 404
    assert deleted.json()["detail"] == "Subtask not found"


@pytest.mark.integration
async def test_delete_subtask(client: AsyncClient, session: AsyncSession):
    """Test deleting a subtask."""
    user = await create_user(session)
    headers = get_auth_headers(user)
    task = await create_task(session, user)
    subtask = await create_subtask(session, task)

    response = await client.delete(f"/api/v1/subtasks/{subtask.id}", headers=headers)
    assert response.status_code == 204

    task_response = await client.get(f"/api/v1/tasks/{task.id}", headers=headers)
    assert task_response.json()["subtasks"] == []


@pytest.mark.integration
async def test_reorder_subtasks(client: AsyncClient, session: AsyncSession):
    """Test swapping subtask positions."""
    user = await create_user(session)
    headers = get_auth_headers(user)
    task = await create_task(session, user)
    first = await create_subtask(session, task, title="First", position=0)
    second = await create_subtask(session, task, title="Second", position=1)

    response = await client.post(
        f"/api/v1/tasks/{task.id}/subtasks/reorder",
        headers=headers,
        json={"items": [{"id": first.id, "position": 1}, {"id": second.id, "position": 0}]},
    )
    assert response.status_code == 204

    task_response = await client.get(f"/api/v1/tasks/{task.id}", headers=headers)
    assert [item["title"] for item in task_response.json()["subtasks"]] == ["Second", "First"]


@pytest.mark.integration
async def test_reorder_subtasks_errors(client: AsyncClient, session: AsyncSession):
    """Test unknown ids give 404 and foreign subtasks give 403."""
    user = await create_user(session)
    other = await create_user(session)
    headers = get_auth_headers(user)
    task = await create_task(session, user)
    mine = await create_subtask(session, task)
    foreign_task = await create_task(session, other)
    theirs = await create_subtask(session, foreign_task)

    missing = await client.post(
        f"/api/v1/tasks/{task.id}/subtasks/reorder",
        headers=headers,
        json={"items": [{"id": mine.id, "position": 0}, {"id": 9999, "position": 1}]},
    )
    forbidden = await client.post(
        f"/api/v1/tasks/{task.id}/subtasks/reorder",
        headers=headers,
        json={"items": [{"id": mine.id, "position": 0}, {"id": theirs.id, "position": 1}]},
    )

    assert missing.status_code == 404
    assert missing.json()["detail"] == "One or more subtasks not found"
    assert forbidden.status_code == 403
    assert forbidden.json()["detail"] == "Unauthorized access to subtasks"
