"""
Smoke tests to verify test infrastructure is working correctly.

These tests validate that the test database, fixtures, and basic
testing setup are functioning properly.
"""

import pytest
from httpx import AsyncClient
from sqlmodel.ext.asyncio.session import AsyncSession

from taskmaster.testing import create_task, create_user


@pytest.mark.unit
async def test_database_session(session: AsyncSession):
    """Test that database session fixture works."""
    assert session is not None
    assert isinstance(session, AsyncSession)


@pytest.mark.unit
async def test_create_user_factory(session: AsyncSession):
    """Test that user factory creates users correctly."""
    user = await create_user(session, email="Factory-Test@Example.com", name="Factory Test User")

    assert user.id is not None
    assert user.email == "factory-test@example.com"
    assert user.name == "Factory Test User"
    assert user.is_active is True
    assert user.week_starts_on == 0


@pytest.mark.unit
async def test_create_task_factory(session: AsyncSession):
    """Test that task factory links the task to its owner."""
    user = await create_user(session)
    task = await create_task(session, user)

    assert task.id is not None
    assert task.user_id == user.id
    assert task.is_completed is False


@pytest.mark.integration
async def test_http_client(client: AsyncClient):
    """Test that HTTP client fixture works."""
    assert client is not None
    assert isinstance(client, AsyncClient)


@pytest.mark.integration
async def test_health_endpoint(client: AsyncClient):
    """Test the health endpoint to verify API is working."""
    response = await client.get("/api/v1/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}
