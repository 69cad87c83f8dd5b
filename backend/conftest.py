"""
Pytest configuration and fixtures for backend tests.

This module provides the core testing infrastructure including:
- A throwaway SQLite database per test (schema built from the models)
- Session and session-factory fixtures for database access
- Test client for API integration tests
"""

import os

# Settings are read at import time, so the test environment must be in place first
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("DEV_LOGIN_ENABLED", "true")
os.environ.setdefault("ENABLE_BACKGROUND_TASKS", "false")

from collections.abc import AsyncGenerator  # noqa: E402

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine  # noqa: E402
from sqlmodel import SQLModel  # noqa: E402
from sqlmodel.ext.asyncio.session import AsyncSession  # noqa: E402

from taskmaster.core.rate_limit import limiter  # noqa: E402
from taskmaster.db.session import get_session, get_session_factory  # noqa: E402
from taskmaster.main import app  # noqa: E402


@pytest.fixture(scope="function")
async def engine(tmp_path):
    """
    Create a test database engine.

    A file-backed database is used rather than ``:memory:`` so that the
    concurrent analytics sessions all see the same data.
    """
    test_engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}", echo=False, future=True)
    async with test_engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield test_engine
    await test_engine.dispose()


@pytest.fixture(scope="function")
def session_factory(engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autocommit=False,
        autoflush=False,
    )


@pytest.fixture(scope="function")
async def session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """
    Create a fresh database session for each test.

    The database file lives in the test's tmp_path, so nothing needs to be
    truncated afterwards.
    """
    async with session_factory() as test_session:
        yield test_session
        test_session.expire_all()


@pytest.fixture
async def client(session: AsyncSession, session_factory) -> AsyncGenerator[AsyncClient, None]:
    """
    Create an async HTTP client for testing API endpoints.

    This fixture:
    - Overrides the database session dependency to use the test session
    - Points the analytics session factory at the test database
    - Disables rate limiting

    Usage:
        async def test_endpoint(client: AsyncClient):
            response = await client.get("/api/v1/health")
            assert response.status_code == 200
    """

    async def override_get_session() -> AsyncGenerator[AsyncSession, None]:
        yield session

    app.dependency_overrides[get_session] = override_get_session
    app.dependency_overrides[get_session_factory] = lambda: session_factory

    limiter.enabled = False

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test"
    ) as test_client:
        yield test_client

    app.dependency_overrides.clear()
