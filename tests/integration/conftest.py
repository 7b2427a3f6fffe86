"""
Shared fixtures for integration tests.

Every integration test runs against a fresh in-memory SQLite database through
an AsyncClient bound to the ASGI app. Both the request session and the audit
recorder are pointed at that database.

Example:
    @pytest.mark.asyncio
    async def test_something(client):
        response = await client.post(f"{API_PREFIX}/rules", json={...}, headers=user_headers("u1"))
        assert response.status_code == 201
"""

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from rules_service.audit.service import AuditRecorder, get_audit_recorder
from rules_service.core.database import Base, get_db
from rules_service.main import app


# =============================================================================
# Test Database Configuration
# =============================================================================

SQLALCHEMY_TEST_URL = "sqlite+aiosqlite:///:memory:"

# All API routes are prefixed with this
API_PREFIX = "/api/v1"

ADMIN_HEADERS = {"X-Admin-Token": "test-admin-token"}


def user_headers(user_id: str) -> dict:
    return {"X-User-ID": user_id}


@pytest_asyncio.fixture(scope="function")
async def session_factory():
    """
    Session factory over a fresh in-memory database.

    Tables are created before the test and dropped afterwards.
    """
    engine = create_async_engine(
        SQLALCHEMY_TEST_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    yield factory

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture
async def test_db(session_factory):
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def client(test_db, session_factory):
    """
    Async test client with the database and audit recorder overridden.

    Always use `await` with client methods.
    """

    async def override_get_db():
        yield test_db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_audit_recorder] = lambda: AuditRecorder(session_factory)

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as ac:
        yield ac

    app.dependency_overrides.clear()
