"""Shared fixtures for API and service tests."""

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from quantum5ocial import models  # noqa: F401  (registers every table on Base.metadata)
from quantum5ocial.main import app
from quantum5ocial.services.auth import get_current_user_id, get_optional_user_id
from quantum5ocial.settings import get_settings
from quantum5ocial.stores import postgres


@pytest.fixture
async def client():
    """Create test client."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac


@pytest.fixture
def signed_in():
    """Act as member "user-1" without calling the auth provider."""
    app.dependency_overrides[get_current_user_id] = lambda: "user-1"
    app.dependency_overrides[get_optional_user_id] = lambda: "user-1"
    yield "user-1"
    app.dependency_overrides.clear()


@pytest.fixture
async def db(monkeypatch: pytest.MonkeyPatch):
    """Run services against a fresh in-memory SQLite database.

    Foreign keys are enforced so writes that reference a missing profile fail
    the same way they do on Postgres. Search index sync is off (no AI).
    """
    engine = create_async_engine("sqlite+aiosqlite:///:memory:", poolclass=StaticPool)

    @event.listens_for(engine.sync_engine, "connect")
    def _enable_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    async with engine.begin() as conn:
        await conn.run_sync(postgres.Base.metadata.create_all)

    monkeypatch.setattr(
        postgres,
        "_session_factory",
        async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False),
    )
    monkeypatch.setattr(get_settings(), "ai_enabled", False)
    try:
        yield engine
    finally:
        await engine.dispose()
