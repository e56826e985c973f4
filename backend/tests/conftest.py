"""
Shared fixtures for all tests.

Strategy:
- Each test gets its own database: TEST_DATABASE_URL when set (a disposable
  PostgreSQL schema), otherwise a fresh SQLite file under tmp_path.
- Tables are created from the ORM metadata before the test and dropped after.
- The app's get_db dependency is overridden so every request opens its own
  session on the test engine, as it would against the real pool.
- Employee fixtures are inserted directly, bypassing the API and the audit log.
"""

from __future__ import annotations

import os
from datetime import date

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from worklog.db.models import Base, Employee
from worklog.db.session import get_db
from worklog.main import app

# ---------------------------------------------------------------------------
# Database engine for tests (independent of the app's configured engine)
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def engine(tmp_path):
    url = os.environ.get("TEST_DATABASE_URL") or f"sqlite+aiosqlite:///{tmp_path / 'worklog.db'}"
    test_engine = create_async_engine(url, echo=False)

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield test_engine

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await test_engine.dispose()


@pytest_asyncio.fixture
async def session_factory(engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


# ---------------------------------------------------------------------------
# HTTP client fixture
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def client(session_factory) -> AsyncClient:
    """HTTPX async client whose requests run against the test database."""

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# DB helper exposed for tests that need to query the DB directly
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def db(session_factory) -> AsyncSession:
    """Provides a raw DB session for direct DB queries in tests."""
    async with session_factory() as session:
        yield session


# ---------------------------------------------------------------------------
# Employees
# ---------------------------------------------------------------------------


async def _create_employee(session_factory, **fields) -> dict:
    async with session_factory() as session:
        employee = Employee(**fields)
        session.add(employee)
        await session.commit()
        await session.refresh(employee)
        return {"id": employee.id, "name": employee.name}


@pytest_asyncio.fixture
async def employee(session_factory) -> dict:
    """A regular employee. Returns dict with id and name."""
    return await _create_employee(
        session_factory,
        name="Anna Berger",
        first_name="Anna",
        last_name="Berger",
        birth_date=date(1990, 4, 12),
    )


@pytest_asyncio.fixture
async def second_employee(session_factory) -> dict:
    return await _create_employee(
        session_factory,
        name="Jonas Keller",
        first_name="Jonas",
        last_name="Keller",
    )
