from __future__ import annotations

import uuid
from typing import TYPE_CHECKING

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from leave_ledger.db import get_session
from leave_ledger.main import app
from leave_ledger.models import LeavePolicy, SQLModel
from leave_ledger.services.directory import InMemoryUserDirectory, set_user_directory
from leave_ledger.services.locks import LedgerLockRegistry, set_ledger_locks

if TYPE_CHECKING:
    from collections.abc import AsyncIterator
    from pathlib import Path

    from sqlalchemy.ext.asyncio import AsyncEngine

USER_ID = uuid.UUID("00000000-0000-4000-8000-000000000001")
OTHER_USER_ID = uuid.UUID("00000000-0000-4000-8000-000000000002")


@pytest.fixture
async def engine(tmp_path: Path) -> AsyncIterator[AsyncEngine]:
    """Create a fresh SQLite file database with every table for one test.

    Each test commits for real, so a throwaway database is used instead of a
    rolled-back outer transaction.
    """
    _engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    async with _engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield _engine
    await _engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, expire_on_commit=False)


@pytest.fixture
async def db_session(session_factory: async_sessionmaker[AsyncSession]) -> AsyncIterator[AsyncSession]:
    async with session_factory() as session:
        yield session


@pytest.fixture
async def async_client(session_factory: async_sessionmaker[AsyncSession]) -> AsyncIterator[AsyncClient]:
    """Async HTTP client whose requests each get their own session on the test database."""

    async def _override_get_session() -> AsyncIterator[AsyncSession]:
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_session] = _override_get_session
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


@pytest.fixture(autouse=True)
def user_directory() -> InMemoryUserDirectory:
    """Seed two known users and start every test with an empty lock registry."""
    directory = InMemoryUserDirectory()
    directory.seed(USER_ID)
    directory.seed(OTHER_USER_ID)
    set_user_directory(directory)
    set_ledger_locks(LedgerLockRegistry())
    return directory


@pytest.fixture
async def policy(db_session: AsyncSession) -> LeavePolicy:
    """A casual-leave policy allocating 20 days a year."""
    row = LeavePolicy(policy_code="CL", policy_name="Casual Leave", default_annual_days=20)
    db_session.add(row)
    await db_session.commit()
    return row


@pytest.fixture
async def sick_policy(db_session: AsyncSession) -> LeavePolicy:
    """A sick-leave policy allocating 10 days a year."""
    row = LeavePolicy(policy_code="SL", policy_name="Sick Leave", default_annual_days=10)
    db_session.add(row)
    await db_session.commit()
    return row
