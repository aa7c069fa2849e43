"""Root conftest - shared test configuration and database fixtures.

Invariants:
    - Every test gets a fresh in-memory SQLite database

Design Decisions:
    - SQLite in-memory: fast, no external dependency; FOR UPDATE compiles away
"""

import os

# Never touch a real judge or database from tests
os.environ.setdefault("JUDGE_API_URL", "http://judge.invalid")
os.environ.setdefault("ADMIN_SECRET", "test-admin-secret")
os.environ.setdefault(
    "DATABASE_URL",
    "sqlite+aiosqlite:///test.db",
)

import pytest  # noqa: E402
from sqlalchemy.ext.asyncio import (  # noqa: E402
    AsyncSession, async_sessionmaker, create_async_engine,
)

import codeshuffle.models  # noqa: E402,F401
from codeshuffle.db.base import Base  # noqa: E402


@pytest.fixture
async def test_engine():
    engine = create_async_engine("sqlite+aiosqlite:///:memory:", echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def test_session_factory(test_engine):
    return async_sessionmaker(
        test_engine, class_=AsyncSession, expire_on_commit=False,
    )


@pytest.fixture
async def test_db(test_session_factory):
    async with test_session_factory() as session:
        yield session
