"""API test fixtures - FastAPI client with DB, judge and settings overridden.

Invariants:
    - get_db yields sessions from the per-test in-memory database
    - get_judge returns a FakeJudge; no network calls leave the test
    - db_manager patched so readiness probes see the test engine
"""

import pytest
from httpx import ASGITransport, AsyncClient

import codeshuffle.infrastructure.database as db_module
from codeshuffle.infrastructure.database import DatabaseSessionManager, get_db
from codeshuffle.infrastructure.judge_client import get_judge
from codeshuffle.main import app
from codeshuffle.services.settings_cache import (
    SettingsCache, get_settings_cache, session_loader,
)

from tests.services.fakes import FakeJudge

ADMIN_HEADERS = {"X-Admin-Secret": "test-admin-secret"}


@pytest.fixture
def judge():
    return FakeJudge()


@pytest.fixture
async def client(test_engine, test_session_factory, judge):
    """FastAPI test client with collaborators overridden."""
    async def override_get_db():
        async with test_session_factory() as session:
            yield session

    cache = SettingsCache(session_loader(test_session_factory), ttl_seconds=5)

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_judge] = lambda: judge
    app.dependency_overrides[get_settings_cache] = lambda: cache

    original_manager = db_module.db_manager
    fake_manager = DatabaseSessionManager.__new__(DatabaseSessionManager)
    fake_manager.engine = test_engine
    fake_manager._session_factory = test_session_factory
    db_module.db_manager = fake_manager

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
    ) as c:
        yield c

    app.dependency_overrides.clear()
    db_module.db_manager = original_manager


@pytest.fixture
async def seeded(client):
    """Alpha (A, B, C) plus one problem per tier, created through the admin API."""
    problems = {}
    for difficulty, cases in (
        ("easy", [{"input": "1 2", "expected_output": "3"},
                  {"input": "2 2", "expected_output": "4"}]),
        ("medium", [{"input": "abc", "expected_output": "cba"}]),
        ("hard", [{"input": "3", "expected_output": "6"}]),
    ):
        res = await client.post(
            "/api/v1/admin/problems",
            json={
                "title": f"{difficulty} problem",
                "description": "solve it",
                "difficulty": difficulty,
                "test_cases": cases,
            },
            headers=ADMIN_HEADERS,
        )
        assert res.status_code == 201
        problems[difficulty] = res.json()

    res = await client.post(
        "/api/v1/admin/teams",
        json={"name": "Alpha", "members": ["A", "B", "C"]},
        headers=ADMIN_HEADERS,
    )
    assert res.status_code == 201
    return problems
