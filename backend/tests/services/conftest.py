"""Service test fixtures - async DB, fake judge, fixed clock, seeded catalog.

Invariants:
    - The judge is a FakeJudge: no network, outcomes scripted per stdin
    - Time only moves when a test advances the FakeClock

Design Decisions:
    - Settings served by a static loader so TTL behavior is tested separately
"""

import random

import pytest

from codeshuffle.core.event_settings import EventSettings
from codeshuffle.core.team_state import MemberState
from codeshuffle.models.problem import Problem
from codeshuffle.models.team import Team
from codeshuffle.services.round_engine import RoundEngine
from codeshuffle.services.settings_cache import SettingsCache

from tests.services.fakes import FakeClock, FakeJudge, RecordingListener


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def judge():
    return FakeJudge()


@pytest.fixture
def listener():
    return RecordingListener()


@pytest.fixture
def event_settings():
    return EventSettings(rotation_interval_seconds=60, event_duration_seconds=300)


@pytest.fixture
def settings_cache(event_settings):
    async def loader():
        return event_settings
    return SettingsCache(loader, ttl_seconds=60)


@pytest.fixture
def engine(test_db, settings_cache, judge, clock, listener):
    return RoundEngine(
        test_db, settings_cache, judge,
        clock=clock, rng=random.Random(7), listener=listener,
        cpu_time_limits={"easy": 2.0, "medium": 3.0, "hard": 5.0},
    )


def make_problem(title: str, difficulty: str, cases: list[tuple[str, str]]) -> Problem:
    return Problem(
        title=title,
        description=f"{title} description",
        difficulty=difficulty,
        test_cases=[{"input": i, "expected_output": o} for i, o in cases],
    )


@pytest.fixture
async def catalog(test_db) -> dict[str, Problem]:
    """Exactly one problem per tier."""
    problems = {
        "easy": make_problem("Sum", "easy", [("1 2", "3"), ("2 2", "4"), ("5 5", "10")]),
        "medium": make_problem("Reverse", "medium", [("abc", "cba")]),
        "hard": make_problem("Paths", "hard", [("3", "6")]),
    }
    test_db.add_all(problems.values())
    await test_db.commit()
    return problems


@pytest.fixture
async def alpha(test_db) -> Team:
    team = Team(
        name="Alpha",
        members=[MemberState(h).to_dict() for h in ("A", "B", "C")],
        problem_ids=[], code_store={}, last_languages={},
    )
    test_db.add(team)
    await test_db.commit()
    return team
