"""Rotation Scheduler - tests for server-side timers over the round engine.

Tests cover:
    - Activation arms rotation and event deadlines
    - tick() fires due rotations and re-arms the next round
    - Stale deadlines are dropped
    - load_active_teams rebuilds the queue after a restart
    - start/stop lifecycle of the background task
    - A failed settings load is logged and the loop keeps running
    - Deadlines keep the last loaded settings across a cache invalidation
    - team_cleared drops a team's deadlines
"""

import asyncio
import random

from codeshuffle.core.countdown import deadline_at
from codeshuffle.core.domain_types import DeadlineKind
from codeshuffle.core.event_settings import EventSettings
from codeshuffle.services.round_engine import RoundEngine
from codeshuffle.services.rotation_scheduler import RotationScheduler
from codeshuffle.services.settings_cache import SettingsCache

from tests.services.fakes import T0


def _scheduler(test_session_factory, settings_cache, judge, clock) -> RotationScheduler:
    holder: dict = {}

    def factory(db):
        return RoundEngine(
            db, settings_cache, judge, clock=clock,
            rng=random.Random(1), listener=holder["scheduler"],
        )

    scheduler = RotationScheduler(
        test_session_factory, factory, settings_cache, clock=clock, idle_seconds=0.01,
    )
    holder["scheduler"] = scheduler
    return scheduler


async def _start(test_session_factory, scheduler, settings_cache, judge, clock):
    async with test_session_factory() as db:
        engine = RoundEngine(
            db, settings_cache, judge, clock=clock,
            rng=random.Random(1), listener=scheduler,
        )
        return await engine.start_session("Alpha", "A")


async def _round(test_session_factory, clock, settings_cache, judge) -> dict:
    async with test_session_factory() as db:
        engine = RoundEngine(db, settings_cache, judge, clock=clock)
        return await engine.get_state("Alpha", "A")


async def test_activation_arms_both_deadlines(
    test_session_factory, settings_cache, judge, clock, catalog, alpha,
):
    scheduler = _scheduler(test_session_factory, settings_cache, judge, clock)
    await settings_cache.get()
    await _start(test_session_factory, scheduler, settings_cache, judge, clock)
    assert len(scheduler.queue) == 2


async def test_tick_rotates_when_due_and_rearms(
    test_session_factory, settings_cache, judge, clock, catalog, alpha,
):
    scheduler = _scheduler(test_session_factory, settings_cache, judge, clock)
    await settings_cache.get()
    await _start(test_session_factory, scheduler, settings_cache, judge, clock)

    clock.advance(59)
    assert await scheduler.tick() == []

    clock.advance(1)
    [fired] = await scheduler.tick()
    assert fired.kind == DeadlineKind.ROTATION
    view = await _round(test_session_factory, clock, settings_cache, judge)
    assert view["current_round"] == 2
    assert view["slot"] == 1
    assert len(scheduler.queue) == 2


async def test_tick_expires_event(
    test_session_factory, settings_cache, judge, clock, catalog, alpha,
):
    scheduler = _scheduler(test_session_factory, settings_cache, judge, clock)
    await settings_cache.get()
    await _start(test_session_factory, scheduler, settings_cache, judge, clock)

    for _ in range(5):
        clock.advance(60)
        await scheduler.tick()

    view = await _round(test_session_factory, clock, settings_cache, judge)
    assert view["event_expired"] is True


async def test_stale_deadline_is_dropped(
    test_session_factory, settings_cache, judge, clock, catalog, alpha,
):
    scheduler = _scheduler(test_session_factory, settings_cache, judge, clock)
    await settings_cache.get()
    await _start(test_session_factory, scheduler, settings_cache, judge, clock)

    # A client rotates first, without telling the scheduler
    async with test_session_factory() as db:
        await RoundEngine(db, settings_cache, judge, clock=clock).rotate("Alpha")

    clock.advance(60)
    await scheduler.tick()
    view = await _round(test_session_factory, clock, settings_cache, judge)
    assert view["current_round"] == 2


async def test_load_active_teams_after_restart(
    test_session_factory, settings_cache, judge, clock, catalog, alpha,
):
    first = _scheduler(test_session_factory, settings_cache, judge, clock)
    await settings_cache.get()
    await _start(test_session_factory, first, settings_cache, judge, clock)

    second = _scheduler(test_session_factory, settings_cache, judge, clock)
    assert await second.load_active_teams() == 1
    assert len(second.queue) == 2


async def test_start_and_stop(test_session_factory, settings_cache, judge, clock):
    scheduler = _scheduler(test_session_factory, settings_cache, judge, clock)
    await scheduler.start()
    assert scheduler._task is not None
    await scheduler.stop()
    assert scheduler._task is None


async def test_loop_survives_failed_settings_load(
    test_session_factory, judge, clock, caplog,
):
    calls = {"n": 0}

    async def flaky_loader():
        calls["n"] += 1
        if calls["n"] == 2:
            raise RuntimeError("db down")
        return EventSettings()

    cache = SettingsCache(flaky_loader, ttl_seconds=0)
    scheduler = _scheduler(test_session_factory, cache, judge, clock)
    await scheduler.start()
    try:
        await asyncio.sleep(0.1)
        assert calls["n"] > 2
        assert not scheduler._task.done()
        assert "Scheduler tick failed" in caplog.text
    finally:
        await scheduler.stop()


async def test_deadlines_keep_last_settings_after_invalidate(
    test_session_factory, judge, clock,
):
    loaded = EventSettings(rotation_interval_seconds=30, event_duration_seconds=120)

    async def loader():
        return loaded

    cache = SettingsCache(loader, ttl_seconds=60)
    scheduler = _scheduler(test_session_factory, cache, judge, clock)
    await scheduler.tick()
    cache.invalidate()

    scheduler.round_started("team-1", 1, T0, T0)
    assert scheduler.queue.next_due() == deadline_at(T0, 30)
    [rotation] = scheduler.queue.pop_due(deadline_at(T0, 30))
    assert rotation.kind == DeadlineKind.ROTATION
    [event_end] = scheduler.queue.pop_due(deadline_at(T0, 120))
    assert event_end.kind == DeadlineKind.EVENT_END


async def test_start_session_arms_from_loaded_settings_after_invalidate(
    test_session_factory, judge, clock, catalog, alpha,
):
    loaded = EventSettings(rotation_interval_seconds=30, event_duration_seconds=120)

    async def loader():
        return loaded

    cache = SettingsCache(loader, ttl_seconds=60)
    scheduler = _scheduler(test_session_factory, cache, judge, clock)
    cache.invalidate()
    await _start(test_session_factory, scheduler, cache, judge, clock)

    assert scheduler.queue.pop_due(deadline_at(clock(), 29)) == []
    kinds = {e.kind for e in scheduler.queue.pop_due(deadline_at(clock(), 120))}
    assert kinds == {DeadlineKind.ROTATION, DeadlineKind.EVENT_END}


async def test_team_cleared_drops_deadlines(
    test_session_factory, settings_cache, judge, clock, catalog, alpha,
):
    scheduler = _scheduler(test_session_factory, settings_cache, judge, clock)
    await _start(test_session_factory, scheduler, settings_cache, judge, clock)
    assert len(scheduler.queue) == 2

    scheduler.team_cleared(str(alpha.id))
    assert len(scheduler.queue) == 0
    clock.advance(300)
    assert await scheduler.tick() == []
