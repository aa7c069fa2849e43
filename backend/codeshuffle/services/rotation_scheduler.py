"""Rotation Scheduler - optional server-side timers for rotation and event expiry.

Invariants:
    - One live rotation deadline and one live event deadline per active team
    - A firing re-checks the stored row: a stale deadline (round moved, team
      expired, completed or reset) is a no-op
    - Firing and settings-load failures are logged and never stop the loop
    - Clients keep driving rotation themselves; both paths use the same engine

Design Decisions:
    - Single asyncio task over a DeadlineQueue: sleeps until the next deadline
      or until a new round wakes it, whichever is first
    - Implements RoundListener: the engine tells it when a round clock restarts
    - Deadlines use the last successfully loaded settings, which survive a
      cache invalidation; the engine re-checks the live settings at firing
      time and re-arms if the interval was raised
    - Reset and deleted teams have their deadlines dropped via team_cleared
"""

import asyncio
import logging
from collections.abc import Callable
from contextlib import AbstractAsyncContextManager
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from codeshuffle.core.countdown import as_utc, deadline_at, utc_now
from codeshuffle.core.domain_types import DeadlineKind
from codeshuffle.core.deadline_queue import Deadline, DeadlineQueue
from codeshuffle.core.event_settings import EventSettings
from codeshuffle.core.gateway_protocols import Clock
from codeshuffle.models.team import Team
from codeshuffle.services.round_engine import RoundEngine
from codeshuffle.services.settings_cache import SettingsCache

logger = logging.getLogger(__name__)

SessionScope = Callable[[], AbstractAsyncContextManager[AsyncSession]]
EngineFactory = Callable[[AsyncSession], RoundEngine]


class RotationScheduler:
    """Fires due rotations and expiries for every active team."""

    def __init__(
        self,
        session_scope: SessionScope,
        engine_factory: EngineFactory,
        settings_cache: SettingsCache,
        clock: Clock = utc_now,
        idle_seconds: float = 5.0,
    ):
        self.session_scope = session_scope
        self.engine_factory = engine_factory
        self.settings_cache = settings_cache
        self.clock = clock
        self.idle_seconds = idle_seconds
        self.queue = DeadlineQueue()
        self._wakeup = asyncio.Event()
        self._task: asyncio.Task | None = None
        self._last_settings = EventSettings()

    @property
    def _settings(self) -> EventSettings:
        cached = self.settings_cache.cached
        if cached is not None:
            self._last_settings = cached
        return self._last_settings

    async def _refresh_settings(self) -> None:
        self._last_settings = await self.settings_cache.get()

    # ─── RoundListener ───────────────────────────────────────────

    def round_started(
        self, team_id: str, round_number: int,
        round_started_at: datetime, event_started_at: datetime | None,
    ) -> None:
        settings = self._settings
        self.queue.push(
            team_id, DeadlineKind.ROTATION,
            deadline_at(round_started_at, settings.rotation_interval_seconds),
            round_number,
        )
        if event_started_at is not None:
            self.queue.push(
                team_id, DeadlineKind.EVENT_END,
                deadline_at(event_started_at, settings.event_duration_seconds),
                round_number,
            )
        self._wakeup.set()

    def team_cleared(self, team_id: str) -> None:
        self.queue.discard(team_id)

    # ─── Lifecycle ───────────────────────────────────────────────

    async def start(self) -> None:
        await self._refresh_settings()
        await self.load_active_teams()
        self._task = asyncio.create_task(self._run(), name="rotation-scheduler")
        logger.info(f"Rotation scheduler started ({len(self.queue)} deadlines)")

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("Rotation scheduler stopped")

    async def load_active_teams(self) -> int:
        async with self.session_scope() as db:
            result = await db.execute(
                select(Team).where(
                    Team.is_active.is_(True), Team.event_expired.is_(False),
                ),
            )
            teams = result.scalars().all()
        for team in teams:
            if team.round_started_at is None:
                continue
            self.round_started(
                str(team.id), team.current_round,
                as_utc(team.round_started_at),
                as_utc(team.event_started_at) if team.event_started_at else None,
            )
        return len(teams)

    # ─── Loop ────────────────────────────────────────────────────

    async def tick(self, now: datetime | None = None) -> list[Deadline]:
        """Fire everything due at `now`. Returns the entries that were due."""
        await self._refresh_settings()
        due = self.queue.pop_due(now or self.clock())
        for entry in due:
            await self._fire(entry)
        return due

    async def _run(self) -> None:
        while True:
            try:
                await self.tick()
            except Exception as e:
                logger.error(f"Scheduler tick failed: {e}", exc_info=True)
            self._wakeup.clear()
            try:
                await asyncio.wait_for(self._wakeup.wait(), self._sleep_seconds())
            except asyncio.TimeoutError:
                pass

    def _sleep_seconds(self) -> float:
        next_due = self.queue.next_due()
        if next_due is None:
            return self.idle_seconds
        delay = (next_due - as_utc(self.clock())).total_seconds()
        return max(0.0, min(self.idle_seconds, delay))

    async def _fire(self, entry: Deadline) -> None:
        try:
            async with self.session_scope() as db:
                engine = self.engine_factory(db)
                if entry.kind == DeadlineKind.ROTATION:
                    await engine.rotate_due(entry.team_id, entry.round_number)
                else:
                    await engine.expire_due(entry.team_id)
        except Exception as e:
            logger.error(
                f"Scheduled {entry.kind.value} failed for team {entry.team_id}: {e}",
                exc_info=True,
            )


# Singleton (initialized on startup when server timers are enabled)
scheduler: RotationScheduler | None = None


def init_scheduler(*args, **kwargs) -> RotationScheduler:
    global scheduler
    scheduler = RotationScheduler(*args, **kwargs)
    return scheduler


def get_scheduler() -> RotationScheduler | None:
    return scheduler
