"""Event Settings Cache - TTL-bounded view of the global settings row.

Invariants:
    - get() never returns a value older than ttl_seconds, except while a reload
      is in flight
    - invalidate() makes the very next get() read storage (read-after-write for
      the writer)
    - At most one loader call at a time per cache

Design Decisions:
    - Explicit cache object passed to the engine, not a module-global value
      inside business code (ADR: no ambient state in the round engine)
    - Monotonic clock for TTL: wall-clock jumps never extend staleness
"""

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from contextlib import AbstractAsyncContextManager
from datetime import datetime, timezone

from sqlalchemy.ext.asyncio import AsyncSession

from codeshuffle.core.errors import ValidationFailureError
from codeshuffle.core.event_settings import EventSettings
from codeshuffle.models.event_settings import GLOBAL_SETTINGS_KEY, EventSettingsRow

logger = logging.getLogger(__name__)

SettingsLoader = Callable[[], Awaitable[EventSettings]]


def _from_row(row: EventSettingsRow) -> EventSettings:
    return EventSettings(
        rotation_interval_seconds=row.rotation_interval_seconds,
        event_duration_seconds=row.event_duration_seconds,
        updated_at=row.updated_at,
    )


async def read_event_settings(
    db: AsyncSession, defaults: EventSettings | None = None,
    create_missing: bool = False,
) -> EventSettings:
    """Read the global row; fall back to (or seed with) defaults."""
    defaults = defaults or EventSettings()
    row = await db.get(EventSettingsRow, GLOBAL_SETTINGS_KEY)
    if row is None:
        if not create_missing:
            return defaults
        row = EventSettingsRow(
            key=GLOBAL_SETTINGS_KEY,
            rotation_interval_seconds=defaults.rotation_interval_seconds,
            event_duration_seconds=defaults.event_duration_seconds,
        )
        db.add(row)
        await db.commit()
    return _from_row(row)


async def write_event_settings(
    db: AsyncSession,
    rotation_interval_seconds: int | None = None,
    event_duration_seconds: int | None = None,
    defaults: EventSettings | None = None,
) -> EventSettings:
    """Partial update of the global row. Values must be positive."""
    for field, value in (
        ("rotation_interval_seconds", rotation_interval_seconds),
        ("event_duration_seconds", event_duration_seconds),
    ):
        if value is not None and value <= 0:
            raise ValidationFailureError(f"{field} must be positive", field)

    defaults = defaults or EventSettings()
    row = await db.get(EventSettingsRow, GLOBAL_SETTINGS_KEY)
    if row is None:
        row = EventSettingsRow(
            key=GLOBAL_SETTINGS_KEY,
            rotation_interval_seconds=defaults.rotation_interval_seconds,
            event_duration_seconds=defaults.event_duration_seconds,
        )
        db.add(row)
    if rotation_interval_seconds is not None:
        row.rotation_interval_seconds = rotation_interval_seconds
    if event_duration_seconds is not None:
        row.event_duration_seconds = event_duration_seconds
    row.updated_at = datetime.now(timezone.utc)
    await db.commit()
    logger.info(
        "Event settings saved: rotation=%ss duration=%ss",
        row.rotation_interval_seconds, row.event_duration_seconds,
    )
    return _from_row(row)


def session_loader(
    session_scope: Callable[[], AbstractAsyncContextManager[AsyncSession]],
    defaults: EventSettings | None = None,
) -> SettingsLoader:
    """Loader that opens its own session: the cache outlives any request."""
    async def load() -> EventSettings:
        async with session_scope() as db:
            return await read_event_settings(db, defaults)
    return load


class SettingsCache:
    """Cache-with-TTL for EventSettings."""

    def __init__(
        self,
        loader: SettingsLoader,
        ttl_seconds: float = 5.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._loader = loader
        self._ttl = ttl_seconds
        self._clock = clock
        self._value: EventSettings | None = None
        self._loaded_at: float = 0.0
        self._lock = asyncio.Lock()

    @property
    def cached(self) -> EventSettings | None:
        """Last loaded value regardless of age (sync readers)."""
        return self._value

    def _fresh(self) -> bool:
        return (
            self._value is not None
            and self._clock() - self._loaded_at < self._ttl
        )

    async def get(self) -> EventSettings:
        if self._fresh():
            return self._value
        async with self._lock:
            if self._fresh():
                return self._value
            self._value = await self._loader()
            self._loaded_at = self._clock()
            return self._value

    def invalidate(self) -> None:
        self._value = None
        self._loaded_at = 0.0


# Singleton (initialized on startup)
settings_cache: SettingsCache | None = None


def init_settings_cache(
    loader: SettingsLoader, ttl_seconds: float = 5.0,
) -> SettingsCache:
    global settings_cache
    settings_cache = SettingsCache(loader, ttl_seconds)
    return settings_cache


def get_settings_cache() -> SettingsCache:
    """FastAPI dependency for the settings cache."""
    if not settings_cache:
        raise RuntimeError("Settings cache not initialized")
    return settings_cache
