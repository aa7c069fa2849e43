"""API Dependencies - engine assembly and the admin gate.

Invariants:
    - One RoundEngine per request, bound to the request's DB session
    - Admin routes require X-Admin-Secret equal to the configured secret,
      compared in constant time

Design Decisions:
    - Collaborators (judge, settings cache, scheduler) resolved through their
      own dependencies so tests override each one independently
"""

import secrets

from fastapi import Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession

from codeshuffle.config import Settings, get_settings
from codeshuffle.core.errors import UnauthorizedError
from codeshuffle.infrastructure.database import get_db
from codeshuffle.infrastructure.judge_client import get_judge
from codeshuffle.services.round_engine import RoundEngine
from codeshuffle.services.rotation_scheduler import get_scheduler
from codeshuffle.services.settings_cache import SettingsCache, get_settings_cache


async def get_round_engine(
    db: AsyncSession = Depends(get_db),
    judge=Depends(get_judge),
    settings_cache: SettingsCache = Depends(get_settings_cache),
    settings: Settings = Depends(get_settings),
) -> RoundEngine:
    return RoundEngine(
        db,
        settings_cache,
        judge,
        listener=get_scheduler(),
        cpu_time_limits=settings.judge_cpu_time_limits,
    )


async def require_admin(
    x_admin_secret: str | None = Header(None),
    settings: Settings = Depends(get_settings),
) -> None:
    if x_admin_secret is None or not secrets.compare_digest(
        x_admin_secret.encode(), settings.admin_secret.encode(),
    ):
        raise UnauthorizedError()
