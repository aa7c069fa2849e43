"""Admin Event Routes - submission ledger and global event settings.

Invariants:
    - Saving settings invalidates the settings cache before responding
    - Reading settings seeds the global row with configured defaults if absent
"""

import logging

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from codeshuffle.api.dependencies import require_admin
from codeshuffle.config import Settings, get_settings
from codeshuffle.core.event_settings import EventSettings
from codeshuffle.infrastructure.database import get_db
from codeshuffle.schemas.admin import SettingsUpdate
from codeshuffle.services.settings_cache import (
    SettingsCache, get_settings_cache, read_event_settings,
    write_event_settings,
)
from codeshuffle.services.submission_ledger import SubmissionLedger

logger = logging.getLogger(__name__)
router = APIRouter(
    prefix="/api/v1/admin", tags=["admin"],
    dependencies=[Depends(require_admin)],
)


def _defaults(settings: Settings) -> EventSettings:
    return EventSettings(
        rotation_interval_seconds=settings.default_rotation_interval_seconds,
        event_duration_seconds=settings.default_event_duration_seconds,
    )


@router.get("/submissions")
async def list_submissions(
    limit: int = Query(100, ge=1, le=1000),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
):
    """Newest first."""
    return await SubmissionLedger(db).list_recent(limit, offset)


@router.delete("/submissions")
async def purge_submissions(db: AsyncSession = Depends(get_db)):
    deleted = await SubmissionLedger(db).purge()
    return {"deleted_submissions": deleted}


@router.get("/settings")
async def get_event_settings(
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    current = await read_event_settings(
        db, _defaults(settings), create_missing=True,
    )
    return current.to_dict()


@router.put("/settings")
async def save_event_settings(
    body: SettingsUpdate,
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
    cache: SettingsCache = Depends(get_settings_cache),
):
    saved = await write_event_settings(
        db,
        rotation_interval_seconds=body.rotation_interval_seconds,
        event_duration_seconds=body.event_duration_seconds,
        defaults=_defaults(settings),
    )
    cache.invalidate()
    return saved.to_dict()
