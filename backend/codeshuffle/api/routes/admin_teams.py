"""Admin Team Routes - roster management behind the admin secret."""

import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from codeshuffle.api.dependencies import require_admin
from codeshuffle.infrastructure.database import get_db
from codeshuffle.schemas.admin import TeamCreate, TeamUpdate
from codeshuffle.services.handle_teams import TeamHandlers
from codeshuffle.services.rotation_scheduler import get_scheduler

logger = logging.getLogger(__name__)
router = APIRouter(
    prefix="/api/v1/admin/teams", tags=["admin"],
    dependencies=[Depends(require_admin)],
)


@router.post("", status_code=status.HTTP_201_CREATED)
async def register_team(body: TeamCreate, db: AsyncSession = Depends(get_db)):
    return await TeamHandlers(db).register(body.name, body.members)


@router.get("")
async def list_teams(db: AsyncSession = Depends(get_db)):
    return await TeamHandlers(db).list_teams()


@router.delete("")
async def delete_all_teams(db: AsyncSession = Depends(get_db)):
    """Delete every team and purge the submission ledger."""
    return await TeamHandlers(db, get_scheduler()).delete_all()


@router.patch("/{team_name}")
async def update_team(
    team_name: str, body: TeamUpdate, db: AsyncSession = Depends(get_db),
):
    return await TeamHandlers(db).update(team_name, body.name, body.members)


@router.delete("/{team_name}")
async def delete_team(team_name: str, db: AsyncSession = Depends(get_db)):
    return await TeamHandlers(db, get_scheduler()).delete(team_name)


@router.post("/{team_name}/reset")
async def reset_team(team_name: str, db: AsyncSession = Depends(get_db)):
    return await TeamHandlers(db, get_scheduler()).reset(team_name)
