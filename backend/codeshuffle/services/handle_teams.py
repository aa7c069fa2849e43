"""Team Handlers - admin roster operations: register, list, update, delete, reset.

Invariants:
    - A team always has exactly TEAM_SIZE distinct, non-empty handles
    - Team names are unique (checked up front, enforced by the unique index)
    - delete_all also purges the submission ledger
    - reset returns the team to the registered, inactive, empty state
    - reset and delete tell the listener, so no timer outlives its team

Design Decisions:
    - Handles replaced by roster position on update: position is what maps a
      member to a slot, so renaming never reshuffles anyone
"""

import logging

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from codeshuffle.core.domain_types import TEAM_SIZE
from codeshuffle.core.errors import (
    DuplicateTeamError, ErrorContext, ValidationFailureError,
)
from codeshuffle.core.gateway_protocols import RoundListener
from codeshuffle.core.team_state import MemberState
from codeshuffle.models.submission import Submission
from codeshuffle.models.team import Team
from codeshuffle.services.team_store import (
    apply_state, get_team_or_404, team_summary, to_state,
)

logger = logging.getLogger(__name__)


def validate_roster(handles: list[str]) -> list[str]:
    cleaned = [h.strip() for h in handles]
    if len(cleaned) != TEAM_SIZE:
        raise ValidationFailureError(
            f"A team needs exactly {TEAM_SIZE} members", "members",
        )
    if any(not h for h in cleaned):
        raise ValidationFailureError("Member handles must not be empty", "members")
    if len(set(cleaned)) != len(cleaned):
        raise ValidationFailureError("Member handles must be distinct", "members")
    return cleaned


class TeamHandlers:
    """Roster administration."""

    def __init__(self, db: AsyncSession, listener: RoundListener | None = None):
        self.db = db
        self.listener = listener

    async def register(self, name: str, handles: list[str]) -> dict:
        name = name.strip()
        if not name:
            raise ValidationFailureError("Team name must not be empty", "name")
        handles = validate_roster(handles)
        await self._ensure_name_free(name)

        team = Team(
            name=name,
            members=[MemberState(handle=h).to_dict() for h in handles],
            problem_ids=[],
            code_store={},
            last_languages={},
        )
        self.db.add(team)
        await self.db.commit()
        logger.info("Team registered", extra={"team_name": name})
        return team_summary(team)

    async def list_teams(self) -> list[dict]:
        result = await self.db.execute(select(Team).order_by(Team.created_at))
        return [team_summary(t) for t in result.scalars().all()]

    async def update(
        self,
        team_name: str,
        new_name: str | None = None,
        handles: list[str | None] | None = None,
    ) -> dict:
        """Rename the team and/or replace handles by roster position (None keeps)."""
        team = await get_team_or_404(self.db, team_name, for_update=True)
        state = to_state(team)

        if new_name is not None and new_name.strip() != state.name:
            new_name = new_name.strip()
            if not new_name:
                raise ValidationFailureError("Team name must not be empty", "name")
            await self._ensure_name_free(new_name)
            state.name = new_name

        if handles is not None:
            if len(handles) != TEAM_SIZE:
                raise ValidationFailureError(
                    f"A team needs exactly {TEAM_SIZE} members", "members",
                )
            merged = [
                new if new is not None else member.handle
                for member, new in zip(state.members, handles)
            ]
            for member, handle in zip(state.members, validate_roster(merged)):
                member.handle = handle

        apply_state(team, state)
        await self.db.commit()
        logger.info("Team updated", extra={"team_name": state.name})
        return team_summary(team)

    async def delete(self, team_name: str) -> dict:
        team = await get_team_or_404(self.db, team_name)
        team_id = team.id
        await self.db.execute(
            update(Submission)
            .where(Submission.team_id == team_id)
            .values(team_id=None)
        )
        await self.db.delete(team)
        await self.db.commit()
        self._cleared(team_id)
        logger.info("Team deleted", extra={"team_name": team_name})
        return {"deleted": True, "team_name": team_name}

    async def delete_all(self) -> dict:
        team_ids = (await self.db.execute(select(Team.id))).scalars().all()
        submissions = await self.db.execute(delete(Submission))
        teams = await self.db.execute(delete(Team))
        await self.db.commit()
        for team_id in team_ids:
            self._cleared(team_id)
        logger.warning(
            f"All teams deleted ({teams.rowcount} teams, "
            f"{submissions.rowcount} submissions)",
        )
        return {
            "deleted_teams": teams.rowcount,
            "deleted_submissions": submissions.rowcount,
        }

    async def reset(self, team_name: str) -> dict:
        team = await get_team_or_404(self.db, team_name, for_update=True)
        state = to_state(team)
        state.reset()
        apply_state(team, state)
        await self.db.commit()
        self._cleared(team.id)
        logger.info("Team reset", extra={"team_name": team_name})
        return team_summary(team)

    def _cleared(self, team_id) -> None:
        if self.listener is not None:
            self.listener.team_cleared(str(team_id))

    async def _ensure_name_free(self, name: str) -> None:
        result = await self.db.execute(select(Team.id).where(Team.name == name))
        if result.scalar_one_or_none() is not None:
            raise DuplicateTeamError(name, ErrorContext(team_name=name))
