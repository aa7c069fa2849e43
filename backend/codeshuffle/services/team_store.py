"""Team Store - loads team rows, converts them to TeamState and writes them back.

Invariants:
    - to_state deep-copies every JSON column: mutating the state never touches
      the ORM's committed values, so write-back is detected as a change
    - apply_state reassigns every column from the state
    - Lookups raise typed NotFound errors, never return half-resolved members

Design Decisions:
    - SELECT ... FOR UPDATE on mutating loads: single-row read-modify-write on
      Postgres; SQLite ignores the clause (single-process tests)
"""

import copy
import uuid
from collections import defaultdict
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from codeshuffle.core.countdown import as_utc
from codeshuffle.core.domain_types import Difficulty
from codeshuffle.core.errors import (
    ErrorContext, MemberNotFoundError, TeamNotFoundError,
)
from codeshuffle.core.team_state import MemberState, TeamState
from codeshuffle.models.problem import Problem
from codeshuffle.models.team import Team


async def get_team_or_404(
    db: AsyncSession, team_name: str, for_update: bool = False,
) -> Team:
    query = select(Team).where(Team.name == team_name)
    if for_update:
        query = query.with_for_update()
    result = await db.execute(query)
    team = result.scalar_one_or_none()
    if team is None:
        raise TeamNotFoundError(team_name, ErrorContext(team_name=team_name))
    return team


async def get_team_by_id(
    db: AsyncSession, team_id: str | uuid.UUID, for_update: bool = False,
) -> Team | None:
    if isinstance(team_id, str):
        team_id = uuid.UUID(team_id)
    query = select(Team).where(Team.id == team_id)
    if for_update:
        query = query.with_for_update()
    result = await db.execute(query)
    return result.scalar_one_or_none()


def _utc_or_none(moment: datetime | None) -> datetime | None:
    return as_utc(moment) if moment else None


def to_state(team: Team) -> TeamState:
    return TeamState(
        name=team.name,
        members=[MemberState.from_dict(m) for m in team.members or []],
        problem_ids=list(team.problem_ids or []),
        code_store=copy.deepcopy(team.code_store or {}),
        last_languages=dict(team.last_languages or {}),
        current_round=team.current_round,
        round_started_at=_utc_or_none(team.round_started_at),
        event_started_at=_utc_or_none(team.event_started_at),
        is_active=team.is_active,
        event_expired=team.event_expired,
        completed_at=_utc_or_none(team.completed_at),
    )


def apply_state(team: Team, state: TeamState) -> None:
    team.name = state.name
    team.members = [m.to_dict() for m in state.members]
    team.problem_ids = list(state.problem_ids)
    team.code_store = copy.deepcopy(state.code_store)
    team.last_languages = dict(state.last_languages)
    team.current_round = state.current_round
    team.round_started_at = state.round_started_at
    team.event_started_at = state.event_started_at
    team.is_active = state.is_active
    team.event_expired = state.event_expired
    team.completed_at = state.completed_at


def require_member(state: TeamState, handle: str) -> MemberState:
    member = state.member(handle)
    if member is None:
        raise MemberNotFoundError(
            state.name, handle,
            ErrorContext(team_name=state.name, handle=handle),
        )
    return member


async def load_catalog_by_tier(db: AsyncSession) -> dict[Difficulty, list[str]]:
    result = await db.execute(select(Problem.id, Problem.difficulty))
    catalog: dict[Difficulty, list[str]] = defaultdict(list)
    for problem_id, difficulty in result.all():
        try:
            catalog[Difficulty(difficulty)].append(str(problem_id))
        except ValueError:
            continue  # unknown tier label: never assignable
    return dict(catalog)


async def get_problem(
    db: AsyncSession, problem_id: str | uuid.UUID | None,
) -> Problem | None:
    if problem_id is None:
        return None
    try:
        key = problem_id if isinstance(problem_id, uuid.UUID) else uuid.UUID(problem_id)
    except ValueError:
        return None
    return await db.get(Problem, key)


def team_summary(team: Team) -> dict:
    """Admin listing shape for one team."""
    return {
        "id": str(team.id),
        "name": team.name,
        "members": list(team.members or []),
        "problem_ids": list(team.problem_ids or []),
        "current_round": team.current_round,
        "is_active": team.is_active,
        "event_expired": team.event_expired,
        "round_started_at": (
            team.round_started_at.isoformat() if team.round_started_at else None
        ),
        "event_started_at": (
            team.event_started_at.isoformat() if team.event_started_at else None
        ),
        "completed_at": (
            team.completed_at.isoformat() if team.completed_at else None
        ),
        "created_at": team.created_at.isoformat() if team.created_at else None,
    }
