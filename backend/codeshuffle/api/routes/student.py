"""Student Routes - contest endpoints for team members.

Invariants:
    - Every endpoint identifies the caller by (team_name, handle)
    - Responses carry server-computed remaining times, never client ones
    - Routes only translate HTTP to RoundEngine calls
"""

import logging

from fastapi import APIRouter, Depends

from codeshuffle.api.dependencies import get_round_engine
from codeshuffle.schemas.student import (
    CheckShuffleRequest, EventExpiredRequest, MemberRequest, RunRequest,
    SaveCodeRequest, TeamRequest,
)
from codeshuffle.services.round_engine import RoundEngine

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/student", tags=["student"])


@router.post("/login")
async def login(
    body: MemberRequest, engine: RoundEngine = Depends(get_round_engine),
):
    return await engine.login(body.team_name, body.handle)


@router.post("/start-session")
async def start_session(
    body: MemberRequest, engine: RoundEngine = Depends(get_round_engine),
):
    """Activate the team on first call; later calls return the current view."""
    return await engine.start_session(body.team_name, body.handle)


@router.post("/state")
async def get_state(
    body: MemberRequest, engine: RoundEngine = Depends(get_round_engine),
):
    return await engine.get_state(body.team_name, body.handle)


@router.post("/save-code")
async def save_code(
    body: SaveCodeRequest, engine: RoundEngine = Depends(get_round_engine),
):
    return await engine.save_code(
        body.team_name, body.handle, body.problem_id,
        body.language.value, body.code,
    )


@router.post("/shuffle")
async def shuffle(
    body: TeamRequest, engine: RoundEngine = Depends(get_round_engine),
):
    """Client-triggered rotation (fired when a member's round timer hits zero)."""
    return await engine.rotate(body.team_name)


@router.post("/run")
async def run_code(
    body: RunRequest, engine: RoundEngine = Depends(get_round_engine),
):
    return await engine.run(
        body.team_name, body.handle, body.code, body.language.value,
    )


@router.post("/check-shuffle")
async def check_shuffle(
    body: CheckShuffleRequest,
    engine: RoundEngine = Depends(get_round_engine),
):
    return await engine.check_shuffle(
        body.team_name, body.handle, body.current_round,
    )


@router.post("/event-expired")
async def event_expired(
    body: EventExpiredRequest,
    engine: RoundEngine = Depends(get_round_engine),
):
    return await engine.expire_event(
        body.team_name, body.handle, body.code,
        body.language.value if body.language else None,
    )
