"""Member View - the per-member snapshot every student-facing call returns.

Invariants:
    - Both remaining times are recomputed from stored starts and the server clock
    - code holds every language saved for the member's current problem
    - Inactive teams yield problem=None and full-interval countdowns
"""

from datetime import datetime

from codeshuffle.core.countdown import isoformat_or_none, remaining_seconds
from codeshuffle.core.event_settings import EventSettings
from codeshuffle.core.team_state import TeamState


def build_member_view(
    state: TeamState,
    handle: str,
    problem: dict | None,
    settings: EventSettings,
    now: datetime,
) -> dict:
    index = state.member_index(handle)
    member = state.members[index]
    problem_id = state.problem_id_for(member)
    return {
        "team_name": state.name,
        "handle": member.handle,
        "member_index": index,
        "is_active": state.is_active,
        "current_round": state.current_round,
        "slot": member.slot,
        "problem": problem,
        "code": state.code_for(problem_id),
        "last_language": (
            state.last_languages.get(problem_id) if problem_id else None
        ),
        "completed": member.completed,
        "all_completed": state.all_completed,
        "event_expired": state.event_expired,
        "round_started_at": isoformat_or_none(state.round_started_at),
        "event_started_at": isoformat_or_none(state.event_started_at),
        "rotation_interval_seconds": settings.rotation_interval_seconds,
        "event_duration_seconds": settings.event_duration_seconds,
        "remaining_rotation_seconds": remaining_seconds(
            settings.rotation_interval_seconds, state.round_started_at, now,
        ),
        "remaining_event_seconds": remaining_seconds(
            settings.event_duration_seconds, state.event_started_at, now,
        ),
    }
