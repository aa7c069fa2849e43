"""Team State - tests for the pure round/shuffle state machine.

Tests cover:
    - Activation (fixed member -> slot mapping, clocks, flags)
    - Rotation as a permutation of incomplete members' slots
    - Lone straggler and completion freeze
    - Code store keyed by (problem, language)
    - Completion stamping and reset
"""

from collections import Counter
from datetime import datetime, timedelta, timezone

import pytest

from codeshuffle.core.team_state import MemberState, TeamState

T0 = datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)
PROBLEMS = ["p-easy", "p-medium", "p-hard"]


def _team() -> TeamState:
    return TeamState(
        name="Alpha",
        members=[MemberState("A"), MemberState("B"), MemberState("C")],
    )


def _active() -> TeamState:
    state = _team()
    state.activate(PROBLEMS, T0)
    return state


def _slots(state: TeamState) -> dict[str, int]:
    return {m.handle: m.slot for m in state.members}


def test_activate_assigns_member_i_to_slot_i():
    state = _active()
    assert _slots(state) == {"A": 0, "B": 1, "C": 2}
    assert state.problem_id_for(state.member("A")) == "p-easy"
    assert state.problem_id_for(state.member("C")) == "p-hard"


def test_activate_starts_both_clocks_and_round_one():
    state = _active()
    assert state.current_round == 1
    assert state.round_started_at == T0
    assert state.event_started_at == T0
    assert state.is_active
    assert not state.event_expired


def test_activate_rejects_wrong_problem_count():
    with pytest.raises(ValueError):
        _team().activate(["only-one"], T0)


def test_rotate_with_all_incomplete_moves_every_slot():
    state = _active()
    assert state.rotate(T0 + timedelta(seconds=60))
    # position i receives the slot held at position i+1
    assert _slots(state) == {"A": 1, "B": 2, "C": 0}


def test_rotate_swaps_two_incomplete_and_freezes_completed():
    state = _active()
    state.complete_member("C", T0)
    state.rotate(T0 + timedelta(seconds=60))
    assert _slots(state) == {"A": 1, "B": 0, "C": 2}
    assert state.current_round == 2


def test_rotate_lone_straggler_keeps_slot_but_advances_round():
    state = _active()
    state.complete_member("A", T0)
    state.complete_member("C", T0)
    later = T0 + timedelta(seconds=60)
    assert state.rotate(later) is False
    assert state.member("B").slot == 1
    assert state.current_round == 2
    assert state.round_started_at == later


def test_rotate_never_touches_event_clock():
    state = _active()
    state.rotate(T0 + timedelta(seconds=60))
    assert state.event_started_at == T0


def test_rotation_preserves_slot_code_pairs_of_incomplete_members():
    state = _active()
    for handle, problem_id in zip("ABC", PROBLEMS):
        state.store_code(handle, problem_id, "python3", f"code-{problem_id}", T0)
    state.complete_member("B", T0)

    def pairs():
        return Counter(
            (m.slot, state.code_for(state.problem_id_for(m)).get("python3"))
            for m in state.incomplete_members
        )

    before = pairs()
    for n in range(5):
        state.rotate(T0 + timedelta(seconds=60 * (n + 1)))
        assert pairs() == before


def test_rounds_are_monotonic():
    state = _active()
    seen = [state.current_round]
    for n in range(4):
        state.rotate(T0 + timedelta(seconds=n))
        seen.append(state.current_round)
    assert seen == sorted(seen)
    assert seen[-1] == 5


def test_store_code_keeps_languages_apart():
    state = _active()
    state.store_code("A", "p-easy", "python3", "print(1)", T0)
    state.store_code("A", "p-easy", "cpp", "int main(){}", T0)
    assert state.code_for("p-easy") == {"python3": "print(1)", "cpp": "int main(){}"}
    assert state.last_languages["p-easy"] == "cpp"


def test_store_code_same_key_is_last_write_wins():
    state = _active()
    state.store_code("A", "p-easy", "python3", "v1", T0)
    state.store_code("B", "p-easy", "python3", "v2", T0)
    assert state.code_for("p-easy")["python3"] == "v2"


def test_store_code_rejected_for_completed_member():
    state = _active()
    state.complete_member("A", T0)
    assert state.store_code("A", "p-easy", "python3", "late", T0) is False
    assert state.code_for("p-easy") == {}


def test_complete_last_member_stamps_completed_at_once():
    state = _active()
    assert state.complete_member("A", T0) is False
    assert state.complete_member("B", T0) is False
    done_at = T0 + timedelta(seconds=5)
    assert state.complete_member("C", done_at) is True
    assert state.completed_at == done_at
    state.complete_member("C", done_at + timedelta(seconds=5))
    assert state.completed_at == done_at


def test_expire_is_idempotent():
    state = _active()
    assert state.expire() is True
    assert state.expire() is False
    assert state.event_expired


def test_reset_restores_inactive_empty_state():
    state = _active()
    state.store_code("A", "p-easy", "python3", "x", T0)
    state.complete_member("A", T0)
    state.rotate(T0)
    state.reset()
    assert not state.is_active
    assert state.problem_ids == []
    assert state.code_store == {}
    assert state.current_round == 1
    assert state.round_started_at is None
    assert all(m.slot is None and not m.completed for m in state.members)


def test_member_roundtrip_through_dict():
    member = MemberState("A", slot=2, completed=True, last_updated=T0)
    assert MemberState.from_dict(member.to_dict()) == member
