"""Team State - in-memory model of one team's round/shuffle state machine.

Invariants:
    - Once active: exactly 3 problem ids, slot i holds the tier-i problem
    - Member at roster position i starts on slot i (fixed, not random)
    - current_round never decreases; round_started_at resets on every rotation
    - event_started_at is set once per session and never touched by rotation
    - A completed member's slot is frozen and their code writes are rejected
    - completed_at is stamped once, when the last member completes

Design Decisions:
    - Dataclass with mutating methods, no IO: the shell loads a TeamState from
      the ORM row, applies one transition and writes it back
    - Members carry a slot index, never a problem reference: rotation is a
      permutation of small integers
    - code_store is problem id -> language -> source, so languages never clobber
      each other and nothing moves when slots rotate
"""

from dataclasses import dataclass, field
from datetime import datetime

from codeshuffle.core.countdown import as_utc, isoformat_or_none
from codeshuffle.core.domain_types import TEAM_SIZE
from codeshuffle.core.rotation import rotate_slot_indices


@dataclass
class MemberState:
    """One roster entry."""

    handle: str
    slot: int | None = None
    completed: bool = False
    last_updated: datetime | None = None

    def to_dict(self) -> dict:
        return {
            "handle": self.handle,
            "slot": self.slot,
            "completed": self.completed,
            "last_updated": isoformat_or_none(self.last_updated),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "MemberState":
        last_updated = data.get("last_updated")
        return cls(
            handle=data["handle"],
            slot=data.get("slot"),
            completed=bool(data.get("completed", False)),
            last_updated=(
                as_utc(datetime.fromisoformat(last_updated))
                if last_updated else None
            ),
        )


@dataclass
class TeamState:
    """Per-team round state - pure dataclass, no IO."""

    name: str
    members: list[MemberState]

    # slot index -> problem id
    problem_ids: list[str] = field(default_factory=list)

    # problem id -> language -> source
    code_store: dict[str, dict[str, str]] = field(default_factory=dict)
    last_languages: dict[str, str] = field(default_factory=dict)

    current_round: int = 1
    round_started_at: datetime | None = None
    event_started_at: datetime | None = None
    is_active: bool = False
    event_expired: bool = False
    completed_at: datetime | None = None

    # ─── Lookups ─────────────────────────────────────────────────

    def member_index(self, handle: str) -> int | None:
        for index, member in enumerate(self.members):
            if member.handle == handle:
                return index
        return None

    def member(self, handle: str) -> MemberState | None:
        index = self.member_index(handle)
        return self.members[index] if index is not None else None

    def problem_id_for(self, member: MemberState) -> str | None:
        if member.slot is None or member.slot >= len(self.problem_ids):
            return None
        return self.problem_ids[member.slot]

    def code_for(self, problem_id: str | None) -> dict[str, str]:
        if problem_id is None:
            return {}
        return dict(self.code_store.get(problem_id, {}))

    @property
    def incomplete_members(self) -> list[MemberState]:
        return [m for m in self.members if not m.completed]

    @property
    def all_completed(self) -> bool:
        return bool(self.members) and all(m.completed for m in self.members)

    # ─── Transitions ─────────────────────────────────────────────

    def activate(self, problem_ids: list[str], now: datetime) -> None:
        """Assign problems and start both clocks. Caller checks is_active first."""
        if len(problem_ids) != TEAM_SIZE:
            raise ValueError(
                f"Expected {TEAM_SIZE} problem ids, got {len(problem_ids)}",
            )
        self.problem_ids = list(problem_ids)
        for position, member in enumerate(self.members):
            member.slot = position
            member.completed = False
            member.last_updated = now
        self.code_store = {}
        self.last_languages = {}
        self.current_round = 1
        self.round_started_at = now
        self.event_started_at = now
        self.is_active = True
        self.event_expired = False
        self.completed_at = None

    def rotate(self, now: datetime) -> bool:
        """Permute slots among incomplete members. Returns True if slots moved.

        The round counter and round clock advance even when nothing moves.
        """
        movers = self.incomplete_members
        permuted = len(movers) > 1
        if permuted:
            rotated = rotate_slot_indices([m.slot for m in movers])
            for member, slot in zip(movers, rotated):
                member.slot = slot
        self.current_round += 1
        self.round_started_at = now
        return permuted

    def store_code(
        self, handle: str, problem_id: str, language: str, code: str,
        now: datetime,
    ) -> bool:
        """Write code for (problem, language). False if the member is completed."""
        member = self.member(handle)
        if member is None or member.completed:
            return False
        self.code_store.setdefault(problem_id, {})[language] = code
        self.last_languages[problem_id] = language
        member.last_updated = now
        return True

    def complete_member(self, handle: str, now: datetime) -> bool:
        """Mark member completed. Returns True when the whole team is now done."""
        member = self.member(handle)
        if member is None:
            return False
        member.completed = True
        member.last_updated = now
        if self.all_completed and self.completed_at is None:
            self.completed_at = now
        return self.all_completed

    def expire(self) -> bool:
        """Set event_expired. Returns False when it was already set."""
        if self.event_expired:
            return False
        self.event_expired = True
        return True

    def reset(self) -> None:
        """Back to the registered, inactive, empty state."""
        for member in self.members:
            member.slot = None
            member.completed = False
        self.problem_ids = []
        self.code_store = {}
        self.last_languages = {}
        self.current_round = 1
        self.round_started_at = None
        self.event_started_at = None
        self.is_active = False
        self.event_expired = False
        self.completed_at = None
