"""Deadline Queue - min-heap of per-team timer deadlines for server-side rotation.

Invariants:
    - pop_due returns entries in due order, only those due at or before `now`
    - At most one live entry per (team, kind); a newer push supersedes older ones
    - Superseded entries are skipped lazily when they reach the top

Design Decisions:
    - heapq with lazy deletion over a sorted structure: O(log n) push/pop,
      no re-heapify when a client-triggered rotation moves a deadline
"""

import heapq
import itertools
from dataclasses import dataclass, field
from datetime import datetime

from codeshuffle.core.countdown import as_utc
from codeshuffle.core.domain_types import DeadlineKind


@dataclass(order=True)
class Deadline:
    due_at: datetime
    seq: int
    team_id: str = field(compare=False)
    kind: DeadlineKind = field(compare=False)
    round_number: int = field(compare=False)


class DeadlineQueue:
    """Timer queue keyed by next deadline. Not thread-safe; one event loop owns it."""

    def __init__(self):
        self._heap: list[Deadline] = []
        self._live: dict[tuple[str, DeadlineKind], int] = {}
        self._seq = itertools.count()

    def __len__(self) -> int:
        return len(self._live)

    def push(
        self, team_id: str, kind: DeadlineKind, due_at: datetime,
        round_number: int,
    ) -> Deadline:
        entry = Deadline(
            due_at=as_utc(due_at), seq=next(self._seq),
            team_id=team_id, kind=kind, round_number=round_number,
        )
        self._live[(team_id, kind)] = entry.seq
        heapq.heappush(self._heap, entry)
        return entry

    def discard(self, team_id: str) -> None:
        for kind in DeadlineKind:
            self._live.pop((team_id, kind), None)

    def next_due(self) -> datetime | None:
        self._drop_stale()
        return self._heap[0].due_at if self._heap else None

    def pop_due(self, now: datetime) -> list[Deadline]:
        now = as_utc(now)
        due: list[Deadline] = []
        while True:
            self._drop_stale()
            if not self._heap or self._heap[0].due_at > now:
                return due
            entry = heapq.heappop(self._heap)
            self._live.pop((entry.team_id, entry.kind), None)
            due.append(entry)

    def _drop_stale(self) -> None:
        while self._heap:
            top = self._heap[0]
            if self._live.get((top.team_id, top.kind)) == top.seq:
                return
            heapq.heappop(self._heap)
