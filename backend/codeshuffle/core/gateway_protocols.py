"""Boundary Protocols - contracts between the round engine and its collaborators.

Invariants:
    - Core NEVER imports from the shell; implementations are injected
    - JudgeGateway.execute raises JudgeGatewayError on any failure, bounded in time

Design Decisions:
    - Protocol over ABC: structural subtyping, test fakes need no inheritance
"""

from collections.abc import Callable
from datetime import datetime
from typing import Protocol

from codeshuffle.core.judge_verdict import JudgeOutcome


Clock = Callable[[], datetime]


class JudgeGateway(Protocol):
    """Executes source code against one stdin and reports the outcome."""
    async def execute(
        self,
        source_code: str,
        language: str,
        stdin: str,
        cpu_time_limit: float | None = None,
    ) -> JudgeOutcome: ...


class RoundListener(Protocol):
    """Notified when a team's round clock (re)starts or the team is reset or
    deleted. Used by the scheduler."""
    def round_started(
        self, team_id: str, round_number: int,
        round_started_at: datetime, event_started_at: datetime | None,
    ) -> None: ...

    def team_cleared(self, team_id: str) -> None: ...
