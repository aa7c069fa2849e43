"""Test doubles - scripted judge, controllable clock, recording round listener."""

import asyncio
from datetime import datetime, timedelta, timezone

from codeshuffle.core.errors import JudgeGatewayError
from codeshuffle.core.judge_verdict import JudgeOutcome

T0 = datetime(2026, 3, 1, 9, 0, tzinfo=timezone.utc)


class FakeClock:
    def __init__(self, start: datetime = T0):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


class FakeJudge:
    """Scripted judge. outcomes: stdin -> JudgeOutcome | Exception."""

    def __init__(self):
        self.outcomes: dict[str, object] = {}
        self.default = JudgeOutcome(status_id=3, status="Accepted", stdout="")
        self.calls: list[dict] = []

    def accept(self, stdin: str, stdout: str) -> None:
        self.outcomes[stdin] = JudgeOutcome(
            status_id=3, status="Accepted", stdout=stdout, time="0.01", memory=1024,
        )

    def fail(self, stdin: str, error: Exception) -> None:
        self.outcomes[stdin] = error

    async def execute(self, source_code, language, stdin, cpu_time_limit=None):
        self.calls.append({
            "source_code": source_code, "language": language,
            "stdin": stdin, "cpu_time_limit": cpu_time_limit,
        })
        await asyncio.sleep(0)
        outcome = self.outcomes.get(stdin, self.default)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


class RecordingListener:
    def __init__(self):
        self.events: list[tuple] = []
        self.cleared: list[str] = []

    def round_started(self, team_id, round_number, round_started_at, event_started_at):
        self.events.append((team_id, round_number, round_started_at, event_started_at))

    def team_cleared(self, team_id):
        self.cleared.append(team_id)


def gateway_error(message: str = "timed out") -> JudgeGatewayError:
    return JudgeGatewayError(message, "timeout")
