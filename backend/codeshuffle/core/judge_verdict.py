"""Judge Verdict - grading of one gateway outcome against an expected output.

Invariants:
    - A case passes only if the gateway reports Accepted AND stripped stdout
      equals stripped expected output, byte for byte
    - No whitespace-internal, line-ending or numeric normalization
    - A gateway failure yields a failed case, never an exception
    - Displayed output falls back stdout -> stderr -> compile output -> "No output"
"""

from dataclasses import dataclass, field

# Judge0 status id for "Accepted"
ACCEPTED_STATUS_ID: int = 3


@dataclass(frozen=True)
class JudgeOutcome:
    """What the gateway reports for one execution."""
    status_id: int | None
    status: str
    stdout: str | None = None
    stderr: str | None = None
    compile_output: str | None = None
    time: str | None = None
    memory: int | None = None

    @property
    def accepted(self) -> bool:
        return self.status_id == ACCEPTED_STATUS_ID


@dataclass(frozen=True)
class CaseResult:
    input: str
    expected_output: str
    actual_output: str
    passed: bool
    status: str
    time: str | None = None
    memory: int | None = None

    def to_dict(self) -> dict:
        return {
            "input": self.input,
            "expected_output": self.expected_output,
            "actual_output": self.actual_output,
            "passed": self.passed,
            "status": self.status,
            "time": self.time,
            "memory": self.memory,
        }


@dataclass
class RunSummary:
    results: list[CaseResult] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.results)

    @property
    def passed_count(self) -> int:
        return sum(1 for r in self.results if r.passed)

    @property
    def all_passed(self) -> bool:
        return self.total > 0 and self.passed_count == self.total

    @property
    def any_passed(self) -> bool:
        return self.passed_count >= 1


def outputs_match(actual: str | None, expected: str) -> bool:
    if actual is None:
        return False
    return actual.strip() == expected.strip()


def grade_case(
    case_input: str, expected_output: str, outcome: JudgeOutcome,
) -> CaseResult:
    passed = outcome.accepted and outputs_match(outcome.stdout, expected_output)
    actual = (
        outcome.stdout or outcome.stderr or outcome.compile_output or "No output"
    )
    return CaseResult(
        input=case_input,
        expected_output=expected_output,
        actual_output=actual,
        passed=passed,
        status=outcome.status or "Unknown",
        time=outcome.time,
        memory=outcome.memory,
    )


def judge_error_case(
    case_input: str, expected_output: str, message: str,
) -> CaseResult:
    return CaseResult(
        input=case_input,
        expected_output=expected_output,
        actual_output=f"Judge error: {message}",
        passed=False,
        status="Error",
    )
