"""Admin Schemas - Pydantic bodies for roster, catalog and settings administration.

Invariants:
    - TeamCreate.members: exactly 3 handles
    - ProblemCreate.test_cases: at least one case
    - SettingsUpdate values are positive when present
"""

from pydantic import BaseModel, Field, field_validator

from codeshuffle.core.domain_types import TEAM_SIZE, Difficulty


class CaseIn(BaseModel):
    input: str = ""
    expected_output: str


class TeamCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    members: list[str] = Field(min_length=TEAM_SIZE, max_length=TEAM_SIZE)

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("name cannot be empty or whitespace")
        return v


class TeamUpdate(BaseModel):
    """Partial update. members entries are positional; null keeps the handle."""
    name: str | None = Field(None, min_length=1, max_length=100)
    members: list[str | None] | None = Field(
        None, min_length=TEAM_SIZE, max_length=TEAM_SIZE,
    )


class ProblemCreate(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    description: str = Field(min_length=1)
    difficulty: Difficulty = Difficulty.MEDIUM
    test_cases: list[CaseIn] = Field(min_length=1)


class ProblemUpdate(BaseModel):
    title: str | None = Field(None, min_length=1, max_length=200)
    description: str | None = Field(None, min_length=1)
    difficulty: Difficulty | None = None
    test_cases: list[CaseIn] | None = Field(None, min_length=1)


class SettingsUpdate(BaseModel):
    rotation_interval_seconds: int | None = Field(None, gt=0)
    event_duration_seconds: int | None = Field(None, gt=0)
