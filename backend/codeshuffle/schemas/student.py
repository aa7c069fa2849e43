"""Student Schemas - Pydantic request bodies for the contest endpoints.

Invariants:
    - team_name and handle are stripped and non-empty on every request
    - language is one of the Language enum values
    - SaveCodeRequest.problem_id is optional at the boundary so the engine can
      report a missing reference as its own validation error

Design Decisions:
    - One MemberRequest base: every student call identifies (team, member)
"""

from pydantic import BaseModel, Field, field_validator

from codeshuffle.core.domain_types import DEFAULT_LANGUAGE, Language


class MemberRequest(BaseModel):
    """Identifies one member of one team."""
    team_name: str = Field(min_length=1, max_length=100)
    handle: str = Field(min_length=1, max_length=100)

    @field_validator("team_name", "handle")
    @classmethod
    def strip_identity(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("cannot be empty or whitespace")
        return v


class TeamRequest(BaseModel):
    """Team-level call (rotation)."""
    team_name: str = Field(min_length=1, max_length=100)

    @field_validator("team_name")
    @classmethod
    def strip_team_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("cannot be empty or whitespace")
        return v


class SaveCodeRequest(MemberRequest):
    problem_id: str | None = None
    language: Language = DEFAULT_LANGUAGE
    code: str = Field(default="", max_length=100_000)


class RunRequest(MemberRequest):
    code: str = Field(max_length=100_000)
    language: Language = DEFAULT_LANGUAGE


class CheckShuffleRequest(MemberRequest):
    current_round: int = Field(ge=0)


class EventExpiredRequest(MemberRequest):
    """Final code is optional: clients may only flag the expiry."""
    code: str | None = Field(None, max_length=100_000)
    language: Language | None = None
