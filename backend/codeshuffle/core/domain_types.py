"""Domain Types - identity wrappers and enums shared by the round engine.

Invariants:
    - Exactly three difficulty tiers; TIER_ORDER maps slot index -> tier
    - A team always has TEAM_SIZE members and TEAM_SIZE slots
    - Language values are the keys used in the per-problem code store

Design Decisions:
    - NewType over dataclass wrappers: zero runtime cost, full type-checker support
    - str Enums: serialize to JSON columns and responses without custom encoders
"""

from enum import Enum
from typing import NewType
from uuid import UUID


# ─── Identity Types ──────────────────────────────────────────────

TeamId = NewType("TeamId", UUID)
ProblemId = NewType("ProblemId", UUID)
SubmissionId = NewType("SubmissionId", UUID)


# ─── Enums ───────────────────────────────────────────────────────

class Difficulty(str, Enum):
    """Problem difficulty tier. One problem per tier is assigned per session."""
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


class Language(str, Enum):
    """Languages accepted by the editor and the judge."""
    PYTHON3 = "python3"
    JAVA = "java"
    CPP = "cpp"
    C = "c"


class DeadlineKind(str, Enum):
    """Timer kinds tracked by the server-side scheduler."""
    ROTATION = "rotation"
    EVENT_END = "event_end"


# ─── Constants ───────────────────────────────────────────────────

TEAM_SIZE: int = 3

# slot 0 -> easy, 1 -> medium, 2 -> hard
TIER_ORDER: tuple[Difficulty, ...] = (
    Difficulty.EASY, Difficulty.MEDIUM, Difficulty.HARD,
)

DEFAULT_LANGUAGE: Language = Language.PYTHON3

# Judge0 language ids
JUDGE0_LANGUAGE_IDS: dict[Language, int] = {
    Language.PYTHON3: 71,
    Language.JAVA: 62,
    Language.CPP: 54,
    Language.C: 50,
}
