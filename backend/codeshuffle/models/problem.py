"""Problem ORM - one catalog entry with its ordered test cases.

Invariants:
    - difficulty is one of easy | medium | hard
    - test_cases is an ordered list of {"input", "expected_output"} dicts
    - Referenced by id from teams and submissions, never copied

Design Decisions:
    - JSON column for test cases: always read and written as a whole with the problem
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import JSON, DateTime, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from codeshuffle.db.base import Base


class Problem(Base):
    """Catalog problem."""
    __tablename__ = "problems"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid, primary_key=True, default=uuid.uuid4,
    )
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    difficulty: Mapped[str] = mapped_column(
        String(10), nullable=False, default="medium", index=True,
    )
    test_cases: Mapped[list] = mapped_column(
        JSON, nullable=False, default=list,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    def to_dict(self) -> dict:
        return {
            "id": str(self.id),
            "title": self.title,
            "description": self.description,
            "difficulty": self.difficulty,
            "test_cases": list(self.test_cases or []),
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
