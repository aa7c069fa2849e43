"""Submission ORM - append-only ledger of judged runs.

Invariants:
    - Written only when at least one test case passed
    - Never updated; removed only by bulk purge or team bulk delete
    - Deleting a single team keeps its entries (team_id set to NULL)
    - team_name and handle denormalized so the ledger reads without joins
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from codeshuffle.db.base import Base


class Submission(Base):
    """One judged attempt."""
    __tablename__ = "submissions"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid, primary_key=True, default=uuid.uuid4,
    )
    team_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("teams.id", ondelete="SET NULL"),
        nullable=True, index=True,
    )
    team_name: Mapped[str] = mapped_column(String(100), nullable=False)
    handle: Mapped[str] = mapped_column(String(100), nullable=False)
    problem_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    code: Mapped[str] = mapped_column(Text, nullable=False)
    language: Mapped[str] = mapped_column(String(20), nullable=False)
    passed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    passed_test_cases: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0,
    )
    total_test_cases: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0,
    )
    submitted_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    def to_dict(self, include_code: bool = True) -> dict:
        result = {
            "id": str(self.id),
            "team_name": self.team_name,
            "handle": self.handle,
            "problem_id": str(self.problem_id),
            "language": self.language,
            "passed": self.passed,
            "passed_test_cases": self.passed_test_cases,
            "total_test_cases": self.total_test_cases,
            "submitted_at": (
                self.submitted_at.isoformat() if self.submitted_at else None
            ),
        }
        if include_code:
            result["code"] = self.code
        return result
