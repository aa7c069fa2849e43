"""Team ORM - a registered team and its whole round state as one document.

Invariants:
    - name is unique
    - members is a list of exactly 3 member dicts in roster order
      ({"handle", "slot", "completed", "last_updated"})
    - problem_ids is empty while inactive, 3 ids (slot order) once active
    - code_store maps problem id -> language -> source
    - current_round starts at 1 and only increases

Design Decisions:
    - JSON columns over child tables: every engine operation is one
      read-modify-write of one row
    - Columns are always reassigned (never mutated in place) so SQLAlchemy
      detects the change without MutableDict
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import JSON, Boolean, DateTime, Integer, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from codeshuffle.db.base import Base


class Team(Base):
    """Team aggregate: roster, assignments, code and clocks."""
    __tablename__ = "teams"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid, primary_key=True, default=uuid.uuid4,
    )
    name: Mapped[str] = mapped_column(
        String(100), nullable=False, unique=True, index=True,
    )
    members: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    problem_ids: Mapped[list] = mapped_column(
        JSON, nullable=False, default=list,
    )
    code_store: Mapped[dict] = mapped_column(
        JSON, nullable=False, default=dict,
    )
    last_languages: Mapped[dict] = mapped_column(
        JSON, nullable=False, default=dict,
    )
    current_round: Mapped[int] = mapped_column(
        Integer, nullable=False, default=1,
    )
    round_started_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )
    event_started_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )
    is_active: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False,
    )
    event_expired: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False,
    )
    completed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
