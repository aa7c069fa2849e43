"""Submission Ledger - append-only record of runs that passed at least one case.

Invariants:
    - record() is only called with a summary that has any_passed
    - Entries are never updated; purge() is the only removal path besides
      bulk team deletion
"""

import logging
import uuid
from datetime import datetime

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from codeshuffle.core.judge_verdict import RunSummary
from codeshuffle.models.submission import Submission

logger = logging.getLogger(__name__)


class SubmissionLedger:
    """Ledger reads and writes for one DB session."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def record(
        self,
        team_id: uuid.UUID,
        team_name: str,
        handle: str,
        problem_id: str,
        code: str,
        language: str,
        summary: RunSummary,
        now: datetime,
    ) -> Submission:
        """Append one entry and commit."""
        submission = Submission(
            team_id=team_id,
            team_name=team_name,
            handle=handle,
            problem_id=uuid.UUID(problem_id),
            code=code,
            language=language,
            passed=summary.all_passed,
            passed_test_cases=summary.passed_count,
            total_test_cases=summary.total,
            submitted_at=now,
        )
        self.db.add(submission)
        await self.db.commit()
        logger.info(
            "Submission recorded",
            extra={
                "team_name": team_name, "handle": handle,
                "problem_id": problem_id,
                "passed": summary.passed_count, "total": summary.total,
            },
        )
        return submission

    async def list_recent(self, limit: int = 100, offset: int = 0) -> list[dict]:
        result = await self.db.execute(
            select(Submission)
            .order_by(Submission.submitted_at.desc())
            .limit(limit)
            .offset(offset)
        )
        return [s.to_dict() for s in result.scalars().all()]

    async def count(self) -> int:
        result = await self.db.execute(select(func.count(Submission.id)))
        return result.scalar_one()

    async def purge(self) -> int:
        result = await self.db.execute(delete(Submission))
        await self.db.commit()
        logger.warning(f"Submission ledger purged ({result.rowcount} rows)")
        return result.rowcount
