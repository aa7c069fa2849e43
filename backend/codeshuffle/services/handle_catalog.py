"""Catalog Handlers - admin problem operations: add, list, edit, delete.

Invariants:
    - Every problem has a known difficulty tier and at least one test case
    - Edits are partial: omitted fields keep their stored value
    - Listing is newest first
"""

import logging
import uuid

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from codeshuffle.core.domain_types import Difficulty
from codeshuffle.core.errors import ProblemNotFoundError, ValidationFailureError
from codeshuffle.models.problem import Problem

logger = logging.getLogger(__name__)


def _normalize_cases(test_cases: list[dict]) -> list[dict]:
    if not test_cases:
        raise ValidationFailureError(
            "At least one test case is required", "test_cases",
        )
    return [
        {
            "input": case.get("input", ""),
            "expected_output": case.get("expected_output", ""),
        }
        for case in test_cases
    ]


class CatalogHandlers:
    """Problem catalog administration."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def add(
        self,
        title: str,
        description: str,
        test_cases: list[dict],
        difficulty: str = Difficulty.MEDIUM.value,
    ) -> dict:
        problem = Problem(
            title=title,
            description=description,
            difficulty=Difficulty(difficulty).value,
            test_cases=_normalize_cases(test_cases),
        )
        self.db.add(problem)
        await self.db.commit()
        logger.info(
            f"Problem added: {title}", extra={"problem_id": str(problem.id)},
        )
        return problem.to_dict()

    async def list_problems(self) -> list[dict]:
        result = await self.db.execute(
            select(Problem).order_by(Problem.created_at.desc()),
        )
        return [p.to_dict() for p in result.scalars().all()]

    async def edit(
        self,
        problem_id: str,
        title: str | None = None,
        description: str | None = None,
        difficulty: str | None = None,
        test_cases: list[dict] | None = None,
    ) -> dict:
        problem = await self._get_or_404(problem_id)
        if title is not None:
            problem.title = title
        if description is not None:
            problem.description = description
        if difficulty is not None:
            problem.difficulty = Difficulty(difficulty).value
        if test_cases is not None:
            problem.test_cases = _normalize_cases(test_cases)
        await self.db.commit()
        logger.info("Problem edited", extra={"problem_id": problem_id})
        return problem.to_dict()

    async def delete(self, problem_id: str) -> dict:
        problem = await self._get_or_404(problem_id)
        await self.db.delete(problem)
        await self.db.commit()
        logger.info("Problem deleted", extra={"problem_id": problem_id})
        return {"deleted": True, "problem_id": problem_id}

    async def delete_all(self) -> dict:
        result = await self.db.execute(delete(Problem))
        await self.db.commit()
        logger.warning(f"Catalog cleared ({result.rowcount} problems)")
        return {"deleted_problems": result.rowcount}

    async def _get_or_404(self, problem_id: str) -> Problem:
        try:
            key = uuid.UUID(problem_id)
        except ValueError:
            raise ProblemNotFoundError(problem_id)
        problem = await self.db.get(Problem, key)
        if problem is None:
            raise ProblemNotFoundError(problem_id)
        return problem
