"""Admin Problem Routes - catalog management behind the admin secret."""

import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from codeshuffle.api.dependencies import require_admin
from codeshuffle.infrastructure.database import get_db
from codeshuffle.schemas.admin import ProblemCreate, ProblemUpdate
from codeshuffle.services.handle_catalog import CatalogHandlers

logger = logging.getLogger(__name__)
router = APIRouter(
    prefix="/api/v1/admin/problems", tags=["admin"],
    dependencies=[Depends(require_admin)],
)


@router.post("", status_code=status.HTTP_201_CREATED)
async def add_problem(body: ProblemCreate, db: AsyncSession = Depends(get_db)):
    return await CatalogHandlers(db).add(
        body.title, body.description,
        [case.model_dump() for case in body.test_cases],
        body.difficulty.value,
    )


@router.get("")
async def list_problems(db: AsyncSession = Depends(get_db)):
    return await CatalogHandlers(db).list_problems()


@router.delete("")
async def delete_all_problems(db: AsyncSession = Depends(get_db)):
    return await CatalogHandlers(db).delete_all()


@router.patch("/{problem_id}")
async def edit_problem(
    problem_id: str, body: ProblemUpdate, db: AsyncSession = Depends(get_db),
):
    return await CatalogHandlers(db).edit(
        problem_id,
        title=body.title,
        description=body.description,
        difficulty=body.difficulty.value if body.difficulty else None,
        test_cases=(
            [case.model_dump() for case in body.test_cases]
            if body.test_cases is not None else None
        ),
    )


@router.delete("/{problem_id}")
async def delete_problem(problem_id: str, db: AsyncSession = Depends(get_db)):
    return await CatalogHandlers(db).delete(problem_id)
