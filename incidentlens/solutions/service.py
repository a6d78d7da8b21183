import uuid
from datetime import timedelta

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from incidentlens.models.base import utcnow
from incidentlens.solutions.models import Solution
from incidentlens.solutions.schemas import SolutionCreate

logger = structlog.get_logger()

DEFAULT_IMPLEMENTATION_WINDOW = timedelta(days=90)


async def create_solution(db: AsyncSession, data: SolutionCreate) -> Solution:
    values = data.model_dump()
    now = utcnow()
    if values["implementation_start_date"] is None:
        values["implementation_start_date"] = now
    if values["implementation_end_date"] is None:
        values["implementation_end_date"] = now + DEFAULT_IMPLEMENTATION_WINDOW

    solution = Solution(**values)
    db.add(solution)
    await db.commit()
    await db.refresh(solution)
    logger.info(
        "solution_created",
        solution_id=str(solution.id),
        pattern_id=str(solution.pattern_id) if solution.pattern_id else None,
    )
    return solution


async def get_solutions(
    db: AsyncSession,
    pattern_id: uuid.UUID | None = None,
) -> list[Solution]:
    query = select(Solution)
    if pattern_id:
        query = query.where(Solution.pattern_id == pattern_id)
    result = await db.execute(query.order_by(Solution.created_at.desc()))
    return list(result.scalars().all())


async def get_solution_by_id(db: AsyncSession, solution_id: uuid.UUID) -> Solution | None:
    result = await db.execute(select(Solution).where(Solution.id == solution_id))
    return result.scalar_one_or_none()


async def delete_solution(db: AsyncSession, solution: Solution) -> None:
    await db.delete(solution)
    await db.commit()
    logger.info("solution_deleted", solution_id=str(solution.id))
