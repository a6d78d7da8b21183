import uuid

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from incidentlens.database import get_db
from incidentlens.schemas import DeletedResponse, Envelope
from incidentlens.solutions.schemas import SolutionCreate, SolutionResponse
from incidentlens.solutions.service import (
    create_solution,
    delete_solution,
    get_solution_by_id,
    get_solutions,
)

router = APIRouter(prefix="/solutions", tags=["solutions"])


async def _get_or_404(db: AsyncSession, solution_id: uuid.UUID):
    solution = await get_solution_by_id(db, solution_id)
    if not solution:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Solution not found")
    return solution


@router.post("", response_model=Envelope[SolutionResponse], status_code=status.HTTP_201_CREATED)
async def create(
    data: SolutionCreate,
    db: AsyncSession = Depends(get_db),
):
    solution = await create_solution(db, data)
    return Envelope(data=SolutionResponse.model_validate(solution))


@router.get("", response_model=Envelope[list[SolutionResponse]])
async def list_solutions(
    pattern_id: uuid.UUID | None = None,
    db: AsyncSession = Depends(get_db),
):
    solutions = await get_solutions(db, pattern_id=pattern_id)
    return Envelope(data=[SolutionResponse.model_validate(s) for s in solutions])


@router.get("/{solution_id}", response_model=Envelope[SolutionResponse])
async def get_solution(
    solution_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
):
    solution = await _get_or_404(db, solution_id)
    return Envelope(data=SolutionResponse.model_validate(solution))


@router.delete("/{solution_id}", response_model=Envelope[DeletedResponse])
async def delete(
    solution_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
):
    solution = await _get_or_404(db, solution_id)
    await delete_solution(db, solution)
    return Envelope(data=DeletedResponse(id=solution_id))
