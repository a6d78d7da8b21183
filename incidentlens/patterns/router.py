import uuid
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from incidentlens.clustering.engine import cluster_incidents
from incidentlens.database import get_db
from incidentlens.incidents.schemas import IncidentResponse
from incidentlens.incidents.service import get_incident_snapshot
from incidentlens.patterns.schemas import (
    ClusterRequest,
    ClusterResponse,
    PatternCreate,
    PatternDetailResponse,
    PatternListResponse,
    PatternResponse,
)
from incidentlens.patterns.service import (
    PatternFilters,
    create_pattern,
    delete_pattern,
    get_pattern_by_id,
    get_pattern_incidents,
    get_patterns,
    save_generated_patterns,
)
from incidentlens.schemas import DeletedResponse, Envelope
from incidentlens.solutions import generator
from incidentlens.solutions.schemas import SolutionProposal

router = APIRouter(prefix="/patterns", tags=["patterns"])


async def _get_or_404(db: AsyncSession, pattern_id: uuid.UUID):
    pattern = await get_pattern_by_id(db, pattern_id)
    if not pattern:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Pattern not found")
    return pattern


@router.post("", response_model=Envelope[PatternResponse], status_code=status.HTTP_201_CREATED)
async def create(
    data: PatternCreate,
    db: AsyncSession = Depends(get_db),
):
    pattern = await create_pattern(db, data)
    return Envelope(data=PatternResponse.model_validate(pattern))


@router.get("", response_model=PatternListResponse)
async def list_patterns(
    priority_min: int | None = Query(None, ge=0, le=5),
    priority_max: int | None = Query(None, ge=0, le=5),
    frequency_min: int | None = Query(None, ge=0),
    service: str | None = None,
    category: str | None = None,
    start_date: datetime | None = None,
    end_date: datetime | None = None,
    limit: int = Query(50, ge=1, le=500),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
):
    filters = PatternFilters(
        priority_min=priority_min,
        priority_max=priority_max,
        frequency_min=frequency_min,
        service=service,
        category=category,
        start=start_date,
        end=end_date,
    )
    items, total = await get_patterns(db, filters, limit=limit, offset=offset)
    return PatternListResponse(
        total=total,
        limit=limit,
        offset=offset,
        data=[PatternResponse.model_validate(p) for p in items],
    )


@router.post("/cluster", response_model=ClusterResponse, status_code=status.HTTP_201_CREATED)
async def cluster(
    data: ClusterRequest,
    db: AsyncSession = Depends(get_db),
):
    incidents = await get_incident_snapshot(db, incident_ids=data.incident_ids)
    if not incidents:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No incidents found to cluster")

    generated = cluster_incidents(incidents, data.options)
    saved = await save_generated_patterns(db, generated)
    return ClusterResponse(
        patterns_created=len(saved),
        data=[PatternResponse.model_validate(p) for p in saved],
    )


@router.get("/{pattern_id}", response_model=Envelope[PatternDetailResponse])
async def get_pattern(
    pattern_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
):
    pattern = await _get_or_404(db, pattern_id)
    incidents = await get_pattern_incidents(db, pattern_id)
    detail = PatternDetailResponse.model_validate(pattern).model_copy(update={
        "incident_ids": [i.id for i in incidents],
        "incidents": [IncidentResponse.model_validate(i) for i in incidents],
    })
    return Envelope(data=detail)


@router.delete("/{pattern_id}", response_model=Envelope[DeletedResponse])
async def delete(
    pattern_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
):
    pattern = await _get_or_404(db, pattern_id)
    await delete_pattern(db, pattern)
    return Envelope(data=DeletedResponse(id=pattern_id))


@router.post("/{pattern_id}/solutions", response_model=Envelope[list[SolutionProposal]])
async def propose_solutions(
    pattern_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
):
    """Ask the LLM for remediation proposals; nothing is saved."""
    pattern = await _get_or_404(db, pattern_id)
    incidents = await get_pattern_incidents(db, pattern_id)
    proposals = await generator.propose_solutions(pattern, incidents)
    return Envelope(data=proposals)
