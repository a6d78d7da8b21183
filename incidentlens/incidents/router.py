import math
import uuid

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from incidentlens.database import get_db
from incidentlens.incidents.schemas import (
    IncidentCreate,
    IncidentListResponse,
    IncidentResponse,
    IncidentUpdate,
    Pagination,
)
from incidentlens.incidents.service import (
    IncidentFilters,
    create_incident,
    delete_incident,
    get_incident_by_id,
    get_incidents,
    resolve_date_range,
    split_values,
    update_incident,
)
from incidentlens.schemas import DeletedResponse, Envelope

router = APIRouter(prefix="/incidents", tags=["incidents"])


def incident_filters(
    service: str | None = Query(None, description="Comma-separated services"),
    source: str | None = Query(None, description="Comma-separated sources"),
    category: str | None = Query(None, description="Comma-separated categories"),
    subservice: str | None = Query(None, description="Comma-separated subservices"),
    priority: str | None = Query(None, description="Comma-separated priorities"),
    date_range: str | None = Query(None, description='Preset ("Last 7 days") or {"start","end"} JSON'),
) -> IncidentFilters:
    try:
        priorities = [int(p) for p in split_values(priority)]
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="priority must be a comma-separated list of integers",
        )
    start, end = resolve_date_range(date_range)
    return IncidentFilters(
        services=split_values(service),
        sources=split_values(source),
        categories=split_values(category),
        subservices=split_values(subservice),
        priorities=priorities,
        start=start,
        end=end,
    )


async def _get_or_404(db: AsyncSession, incident_id: uuid.UUID):
    incident = await get_incident_by_id(db, incident_id)
    if not incident:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Incident not found")
    return incident


@router.post("", response_model=Envelope[IncidentResponse], status_code=status.HTTP_201_CREATED)
async def create(
    data: IncidentCreate,
    db: AsyncSession = Depends(get_db),
):
    incident = await create_incident(db, data)
    return Envelope(data=IncidentResponse.model_validate(incident))


@router.get("", response_model=IncidentListResponse)
async def list_incidents(
    filters: IncidentFilters = Depends(incident_filters),
    page: int = Query(1, ge=1),
    page_size: int = Query(10, ge=1, le=500),
    db: AsyncSession = Depends(get_db),
):
    items, total = await get_incidents(db, filters, page=page, page_size=page_size)
    return IncidentListResponse(
        data=[IncidentResponse.model_validate(i) for i in items],
        pagination=Pagination(
            total=total,
            page=page,
            page_size=page_size,
            total_pages=math.ceil(total / page_size),
        ),
    )


@router.get("/{incident_id}", response_model=Envelope[IncidentResponse])
async def get_incident(
    incident_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
):
    incident = await _get_or_404(db, incident_id)
    return Envelope(data=IncidentResponse.model_validate(incident))


@router.put("/{incident_id}", response_model=Envelope[IncidentResponse])
async def update(
    incident_id: uuid.UUID,
    data: IncidentUpdate,
    db: AsyncSession = Depends(get_db),
):
    incident = await _get_or_404(db, incident_id)
    updated = await update_incident(db, incident, data)
    return Envelope(data=IncidentResponse.model_validate(updated))


@router.delete("/{incident_id}", response_model=Envelope[DeletedResponse])
async def delete(
    incident_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
):
    incident = await _get_or_404(db, incident_id)
    await delete_incident(db, incident)
    return Envelope(data=DeletedResponse(id=incident_id))
