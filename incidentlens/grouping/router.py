from typing import Any

from fastapi import APIRouter, Body, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from incidentlens.database import get_db
from incidentlens.grouping.engine import group_incidents
from incidentlens.grouping.schemas import FinalReport
from incidentlens.incidents.router import incident_filters
from incidentlens.incidents.service import IncidentFilters, get_incident_snapshot
from incidentlens.schemas import Envelope

router = APIRouter(prefix="/reports", tags=["reports"])


@router.get("", response_model=Envelope[list[FinalReport]])
async def grouped_reports(
    filters: IncidentFilters = Depends(incident_filters),
    db: AsyncSession = Depends(get_db),
):
    incidents = await get_incident_snapshot(db, filters)
    return Envelope(data=group_incidents(incidents))


@router.post("/group", response_model=Envelope[list[FinalReport]])
async def group_payload(
    incidents: list[dict[str, Any]] = Body(...),
):
    return Envelope(data=group_incidents(incidents))
