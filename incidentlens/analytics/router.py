from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from incidentlens.analytics.service import get_breakdown, get_overview, get_timeseries, parse_group_by
from incidentlens.database import get_db
from incidentlens.incidents.service import resolve_date_range
from incidentlens.schemas import Envelope

router = APIRouter(prefix="/analytics", tags=["analytics"])


def group_by_fields(group_by: str = Query("service", description="Comma-separated incident fields")) -> list[str]:
    try:
        return parse_group_by(group_by)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))


@router.get("/overview", response_model=Envelope[dict])
async def overview(db: AsyncSession = Depends(get_db)):
    return Envelope(data=await get_overview(db))


@router.get("/breakdown", response_model=Envelope[list[dict]])
async def breakdown(
    fields: list[str] = Depends(group_by_fields),
    limit: int = Query(10, ge=1, le=100),
    date_range: str | None = Query(None, description='Preset ("Last 7 days") or {"start","end"} JSON'),
    db: AsyncSession = Depends(get_db),
):
    since, _ = resolve_date_range(date_range)
    return Envelope(data=await get_breakdown(db, fields, limit=limit, since=since))


@router.get("/timeseries", response_model=Envelope[list[dict]])
async def timeseries(
    fields: list[str] = Depends(group_by_fields),
    days: int = Query(7, ge=1, le=365),
    db: AsyncSession = Depends(get_db),
):
    return Envelope(data=await get_timeseries(db, fields, days=days))
