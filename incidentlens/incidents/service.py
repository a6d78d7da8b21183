import json
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone

import structlog
from sqlalchemy import Select, delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from incidentlens.incidents.models import Incident
from incidentlens.incidents.schemas import IncidentCreate, IncidentUpdate
from incidentlens.patterns.models import IncidentPattern

logger = structlog.get_logger()

DATE_RANGE_PRESETS: dict[str, timedelta] = {
    "Last 15 minutes": timedelta(minutes=15),
    "Last hour": timedelta(hours=1),
    "Last 4 hours": timedelta(hours=4),
    "Last 24 hours": timedelta(hours=24),
    "Last 7 days": timedelta(days=7),
    "Last 30 days": timedelta(days=30),
    "Last 90 days": timedelta(days=90),
}


@dataclass
class IncidentFilters:
    services: list[str] = field(default_factory=list)
    sources: list[str] = field(default_factory=list)
    categories: list[str] = field(default_factory=list)
    subservices: list[str] = field(default_factory=list)
    priorities: list[int] = field(default_factory=list)
    start: datetime | None = None
    end: datetime | None = None


def split_values(raw: str | None) -> list[str]:
    """Split a comma-separated query value (``"metro, bus"``) into trimmed values."""
    if not raw:
        return []
    return [v.strip() for v in raw.split(",") if v.strip()]


def resolve_date_range(
    date_range: str | None,
    now: datetime | None = None,
) -> tuple[datetime | None, datetime | None]:
    """Turn a ``date_range`` query value into ``(start, end)``.

    Accepts either one of ``DATE_RANGE_PRESETS`` or a JSON object with
    ``start`` and ``end`` ISO timestamps.  Unknown values are ignored.
    """
    if not date_range:
        return None, None

    try:
        custom = json.loads(date_range)
    except json.JSONDecodeError:
        custom = None

    if isinstance(custom, dict):
        if custom.get("start") and custom.get("end"):
            try:
                start = datetime.fromisoformat(str(custom["start"]).replace("Z", "+00:00"))
                end = datetime.fromisoformat(str(custom["end"]).replace("Z", "+00:00"))
            except ValueError:
                logger.warning("incident_date_range_invalid", date_range=date_range)
                return None, None
            return start, end
        return None, None

    delta = DATE_RANGE_PRESETS.get(date_range)
    if delta is None:
        logger.warning("incident_date_range_unknown", date_range=date_range)
        return None, None
    now = now or datetime.now(timezone.utc)
    return now - delta, None


def _apply_filters(query: Select, filters: IncidentFilters) -> Select:
    if filters.start:
        query = query.where(Incident.time >= filters.start)
    if filters.end:
        query = query.where(Incident.time <= filters.end)
    if filters.services:
        query = query.where(Incident.service.in_(filters.services))
    if filters.sources:
        query = query.where(Incident.source.in_(filters.sources))
    if filters.categories:
        query = query.where(Incident.category.in_(filters.categories))
    if filters.subservices:
        query = query.where(Incident.subservice.in_(filters.subservices))
    if filters.priorities:
        query = query.where(Incident.priority.in_(filters.priorities))
    return query


async def create_incident(db: AsyncSession, data: IncidentCreate) -> Incident:
    incident = Incident(**data.model_dump())
    db.add(incident)
    await db.commit()
    await db.refresh(incident)
    logger.info("incident_created", incident_id=str(incident.id), source=incident.source)
    return incident


async def get_incidents(
    db: AsyncSession,
    filters: IncidentFilters,
    page: int = 1,
    page_size: int = 10,
) -> tuple[list[Incident], int]:
    query = _apply_filters(select(Incident), filters)
    count_query = _apply_filters(select(func.count()).select_from(Incident), filters)

    query = query.order_by(Incident.time.desc()).offset((page - 1) * page_size).limit(page_size)

    result = await db.execute(query)
    count_result = await db.execute(count_query)
    return list(result.scalars().all()), count_result.scalar_one()


async def get_incident_snapshot(
    db: AsyncSession,
    filters: IncidentFilters | None = None,
    incident_ids: list[uuid.UUID] | None = None,
) -> list[Incident]:
    """All incidents matching *filters*, oldest first, for batch analysis."""
    query = _apply_filters(select(Incident), filters or IncidentFilters())
    if incident_ids:
        query = query.where(Incident.id.in_(incident_ids))
    query = query.order_by(Incident.time.asc(), Incident.created_at.asc())
    result = await db.execute(query)
    return list(result.scalars().all())


async def get_incident_by_id(db: AsyncSession, incident_id: uuid.UUID) -> Incident | None:
    result = await db.execute(select(Incident).where(Incident.id == incident_id))
    return result.scalar_one_or_none()


async def update_incident(db: AsyncSession, incident: Incident, data: IncidentUpdate) -> Incident:
    update_data = data.model_dump(exclude_unset=True)
    for name, value in update_data.items():
        setattr(incident, name, value)
    await db.commit()
    await db.refresh(incident)
    return incident


async def delete_incident(db: AsyncSession, incident: Incident) -> None:
    await db.execute(delete(IncidentPattern).where(IncidentPattern.incident_id == incident.id))
    await db.delete(incident)
    await db.commit()
    logger.info("incident_deleted", incident_id=str(incident.id))
