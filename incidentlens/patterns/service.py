import uuid
from dataclasses import dataclass
from datetime import datetime

import structlog
from sqlalchemy import Select, delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from incidentlens.clustering.schemas import GeneratedPattern
from incidentlens.incidents.models import Incident
from incidentlens.patterns.models import IncidentPattern, Pattern
from incidentlens.patterns.schemas import PatternCreate
from incidentlens.solutions.models import Solution

logger = structlog.get_logger()


@dataclass
class PatternFilters:
    priority_min: int | None = None
    priority_max: int | None = None
    frequency_min: int | None = None
    service: str | None = None
    category: str | None = None
    start: datetime | None = None
    end: datetime | None = None

    @property
    def needs_filter_scan(self) -> bool:
        return bool(self.service or self.category)


def _apply_filters(query: Select, filters: PatternFilters) -> Select:
    if filters.priority_min is not None:
        query = query.where(Pattern.priority >= filters.priority_min)
    if filters.priority_max is not None:
        query = query.where(Pattern.priority <= filters.priority_max)
    if filters.frequency_min is not None:
        query = query.where(Pattern.frequency >= filters.frequency_min)
    if filters.start:
        query = query.where(Pattern.time_range_end >= filters.start)
    if filters.end:
        query = query.where(Pattern.time_range_start <= filters.end)
    return query


def matches_filter_values(pattern: Pattern, filters: PatternFilters) -> bool:
    """Check the ``services``/``categories`` lists stored in the pattern's JSON filters."""
    stored = pattern.filters or {}
    if filters.service and filters.service not in (stored.get("services") or []):
        return False
    if filters.category and filters.category not in (stored.get("categories") or []):
        return False
    return True


async def _link_incidents(
    db: AsyncSession,
    pattern_id: uuid.UUID,
    incident_ids: list[uuid.UUID],
    similarity_score: float = 1.0,
) -> int:
    if not incident_ids:
        return 0
    result = await db.execute(select(Incident.id).where(Incident.id.in_(incident_ids)))
    existing = set(result.scalars().all())
    for incident_id in dict.fromkeys(incident_ids):
        if incident_id in existing:
            db.add(IncidentPattern(
                incident_id=incident_id,
                pattern_id=pattern_id,
                similarity_score=similarity_score,
            ))
    return len(existing)


async def create_pattern(db: AsyncSession, data: PatternCreate) -> Pattern:
    pattern = Pattern(**data.model_dump(exclude={"incident_ids"}))
    db.add(pattern)
    await db.flush()
    linked = await _link_incidents(db, pattern.id, data.incident_ids)
    await db.commit()
    await db.refresh(pattern)
    logger.info("pattern_created", pattern_id=str(pattern.id), linked_incidents=linked)
    return pattern


async def save_generated_patterns(
    db: AsyncSession,
    generated: list[GeneratedPattern],
) -> list[Pattern]:
    """Persist clustering output and its incident links in one transaction."""
    saved: list[Pattern] = []
    for item in generated:
        pattern = Pattern(
            title=item.title,
            description=item.description,
            filters=item.filters,
            priority=item.priority,
            frequency=item.frequency,
            time_range_start=item.time_range_start,
            time_range_end=item.time_range_end,
        )
        db.add(pattern)
        await db.flush()
        await _link_incidents(db, pattern.id, [uuid.UUID(str(i)) for i in item.incident_ids])
        saved.append(pattern)
    await db.commit()
    for pattern in saved:
        await db.refresh(pattern)
    logger.info("patterns_saved", count=len(saved))
    return saved


async def get_patterns(
    db: AsyncSession,
    filters: PatternFilters,
    limit: int = 50,
    offset: int = 0,
) -> tuple[list[Pattern], int]:
    query = _apply_filters(select(Pattern), filters).order_by(
        Pattern.priority.desc(), Pattern.frequency.desc(), Pattern.created_at.desc(),
    )

    # JSON list membership is not portable across backends; scan in Python.
    if filters.needs_filter_scan:
        result = await db.execute(query)
        matching = [p for p in result.scalars().all() if matches_filter_values(p, filters)]
        return matching[offset:offset + limit], len(matching)

    count_query = _apply_filters(select(func.count()).select_from(Pattern), filters)
    result = await db.execute(query.offset(offset).limit(limit))
    count_result = await db.execute(count_query)
    return list(result.scalars().all()), count_result.scalar_one()


async def get_pattern_by_id(db: AsyncSession, pattern_id: uuid.UUID) -> Pattern | None:
    result = await db.execute(select(Pattern).where(Pattern.id == pattern_id))
    return result.scalar_one_or_none()


async def get_pattern_incidents(db: AsyncSession, pattern_id: uuid.UUID) -> list[Incident]:
    result = await db.execute(
        select(Incident)
        .join(IncidentPattern, IncidentPattern.incident_id == Incident.id)
        .where(IncidentPattern.pattern_id == pattern_id)
        .order_by(Incident.time.asc())
    )
    return list(result.scalars().all())


async def delete_pattern(db: AsyncSession, pattern: Pattern) -> None:
    # Saved solutions are kept, detached from the pattern.
    await db.execute(update(Solution).where(Solution.pattern_id == pattern.id).values(pattern_id=None))
    await db.execute(delete(IncidentPattern).where(IncidentPattern.pattern_id == pattern.id))
    await db.delete(pattern)
    await db.commit()
    logger.info("pattern_deleted", pattern_id=str(pattern.id))
