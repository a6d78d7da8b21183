from collections import Counter, defaultdict
from datetime import datetime, timedelta, timezone

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from incidentlens.incidents.models import Incident
from incidentlens.models.base import ensure_utc
from incidentlens.patterns.models import Pattern
from incidentlens.solutions.models import Solution

GROUP_BY_FIELDS = ("service", "source", "category", "subservice", "priority", "sentiment_analysis")
UNKNOWN_LABEL = "Unknown"


def parse_group_by(raw: str) -> list[str]:
    """Split ``"service,category"`` into fields, rejecting anything not groupable."""
    fields = [f.strip() for f in (raw or "").split(",") if f.strip()]
    if not fields:
        raise ValueError("group_by must name at least one field")
    invalid = [f for f in fields if f not in GROUP_BY_FIELDS]
    if invalid:
        raise ValueError(
            f"Unsupported group_by field(s): {', '.join(invalid)}; "
            f"expected one of {', '.join(GROUP_BY_FIELDS)}"
        )
    return fields


def _label(value) -> str:
    if value is None or (isinstance(value, str) and not value.strip()):
        return UNKNOWN_LABEL
    return str(value)


def _group_key(incident: Incident, fields: list[str]) -> str:
    return " / ".join(_label(getattr(incident, f)) for f in fields)


async def get_overview(db: AsyncSession) -> dict:
    """Get high-level dashboard statistics."""
    total = await db.execute(select(func.count()).select_from(Incident))
    avg_priority = await db.execute(select(func.avg(Incident.priority)))
    negative = await db.execute(
        select(func.count()).select_from(Incident)
        .where(Incident.sentiment_analysis == "negative")
    )
    by_source = await db.execute(
        select(Incident.source, func.count())
        .group_by(Incident.source)
        .order_by(func.count().desc())
    )
    patterns = await db.execute(select(func.count()).select_from(Pattern))
    solutions = await db.execute(select(func.count()).select_from(Solution))

    avg = avg_priority.scalar_one_or_none()
    return {
        "total_incidents": total.scalar_one(),
        "incidents_by_source": {_label(source): count for source, count in by_source.all()},
        "avg_priority": round(avg, 2) if avg is not None else None,
        "negative_incidents": negative.scalar_one(),
        "total_patterns": patterns.scalar_one(),
        "total_solutions": solutions.scalar_one(),
    }


async def _incidents_since(db: AsyncSession, since: datetime | None = None) -> list[Incident]:
    query = select(Incident)
    if since:
        query = query.where(Incident.time >= since)
    result = await db.execute(query)
    return list(result.scalars().all())


async def get_breakdown(
    db: AsyncSession,
    group_by: list[str],
    limit: int = 10,
    since: datetime | None = None,
) -> list[dict]:
    """Top-N incident counts by one or more fields, largest first."""
    incidents = await _incidents_since(db, since)
    counts = Counter(_group_key(i, group_by) for i in incidents)
    total = sum(counts.values()) or 1
    return [
        {
            "key": key,
            "count": count,
            "percentage": round((count / total) * 100, 1),
        }
        for key, count in counts.most_common(limit)
    ]


async def get_timeseries(
    db: AsyncSession,
    group_by: list[str],
    days: int = 7,
    now: datetime | None = None,
) -> list[dict]:
    """Per-day incident counts split by the group key, one row per day (oldest first)."""
    now = now or datetime.now(timezone.utc)
    first_day = (now - timedelta(days=days - 1)).date()
    since = datetime.combine(first_day, datetime.min.time(), tzinfo=timezone.utc)

    per_day: dict[str, Counter] = defaultdict(Counter)
    for incident in await _incidents_since(db, since):
        when = ensure_utc(incident.time)
        per_day[when.date().isoformat()][_group_key(incident, group_by)] += 1

    rows = []
    for offset in range(days):
        day = (first_day + timedelta(days=offset)).isoformat()
        counts = per_day.get(day, Counter())
        rows.append({"date": day, "total": sum(counts.values()), "counts": dict(counts)})
    return rows
