"""Incident grouping engine.

Buckets incidents into ``FinalReport`` records keyed by
``(category, transportation mean, subdivision)``.  Every incoming record is
first normalized into a ``GroupableIncident`` so the grouping pass itself
never has to check whether a field is present:

- missing, empty or whitespace-only key values collapse to ``UNKNOWN``;
- timestamps are parsed once; unparseable ones become ``None`` and are left
  out of the time range but still counted;
- a bucket without a single parseable timestamp reports ``None`` for both
  ends of its time range (``NO_TIMESTAMP``).

Output order is frequency descending, first-seen order ascending on ties,
so the same input always yields the same reports.
"""

import uuid
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

import structlog

from incidentlens.grouping.schemas import FinalReport, TimeRange

logger = structlog.get_logger()

UNKNOWN = "unknown"
NO_TIMESTAMP = None

# Alternative spellings seen in source data, checked in order.
_TRANSPORT_KEYS = ("transportationMean", "transportation_mean", "transportMean", "service")
_SUBDIVISION_KEYS = ("subdivision", "subservice")
_TIME_KEYS = ("time", "time_start", "timeStart")


@dataclass(frozen=True)
class GroupableIncident:
    id: str | int | None
    time: datetime | None
    category: str
    transportation_mean: str
    subdivision: str
    raw_category: str | None = None
    source: str | None = None
    summary: str | None = None
    keywords: tuple[str, ...] = ()

    @property
    def key(self) -> tuple[str, str, str]:
        return (self.category, self.transportation_mean, self.subdivision)


def normalize_key_value(value: Any) -> str:
    """Collapse ``None``/empty/blank to ``UNKNOWN``; otherwise the stripped text."""
    if value is None:
        return UNKNOWN
    text = str(value).strip()
    return text or UNKNOWN


def _epoch_to_datetime(digits: str) -> datetime | None:
    if len(digits) == 10:
        seconds = int(digits)
    elif len(digits) == 13:
        seconds = int(digits) / 1000
    else:
        return None
    try:
        return datetime.fromtimestamp(seconds, tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        return None


def parse_timestamp(value: Any) -> datetime | None:
    """Parse an incident time into an aware UTC datetime, or ``None``.

    Accepts datetimes (naive ones are taken as UTC), ISO-8601 strings with or
    without a trailing ``Z``, and epoch values given as 10-digit seconds or
    13-digit milliseconds (numbers or digit strings).
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if isinstance(value, (int, float)):
        try:
            return _epoch_to_datetime(str(int(value)))
        except (OverflowError, ValueError):
            return None
    if not isinstance(value, str):
        return None

    text = value.strip()
    if not text:
        return None
    if text.isdigit():
        return _epoch_to_datetime(text)
    try:
        parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        return None
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


def _first_present(get, keys: Sequence[str]) -> Any:
    for name in keys:
        value = get(name)
        if value is not None and str(value).strip():
            return value
    return None


def _coerce_id(value: Any) -> str | int | None:
    if isinstance(value, uuid.UUID):
        return str(value)
    if isinstance(value, (str, int)) and not isinstance(value, bool):
        return value
    return None if value is None else str(value)


def _coerce_keywords(value: Any) -> tuple[str, ...]:
    if isinstance(value, (list, tuple)):
        return tuple(str(k) for k in value if k is not None)
    return ()


def to_groupable(item: Any) -> GroupableIncident:
    """Normalize a mapping, ORM row or plain object into a ``GroupableIncident``.

    ``transportationMean`` falls back to ``service`` and ``subdivision`` to
    ``subservice`` so stored incident rows group the same way as payloads
    that carry the explicit attributes.
    """
    if isinstance(item, GroupableIncident):
        return item
    if isinstance(item, Mapping):
        get = item.get
    else:
        def get(name, _obj=item):
            return getattr(_obj, name, None)

    raw_category = get("category")
    if raw_category is not None and not isinstance(raw_category, str):
        raw_category = str(raw_category)

    return GroupableIncident(
        id=_coerce_id(get("id")),
        time=parse_timestamp(_first_present(get, _TIME_KEYS)),
        category=normalize_key_value(raw_category),
        transportation_mean=normalize_key_value(_first_present(get, _TRANSPORT_KEYS)),
        subdivision=normalize_key_value(_first_present(get, _SUBDIVISION_KEYS)),
        raw_category=raw_category,
        source=get("source") if isinstance(get("source"), str) else None,
        summary=get("summary") if isinstance(get("summary"), str) else None,
        keywords=_coerce_keywords(get("keywords")),
    )


@dataclass
class _Bucket:
    order: int
    type: str
    transportation_mean: str
    subdivision: str
    count: int = 0
    start: datetime | None = None
    end: datetime | None = None
    incident_ids: list = field(default_factory=list)

    def add(self, incident: GroupableIncident) -> None:
        self.count += 1
        if incident.id is not None:
            self.incident_ids.append(incident.id)
        ts = incident.time
        if ts is None:
            return
        if self.start is None or ts < self.start:
            self.start = ts
        if self.end is None or ts > self.end:
            self.end = ts

    def to_report(self) -> FinalReport:
        return FinalReport(
            type=self.type,
            transportation_mean=None if self.transportation_mean == UNKNOWN else self.transportation_mean,
            subdivision=None if self.subdivision == UNKNOWN else self.subdivision,
            frequency=self.count,
            time_range=TimeRange(
                start=self.start if self.start is not None else NO_TIMESTAMP,
                end=self.end if self.end is not None else NO_TIMESTAMP,
            ),
            incident_ids=list(self.incident_ids),
        )


def group_incidents(incidents: Sequence[Any]) -> list[FinalReport]:
    """Group *incidents* into one ``FinalReport`` per distinct grouping key.

    Raises ``TypeError`` when *incidents* is not a sequence; malformed
    records never raise.
    """
    if isinstance(incidents, (str, bytes, Mapping)) or not isinstance(incidents, Sequence):
        raise TypeError(f"group_incidents expects a sequence of incidents, got {type(incidents).__name__}")

    buckets: dict[tuple[str, str, str], _Bucket] = {}
    undated = 0

    for item in incidents:
        incident = to_groupable(item)
        bucket = buckets.get(incident.key)
        if bucket is None:
            label = incident.raw_category if incident.category != UNKNOWN else UNKNOWN
            bucket = _Bucket(
                order=len(buckets),
                type=label,
                transportation_mean=incident.transportation_mean,
                subdivision=incident.subdivision,
            )
            buckets[incident.key] = bucket
        bucket.add(incident)
        if incident.time is None:
            undated += 1

    ordered = sorted(buckets.values(), key=lambda b: (-b.count, b.order))
    logger.info(
        "incidents_grouped",
        incident_count=len(incidents),
        report_count=len(ordered),
        undated_count=undated,
    )
    return [bucket.to_report() for bucket in ordered]
