import uuid
from datetime import datetime

from sqlalchemy import JSON, DateTime, Float, ForeignKey, Integer, String, Text, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from incidentlens.models.base import Base, TimestampMixin, generate_uuid


class Pattern(TimestampMixin, Base):
    __tablename__ = "patterns"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=generate_uuid)
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    filters: Mapped[dict | None] = mapped_column(JSON, default=dict)  # services, categories, keywords, ...
    priority: Mapped[int] = mapped_column(Integer, nullable=False, default=0, index=True)
    frequency: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    time_range_start: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    time_range_end: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))


class IncidentPattern(Base):
    __tablename__ = "incident_patterns"
    __table_args__ = (UniqueConstraint("incident_id", "pattern_id"),)

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=generate_uuid)
    incident_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("incidents.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    pattern_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("patterns.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    similarity_score: Mapped[float] = mapped_column(Float, nullable=False, default=1.0)
