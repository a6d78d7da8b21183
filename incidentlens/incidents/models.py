import uuid
from datetime import datetime

from sqlalchemy import JSON, DateTime, Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from incidentlens.models.base import Base, TimestampMixin, generate_uuid


class Incident(TimestampMixin, Base):
    __tablename__ = "incidents"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=generate_uuid)
    time: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), index=True)
    service: Mapped[str | None] = mapped_column(String(100), index=True)  # metro, bus, metrobus, ...
    source: Mapped[str | None] = mapped_column(String(50), index=True)  # twitter, facebook, internal
    subservice: Mapped[str | None] = mapped_column(String(255))  # line / route / station
    priority: Mapped[int | None] = mapped_column(Integer)  # 1 (low) .. 5 (critical)
    category: Mapped[str | None] = mapped_column(String(100), index=True)
    sentiment_analysis: Mapped[str | None] = mapped_column(String(50))
    summary: Mapped[str | None] = mapped_column(Text)
    original: Mapped[str | None] = mapped_column(Text)
    keywords: Mapped[list | None] = mapped_column(JSON, default=list)
