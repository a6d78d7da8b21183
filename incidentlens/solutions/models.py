import uuid
from datetime import datetime

from sqlalchemy import DateTime, Float, ForeignKey, Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from incidentlens.models.base import Base, TimestampMixin, generate_uuid


class Solution(TimestampMixin, Base):
    __tablename__ = "solutions"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=generate_uuid)
    pattern_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("patterns.id", ondelete="SET NULL"), index=True,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    cost_min: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    cost_max: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    feasibility: Mapped[int] = mapped_column(Integer, nullable=False, default=5)  # 1-10
    implementation_start_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    implementation_end_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
