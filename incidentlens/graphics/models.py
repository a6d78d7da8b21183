import uuid

from sqlalchemy import JSON, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from incidentlens.models.base import Base, TimestampMixin, generate_uuid


class SavedGraphic(TimestampMixin, Base):
    __tablename__ = "saved_graphics"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=generate_uuid)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    graphic_type: Mapped[str] = mapped_column(String(50), nullable=False)  # timeseries, topN, barChart, pieChart
    group_by: Mapped[str] = mapped_column(String(255), nullable=False)
    filters: Mapped[dict | None] = mapped_column(JSON, default=dict)
    date_range: Mapped[str] = mapped_column(String(100), nullable=False, default="last7days")
