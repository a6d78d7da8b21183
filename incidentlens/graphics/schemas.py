from datetime import datetime
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from incidentlens.analytics.service import parse_group_by

GraphicType = Literal["timeseries", "topN", "barChart", "pieChart"]


class GraphicCreate(BaseModel):
    """Accepts the dashboard's camelCase keys (``type``, ``groupBy``, ``dateRange``)."""

    name: str = Field(min_length=1, max_length=255)
    graphic_type: GraphicType = Field(alias="type")
    group_by: str = Field(alias="groupBy", min_length=1)
    filters: dict = Field(default_factory=dict)
    date_range: str = Field("last7days", alias="dateRange")

    model_config = {"populate_by_name": True}

    @field_validator("group_by")
    @classmethod
    def _known_fields(cls, value: str) -> str:
        return ",".join(parse_group_by(value))

    @field_validator("filters", mode="before")
    @classmethod
    def _default_filters(cls, value):
        return value or {}


class GraphicResponse(BaseModel):
    id: UUID
    name: str
    graphic_type: str
    group_by: str
    filters: dict | None
    date_range: str
    created_at: datetime

    model_config = {"from_attributes": True}
