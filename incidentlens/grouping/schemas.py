from datetime import datetime

from pydantic import BaseModel, Field


class TimeRange(BaseModel):
    # Both ends are None when no member incident had a parseable timestamp.
    start: datetime | None
    end: datetime | None


class FinalReport(BaseModel):
    type: str
    transportation_mean: str | None = Field(alias="transportationMean")
    subdivision: str | None
    frequency: int = Field(ge=1)
    time_range: TimeRange = Field(alias="timeRange")
    incident_ids: list[str | int] = Field(default_factory=list, alias="incidentIds")

    model_config = {"populate_by_name": True}
