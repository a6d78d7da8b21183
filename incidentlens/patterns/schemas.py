from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field, model_validator

from incidentlens.clustering.schemas import ClusteringOptions
from incidentlens.incidents.schemas import IncidentResponse


class PatternCreate(BaseModel):
    title: str = Field(min_length=1, max_length=500)
    description: str | None = None
    filters: dict = Field(default_factory=dict)
    priority: int = Field(0, ge=0, le=5)
    frequency: int = Field(0, ge=0)
    time_range_start: datetime | None = None
    time_range_end: datetime | None = None
    incident_ids: list[UUID] = Field(default_factory=list)

    @model_validator(mode="after")
    def _check_range(self):
        if self.time_range_start and self.time_range_end and self.time_range_start > self.time_range_end:
            raise ValueError("time_range_start must not be after time_range_end")
        return self


class PatternResponse(BaseModel):
    id: UUID
    title: str
    description: str | None
    filters: dict | None
    priority: int
    frequency: int
    time_range_start: datetime | None
    time_range_end: datetime | None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class PatternDetailResponse(PatternResponse):
    incident_ids: list[UUID] = Field(default_factory=list)
    incidents: list[IncidentResponse] = Field(default_factory=list)


class PatternListResponse(BaseModel):
    success: bool = True
    total: int
    limit: int
    offset: int
    data: list[PatternResponse]


class ClusterRequest(BaseModel):
    incident_ids: list[UUID] | None = None
    options: ClusteringOptions = Field(default_factory=ClusteringOptions)


class ClusterResponse(BaseModel):
    success: bool = True
    patterns_created: int
    data: list[PatternResponse]
