from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field, field_validator


class IncidentBase(BaseModel):
    time: datetime | None = None
    service: str | None = Field(None, max_length=100)
    source: str | None = Field(None, max_length=50)
    subservice: str | None = Field(None, max_length=255)
    priority: int | None = Field(None, ge=1, le=5)
    category: str | None = Field(None, max_length=100)
    sentiment_analysis: str | None = Field(None, max_length=50)
    summary: str | None = None
    original: str | None = None
    keywords: list[str] = Field(default_factory=list)

    @field_validator("keywords", mode="before")
    @classmethod
    def _none_to_empty(cls, value):
        return [] if value is None else value


class IncidentCreate(IncidentBase):
    pass


class IncidentUpdate(BaseModel):
    time: datetime | None = None
    service: str | None = Field(None, max_length=100)
    source: str | None = Field(None, max_length=50)
    subservice: str | None = Field(None, max_length=255)
    priority: int | None = Field(None, ge=1, le=5)
    category: str | None = Field(None, max_length=100)
    sentiment_analysis: str | None = Field(None, max_length=50)
    summary: str | None = None
    original: str | None = None
    keywords: list[str] | None = None


class IncidentResponse(IncidentBase):
    id: UUID
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class Pagination(BaseModel):
    total: int
    page: int
    page_size: int
    total_pages: int


class IncidentListResponse(BaseModel):
    success: bool = True
    data: list[IncidentResponse]
    pagination: Pagination
