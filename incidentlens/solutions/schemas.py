from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field, field_validator, model_validator


class SolutionCreate(BaseModel):
    pattern_id: UUID | None = None
    name: str = Field(min_length=1, max_length=255)
    description: str = Field(min_length=1)
    cost_min: float = Field(0, ge=0)
    cost_max: float = Field(0, ge=0)
    feasibility: int = Field(5, ge=1, le=10)
    implementation_start_date: datetime | None = None
    implementation_end_date: datetime | None = None

    @field_validator("name", "description")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be blank")
        return value.strip()

    @model_validator(mode="after")
    def _check_ranges(self):
        if self.cost_min > self.cost_max:
            raise ValueError("cost_min must not exceed cost_max")
        start, end = self.implementation_start_date, self.implementation_end_date
        if start and end and start > end:
            raise ValueError("implementation_start_date must not be after implementation_end_date")
        return self


class SolutionResponse(BaseModel):
    id: UUID
    pattern_id: UUID | None
    name: str
    description: str
    cost_min: float
    cost_max: float
    feasibility: int
    implementation_start_date: datetime
    implementation_end_date: datetime
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class SolutionProposal(BaseModel):
    """An unsaved remediation idea; shaped so it can be posted to ``/solutions`` as-is."""

    pattern_id: UUID | None = None
    name: str = Field(min_length=1, max_length=255)
    description: str = Field(min_length=1)
    cost_min: float = Field(0, ge=0)
    cost_max: float = Field(0, ge=0)
    feasibility: int = Field(5, ge=1, le=10)
    implementation_start_date: datetime | None = None
    implementation_end_date: datetime | None = None

    @field_validator("feasibility", mode="before")
    @classmethod
    def _clamp_feasibility(cls, value):
        try:
            number = round(float(value))
        except (TypeError, ValueError):
            return 5
        return min(10, max(1, number))

    @field_validator("cost_min", "cost_max", mode="before")
    @classmethod
    def _non_negative_cost(cls, value):
        try:
            return max(0.0, float(value))
        except (TypeError, ValueError):
            return 0.0

    @model_validator(mode="after")
    def _order_costs(self):
        if self.cost_min > self.cost_max:
            self.cost_min, self.cost_max = self.cost_max, self.cost_min
        return self
