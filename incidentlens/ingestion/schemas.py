from datetime import datetime

from pydantic import BaseModel

from incidentlens.incidents.schemas import IncidentResponse


class TweetEntityResponse(BaseModel):
    text: str
    created_at: str | None
    parsed_date: datetime | None

    model_config = {"from_attributes": True}


class TweetPreviewResponse(BaseModel):
    success: bool = True
    count: int
    data: list[TweetEntityResponse]


class TweetIngestionResponse(BaseModel):
    success: bool = True
    count: int
    data: list[IncidentResponse]
