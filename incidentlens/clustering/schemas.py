from datetime import datetime

from pydantic import BaseModel, Field


class SimilarityWeights(BaseModel):
    keyword: float = Field(0.30, ge=0)
    category: float = Field(0.25, ge=0)
    temporal: float = Field(0.20, ge=0)
    semantic: float = Field(0.15, ge=0)
    priority: float = Field(0.05, ge=0)
    sentiment: float = Field(0.05, ge=0)


class ClusteringOptions(BaseModel):
    weights: SimilarityWeights = Field(default_factory=SimilarityWeights)
    similarity_threshold: float = Field(0.65, ge=0, le=1)
    time_window_hours: float = Field(24, gt=0)
    min_cluster_size: int = Field(1, ge=1)
    max_keywords_in_title: int = Field(5, ge=1, le=20)


class GeneratedPattern(BaseModel):
    title: str
    description: str
    filters: dict
    priority: int
    frequency: int
    time_range_start: datetime
    time_range_end: datetime
    incident_ids: list[str]
