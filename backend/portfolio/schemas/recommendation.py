"""Pydantic schemas for recommendation endpoints."""

from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from portfolio.schemas.project import ProjectSummary
from portfolio.services.recommendation_service import RecommendationReason


class SimilarProjectRead(BaseModel):
    project: ProjectSummary
    similarity: float


class TrendingProjectRead(BaseModel):
    project: ProjectSummary
    engagement_velocity: float
    recent_views: int
    recent_likes: int
    recent_follows: int


class RecommendationRead(BaseModel):
    project: ProjectSummary
    score: float
    reason: RecommendationReason


class RecommendationClickCreate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    project_id: UUID
    reason: RecommendationReason
    position: int = Field(ge=0)
