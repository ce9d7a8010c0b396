"""Pydantic schemas for analytics reports."""

from datetime import date
from uuid import UUID

from pydantic import BaseModel, ConfigDict


class ProjectAnalyticsRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    project_id: UUID
    date: date
    views: int
    unique_views: int
    engagement_rate: float
    referral_sources: dict[str, int]


class TopProject(BaseModel):
    id: UUID
    title: str
    views: int
    engagement_rate: float


class TrendPoint(BaseModel):
    date: date
    value: int


class DashboardAnalytics(BaseModel):
    total_views: int
    total_projects: int
    total_followers: int
    views_this_month: int
    top_projects: list[TopProject]
    views_trend: list[TrendPoint]
    engagement_trend: list[TrendPoint]


class FunnelAnalytics(BaseModel):
    project_id: UUID
    views: int
    engagements: int
    follows: int
    conversion_rate: float
