"""Pydantic schemas for engagement events and follows."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from portfolio.models.engagement_event import EngagementAction


class EngagementCreate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    project_id: UUID | None = None
    action: EngagementAction
    session_id: str = Field(min_length=1, max_length=255)
    referrer: str | None = Field(default=None, max_length=2048)


class EngagementRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    user_id: UUID | None = None
    project_id: UUID | None = None
    action: EngagementAction
    session_id: str
    created_at: datetime


class FollowRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    follower_id: UUID
    following_id: UUID
    created_at: datetime
