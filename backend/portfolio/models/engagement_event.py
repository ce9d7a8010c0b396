"""Engagement event model — append-only log of views, likes, shares and follows."""

import enum

from sqlalchemy import Column, String, DateTime, ForeignKey, Index, Uuid, func
from sqlalchemy.orm import relationship

from portfolio.models.base import Base, UUIDMixin, utcnow


class EngagementAction(str, enum.Enum):
    VIEW = "VIEW"
    LIKE = "LIKE"
    SHARE = "SHARE"
    FOLLOW = "FOLLOW"


class EngagementEvent(UUIDMixin, Base):
    __tablename__ = "engagement_events"

    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL"))  # null for anonymous views
    project_id = Column(Uuid(as_uuid=True), ForeignKey("projects.id", ondelete="CASCADE"))  # null for follow events
    action = Column(String(10), nullable=False)  # EngagementAction value
    session_id = Column(String(255), nullable=False)
    referrer = Column(String(2048))
    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False)

    # Relationships
    project = relationship("Project", back_populates="engagement_events")

    __table_args__ = (
        Index("idx_engagement_project_action_time", "project_id", "action", "created_at"),
        Index("idx_engagement_user_time", "user_id", "created_at"),
    )
