"""Which surfaced project was clicked, why, and at what list position."""

from sqlalchemy import Column, String, Integer, DateTime, ForeignKey, Uuid, func

from portfolio.models.base import Base, UUIDMixin, utcnow


class RecommendationClick(UUIDMixin, Base):
    __tablename__ = "recommendation_clicks"

    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    project_id = Column(Uuid(as_uuid=True), ForeignKey("projects.id", ondelete="CASCADE"), nullable=False)
    reason = Column(String(30), nullable=False)  # followed_creator, similar_content, trending
    position = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False)
