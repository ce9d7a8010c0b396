"""Daily per-project analytics aggregate."""

from sqlalchemy import Column, Date, Float, ForeignKey, Integer, UniqueConstraint, Uuid
from sqlalchemy.orm import relationship

from portfolio.models.base import Base, JSONType, TimestampMixin, UUIDMixin


class ProjectAnalytics(UUIDMixin, TimestampMixin, Base):
    __tablename__ = "project_analytics"

    project_id = Column(Uuid(as_uuid=True), ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True)
    date = Column(Date, nullable=False)

    views = Column(Integer, default=0, nullable=False)
    unique_views = Column(Integer, default=0, nullable=False)
    engagement_rate = Column(Float, default=0.0, nullable=False)
    referral_sources = Column(JSONType, nullable=False, default=dict)  # domain -> count

    # Relationships
    project = relationship("Project", back_populates="analytics")

    __table_args__ = (
        UniqueConstraint("project_id", "date", name="uq_project_analytics_day"),
    )
