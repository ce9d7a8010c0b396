"""Project model — the source of truth for every derived view."""

from sqlalchemy import Column, String, Float, Boolean, Text, ForeignKey, Index, Integer, Uuid
from sqlalchemy.orm import relationship

from portfolio.models.base import Base, JSONType, TimestampMixin, UUIDMixin


class Project(UUIDMixin, TimestampMixin, Base):
    __tablename__ = "projects"

    creator_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    # Content
    title = Column(String(255), nullable=False)
    description = Column(Text)
    content = Column(JSONType)  # rich text document (TipTap JSON) or plain string
    cover_image = Column(Text)
    tags = Column(JSONType, nullable=False, default=list)
    tech_stack = Column(JSONType, nullable=False, default=list)

    # Lifecycle
    is_published = Column(Boolean, default=False, nullable=False)

    # Engagement
    view_count = Column(Integer, default=0, server_default="0", nullable=False)
    engagement_score = Column(Float, default=0.0, server_default="0", nullable=False)  # batch recomputed

    # Derived: written only through the similarity index
    embedding = Column(JSONType)

    # Relationships
    creator = relationship("User", back_populates="projects")
    engagement_events = relationship("EngagementEvent", back_populates="project", passive_deletes=True)
    analytics = relationship("ProjectAnalytics", back_populates="project", passive_deletes=True)

    __table_args__ = (
        Index("idx_projects_published_created", "is_published", "created_at"),
        Index("idx_projects_creator_published", "creator_id", "is_published"),
    )
