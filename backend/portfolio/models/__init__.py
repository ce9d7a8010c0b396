"""Import every model so relationships resolve and metadata is complete."""

from portfolio.models.base import Base
from portfolio.models.user import User
from portfolio.models.project import Project
from portfolio.models.engagement_event import EngagementAction, EngagementEvent
from portfolio.models.follow import Follow
from portfolio.models.project_analytics import ProjectAnalytics
from portfolio.models.recommendation_click import RecommendationClick

__all__ = [
    "Base",
    "User",
    "Project",
    "EngagementAction",
    "EngagementEvent",
    "Follow",
    "ProjectAnalytics",
    "RecommendationClick",
]
