"""Pydantic schemas package."""

from portfolio.schemas.project import (
    ProjectCreate,
    ProjectRead,
    ProjectSummary,
    ProjectUpdate,
)
from portfolio.schemas.search import (
    SearchDocument,
    SearchFacets,
    SearchQuery,
    SearchResults,
)
from portfolio.schemas.engagement import (
    EngagementCreate,
    EngagementRead,
    FollowRead,
)
from portfolio.schemas.analytics import (
    DashboardAnalytics,
    FunnelAnalytics,
    ProjectAnalyticsRead,
    TopProject,
    TrendPoint,
)
from portfolio.schemas.recommendation import (
    RecommendationClickCreate,
    RecommendationRead,
    SimilarProjectRead,
    TrendingProjectRead,
)

__all__ = [
    # Project
    "ProjectCreate",
    "ProjectRead",
    "ProjectSummary",
    "ProjectUpdate",
    # Search
    "SearchDocument",
    "SearchFacets",
    "SearchQuery",
    "SearchResults",
    # Engagement
    "EngagementCreate",
    "EngagementRead",
    "FollowRead",
    # Analytics
    "DashboardAnalytics",
    "FunnelAnalytics",
    "ProjectAnalyticsRead",
    "TopProject",
    "TrendPoint",
    # Recommendations
    "RecommendationClickCreate",
    "RecommendationRead",
    "SimilarProjectRead",
    "TrendingProjectRead",
]
