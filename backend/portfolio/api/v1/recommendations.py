"""Recommendation endpoints."""

from uuid import UUID

from fastapi import APIRouter, Depends, Query

from portfolio.api.envelope import ok
from portfolio.dependencies.identity import get_user_id, require_user_id
from portfolio.dependencies.services import Services, get_services
from portfolio.schemas.project import ProjectSummary
from portfolio.schemas.recommendation import (
    RecommendationClickCreate,
    RecommendationRead,
    SimilarProjectRead,
    TrendingProjectRead,
)
from portfolio.services.trending import TimeWindow

router = APIRouter(prefix="/recommendations", tags=["recommendations"])


@router.get("/similar/{project_id}")
async def similar_projects(
    project_id: UUID,
    limit: int = Query(10, ge=1, le=50),
    user_id: UUID | None = Depends(get_user_id),
    services: Services = Depends(get_services),
):
    """Projects most similar to the given one, excluding the caller's own work."""
    similar = await services.recommendations.similar_projects(project_id, limit=limit, exclude_creator=user_id)
    return ok([
        SimilarProjectRead(project=ProjectSummary.model_validate(s.project), similarity=s.score)
        for s in similar
    ])


@router.get("/trending")
async def trending_projects(
    time_window: TimeWindow = Query("week"),
    limit: int = Query(20, ge=1, le=50),
    services: Services = Depends(get_services),
):
    trending = await services.recommendations.trending_projects(time_window, limit)
    return ok([
        TrendingProjectRead(
            project=ProjectSummary.model_validate(t.project),
            engagement_velocity=t.velocity,
            recent_views=t.recent_views,
            recent_likes=t.recent_likes,
            recent_follows=t.recent_follows,
        )
        for t in trending
    ])


@router.get("/personalized")
async def personalized_recommendations(
    limit: int = Query(15, ge=1, le=50),
    user_id: UUID = Depends(require_user_id),
    services: Services = Depends(get_services),
):
    recommendations = await services.recommendations.personalized_recommendations(user_id, limit)
    return ok([
        RecommendationRead(project=ProjectSummary.model_validate(r.project), score=r.score, reason=r.reason)
        for r in recommendations
    ])


@router.post("/click")
async def track_recommendation_click(
    payload: RecommendationClickCreate,
    user_id: UUID = Depends(require_user_id),
    services: Services = Depends(get_services),
):
    tracked = await services.recommendations.track_recommendation_click(
        user_id, payload.project_id, payload.reason, payload.position
    )
    return ok({"tracked": tracked})
