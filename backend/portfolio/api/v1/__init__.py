"""API v1 router aggregation."""

from fastapi import APIRouter

from portfolio.api.v1.analytics import router as analytics_router
from portfolio.api.v1.engagement import router as engagement_router
from portfolio.api.v1.maintenance import router as maintenance_router
from portfolio.api.v1.projects import router as projects_router
from portfolio.api.v1.recommendations import router as recommendations_router
from portfolio.api.v1.search import router as search_router
from portfolio.api.v1.users import router as users_router

router = APIRouter(prefix="/api/v1")

router.include_router(projects_router)
router.include_router(users_router)
router.include_router(engagement_router)
router.include_router(recommendations_router)
router.include_router(search_router)
router.include_router(analytics_router)
router.include_router(maintenance_router)
