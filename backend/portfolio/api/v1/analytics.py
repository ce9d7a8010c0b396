"""Creator analytics endpoints."""

from uuid import UUID

from fastapi import APIRouter, Depends, Query

from portfolio.api.envelope import ok
from portfolio.dependencies.identity import require_user_id
from portfolio.dependencies.services import Services, get_services

router = APIRouter(prefix="/analytics", tags=["analytics"])


@router.get("/dashboard")
async def creator_dashboard(
    user_id: UUID = Depends(require_user_id),
    services: Services = Depends(get_services),
):
    return ok(await services.analytics.dashboard(user_id))


@router.get("/projects/{project_id}")
async def project_analytics(
    project_id: UUID,
    days: int = Query(30, ge=1, le=365),
    services: Services = Depends(get_services),
):
    """Daily aggregates for one project, oldest first."""
    return ok(await services.analytics.project_analytics(project_id, days))


@router.get("/projects/{project_id}/funnel")
async def project_funnel(
    project_id: UUID,
    services: Services = Depends(get_services),
):
    return ok(await services.analytics.funnel(project_id))
