"""Engagement tracking endpoint."""

from uuid import UUID

from fastapi import APIRouter, Depends

from portfolio.api.envelope import ok
from portfolio.dependencies.identity import get_user_id
from portfolio.dependencies.services import Services, get_services
from portfolio.schemas.engagement import EngagementCreate, EngagementRead

router = APIRouter(prefix="/engagement", tags=["engagement"])


@router.post("", status_code=201)
async def track_engagement(
    payload: EngagementCreate,
    user_id: UUID | None = Depends(get_user_id),
    services: Services = Depends(get_services),
):
    """Record a view, like, share or follow.

    Views by the owner or of unpublished projects are accepted but not counted;
    the response then carries `recorded: false`.
    """
    event = await services.orchestrator.record_engagement(
        user_id,
        payload.project_id,
        payload.action,
        payload.session_id,
        payload.referrer,
    )
    return ok({
        "recorded": event is not None,
        "event": EngagementRead.model_validate(event) if event is not None else None,
    })
