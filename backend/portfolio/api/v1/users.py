"""Follow graph endpoints."""

from uuid import UUID

from fastapi import APIRouter, Depends, Header

from portfolio.api.envelope import ok
from portfolio.dependencies.identity import require_user_id
from portfolio.dependencies.services import Services, get_services
from portfolio.schemas.engagement import FollowRead

router = APIRouter(prefix="/users", tags=["users"])


@router.post("/{user_id}/follow")
async def follow_user(
    user_id: UUID,
    follower_id: UUID = Depends(require_user_id),
    x_session_id: str | None = Header(default=None),
    services: Services = Depends(get_services),
):
    edge = await services.follows.follow(follower_id, user_id, session_id=x_session_id)
    return ok(FollowRead.model_validate(edge))


@router.delete("/{user_id}/follow")
async def unfollow_user(
    user_id: UUID,
    follower_id: UUID = Depends(require_user_id),
    services: Services = Depends(get_services),
):
    removed = await services.follows.unfollow(follower_id, user_id)
    return ok({"following_id": user_id, "removed": removed})
