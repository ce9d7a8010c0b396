"""Follow graph."""

import logging
import uuid
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from portfolio.errors import NotFound, ValidationFailure
from portfolio.models.engagement_event import EngagementAction, EngagementEvent
from portfolio.models.follow import Follow
from portfolio.models.user import User

logger = logging.getLogger(__name__)


class FollowService:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def follow(self, follower_id: UUID, following_id: UUID, session_id: str | None = None) -> Follow:
        """Create the edge if missing and log a FOLLOW event. Idempotent."""
        if follower_id == following_id:
            raise ValidationFailure("Users cannot follow themselves")

        async with self.session_factory() as session:
            await self._require_users(session, follower_id, following_id)

            existing = await self._get(session, follower_id, following_id)
            if existing is not None:
                return existing

            edge = Follow(follower_id=follower_id, following_id=following_id)
            session.add(edge)
            session.add(EngagementEvent(
                user_id=follower_id,
                project_id=None,
                action=EngagementAction.FOLLOW.value,
                session_id=session_id or f"follow_{uuid.uuid4().hex}",
            ))
            try:
                await session.commit()
            except IntegrityError as e:
                # concurrent follow of the same pair, or a user deleted meanwhile
                await session.rollback()
                existing = await self._get(session, follower_id, following_id)
                if existing is not None:
                    return existing
                await self._require_users(session, follower_id, following_id)
                raise NotFound("Follow target is no longer available") from e

            logger.info("User %s followed %s", follower_id, following_id)
            return edge

    async def unfollow(self, follower_id: UUID, following_id: UUID) -> bool:
        async with self.session_factory() as session:
            result = await session.execute(
                delete(Follow).where(Follow.follower_id == follower_id, Follow.following_id == following_id)
            )
            await session.commit()
            return result.rowcount > 0

    @staticmethod
    async def _require_users(session: AsyncSession, *user_ids: UUID) -> None:
        for user_id in user_ids:
            if await session.get(User, user_id) is None:
                raise NotFound(f"User {user_id} not found")

    @staticmethod
    async def _get(session: AsyncSession, follower_id: UUID, following_id: UUID) -> Follow | None:
        result = await session.execute(
            select(Follow).where(Follow.follower_id == follower_id, Follow.following_id == following_id)
        )
        return result.scalar_one_or_none()
