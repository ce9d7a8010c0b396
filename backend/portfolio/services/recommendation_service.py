"""Recommendation service — similar, trending and personalized project lists.

Personalized lists fuse three sources:

- recent projects from followed creators (fixed score 0.8)
- projects similar to what the user recently liked or followed (similarity * 0.7)
- trending projects this week (velocity)

Duplicates keep their highest-scoring occurrence.
"""

import enum
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm import defer

from portfolio.errors import DependencyUnavailable
from portfolio.models.engagement_event import EngagementAction, EngagementEvent
from portfolio.models.follow import Follow
from portfolio.models.project import Project
from portfolio.models.recommendation_click import RecommendationClick
from portfolio.services.similarity_index import SimilarProject, SimilarityIndex
from portfolio.services.trending import TimeWindow, TrendingProject, TrendingRanker

logger = logging.getLogger(__name__)

FOLLOWED_CREATOR_LIMIT = 5
FOLLOWED_CREATOR_SCORE = 0.8

SEED_ENGAGEMENT_LIMIT = 5
SIMILAR_PER_SEED = 3
SIMILAR_MIN_SCORE = 0.2  # below the index default, for more diverse results
SIMILAR_CONTENT_WEIGHT = 0.7
SIMILAR_CONTENT_LIMIT = 8

TRENDING_POOL = 5
TRENDING_KEEP = 2


class RecommendationReason(str, enum.Enum):
    FOLLOWED_CREATOR = "followed_creator"
    SIMILAR_CONTENT = "similar_content"
    TRENDING = "trending"


@dataclass
class Recommendation:
    project: Project
    score: float
    reason: RecommendationReason


def fuse(candidates: list[Recommendation], limit: int) -> list[Recommendation]:
    """Dedup by project id (max score wins, first seen on ties), sort, truncate."""
    best: dict[UUID, Recommendation] = {}
    for candidate in candidates:
        existing = best.get(candidate.project.id)
        if existing is None or candidate.score > existing.score:
            best[candidate.project.id] = candidate
    return sorted(best.values(), key=lambda r: r.score, reverse=True)[:limit]


@asynccontextmanager
async def _read_path(operation: str):
    """Surface store outages on read paths as DependencyUnavailable."""
    try:
        yield
    except (SQLAlchemyError, OSError) as e:
        logger.error("%s failed: %s", operation, e)
        raise DependencyUnavailable(f"{operation} is temporarily unavailable") from e


class RecommendationService:
    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        similarity: SimilarityIndex,
        trending: TrendingRanker,
    ):
        self.session_factory = session_factory
        self.similarity = similarity
        self.trending = trending

    async def similar_projects(
        self,
        project_id: UUID,
        limit: int = 10,
        exclude_creator: UUID | None = None,
    ) -> list[SimilarProject]:
        async with _read_path("similar_projects"):
            return await self.similarity.find_similar(project_id, k=limit, exclude_creator=exclude_creator)

    async def trending_projects(self, time_window: TimeWindow = "week", limit: int = 20) -> list[TrendingProject]:
        async with _read_path("trending_projects"):
            return await self.trending.rank(time_window, limit)

    async def personalized_recommendations(self, user_id: UUID, limit: int = 15) -> list[Recommendation]:
        async with _read_path("personalized_recommendations"):
            return await self.personalize(user_id, limit)

    async def personalize(self, user_id: UUID, limit: int = 15) -> list[Recommendation]:
        candidates: list[Recommendation] = []
        candidates.extend(await self._followed_creator_candidates(user_id))
        candidates.extend(await self._similar_content_candidates(user_id))
        candidates.extend(await self._trending_candidates(user_id))
        return fuse(candidates, limit)

    async def _followed_creator_candidates(self, user_id: UUID) -> list[Recommendation]:
        followed = select(Follow.following_id).where(Follow.follower_id == user_id)
        async with self.session_factory() as session:
            projects = (await session.execute(
                select(Project)
                .options(defer(Project.embedding), defer(Project.content))
                .where(Project.is_published == True, Project.creator_id.in_(followed))  # noqa: E712
                .order_by(Project.created_at.desc(), Project.id)
                .limit(FOLLOWED_CREATOR_LIMIT)
            )).scalars().all()

        return [
            Recommendation(project=p, score=FOLLOWED_CREATOR_SCORE, reason=RecommendationReason.FOLLOWED_CREATOR)
            for p in projects
        ]

    async def _similar_content_candidates(self, user_id: UUID) -> list[Recommendation]:
        async with self.session_factory() as session:
            seeds = (await session.execute(
                select(EngagementEvent.project_id)
                .where(
                    EngagementEvent.user_id == user_id,
                    EngagementEvent.project_id.isnot(None),
                    EngagementEvent.action.in_([EngagementAction.LIKE.value, EngagementAction.FOLLOW.value]),
                )
                .order_by(EngagementEvent.created_at.desc())
                .limit(SEED_ENGAGEMENT_LIMIT)
            )).scalars().all()

        recommendations: list[Recommendation] = []
        for seed_id in seeds:
            try:
                similar = await self.similarity.find_similar(
                    seed_id,
                    k=SIMILAR_PER_SEED,
                    min_score=SIMILAR_MIN_SCORE,
                    exclude_creator=user_id,
                )
            except Exception:
                logger.exception("Failed to get similar projects for seed %s", seed_id)
                continue
            recommendations.extend(
                Recommendation(
                    project=s.project,
                    score=s.score * SIMILAR_CONTENT_WEIGHT,
                    reason=RecommendationReason.SIMILAR_CONTENT,
                )
                for s in similar
            )
        return recommendations[:SIMILAR_CONTENT_LIMIT]

    async def _trending_candidates(self, user_id: UUID) -> list[Recommendation]:
        trending = await self.trending.rank("week", TRENDING_POOL)
        return [
            Recommendation(project=t.project, score=t.velocity, reason=RecommendationReason.TRENDING)
            for t in trending
            if t.project.creator_id != user_id
        ][:TRENDING_KEEP]

    async def track_recommendation_click(
        self,
        user_id: UUID,
        project_id: UUID,
        reason: RecommendationReason,
        position: int,
    ) -> bool:
        """Append a click record. Never raises; returns whether it was stored."""
        try:
            async with self.session_factory() as session:
                session.add(RecommendationClick(
                    user_id=user_id,
                    project_id=project_id,
                    reason=RecommendationReason(reason).value,
                    position=position,
                ))
                await session.commit()
            return True
        except Exception:
            logger.exception("Failed to track recommendation click (user=%s, project=%s)", user_id, project_id)
            return False
