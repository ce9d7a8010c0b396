"""Trending ranker — engagement velocity over a recent time window.

velocity = (views * 1 + likes * 3 + follows * 5) / max(age_hours, 1)

Dividing by age favors new projects that gather engagement quickly over old
projects with large absolute totals.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Literal

from sqlalchemy import case, func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm import defer

from portfolio.errors import ValidationFailure
from portfolio.models.base import as_utc, utcnow
from portfolio.models.engagement_event import EngagementAction, EngagementEvent
from portfolio.models.project import Project

TimeWindow = Literal["day", "week", "month"]

WINDOW_HOURS: dict[str, int] = {
    "day": 24,
    "week": 24 * 7,
    "month": 24 * 30,
}

VIEW_WEIGHT = 1.0
LIKE_WEIGHT = 3.0
FOLLOW_WEIGHT = 5.0
MIN_AGE_HOURS = 1.0


def engagement_velocity(views: int, likes: int, follows: int, age_hours: float) -> float:
    weighted = views * VIEW_WEIGHT + likes * LIKE_WEIGHT + follows * FOLLOW_WEIGHT
    return weighted / max(age_hours, MIN_AGE_HOURS)


@dataclass
class TrendingProject:
    project: Project
    velocity: float
    recent_views: int
    recent_likes: int
    recent_follows: int


class TrendingRanker:
    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        clock: Callable[[], datetime] = utcnow,
    ):
        self.session_factory = session_factory
        self.clock = clock

    async def rank(self, time_window: TimeWindow = "week", limit: int = 20) -> list[TrendingProject]:
        if time_window not in WINDOW_HOURS:
            raise ValidationFailure(f"Unknown time window: {time_window}")

        now = self.clock()
        cutoff = now - timedelta(hours=WINDOW_HOURS[time_window])

        recent = (
            select(
                EngagementEvent.project_id,
                func.count(case((EngagementEvent.action == EngagementAction.VIEW.value, 1))).label("views"),
                func.count(case((EngagementEvent.action == EngagementAction.LIKE.value, 1))).label("likes"),
                func.count(case((EngagementEvent.action == EngagementAction.FOLLOW.value, 1))).label("follows"),
            )
            .where(
                EngagementEvent.created_at >= cutoff,
                EngagementEvent.project_id.isnot(None),
            )
            .group_by(EngagementEvent.project_id)
            .subquery()
        )

        # Score on narrow rows, then load only the projects that make the cut
        query = (
            select(
                Project.id,
                Project.created_at,
                func.coalesce(recent.c.views, 0),
                func.coalesce(recent.c.likes, 0),
                func.coalesce(recent.c.follows, 0),
            )
            .outerjoin(recent, Project.id == recent.c.project_id)
            .where(Project.is_published == True)  # noqa: E712
        )

        async with self.session_factory() as session:
            rows = (await session.execute(query)).all()

            scored = []
            for project_id, created_at, views, likes, follows in rows:
                created_at = as_utc(created_at)
                age_hours = (now - created_at).total_seconds() / 3600
                velocity = engagement_velocity(views, likes, follows, age_hours)
                scored.append((velocity, created_at, project_id, views, likes, follows))

            scored.sort(key=lambda s: (-s[0], -s[1].timestamp(), str(s[2])))
            top = scored[:limit]
            if not top:
                return []

            projects = {
                p.id: p
                for p in (await session.execute(
                    select(Project)
                    .options(defer(Project.embedding), defer(Project.content))
                    .where(Project.id.in_([s[2] for s in top]))
                )).scalars()
            }

        return [
            TrendingProject(
                project=projects[project_id],
                velocity=velocity,
                recent_views=views,
                recent_likes=likes,
                recent_follows=follows,
            )
            for velocity, _, project_id, views, likes, follows in top
            if project_id in projects
        ]
