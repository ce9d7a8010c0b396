"""Analytics service: engagement log, view counters and daily aggregates."""

import logging
from collections import defaultdict
from datetime import date, datetime, timedelta
from typing import Callable
from urllib.parse import urlparse
from uuid import UUID

from sqlalchemy import distinct, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from portfolio.errors import NotFound
from portfolio.models.base import as_utc, utcnow
from portfolio.models.engagement_event import EngagementAction, EngagementEvent
from portfolio.models.follow import Follow
from portfolio.models.project import Project
from portfolio.models.project_analytics import ProjectAnalytics
from portfolio.models.user import User
from portfolio.schemas.analytics import (
    DashboardAnalytics,
    FunnelAnalytics,
    ProjectAnalyticsRead,
    TopProject,
    TrendPoint,
)

logger = logging.getLogger(__name__)

ENGAGEMENT_ACTIONS = [EngagementAction.LIKE.value, EngagementAction.SHARE.value, EngagementAction.FOLLOW.value]


def extract_domain(url: str | None) -> str:
    """Referrer host without a leading www.; anything unparsable counts as direct."""
    if not url:
        return "direct"
    try:
        host = urlparse(url).hostname
    except ValueError:
        return "direct"
    if not host:
        return "direct"
    return host[4:] if host.startswith("www.") else host


class AnalyticsService:
    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        clock: Callable[[], datetime] = utcnow,
    ):
        self.session_factory = session_factory
        self.clock = clock

    async def track_event(
        self,
        user_id: UUID | None,
        project_id: UUID | None,
        action: EngagementAction,
        session_id: str,
        referrer: str | None = None,
    ) -> EngagementEvent | None:
        """Append an engagement event; for counted views also bump counters.

        Views are only counted on published projects and never from the
        owner; other views are dropped and None is returned.
        """
        action = EngagementAction(action)
        now = self.clock()

        async with self.session_factory() as session:
            project = None
            if project_id is not None:
                project = await session.get(Project, project_id)
                if project is None:
                    raise NotFound(f"Project {project_id} not found")

            if user_id is not None and await session.get(User, user_id) is None:
                raise NotFound(f"User {user_id} not found")

            if action == EngagementAction.VIEW:
                if project is None or not project.is_published or project.creator_id == user_id:
                    logger.debug("Ignoring view of %s by %s", project_id, user_id)
                    return None

            event = EngagementEvent(
                user_id=user_id,
                project_id=project_id,
                action=action.value,
                session_id=session_id,
                referrer=referrer,
                created_at=now,
            )
            session.add(event)

            if action == EngagementAction.VIEW:
                await session.execute(
                    update(Project)
                    .where(Project.id == project_id)
                    .values(view_count=Project.view_count + 1)
                    .execution_options(synchronize_session=False)
                )
                await self._aggregate_daily_view(session, project_id, now.date(), referrer)

            await session.commit()
            return event

    async def _aggregate_daily_view(
        self, session: AsyncSession, project_id: UUID, day: date, referrer: str | None
    ) -> None:
        domain = extract_domain(referrer) if referrer else None

        record = await self._get_daily(session, project_id, day)
        if record is None:
            try:
                async with session.begin_nested():
                    session.add(ProjectAnalytics(
                        project_id=project_id,
                        date=day,
                        views=1,
                        unique_views=1,
                        engagement_rate=0.0,
                        referral_sources={domain: 1} if domain else {},
                    ))
                return
            except IntegrityError:
                # Another request created today's row first
                record = await self._get_daily(session, project_id, day)

        sources = dict(record.referral_sources or {})
        if domain:
            sources[domain] = sources.get(domain, 0) + 1
        record.views = ProjectAnalytics.views + 1
        record.referral_sources = sources

    @staticmethod
    async def _get_daily(session: AsyncSession, project_id: UUID, day: date) -> ProjectAnalytics | None:
        result = await session.execute(
            select(ProjectAnalytics).where(
                ProjectAnalytics.project_id == project_id,
                ProjectAnalytics.date == day,
            )
        )
        return result.scalar_one_or_none()

    async def project_analytics(self, project_id: UUID, days: int = 30) -> list[ProjectAnalyticsRead]:
        start = (self.clock() - timedelta(days=days)).date()
        async with self.session_factory() as session:
            result = await session.execute(
                select(ProjectAnalytics)
                .where(ProjectAnalytics.project_id == project_id, ProjectAnalytics.date >= start)
                .order_by(ProjectAnalytics.date.asc())
            )
            return [ProjectAnalyticsRead.model_validate(row) for row in result.scalars()]

    async def dashboard(self, creator_id: UUID) -> DashboardAnalytics:
        """Aggregate numbers for a creator's dashboard."""
        now = self.clock()
        month_start = now.date().replace(day=1)
        trend_start = now - timedelta(days=30)

        async with self.session_factory() as session:
            projects = (await session.execute(
                select(Project).where(Project.creator_id == creator_id)
            )).scalars().all()
            project_ids = [p.id for p in projects]

            total_followers = (await session.execute(
                select(func.count(Follow.id)).where(Follow.following_id == creator_id)
            )).scalar() or 0

            views_this_month = 0
            views_trend: dict[date, int] = defaultdict(int)
            engagement_trend: dict[date, int] = defaultdict(int)

            if project_ids:
                views_this_month = (await session.execute(
                    select(func.coalesce(func.sum(ProjectAnalytics.views), 0)).where(
                        ProjectAnalytics.project_id.in_(project_ids),
                        ProjectAnalytics.date >= month_start,
                    )
                )).scalar() or 0

                daily = await session.execute(
                    select(ProjectAnalytics.date, ProjectAnalytics.views).where(
                        ProjectAnalytics.project_id.in_(project_ids),
                        ProjectAnalytics.date >= trend_start.date(),
                    )
                )
                for day, views in daily:
                    views_trend[day] += views

                events = await session.execute(
                    select(EngagementEvent.created_at).where(
                        EngagementEvent.project_id.in_(project_ids),
                        EngagementEvent.created_at >= trend_start,
                        EngagementEvent.action.in_(ENGAGEMENT_ACTIONS),
                    )
                )
                for (created_at,) in events:
                    engagement_trend[as_utc(created_at).date()] += 1

        top = sorted(projects, key=lambda p: (-(p.view_count or 0), -(p.engagement_score or 0.0)))[:5]

        return DashboardAnalytics(
            total_views=sum(p.view_count or 0 for p in projects),
            total_projects=len(projects),
            total_followers=total_followers,
            views_this_month=views_this_month,
            top_projects=[
                TopProject(id=p.id, title=p.title, views=p.view_count or 0, engagement_rate=p.engagement_score or 0.0)
                for p in top
            ],
            views_trend=[TrendPoint(date=d, value=v) for d, v in sorted(views_trend.items())],
            engagement_trend=[TrendPoint(date=d, value=v) for d, v in sorted(engagement_trend.items())],
        )

    async def funnel(self, project_id: UUID) -> FunnelAnalytics:
        async with self.session_factory() as session:
            project = await session.get(Project, project_id)
            if project is None:
                raise NotFound(f"Project {project_id} not found")

            engagements = (await session.execute(
                select(func.count(EngagementEvent.id)).where(
                    EngagementEvent.project_id == project_id,
                    EngagementEvent.action.in_([EngagementAction.LIKE.value, EngagementAction.SHARE.value]),
                )
            )).scalar() or 0

            follows = (await session.execute(
                select(func.count(Follow.id)).where(Follow.following_id == project.creator_id)
            )).scalar() or 0

        views = project.view_count or 0
        return FunnelAnalytics(
            project_id=project_id,
            views=views,
            engagements=engagements,
            follows=follows,
            conversion_rate=(follows / views) * 100 if views > 0 else 0.0,
        )

    async def calculate_engagement_rates(self) -> int:
        """Recompute every project's engagement score (batch job).

        engagement_score = (likes + shares + follows) / views * 100
        """
        async with self.session_factory() as session:
            counts = dict((await session.execute(
                select(EngagementEvent.project_id, func.count(EngagementEvent.id))
                .where(
                    EngagementEvent.project_id.isnot(None),
                    EngagementEvent.action.in_(ENGAGEMENT_ACTIONS),
                )
                .group_by(EngagementEvent.project_id)
            )).all())

            projects = (await session.execute(select(Project.id, Project.view_count))).all()
            for project_id, view_count in projects:
                engagements = counts.get(project_id, 0)
                rate = (engagements / view_count) * 100 if view_count else 0.0
                await session.execute(
                    update(Project)
                    .where(Project.id == project_id)
                    .values(engagement_score=rate)
                    .execution_options(synchronize_session=False)
                )
            await session.commit()

        logger.info("Recalculated engagement scores for %d projects", len(projects))
        return len(projects)

    async def update_unique_views(self) -> int:
        """Fill unique_views for daily aggregates from distinct viewing users (batch job)."""
        updated = 0
        async with self.session_factory() as session:
            records = (await session.execute(select(ProjectAnalytics))).scalars().all()
            for record in records:
                day_start = datetime.combine(record.date, datetime.min.time(), tzinfo=self.clock().tzinfo)
                unique = (await session.execute(
                    select(func.count(distinct(EngagementEvent.user_id))).where(
                        EngagementEvent.project_id == record.project_id,
                        EngagementEvent.action == EngagementAction.VIEW.value,
                        EngagementEvent.user_id.isnot(None),
                        EngagementEvent.created_at >= day_start,
                        EngagementEvent.created_at < day_start + timedelta(days=1),
                    )
                )).scalar() or 0
                if record.unique_views != unique:
                    record.unique_views = unique
                    updated += 1
            await session.commit()

        logger.info("Updated unique views on %d daily aggregates", updated)
        return updated
