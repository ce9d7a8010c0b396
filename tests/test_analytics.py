import uuid
from datetime import timedelta

import pytest
from sqlalchemy import select

from portfolio.errors import NotFound
from portfolio.models.engagement_event import EngagementAction, EngagementEvent
from portfolio.models.project import Project
from portfolio.models.project_analytics import ProjectAnalytics
from portfolio.services.analytics_service import extract_domain

from tests.support import NOW, add_events, add_follow, create_project, create_user, make_harness, run_db


@pytest.mark.parametrize("url, expected", [
    ("https://www.google.com/search?q=x", "google.com"),
    ("http://news.ycombinator.com/item", "news.ycombinator.com"),
    ("not a url", "direct"),
    ("", "direct"),
    (None, "direct"),
])
def test_extract_domain(url, expected):
    assert extract_domain(url) == expected


def test_view_bumps_counters_and_daily_aggregate():
    async def scenario(session_factory):
        analytics = make_harness(session_factory).services.analytics
        creator = await create_user(session_factory)
        viewer = await create_user(session_factory)
        project = await create_project(session_factory, creator, "Viewed")

        await analytics.track_event(viewer.id, project.id, EngagementAction.VIEW, "s1", "https://www.google.com/")
        await analytics.track_event(None, project.id, EngagementAction.VIEW, "s2", "https://google.com/x")
        await analytics.track_event(None, project.id, EngagementAction.VIEW, "s3")

        async with session_factory() as session:
            stored = await session.get(Project, project.id)
            daily = (await session.execute(select(ProjectAnalytics))).scalars().all()
        return stored, daily

    stored, daily = run_db(scenario)
    assert stored.view_count == 3
    assert len(daily) == 1
    assert daily[0].date == NOW.date()
    assert daily[0].views == 3
    assert daily[0].referral_sources == {"google.com": 2}


def test_owner_and_unpublished_views_are_not_counted():
    async def scenario(session_factory):
        analytics = make_harness(session_factory).services.analytics
        creator = await create_user(session_factory)
        published = await create_project(session_factory, creator, "Public")
        draft = await create_project(session_factory, creator, "Draft", is_published=False)

        own_view = await analytics.track_event(creator.id, published.id, EngagementAction.VIEW, "s1")
        draft_view = await analytics.track_event(None, draft.id, EngagementAction.VIEW, "s2")

        async with session_factory() as session:
            events = (await session.execute(select(EngagementEvent))).scalars().all()
            counts = [
                (await session.get(Project, published.id)).view_count,
                (await session.get(Project, draft.id)).view_count,
            ]
        return own_view, draft_view, events, counts

    own_view, draft_view, events, counts = run_db(scenario)
    assert own_view is None and draft_view is None
    assert events == []
    assert counts == [0, 0]


def test_track_event_unknown_project():
    async def scenario(session_factory):
        analytics = make_harness(session_factory).services.analytics
        with pytest.raises(NotFound):
            await analytics.track_event(None, uuid.uuid4(), EngagementAction.LIKE, "s1")

    run_db(scenario)


def test_engagement_rates_batch():
    async def scenario(session_factory):
        analytics = make_harness(session_factory).services.analytics
        creator = await create_user(session_factory)
        project = await create_project(session_factory, creator, "Rated")
        unseen = await create_project(session_factory, creator, "Unseen")

        for i in range(4):
            await analytics.track_event(None, project.id, EngagementAction.VIEW, f"v{i}")
        await add_events(session_factory, project.id, EngagementAction.LIKE, 1)
        await add_events(session_factory, project.id, EngagementAction.SHARE, 1)
        await add_events(session_factory, unseen.id, EngagementAction.LIKE, 2)

        processed = await analytics.calculate_engagement_rates()
        async with session_factory() as session:
            rated = await session.get(Project, project.id)
            zero = await session.get(Project, unseen.id)
        return processed, rated.engagement_score, zero.engagement_score

    processed, rated, zero = run_db(scenario)
    assert processed == 2
    assert rated == pytest.approx(50.0)
    assert zero == 0.0


def test_update_unique_views_counts_distinct_users():
    async def scenario(session_factory):
        analytics = make_harness(session_factory).services.analytics
        creator = await create_user(session_factory)
        alice = await create_user(session_factory)
        bob = await create_user(session_factory)
        project = await create_project(session_factory, creator, "Popular")

        for user_id in (alice.id, alice.id, bob.id, None):
            await analytics.track_event(user_id, project.id, EngagementAction.VIEW, "s")

        updated = await analytics.update_unique_views()
        report = await analytics.project_analytics(project.id, days=7)
        return updated, report

    updated, report = run_db(scenario)
    assert updated == 1
    assert len(report) == 1
    assert report[0].views == 4
    assert report[0].unique_views == 2


def test_dashboard_and_funnel():
    async def scenario(session_factory):
        analytics = make_harness(session_factory).services.analytics
        creator = await create_user(session_factory)
        fan = await create_user(session_factory)
        first = await create_project(session_factory, creator, "First")
        second = await create_project(session_factory, creator, "Second")

        for i in range(4):
            await analytics.track_event(None, first.id, EngagementAction.VIEW, f"v{i}")
        await analytics.track_event(None, second.id, EngagementAction.VIEW, "v")
        await add_events(session_factory, first.id, EngagementAction.LIKE, 2, at=NOW - timedelta(days=1))
        await add_follow(session_factory, fan, creator)

        return first.id, second.id, await analytics.dashboard(creator.id), await analytics.funnel(first.id)

    first_id, second_id, dashboard, funnel = run_db(scenario)
    assert dashboard.total_views == 5
    assert dashboard.total_projects == 2
    assert dashboard.total_followers == 1
    assert dashboard.views_this_month == 5
    assert [p.id for p in dashboard.top_projects] == [first_id, second_id]
    assert [(p.date, p.value) for p in dashboard.views_trend] == [(NOW.date(), 5)]
    assert [(p.date, p.value) for p in dashboard.engagement_trend] == [((NOW - timedelta(days=1)).date(), 2)]

    assert funnel.views == 4
    assert funnel.engagements == 2
    assert funnel.follows == 1
    assert funnel.conversion_rate == pytest.approx(25.0)
