"""Analytics batch jobs — engagement scores and unique view counts."""

import asyncio
import logging

from portfolio.tasks.celery_app import celery_app
from portfolio.models.base import task_session_factory
from portfolio.services.analytics_service import AnalyticsService

logger = logging.getLogger(__name__)


async def _run(job: str) -> int:
    engine, session_factory = task_session_factory()
    try:
        service = AnalyticsService(session_factory)
        return await getattr(service, job)()
    finally:
        await engine.dispose()


@celery_app.task(name="portfolio.tasks.analytics_tasks.recalculate_engagement_scores")
def recalculate_engagement_scores():
    """Recompute engagement_score for every project.

    Popularity-sorted search results read this score, so they lag real
    engagement by up to one schedule interval.
    """
    try:
        updated = asyncio.run(_run("calculate_engagement_rates"))
    except Exception:
        logger.exception("Engagement score recalculation failed")
        raise
    return {"projects": updated}


@celery_app.task(name="portfolio.tasks.analytics_tasks.update_unique_views")
def update_unique_views():
    """Fill unique view counts on daily analytics rows."""
    try:
        updated = asyncio.run(_run("update_unique_views"))
    except Exception:
        logger.exception("Unique views update failed")
        raise
    return {"updated": updated}
