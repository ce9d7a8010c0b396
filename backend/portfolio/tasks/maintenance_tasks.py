"""Reconciliation of derived views."""

import asyncio
import logging
from dataclasses import asdict

from portfolio.config import get_settings
from portfolio.dependencies.services import build_services
from portfolio.models.base import task_session_factory
from portfolio.services.search_engine import OpenSearchEngine
from portfolio.tasks.celery_app import celery_app

logger = logging.getLogger(__name__)


async def _reindex(batch_size: int | None) -> dict:
    settings = get_settings()
    engine, session_factory = task_session_factory()
    search_engine = OpenSearchEngine.from_settings(settings)
    try:
        await search_engine.ensure_index()
        services = build_services(session_factory, search_engine)
        summary = await services.orchestrator.reindex_all(batch_size)
        return asdict(summary)
    finally:
        await search_engine.close()
        await engine.dispose()


@celery_app.task(name="portfolio.tasks.maintenance_tasks.reindex_all_projects")
def reindex_all_projects(batch_size: int | None = None):
    """Rebuild search documents and embeddings for all published projects."""
    summary = asyncio.run(_reindex(batch_size))
    summary["failed_ids"] = [str(pid) for pid in summary["failed_ids"]]
    logger.info(f"Reindexed {summary['indexed']}/{summary['total']} projects ({summary['failed']} failed)")
    return summary
