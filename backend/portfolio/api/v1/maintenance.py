"""Manual triggers for the scheduled maintenance jobs."""

from fastapi import APIRouter, Query

from portfolio.api.envelope import ok

router = APIRouter(prefix="/maintenance", tags=["maintenance"])


@router.post("/reindex", status_code=202)
async def trigger_reindex(batch_size: int | None = Query(None, ge=1, le=500)):
    """Queue a full rebuild of search documents and embeddings."""
    from portfolio.tasks.maintenance_tasks import reindex_all_projects

    task = reindex_all_projects.delay(batch_size)
    return ok({"task_id": task.id, "message": "Reindex queued"})


@router.post("/recalculate-engagement", status_code=202)
async def trigger_engagement_recalculation():
    from portfolio.tasks.analytics_tasks import recalculate_engagement_scores

    task = recalculate_engagement_scores.delay()
    return ok({"task_id": task.id, "message": "Engagement recalculation queued"})


@router.post("/update-unique-views", status_code=202)
async def trigger_unique_views_update():
    from portfolio.tasks.analytics_tasks import update_unique_views

    task = update_unique_views.delay()
    return ok({"task_id": task.id, "message": "Unique views update queued"})
