"""Celery application configuration and beat schedule."""

from celery import Celery
from celery.schedules import crontab

from portfolio.config import get_settings

settings = get_settings()

celery_app = Celery(
    "portfolio",
    broker=settings.redis_url,
    backend=settings.redis_url,
    include=[
        "portfolio.tasks.analytics_tasks",
        "portfolio.tasks.maintenance_tasks",
    ],
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    task_track_started=True,
    task_time_limit=1800,
    task_soft_time_limit=1740,
    worker_prefetch_multiplier=1,
    task_acks_late=True,
    task_reject_on_worker_lost=True,
)

celery_app.conf.beat_schedule = {
    "recalculate-engagement-scores": {
        "task": "portfolio.tasks.analytics_tasks.recalculate_engagement_scores",
        "schedule": crontab(minute=0),
    },
    "update-unique-views": {
        "task": "portfolio.tasks.analytics_tasks.update_unique_views",
        "schedule": crontab(minute=15, hour=2),
    },
    "reindex-all-projects": {
        "task": "portfolio.tasks.maintenance_tasks.reindex_all_projects",
        "schedule": crontab(minute=30, hour=3),
    },
}
