from datetime import timedelta

from celery import Celery

from .config import get_settings
from .logging import configure_logging

settings = get_settings()
configure_logging()

celery_app = Celery(
    "source_watch",
    broker=settings.REDIS_URL,
    backend=settings.REDIS_URL,
)

celery_app.conf.update(
    task_routes={"app.services.ingest.refresh_active_sources": {"queue": "extraction"}},
    task_serializer="json",
    result_serializer="json",
    accept_content=["json"],
    timezone="UTC",
    enable_utc=True,
    imports=("app.services.ingest",),
    beat_schedule={
        # Periodic re-extraction of every active source
        "refresh-active-sources": {
            "task": "app.services.ingest.refresh_active_sources",
            "schedule": timedelta(minutes=settings.REFRESH_INTERVAL_MINUTES),
        },
    },
)
