from celery import Celery
from celery.schedules import crontab
from celery.utils.log import get_task_logger

from quotebook.core.settings import settings

celery_app = Celery(
    "quotebook",
    broker=settings.REDIS_URL,
    backend=settings.REDIS_URL,
    include=["quotebook.tasks"],
)

# Celery configuratie
celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="Asia/Seoul",
    enable_utc=True,
    task_track_started=True,
    task_time_limit=30 * 60,  # 30 minuten
    task_soft_time_limit=25 * 60,  # 25 minuten
    worker_prefetch_multiplier=1,
    worker_max_tasks_per_child=1000,
    beat_schedule={
        "daily-notification-checks": {
            "task": "run_notification_checks",
            "schedule": crontab(hour=9, minute=0),
        },
    },
)

# Logger
logger = get_task_logger(__name__)
