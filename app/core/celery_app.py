from celery import Celery
from celery.schedules import crontab
from app.core.config import settings

celery_app = Celery(
    "dentalcare_tasks",
    broker=settings.REDIS_URL,
    backend=settings.REDIS_URL,
    include=["app.tasks.notification_tasks"]
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    task_always_eager=settings.CELERY_TASK_ALWAYS_EAGER,

    # Worker settings
    worker_prefetch_multiplier=1,
    task_acks_late=True,

    beat_schedule={
        "daily-appointment-reminders": {
            "task": "app.tasks.notification_tasks.send_daily_reminders",
            "schedule": crontab(hour=settings.REMINDER_BATCH_HOUR, minute=0),
        },
    },

    result_expires=3600,  # 1 hour
)
