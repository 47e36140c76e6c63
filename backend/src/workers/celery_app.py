"""Celery application and beat schedule.

Run a worker with beat embedded:
    celery -A workers.celery_app worker --beat --loglevel=info
"""

from celery import Celery
from celery.schedules import crontab

from config import settings

celery_app = Celery(
    "pollkeeper",
    broker=settings.CELERY_BROKER_URL,
    backend=settings.CELERY_RESULT_BACKEND,
    include=["housekeeping.tasks"],
)

celery_app.conf.update(
    timezone="UTC",
    enable_utc=True,
    task_acks_late=True,
    beat_schedule={
        'housekeeping-sweep-daily': {
            'task': 'housekeeping.sweep',
            'schedule': crontab(hour=settings.HOUSEKEEPING_SCHEDULE_HOUR, minute=0),
            'options': {
                'expires': 3600,  # Task expires after 1 hour if not picked up
            },
        },
    },
)
