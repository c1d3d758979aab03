"""Celery application for LeadIntake background jobs.

Run a worker with:
    celery -A leadintake.workers.celery_app worker --loglevel=INFO

Schedule the retry sweep with Celery Beat, e.g. every 15 minutes:
    celery -A leadintake.workers.celery_app beat
"""

from celery import Celery
from celery.schedules import crontab
from celery.signals import worker_process_init

from ..config import settings
from ..observability.logging_config import configure_logging

celery_app = Celery(
    "leadintake",
    broker=settings.CELERY_BROKER_URL,
    backend=settings.CELERY_RESULT_BACKEND,
    include=["leadintake.workers.inbound_email_worker"],
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    # Redeliver if a worker dies mid-task; processing is idempotent
    task_acks_late=True,
    task_reject_on_worker_lost=True,
)

celery_app.conf.beat_schedule = {
    "ingestion-retry-unprocessed": {
        "task": "ingestion.retry_unprocessed_inbound_emails",
        "schedule": crontab(minute="*/15"),
        "options": {"expires": 600},
    },
}


@worker_process_init.connect
def init_worker_logging(**kwargs):
    configure_logging(level=settings.LOG_LEVEL, json_format=settings.LOG_JSON)
