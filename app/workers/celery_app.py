# app/workers/celery_app.py
"""
Celery application for the periodic maintenance jobs.

Workers and beat share broker and result backend settings with the API.
Both jobs run on the ``maintenance`` queue so they never wait behind other
work; their crontabs are deployment parameters.
"""
from celery import Celery
from celery.schedules import crontab
from kombu import Queue

from app.core.config import settings
from app.core.logging import logger

MAINTENANCE_QUEUE = "maintenance"

DEFAULT_AGREEMENT_RECONCILIATION_CRON = "0 1 * * *"
DEFAULT_PROVISIONAL_CLEANUP_CRON = "0 2 * * *"


def _crontab(parts) -> crontab:
    return crontab(
        minute=parts[0],
        hour=parts[1],
        day_of_month=parts[2],
        month_of_year=parts[3],
        day_of_week=parts[4],
    )


def parse_crontab(expression: str, default: str) -> crontab:
    """
    Build a crontab from "minute hour day month day_of_week".

    Malformed expressions fall back to ``default``.
    """
    parts = (expression or "").split()
    if len(parts) == 5:
        try:
            return _crontab(parts)
        except Exception as exc:
            logger.warning(f"Invalid cron expression '{expression}': {exc}; using '{default}'")
    else:
        logger.warning(f"Invalid cron expression '{expression}'; using '{default}'")
    return _crontab(default.split())


def build_beat_schedule() -> dict:
    return {
        "agreement-expiration": {
            "task": "app.workers.tasks.agreement_expiration_task",
            "schedule": parse_crontab(
                settings.AGREEMENT_RECONCILIATION_CRON, DEFAULT_AGREEMENT_RECONCILIATION_CRON
            ),
            "options": {"queue": MAINTENANCE_QUEUE},
        },
        "provisional-cleanup": {
            "task": "app.workers.tasks.provisional_cleanup_task",
            "schedule": parse_crontab(
                settings.PROVISIONAL_CLEANUP_CRON, DEFAULT_PROVISIONAL_CLEANUP_CRON
            ),
            "options": {"queue": MAINTENANCE_QUEUE},
        },
    }


celery_app = Celery(
    "parctrack",
    broker=settings.CELERY_BROKER_URL,
    backend=settings.CELERY_RESULT_BACKEND,
    include=["app.workers.tasks"],
)

celery_app.conf.task_queues = (
    Queue(MAINTENANCE_QUEUE, routing_key=MAINTENANCE_QUEUE),
)

celery_app.conf.update(
    task_default_queue=MAINTENANCE_QUEUE,
    task_acks_late=True,
    worker_prefetch_multiplier=1,
    task_routes={
        "app.workers.tasks.agreement_expiration_task": {"queue": MAINTENANCE_QUEUE},
        "app.workers.tasks.provisional_cleanup_task": {"queue": MAINTENANCE_QUEUE},
    },
    beat_schedule=build_beat_schedule(),
    timezone="UTC",
)
