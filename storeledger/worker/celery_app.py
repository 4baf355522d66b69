"""Celery application configuration."""

from celery import Celery
from celery.schedules import crontab

from ..core.config import get_settings

settings = get_settings()

celery_app = Celery(
    "storeledger_worker",
    broker=settings.celery_broker_url,
    backend=settings.celery_result_backend,
    include=["storeledger.worker.tasks"]
)

# Celery configuration
celery_app.conf.update(
    # Task settings
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,

    # Task execution settings
    task_acks_late=True,
    task_reject_on_worker_lost=True,

    # Result settings
    result_expires=86400,  # 24 hours

    # One ledger job at a time per worker process
    worker_prefetch_multiplier=1,
    worker_concurrency=2,

    # Task routing
    task_routes={
        "storeledger.worker.tasks.calculate_depreciation_task": {"queue": "ledger"},
        "storeledger.worker.tasks.close_period_task": {"queue": "ledger"},
        "storeledger.worker.tasks.sync_debts_task": {"queue": "ledger"},
    },

    # Beat schedule (periodic tasks)
    beat_schedule={
        "depreciate-fixed-assets-monthly": {
            "task": "storeledger.worker.tasks.calculate_depreciation_task",
            "schedule": crontab(day_of_month=settings.depreciation_beat_day, hour=1, minute=0),
        },
    },
)

celery_app.conf.task_queues = {
    "ledger": {
        "exchange": "ledger",
        "routing_key": "ledger",
    },
}
