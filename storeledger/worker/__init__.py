"""Celery worker configuration and tasks."""

from .celery_app import celery_app
from .tasks import (
    calculate_depreciation_task,
    close_period_task,
)

__all__ = [
    "celery_app",
    "calculate_depreciation_task",
    "close_period_task",
]
