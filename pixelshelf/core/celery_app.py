"""Celery configuration for background maintenance."""

import importlib
import logging
from celery import Celery
from celery.signals import task_failure, task_success, worker_ready, worker_shutdown

from pixelshelf.core.config import settings


logger = logging.getLogger(__name__)


celery_app = Celery(
    "pixelshelf",
    broker=settings.REDIS_URL,
    backend=settings.REDIS_URL,
)


celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    worker_concurrency=settings.WORKER_CONCURRENCY,
    task_acks_late=True,
    task_reject_on_worker_lost=True,
    task_time_limit=600,
    task_soft_time_limit=540,
    worker_prefetch_multiplier=1,
    broker_connection_retry_on_startup=True,
    broker_connection_max_retries=10,
    result_expires=60 * 60 * 24,
)


celery_app.conf.task_routes = {
    "pixelshelf.tasks.maintenance.*": {"queue": "maintenance"},
}


celery_app.conf.task_default_retry_delay = 30
celery_app.conf.task_max_retries = 3


celery_app.conf.beat_schedule = {
    "cleanup-old-notifications": {
        "task": "pixelshelf.tasks.maintenance.cleanup_old_notifications",
        "schedule": 86400.0,
    },
}


@task_failure.connect
def task_failure_handler(sender=None, task_id=None, exception=None, **kwargs):
    logger.error(f"Task {task_id} {sender.name} failed: {exception}")


@task_success.connect
def task_success_handler(sender=None, result=None, **kwargs):
    task_name = sender.name if sender else "Unknown"
    logger.info(f"Task {task_name} completed successfully")


@worker_ready.connect
def worker_ready_handler(**kwargs):
    logger.info(f"Celery worker ready: {kwargs.get('hostname')}")


@worker_shutdown.connect
def worker_shutdown_handler(**kwargs):
    logger.info(f"Celery worker shutting down: {kwargs.get('hostname')}")


def get_celery_app():
    """Get the Celery app with the task modules registered."""
    importlib.import_module("pixelshelf.tasks.maintenance")
    logger.info(f"Registered {len(celery_app.tasks)} tasks")
    return celery_app
