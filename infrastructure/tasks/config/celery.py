"""Celery application configuration"""
from __future__ import annotations

import os
from celery import Celery
from celery.signals import setup_logging

from core.config import settings
from core.logging_config import configure_logging, get_logger


# Modules holding task definitions; the worker imports them at startup.
CELERY_IMPORTS = (
    "infrastructure.tasks.tasks.email",
)


celery_app = Celery("restaurant_orders")

celery_app.conf.update(
    broker_url=settings.redis.url or os.getenv("CELERY_BROKER_URL"),
    result_backend=settings.redis.url or os.getenv("CELERY_RESULT_BACKEND"),
    # JSON only: payloads are plain ids and amounts
    task_serializer="json",
    result_serializer="json",
    accept_content=["json"],
    timezone="UTC",
    enable_utc=True,
    # ack after the email went out so a lost worker re-delivers it
    task_acks_late=True,
    task_reject_on_worker_lost=True,
    result_expires=3600,
    worker_prefetch_multiplier=1,
    task_default_queue="default",
    task_routes={
        "infrastructure.tasks.tasks.email.*": {"queue": "notifications"},
    },
    # publishing happens inside API requests; give up quickly when the broker is down
    task_publish_retry_policy={
        "max_retries": 2,
        "interval_start": 0,
        "interval_step": 0.5,
        "interval_max": 1,
    },
)

celery_app.conf.imports = CELERY_IMPORTS

environment = getattr(settings, "ENVIRONMENT", "production") or "production"
# tests only: an eager run executes every retry in the calling process
if environment.lower() in {"test", "testing"}:
    celery_app.conf.task_always_eager = True


logger = get_logger(__name__)


@celery_app.on_after_configure.connect
def _log_configuration(sender, **kwargs):
    logger.info("celery_configured", broker=sender.conf.broker_url, eager=sender.conf.task_always_eager)


@setup_logging.connect
def _setup_logging(**kwargs):
    # workers log through the same structlog chain as the API
    configure_logging()
