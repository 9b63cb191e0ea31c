"""Celery task helpers."""
from .base_task import BaseTask
from .dispatcher import TaskDispatcher

__all__ = ["BaseTask", "TaskDispatcher"]
