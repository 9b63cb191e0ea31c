"""Dispatching helpers that keep Celery out of the application layer."""
from __future__ import annotations

from typing import Any, Dict, Optional

from ..config.celery import celery_app

PAYMENT_LINK_TASK = "infrastructure.tasks.tasks.email.send_payment_link_email"


class TaskDispatcher:
    """Schedules tasks by name; runs them in-process when Celery is eager."""

    def send_payment_link_email(
        self,
        order_id: str,
        final_price: str,
        recipient: Optional[str] = None,
    ) -> None:
        kwargs: Dict[str, Any] = {"order_id": order_id, "final_price": final_price}
        if recipient:
            kwargs["recipient"] = recipient
        self.enqueue(PAYMENT_LINK_TASK, kwargs=kwargs)

    def enqueue(self, task_name: str, *, args: tuple | None = None, kwargs: Dict[str, Any] | None = None) -> None:
        if celery_app.conf.task_always_eager:
            # send_task bypasses eager mode, so look the task up and run it here
            celery_app.loader.import_default_modules()
            celery_app.tasks[task_name].apply(args=args or (), kwargs=kwargs or {})
            return
        celery_app.send_task(task_name, args=args or (), kwargs=kwargs or {})
