"""NotificationGateway adapter that emails payment links through Celery."""
from __future__ import annotations

import asyncio
from typing import Optional

from application.ports.notification import NotificationGateway
from core.logging_config import get_logger
from domain.order.entity import OrderHistoryRecord
from infrastructure.tasks.utils.dispatcher import TaskDispatcher

logger = get_logger(__name__)


class CeleryPaymentLinkNotifier(NotificationGateway):
    """Enqueue the payment link email without holding up the caller.

    Publishing (or, in eager mode, running the task with its retries) happens
    in a worker thread scheduled in the background; ``send_payment_link``
    returns as soon as it is scheduled. Errors are logged when the
    background dispatch finishes.
    """

    def __init__(self, dispatcher: Optional[TaskDispatcher] = None, recipient: Optional[str] = None) -> None:
        self._dispatcher = dispatcher or TaskDispatcher()
        self._recipient = recipient
        self._pending: set[asyncio.Task] = set()

    async def send_payment_link(self, record: OrderHistoryRecord) -> None:
        task = asyncio.create_task(self._dispatch(record.order_id, str(record.final_price)))
        # the loop keeps only weak references to tasks
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        logger.info("payment_link_scheduled", order_id=record.order_id)

    async def _dispatch(self, order_id: str, final_price: str) -> None:
        try:
            await asyncio.to_thread(
                self._dispatcher.send_payment_link_email,
                order_id=order_id,
                final_price=final_price,
                recipient=self._recipient,
            )
        except Exception as exc:
            logger.error(
                "payment_link_notification_failed",
                order_id=order_id,
                error=str(exc),
                exc_info=True,
            )
        else:
            logger.info("payment_link_enqueued", order_id=order_id)

    async def drain(self) -> None:
        """Wait for scheduled dispatches; used on shutdown."""
        if self._pending:
            await asyncio.gather(*self._pending)
