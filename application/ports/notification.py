"""Application-owned notification port.

The order lifecycle service only knows this Protocol; the transport (email
via Celery, SMS, ...) is an infrastructure adapter injected at the
composition root.
"""
from __future__ import annotations

from typing import Protocol, runtime_checkable

from domain.order.entity import OrderHistoryRecord


@runtime_checkable
class NotificationGateway(Protocol):
    async def send_payment_link(self, record: OrderHistoryRecord) -> None:
        """Hand the payment link for ``record`` to the transport.

        Implementations may raise; callers treat any error as a logged,
        non-fatal notification failure.
        """
        ...
