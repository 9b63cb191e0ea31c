"""
API dependencies - composition root for application services
"""
from functools import lru_cache

from application.ports.notification import NotificationGateway
from application.services.order_service import OrderLifecycleService
from infrastructure.notifications import CeleryPaymentLinkNotifier
from infrastructure.unit_of_work import SQLAlchemyUnitOfWork


@lru_cache(maxsize=1)
def payment_link_notifier() -> CeleryPaymentLinkNotifier:
    """Process-wide notifier, so background dispatches can be drained on shutdown."""
    return CeleryPaymentLinkNotifier()


async def get_notification_gateway() -> NotificationGateway:
    return payment_link_notifier()


async def get_order_service() -> OrderLifecycleService:
    return OrderLifecycleService(
        uow_factory=SQLAlchemyUnitOfWork,
        notifier=await get_notification_gateway(),
    )
