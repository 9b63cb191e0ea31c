"""Email related Celery tasks"""
from __future__ import annotations

from decimal import Decimal
from typing import Optional

from celery import shared_task

from ..utils.base_task import BaseTask
from core.config import settings
from core.logging_config import get_logger
from domain.common.exceptions import NotificationFailureException
from infrastructure.external.email import SMTPEmailClient

logger = get_logger(__name__)


def render_payment_link_email(order_id: str, final_price: Decimal) -> tuple[str, str]:
    """Return (subject, body) of the payment link email."""
    cfg = settings.notification
    link = f"{cfg.payment_link_base_url.rstrip('/')}/{order_id}"
    amount = final_price.quantize(Decimal("0.01"))
    body = (
        "Dear Customer,\n"
        "\n"
        "Thank you for your order. Please use the following link to complete your payment:\n"
        "\n"
        f"{link}\n"
        "\n"
        "Order Details:\n"
        f"- Order ID: {order_id}\n"
        f"- Total Amount: {cfg.currency_symbol}{amount}\n"
        "\n"
        "Thank you for your business!\n"
        "\n"
        "Best regards,\n"
        f"{settings.PROJECT_NAME}\n"
    )
    return "Your Payment Link", body


@shared_task(
    bind=True,
    base=BaseTask,
    name="infrastructure.tasks.tasks.email.send_payment_link_email",
    autoretry_for=(NotificationFailureException,),
    retry_backoff=True,
    retry_backoff_max=600,
    retry_jitter=True,
    retry_kwargs={"max_retries": 5},
)
def send_payment_link_email(
    self,
    order_id: str,
    final_price: str,
    recipient: Optional[str] = None,
) -> bool:
    """Email the payment link of a closed order.

    A refused delivery raises so Celery retries with backoff.
    """
    to = recipient or settings.notification.payment_link_recipient
    subject, body = render_payment_link_email(order_id, Decimal(final_price))
    client = SMTPEmailClient.from_settings(settings.notification)
    if not client.send(to, subject, body):
        raise NotificationFailureException(
            "Payment link email was not delivered",
            details={"order_id": order_id, "recipient": to},
        )
    logger.info("payment_link_email_sent", order_id=order_id, recipient=to)
    return True
