"""Notification adapters."""
from .payment_link import CeleryPaymentLinkNotifier

__all__ = ["CeleryPaymentLinkNotifier"]
