"""
Payment record entity - a payment-method selection against a closed order
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Optional

from domain.common.exceptions import InvalidInputException


class PaymentMethod(str, Enum):
    """Settlement methods offered at the table."""
    CASH = "cash"
    ONLINE = "online"      # payment link sent by email
    CREDIT = "credit"      # added to the member's credit limit

    @classmethod
    def parse(cls, value: "str | PaymentMethod") -> "PaymentMethod":
        try:
            return cls(value)
        except ValueError:
            raise InvalidInputException(
                f"Unsupported payment method: {value}",
                field="payment_method",
                details={"allowed": [m.value for m in cls]},
            )


def _ensure_utc(dt: Optional[datetime]) -> Optional[datetime]:
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


@dataclass(frozen=True)
class PaymentRecord:
    """
    Log entry of a payment selection.

    Business rules:
    1. final_price is copied from the order history record, never supplied by clients
    2. several records may exist for one order_id (retried selections)
    """

    order_id: str
    member_id: str
    final_price: Decimal
    payment_method: PaymentMethod
    payment_time: datetime
    id: Optional[int] = None

    def __post_init__(self):
        object.__setattr__(self, "payment_method", PaymentMethod.parse(self.payment_method))
        object.__setattr__(self, "payment_time", _ensure_utc(self.payment_time))
