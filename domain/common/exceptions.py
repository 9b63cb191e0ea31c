"""Business exceptions raised by the domain, application and infrastructure layers.

The core layer only maps these to HTTP responses; the domain layer never
depends on core.
"""
from __future__ import annotations

from typing import Optional
from shared.codes import BusinessCode


class BusinessException(Exception):
    """Base class for all business errors."""

    def __init__(
        self,
        code: int,
        message: str,
        error_type: str = "BusinessError",
        details: Optional[dict] = None,
        field: Optional[str] = None,
    ) -> None:
        self.code = code
        self.message = message
        self.error_type = error_type
        self.details = details
        self.field = field
        super().__init__(self.message)


class InvalidInputException(BusinessException):
    def __init__(
        self,
        message: str,
        *,
        field: str | None = None,
        details: dict | None = None,
    ):
        super().__init__(
            code=BusinessCode.PARAM_VALIDATION_ERROR,
            message=message,
            error_type="InvalidInput",
            details=details,
            field=field,
        )


class OrderNotFoundException(BusinessException):
    def __init__(self, order_id: Optional[str] = None, *, message: str = "Order not found"):
        details = {"order_id": order_id} if order_id else None
        super().__init__(
            code=BusinessCode.ORDER_NOT_FOUND,
            message=message,
            error_type="OrderNotFound",
            details=details,
        )


class DuplicateOrderException(BusinessException):
    def __init__(self, order_id: str):
        super().__init__(
            code=BusinessCode.ORDER_ALREADY_EXISTS,
            message=f"Order {order_id} already exists",
            error_type="DuplicateOrder",
            details={"order_id": order_id},
            field="order_id",
        )


class StoreUnavailableException(BusinessException):
    def __init__(self, message: str = "Order store unavailable", *, details: Optional[dict] = None):
        super().__init__(
            code=BusinessCode.DATABASE_ERROR,
            message=message,
            error_type="StoreUnavailable",
            details=details,
        )


class NotificationFailureException(BusinessException):
    """Raised by notification transports; callers log it and carry on."""

    def __init__(self, message: str = "Notification delivery failed", *, details: Optional[dict] = None):
        super().__init__(
            code=BusinessCode.NOTIFICATION_ERROR,
            message=message,
            error_type="NotificationFailure",
            details=details,
        )
