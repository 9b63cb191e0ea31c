"""Order domain exports."""
from .entity import Order, OrderHistoryRecord, OrderLine
from .repository import OrderHistoryRepository, OrderRepository

__all__ = [
    "Order",
    "OrderLine",
    "OrderHistoryRecord",
    "OrderRepository",
    "OrderHistoryRepository",
]
