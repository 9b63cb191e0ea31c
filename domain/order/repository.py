"""Repository abstractions for live orders and their history records."""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional, Sequence

from .entity import Order, OrderHistoryRecord


class OrderRepository(ABC):
    """Live order store."""

    @abstractmethod
    async def create(self, order: Order) -> Order:
        """Insert a new order; raises DuplicateOrderException on an existing order_id."""

    @abstractmethod
    async def get_by_order_id(self, order_id: str) -> Optional[Order]:
        ...

    @abstractmethod
    async def update(self, order: Order) -> Order:
        ...

    @abstractmethod
    async def delete(self, order_id: str) -> bool:
        """Remove the order; returns False if nothing was deleted."""

    @abstractmethod
    async def list(self, *, skip: int = 0, limit: Optional[int] = None) -> list[Order]:
        """Orders newest first."""

    @abstractmethod
    async def reset_update_flags(self, order_ids: Sequence[str]) -> int:
        """Clear ``is_updated`` on the matching orders; returns the number touched."""


class OrderHistoryRepository(ABC):
    """Archive of closed orders, one record per order_id."""

    @abstractmethod
    async def add(self, record: OrderHistoryRecord) -> OrderHistoryRecord:
        """Insert a record; raises DuplicateOrderException if one already exists."""

    @abstractmethod
    async def get_by_order_id(self, order_id: str) -> Optional[OrderHistoryRecord]:
        ...
