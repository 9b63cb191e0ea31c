"""Unit of Work abstraction"""
from __future__ import annotations

from abc import ABC, abstractmethod

from domain.order.repository import OrderHistoryRepository, OrderRepository
from domain.payment.repository import PaymentRecordRepository


class AbstractUnitOfWork(ABC):
    """Transaction boundary used by application services.

    One unit of work covers one store step; multi-step workflows such as
    closing an order open a new unit of work per step.
    """

    order_repository: OrderRepository
    order_history_repository: OrderHistoryRepository
    payment_record_repository: PaymentRecordRepository

    def __init__(self, *, readonly: bool = False) -> None:
        self._committed = False
        self._readonly = readonly
        self.order_repository = None  # type: ignore[assignment]
        self.order_history_repository = None  # type: ignore[assignment]
        self.payment_record_repository = None  # type: ignore[assignment]

    async def __aenter__(self) -> "AbstractUnitOfWork":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if exc:
            await self.rollback()
        else:
            # commit only when writable and not committed explicitly
            if not self._readonly and not self._committed:
                await self.commit()

    @abstractmethod
    async def commit(self) -> None:
        """Commit the transaction"""
        ...

    @abstractmethod
    async def rollback(self) -> None:
        """Roll the transaction back"""
