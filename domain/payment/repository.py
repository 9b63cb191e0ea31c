"""
Payment record repository - append-only log of payment selections
"""
from abc import ABC, abstractmethod
from typing import List

from .entity import PaymentRecord


class PaymentRecordRepository(ABC):
    """Payment record store abstraction"""

    @abstractmethod
    async def add(self, record: PaymentRecord) -> PaymentRecord:
        """Append a payment record"""
        pass

    @abstractmethod
    async def list_by_order_id(self, order_id: str) -> List[PaymentRecord]:
        """Payment records of one order, oldest first"""
        pass
