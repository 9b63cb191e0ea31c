"""SQLAlchemy-backed repository for closed order history."""
from __future__ import annotations

from decimal import Decimal
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from domain.order import OrderHistoryRecord, OrderHistoryRepository
from infrastructure.models.order import OrderHistoryModel
from .base import lines_from_json, lines_to_json, store_errors


class SQLAlchemyOrderHistoryRepository(OrderHistoryRepository):
    """Insert-once archive; relies on the unique index on order_id."""

    def __init__(self, session: AsyncSession):
        self.session = session

    def _to_entity(self, model: OrderHistoryModel) -> OrderHistoryRecord:
        return OrderHistoryRecord(
            order_id=model.order_id,
            created_at=model.created_at,
            table_number=model.table_number,
            member_id=model.member_id,
            lines=tuple(lines_from_json(model.lines)),
            final_price=Decimal(model.final_price),
            closed_at=model.closed_at,
        )

    async def add(self, record: OrderHistoryRecord) -> OrderHistoryRecord:
        model = OrderHistoryModel(
            order_id=record.order_id,
            table_number=record.table_number,
            member_id=record.member_id,
            lines=lines_to_json(record.lines),
            final_price=record.final_price,
            created_at=record.created_at,
            closed_at=record.closed_at,
        )
        with store_errors("order_history.add", order_id=record.order_id):
            self.session.add(model)
            await self.session.flush()
            await self.session.refresh(model)
        return self._to_entity(model)

    async def get_by_order_id(self, order_id: str) -> Optional[OrderHistoryRecord]:
        with store_errors("order_history.get"):
            result = await self.session.execute(
                select(OrderHistoryModel).where(OrderHistoryModel.order_id == order_id)
            )
            model = result.scalar_one_or_none()
        return self._to_entity(model) if model else None
