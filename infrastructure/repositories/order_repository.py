"""SQLAlchemy-backed repository for live orders."""
from __future__ import annotations

from decimal import Decimal
from typing import Optional, Sequence

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from domain.common.exceptions import OrderNotFoundException
from domain.order import Order, OrderRepository
from infrastructure.models.order import OrderModel
from .base import lines_from_json, lines_to_json, store_errors


class SQLAlchemyOrderRepository(OrderRepository):
    """Persist live orders using SQLAlchemy ORM."""

    def __init__(self, session: AsyncSession):
        self.session = session

    def _to_entity(self, model: OrderModel) -> Order:
        return Order(
            id=model.id,
            order_id=model.order_id,
            table_number=model.table_number,
            member_id=model.member_id,
            lines=lines_from_json(model.lines),
            created_at=model.created_at,
            is_closed=model.is_closed,
            is_updated=model.is_updated,
            remarks=model.remarks,
            final_price=Decimal(model.final_price) if model.final_price is not None else None,
        )

    async def _get_model(self, order_id: str) -> Optional[OrderModel]:
        result = await self.session.execute(
            select(OrderModel).where(OrderModel.order_id == order_id)
        )
        return result.scalar_one_or_none()

    async def create(self, order: Order) -> Order:
        model = OrderModel(
            order_id=order.order_id,
            table_number=order.table_number,
            member_id=order.member_id,
            lines=lines_to_json(order.lines),
            is_closed=order.is_closed,
            is_updated=order.is_updated,
            remarks=order.remarks,
            final_price=order.final_price,
            created_at=order.created_at,
        )
        with store_errors("order.create", order_id=order.order_id):
            self.session.add(model)
            await self.session.flush()
            await self.session.refresh(model)
        return self._to_entity(model)

    async def get_by_order_id(self, order_id: str) -> Optional[Order]:
        with store_errors("order.get"):
            model = await self._get_model(order_id)
        return self._to_entity(model) if model else None

    async def update(self, order: Order) -> Order:
        with store_errors("order.update"):
            model = await self._get_model(order.order_id)
            if model is None:
                raise OrderNotFoundException(order.order_id)

            model.table_number = order.table_number
            model.member_id = order.member_id
            model.lines = lines_to_json(order.lines)
            model.is_closed = order.is_closed
            model.is_updated = order.is_updated
            model.remarks = order.remarks
            model.final_price = order.final_price

            await self.session.flush()
            await self.session.refresh(model)
        return self._to_entity(model)

    async def delete(self, order_id: str) -> bool:
        with store_errors("order.delete"):
            result = await self.session.execute(
                delete(OrderModel).where(OrderModel.order_id == order_id)
            )
        return bool(result.rowcount)

    async def list(self, *, skip: int = 0, limit: Optional[int] = None) -> list[Order]:
        query = select(OrderModel).order_by(
            OrderModel.created_at.desc(),
            OrderModel.id.desc(),
        )
        if skip:
            query = query.offset(skip)
        if limit is not None:
            query = query.limit(limit)
        with store_errors("order.list"):
            result = await self.session.execute(query)
            models = result.scalars().all()
        return [self._to_entity(model) for model in models]

    async def reset_update_flags(self, order_ids: Sequence[str]) -> int:
        if not order_ids:
            return 0
        with store_errors("order.reset_update_flags"):
            result = await self.session.execute(
                update(OrderModel)
                .where(OrderModel.order_id.in_(list(order_ids)))
                .values(is_updated=False)
                .execution_options(synchronize_session=False)
            )
        return int(result.rowcount or 0)
