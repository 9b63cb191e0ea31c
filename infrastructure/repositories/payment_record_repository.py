"""
Payment record repository implementation - SQLAlchemy
"""
from __future__ import annotations

from decimal import Decimal
from typing import List

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from domain.payment import PaymentMethod, PaymentRecord, PaymentRecordRepository
from infrastructure.models.payment import PaymentRecordModel
from .base import store_errors


class SQLAlchemyPaymentRecordRepository(PaymentRecordRepository):
    """Append-only payment log"""

    def __init__(self, session: AsyncSession):
        self.session = session

    @staticmethod
    def _to_entity(model: PaymentRecordModel) -> PaymentRecord:
        return PaymentRecord(
            id=model.id,
            order_id=model.order_id,
            member_id=model.member_id,
            final_price=Decimal(model.final_price),
            payment_method=PaymentMethod(model.payment_method),
            payment_time=model.payment_time,
        )

    async def add(self, record: PaymentRecord) -> PaymentRecord:
        model = PaymentRecordModel(
            order_id=record.order_id,
            member_id=record.member_id,
            final_price=record.final_price,
            payment_method=record.payment_method.value,
            payment_time=record.payment_time,
        )
        with store_errors("payment_record.add"):
            self.session.add(model)
            await self.session.flush()
            await self.session.refresh(model)
        return self._to_entity(model)

    async def list_by_order_id(self, order_id: str) -> List[PaymentRecord]:
        with store_errors("payment_record.list"):
            result = await self.session.execute(
                select(PaymentRecordModel)
                .where(PaymentRecordModel.order_id == order_id)
                .order_by(PaymentRecordModel.payment_time.asc(), PaymentRecordModel.id.asc())
            )
            models = result.scalars().all()
        return [self._to_entity(model) for model in models]
