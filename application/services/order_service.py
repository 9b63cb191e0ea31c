"""
Order lifecycle application service (application/services).

Orchestrates the live order -> history record -> payment record workflow
on top of the order/history/payment repositories. Prices are always derived
by the domain pricing module; this service never computes money itself.
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable, Optional, Sequence

from application.dto import (
    OrderCreateDTO,
    OrderDTO,
    OrderHistoryDTO,
    OrderLineDTO,
    OrderUpdateDTO,
    PaymentRecordDTO,
    PaymentResultDTO,
)
from application.ports.notification import NotificationGateway
from core.logging_config import get_logger
from domain.common.exceptions import (
    DuplicateOrderException,
    InvalidInputException,
    OrderNotFoundException,
    StoreUnavailableException,
)
from domain.common.unit_of_work import AbstractUnitOfWork
from domain.order.entity import Order, OrderHistoryRecord, OrderLine
from domain.payment.entity import PaymentMethod, PaymentRecord


logger = get_logger(__name__)


SETTLEMENT_MESSAGES = {
    PaymentMethod.CASH: "Please pay the final amount in cash.",
    PaymentMethod.ONLINE: "Payment link has been sent to your email.",
    PaymentMethod.CREDIT: "The final amount has been added to your credit limit.",
}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class OrderLifecycleService:
    """Create, edit, close and settle restaurant orders."""

    def __init__(
        self,
        uow_factory: Callable[..., AbstractUnitOfWork],
        notifier: Optional[NotificationGateway] = None,
    ) -> None:
        self._uow_factory = uow_factory
        self._notifier = notifier

    # ------------------------------------------------------------------
    # DTO helpers
    # ------------------------------------------------------------------
    @staticmethod
    def _lines_to_dto(lines: Sequence[OrderLine]) -> list[OrderLineDTO]:
        return [
            OrderLineDTO(
                menu_item=line.menu_item,
                quantity=line.quantity,
                unit_price=line.unit_price,
                line_total=line.line_total,
            )
            for line in lines
        ]

    def _to_dto(self, order: Order) -> OrderDTO:
        return OrderDTO(
            order_id=order.order_id,
            created_at=order.created_at,
            table_number=order.table_number,
            member_id=order.member_id,
            items=self._lines_to_dto(order.lines),
            is_closed=order.is_closed,
            is_updated=order.is_updated,
            remarks=order.remarks,
            final_price=order.final_price,
        )

    def _history_to_dto(self, record: OrderHistoryRecord) -> OrderHistoryDTO:
        return OrderHistoryDTO(
            order_id=record.order_id,
            created_at=record.created_at,
            table_number=record.table_number,
            member_id=record.member_id,
            items=self._lines_to_dto(record.lines),
            final_price=record.final_price,
            closed_at=record.closed_at,
        )

    @staticmethod
    def _payment_to_dto(record: PaymentRecord) -> PaymentRecordDTO:
        return PaymentRecordDTO(
            id=record.id,
            order_id=record.order_id,
            member_id=record.member_id,
            final_price=record.final_price,
            payment_method=record.payment_method,
            payment_time=record.payment_time,
        )

    # ------------------------------------------------------------------
    # Live orders
    # ------------------------------------------------------------------
    async def list_orders(self) -> list[OrderDTO]:
        """Live orders, newest first."""
        async with self._uow_factory(readonly=True) as uow:
            orders = await uow.order_repository.list()
            return [self._to_dto(order) for order in orders]

    async def get_order(self, order_id: str) -> OrderDTO:
        async with self._uow_factory(readonly=True) as uow:
            order = await uow.order_repository.get_by_order_id(order_id)
            if order is None:
                raise OrderNotFoundException(order_id)
            return self._to_dto(order)

    async def create_order(self, data: OrderCreateDTO) -> OrderDTO:
        """Open a new order; line totals are priced before anything is stored."""
        order = Order.open(
            order_id=data.order_id,
            table_number=data.table_number,
            member_id=data.member_id,
            lines=[item.model_dump() for item in data.items],
            remarks=data.remarks,
        )
        async with self._uow_factory() as uow:
            repo = uow.order_repository
            if await repo.get_by_order_id(order.order_id) is not None:
                raise DuplicateOrderException(order.order_id)
            created = await repo.create(order)

        logger.info(
            "order_created",
            order_id=created.order_id,
            table_number=created.table_number,
            lines=len(created.lines),
        )
        return self._to_dto(created)

    async def update_order(self, order_id: str, data: OrderUpdateDTO) -> OrderDTO:
        """Merge a partial update into a live order (last write wins)."""
        async with self._uow_factory() as uow:
            repo = uow.order_repository
            order = await repo.get_by_order_id(order_id)
            if order is None or order.is_closed:
                raise OrderNotFoundException(order_id)

            order.apply_changes(
                table_number=data.table_number,
                lines=None if data.items is None else [item.model_dump() for item in data.items],
                remarks=data.remarks,
            )
            updated = await repo.update(order)

        logger.info("order_updated", order_id=order_id, lines=len(updated.lines))
        return self._to_dto(updated)

    async def reset_update_flags(self, order_ids: Sequence[str]) -> int:
        """Clear the update flag of the given live orders; unknown ids are ignored."""
        if not isinstance(order_ids, (list, tuple)) or not all(isinstance(i, str) for i in order_ids):
            raise InvalidInputException("Invalid order IDs format", field="order_ids")
        if not order_ids:
            return 0

        async with self._uow_factory() as uow:
            count = await uow.order_repository.reset_update_flags(list(order_ids))

        logger.info("order_update_flags_reset", requested=len(order_ids), reset=count)
        return count

    # ------------------------------------------------------------------
    # Close: history insert, then live delete
    # ------------------------------------------------------------------
    async def close_order(self, order_id: str) -> OrderHistoryDTO:
        """Settle the final price and move the order into history.

        Two separate store steps, not one transaction: the history record is
        committed first and only then is the live order deleted. If the delete
        fails the history record stays and StoreUnavailableException tells the
        caller the live order must be removed by hand.
        """
        async with self._uow_factory() as uow:
            order = await uow.order_repository.get_by_order_id(order_id)
            if order is None:
                raise OrderNotFoundException(order_id)
            record = await uow.order_history_repository.add(order.close(closed_at=_utcnow()))

        logger.info("order_history_written", order_id=order_id, final_price=str(record.final_price))

        try:
            async with self._uow_factory() as uow:
                deleted = await uow.order_repository.delete(order_id)
        except StoreUnavailableException as exc:
            logger.error(
                "order_close_delete_failed",
                order_id=order_id,
                error=exc.message,
            )
            raise StoreUnavailableException(
                "Order was archived but could not be removed from live orders; delete it manually",
                details={"order_id": order_id, "history_written": True},
            ) from exc

        if not deleted:
            # a concurrent close removed it between the two steps
            logger.warning("order_close_live_order_missing", order_id=order_id)

        logger.info("order_closed", order_id=order_id, final_price=str(record.final_price))
        return self._history_to_dto(record)

    async def get_history(self, order_id: str) -> OrderHistoryDTO:
        async with self._uow_factory(readonly=True) as uow:
            record = await uow.order_history_repository.get_by_order_id(order_id)
            if record is None:
                raise OrderNotFoundException(order_id, message="Order not found in history")
            return self._history_to_dto(record)

    # ------------------------------------------------------------------
    # Payment
    # ------------------------------------------------------------------
    async def record_payment(self, order_id: str, payment_method: PaymentMethod | str) -> PaymentResultDTO:
        """Log a payment selection for a closed order.

        Repeated selections append new records. For online payments the
        payment link is handed to the notification gateway after the record
        is stored; notification errors never reach the caller.
        """
        method = PaymentMethod.parse(payment_method)

        async with self._uow_factory() as uow:
            history = await uow.order_history_repository.get_by_order_id(order_id)
            if history is None:
                raise OrderNotFoundException(order_id, message="Order not found in history")
            payment = await uow.payment_record_repository.add(
                PaymentRecord(
                    order_id=history.order_id,
                    member_id=history.member_id,
                    final_price=history.final_price,
                    payment_method=method,
                    payment_time=_utcnow(),
                )
            )

        logger.info(
            "payment_recorded",
            order_id=order_id,
            payment_method=method.value,
            final_price=str(payment.final_price),
        )

        if method is PaymentMethod.ONLINE:
            await self._send_payment_link(history)

        return PaymentResultDTO(
            message=SETTLEMENT_MESSAGES[method],
            payment=self._payment_to_dto(payment),
        )

    async def list_payments(self, order_id: str) -> list[PaymentRecordDTO]:
        async with self._uow_factory(readonly=True) as uow:
            if await uow.order_history_repository.get_by_order_id(order_id) is None:
                raise OrderNotFoundException(order_id, message="Order not found in history")
            records = await uow.payment_record_repository.list_by_order_id(order_id)
            return [self._payment_to_dto(record) for record in records]

    async def _send_payment_link(self, record: OrderHistoryRecord) -> None:
        if self._notifier is None:
            logger.warning("payment_link_notifier_missing", order_id=record.order_id)
            return
        try:
            await self._notifier.send_payment_link(record)
        except Exception as exc:
            logger.error(
                "payment_link_notification_failed",
                order_id=record.order_id,
                error=str(exc),
                exc_info=True,
            )
        else:
            logger.info("payment_link_dispatched", order_id=record.order_id)
