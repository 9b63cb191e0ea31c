from decimal import Decimal

import pytest

from application.dto import OrderCreateDTO, OrderUpdateDTO
from application.services.order_service import OrderLifecycleService, SETTLEMENT_MESSAGES
from domain.common.exceptions import (
    DuplicateOrderException,
    InvalidInputException,
    NotificationFailureException,
    OrderNotFoundException,
    StoreUnavailableException,
)
from domain.payment import PaymentMethod


def _create_payload(order_id: str = "ORD100") -> OrderCreateDTO:
    return OrderCreateDTO.model_validate(
        {
            "orderId": order_id,
            "tableNumber": "12",
            "memberId": "M-7",
            "items": [
                {"menuItem": "Pizza", "quantity": 2, "individual_price": 300},
                {"menuItem": "Pasta", "quantity": 1, "unitPrice": "200"},
            ],
        }
    )


@pytest.mark.asyncio
async def test_create_prices_lines(order_service, store):
    order = await order_service.create_order(_create_payload())

    assert [item.line_total for item in order.items] == [Decimal("600"), Decimal("200")]
    assert order.is_closed is False
    assert order.is_updated is False
    assert order.final_price is None
    assert "ORD100" in store.orders


@pytest.mark.asyncio
async def test_create_rejects_duplicate_order_id(order_service, store):
    await order_service.create_order(_create_payload())

    with pytest.raises(DuplicateOrderException):
        await order_service.create_order(_create_payload())
    assert len(store.orders) == 1


@pytest.mark.asyncio
async def test_create_rejects_blank_member(order_service, store):
    payload = _create_payload()
    payload.member_id = "   "

    with pytest.raises(InvalidInputException):
        await order_service.create_order(payload)
    assert store.orders == {}


@pytest.mark.asyncio
async def test_full_order_lifecycle(order_service, store, notifier):
    await order_service.create_order(_create_payload())

    updated = await order_service.update_order(
        "ORD100",
        OrderUpdateDTO.model_validate(
            {
                "items": [
                    {"menuItem": "Pizza", "quantity": 3, "unitPrice": "300"},
                    {"menuItem": "Pasta", "quantity": 1, "unitPrice": "0"},
                ],
                "remarks": "no onions",
            }
        ),
    )
    assert updated.is_updated is True
    assert updated.items[0].line_total == Decimal("900")
    assert updated.remarks == "no onions"
    assert updated.table_number == "12"
    assert updated.member_id == "M-7"
    assert updated.order_id == "ORD100"

    history = await order_service.close_order("ORD100")
    assert history.final_price == Decimal("900")
    assert "ORD100" not in store.orders
    assert store.histories["ORD100"].final_price == Decimal("900")

    result = await order_service.record_payment("ORD100", "online")
    assert result.message == SETTLEMENT_MESSAGES[PaymentMethod.ONLINE]
    assert result.payment.final_price == Decimal("900")
    assert result.payment.payment_method is PaymentMethod.ONLINE
    assert [r.order_id for r in notifier.sent] == ["ORD100"]


@pytest.mark.asyncio
async def test_close_final_price_is_sum_of_lines(order_service):
    await order_service.create_order(_create_payload())

    history = await order_service.close_order("ORD100")

    assert history.final_price == Decimal("800")
    assert history.closed_at is not None


@pytest.mark.asyncio
async def test_update_only_table_keeps_lines(order_service):
    await order_service.create_order(_create_payload())

    updated = await order_service.update_order("ORD100", OrderUpdateDTO(table_number="5"))

    assert updated.table_number == "5"
    assert len(updated.items) == 2
    assert updated.is_updated is True


@pytest.mark.asyncio
async def test_update_unknown_order(order_service):
    with pytest.raises(OrderNotFoundException):
        await order_service.update_order("NOPE", OrderUpdateDTO(remarks="x"))


@pytest.mark.asyncio
async def test_close_unknown_order(order_service, store):
    with pytest.raises(OrderNotFoundException):
        await order_service.close_order("NOPE")
    assert store.histories == {}


@pytest.mark.asyncio
async def test_second_close_is_not_found(order_service):
    await order_service.create_order(_create_payload())
    await order_service.close_order("ORD100")

    with pytest.raises(OrderNotFoundException):
        await order_service.close_order("ORD100")


@pytest.mark.asyncio
async def test_failed_delete_keeps_history_record(order_service, store):
    await order_service.create_order(_create_payload())
    store.fail_delete = True

    with pytest.raises(StoreUnavailableException) as exc_info:
        await order_service.close_order("ORD100")

    assert exc_info.value.details == {"order_id": "ORD100", "history_written": True}
    assert "ORD100" in store.histories
    assert "ORD100" in store.orders


@pytest.mark.asyncio
@pytest.mark.parametrize("method", ["cash", "credit"])
async def test_offline_payment_does_not_notify(order_service, notifier, method):
    await order_service.create_order(_create_payload())
    await order_service.close_order("ORD100")

    result = await order_service.record_payment("ORD100", method)

    assert result.message == SETTLEMENT_MESSAGES[PaymentMethod(method)]
    assert notifier.sent == []


@pytest.mark.asyncio
async def test_notification_failure_does_not_change_result(order_service, store, notifier):
    notifier.error = NotificationFailureException("smtp down")
    await order_service.create_order(_create_payload())
    await order_service.close_order("ORD100")

    result = await order_service.record_payment("ORD100", PaymentMethod.ONLINE)

    assert result.message == SETTLEMENT_MESSAGES[PaymentMethod.ONLINE]
    assert len(notifier.sent) == 1
    assert len(store.payments) == 1


@pytest.mark.asyncio
async def test_online_payment_without_notifier(uow_factory):
    service = OrderLifecycleService(uow_factory=uow_factory)
    await service.create_order(_create_payload())
    await service.close_order("ORD100")

    result = await service.record_payment("ORD100", "online")

    assert result.payment.payment_method is PaymentMethod.ONLINE


@pytest.mark.asyncio
async def test_payment_requires_history(order_service, store):
    await order_service.create_order(_create_payload())

    with pytest.raises(OrderNotFoundException):
        await order_service.record_payment("ORD100", "cash")
    assert store.payments == []


@pytest.mark.asyncio
async def test_payment_rejects_unknown_method(order_service):
    await order_service.create_order(_create_payload())
    await order_service.close_order("ORD100")

    with pytest.raises(InvalidInputException):
        await order_service.record_payment("ORD100", "bitcoin")


@pytest.mark.asyncio
async def test_repeated_payments_are_appended(order_service):
    await order_service.create_order(_create_payload())
    await order_service.close_order("ORD100")

    await order_service.record_payment("ORD100", "cash")
    await order_service.record_payment("ORD100", "credit")
    payments = await order_service.list_payments("ORD100")

    assert [p.payment_method for p in payments] == [PaymentMethod.CASH, PaymentMethod.CREDIT]


@pytest.mark.asyncio
async def test_reset_update_flags(order_service, store):
    await order_service.create_order(_create_payload("A"))
    await order_service.create_order(_create_payload("B"))
    await order_service.update_order("A", OrderUpdateDTO(remarks="x"))
    await order_service.update_order("B", OrderUpdateDTO(remarks="y"))

    count = await order_service.reset_update_flags(["A", "UNKNOWN"])

    assert count == 1
    assert store.orders["A"].is_updated is False
    assert store.orders["B"].is_updated is True


@pytest.mark.asyncio
async def test_reset_update_flags_empty_list_is_noop(order_service, store):
    commits = store.commits

    assert await order_service.reset_update_flags([]) == 0
    assert store.commits == commits


@pytest.mark.asyncio
@pytest.mark.parametrize("bad", ["A", None, ["A", 1]])
async def test_reset_update_flags_rejects_bad_input(order_service, bad):
    with pytest.raises(InvalidInputException) as exc_info:
        await order_service.reset_update_flags(bad)
    assert exc_info.value.message == "Invalid order IDs format"


@pytest.mark.asyncio
async def test_list_orders_newest_first(order_service):
    await order_service.create_order(_create_payload("FIRST"))
    await order_service.create_order(_create_payload("SECOND"))

    orders = await order_service.list_orders()

    assert [o.order_id for o in orders] == ["SECOND", "FIRST"]


@pytest.mark.asyncio
async def test_get_history_unknown_order(order_service):
    with pytest.raises(OrderNotFoundException):
        await order_service.get_history("NOPE")
