"""
Order API routes - FastAPI presentation layer

Thin handlers: validation via DTOs, business rules in OrderLifecycleService.
"""
from fastapi import APIRouter, Depends, status

from api.dependencies import get_order_service
from application.dto import (
    OrderCreateDTO,
    OrderDTO,
    OrderHistoryDTO,
    OrderUpdateDTO,
    PaymentRecordDTO,
    PaymentRequestDTO,
    ResetUpdatesDTO,
    ResetUpdatesResultDTO,
)
from application.services.order_service import OrderLifecycleService
from core.response import Response as ApiResponse, success_response

router = APIRouter(
    prefix="/orders",
    tags=["Orders"],
)


# Static paths are registered before "/{order_id}" so they are matched first.

@router.get("", summary="List live orders", response_model=ApiResponse[list[OrderDTO]])
async def list_orders(service: OrderLifecycleService = Depends(get_order_service)):
    """Live orders, newest first"""
    orders = await service.list_orders()
    return success_response(data=orders)


@router.post(
    "",
    summary="Create order",
    status_code=status.HTTP_201_CREATED,
    response_model=ApiResponse[OrderDTO],
)
async def create_order(
    payload: OrderCreateDTO,
    service: OrderLifecycleService = Depends(get_order_service),
):
    """
    Open a new order

    - **orderId**: unique order identifier
    - **tableNumber** / **memberId**: required
    - **items**: `[{menuItem, quantity, individual_price}]`; line totals are computed server side
    """
    order = await service.create_order(payload)
    return success_response(data=order, message="Order created successfully")


@router.post("/reset-updates", summary="Clear update flags", response_model=ApiResponse[ResetUpdatesResultDTO])
async def reset_updates(
    payload: ResetUpdatesDTO,
    service: OrderLifecycleService = Depends(get_order_service),
):
    count = await service.reset_update_flags(payload.order_ids)
    return success_response(data=ResetUpdatesResultDTO(reset=count), message="Updates reset successfully")


@router.post("/close/{order_id}", summary="Close order", response_model=ApiResponse[OrderHistoryDTO])
async def close_order(
    order_id: str,
    service: OrderLifecycleService = Depends(get_order_service),
):
    """Settle the final price and move the order to history"""
    record = await service.close_order(order_id)
    return success_response(data=record, message="Order closed and moved to history")


@router.get("/history/{order_id}", summary="Closed order", response_model=ApiResponse[OrderHistoryDTO])
async def get_order_history(
    order_id: str,
    service: OrderLifecycleService = Depends(get_order_service),
):
    record = await service.get_history(order_id)
    return success_response(data=record)


@router.post("/payment/{order_id}", summary="Select payment method", response_model=ApiResponse[PaymentRecordDTO])
async def record_payment(
    order_id: str,
    payload: PaymentRequestDTO,
    service: OrderLifecycleService = Depends(get_order_service),
):
    """
    Record a payment selection for a closed order

    - **cash**: settle at the counter
    - **online**: a payment link is emailed (best effort)
    - **credit**: amount is added to the member's credit
    """
    result = await service.record_payment(order_id, payload.payment_method)
    return success_response(data=result.payment, message=result.message)


@router.get("/payment/{order_id}", summary="Payment records", response_model=ApiResponse[list[PaymentRecordDTO]])
async def list_payments(
    order_id: str,
    service: OrderLifecycleService = Depends(get_order_service),
):
    records = await service.list_payments(order_id)
    return success_response(data=records)


@router.get("/{order_id}", summary="Order detail", response_model=ApiResponse[OrderDTO])
async def get_order(
    order_id: str,
    service: OrderLifecycleService = Depends(get_order_service),
):
    order = await service.get_order(order_id)
    return success_response(data=order)


@router.put("/{order_id}", summary="Update order", response_model=ApiResponse[OrderDTO])
async def update_order(
    order_id: str,
    payload: OrderUpdateDTO,
    service: OrderLifecycleService = Depends(get_order_service),
):
    """Partial update; supplied items replace the order lines and are re-priced"""
    order = await service.update_order(order_id, payload)
    return success_response(data=order, message="Order updated")
