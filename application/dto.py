"""
Data transfer objects between the application and presentation layers.

JSON field names are camelCase (``orderId``, ``tableNumber`` ...); Python
code may use the snake_case field names as well.
"""
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, model_serializer
from pydantic.alias_generators import to_camel

from domain.payment.entity import PaymentMethod


class DTOBase(BaseModel):
    """Base DTO: camelCase aliases and UTC-Z datetimes for all subclasses."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    @model_serializer(mode="wrap")
    def _serialize_model(self, handler):  # type: ignore[override]
        data = handler(self)

        def convert(value):
            if isinstance(value, datetime):
                ts = value if value.tzinfo else value.replace(tzinfo=timezone.utc)
                s = ts.astimezone(timezone.utc).isoformat()
                return s.replace("+00:00", "Z")
            if isinstance(value, list):
                return [convert(v) for v in value]
            if isinstance(value, tuple):
                return tuple(convert(v) for v in value)
            if isinstance(value, dict):
                return {k: convert(v) for k, v in value.items()}
            return value

        return convert(data)


class OrderItemDTO(DTOBase):
    """Order line as sent by clients; any line total in the payload is ignored."""
    menu_item: str = Field(..., min_length=1, description="Menu item name")
    quantity: int = Field(..., gt=0, description="Number of portions")
    unit_price: Decimal = Field(
        ...,
        ge=0,
        max_digits=15,
        decimal_places=2,
        validation_alias=AliasChoices("unitPrice", "individual_price", "unit_price"),
        description="Price of one portion",
    )


class OrderCreateDTO(DTOBase):
    """Create order request"""
    model_config = ConfigDict(coerce_numbers_to_str=True)

    order_id: str = Field(..., min_length=1, max_length=100, description="Unique order identifier")
    table_number: str = Field(..., min_length=1, max_length=50)
    member_id: str = Field(..., min_length=1, max_length=100)
    items: list[OrderItemDTO] = Field(default_factory=list)
    remarks: Optional[str] = Field(None, max_length=500)


class OrderUpdateDTO(DTOBase):
    """Partial order update; omitted fields stay unchanged"""
    model_config = ConfigDict(coerce_numbers_to_str=True)

    table_number: Optional[str] = Field(None, min_length=1, max_length=50)
    items: Optional[list[OrderItemDTO]] = Field(
        None, validation_alias=AliasChoices("items", "lines")
    )
    remarks: Optional[str] = Field(None, max_length=500)


class OrderLineDTO(DTOBase):
    menu_item: str
    quantity: int
    unit_price: Decimal
    line_total: Decimal


class OrderDTO(DTOBase):
    """Live order response"""
    order_id: str
    created_at: datetime
    table_number: str
    member_id: str
    items: list[OrderLineDTO]
    is_closed: bool
    is_updated: bool
    remarks: Optional[str] = None
    final_price: Optional[Decimal] = None


class OrderHistoryDTO(DTOBase):
    """Closed order response"""
    order_id: str
    created_at: datetime
    table_number: str
    member_id: str
    items: list[OrderLineDTO]
    final_price: Decimal
    closed_at: Optional[datetime] = None


class PaymentRequestDTO(DTOBase):
    payment_method: PaymentMethod = Field(..., description="cash | online | credit")


class PaymentRecordDTO(DTOBase):
    id: Optional[int] = None
    order_id: str
    member_id: str
    final_price: Decimal
    payment_method: PaymentMethod
    payment_time: datetime


class PaymentResultDTO(DTOBase):
    """Payment selection outcome: the stored record plus the settlement instruction"""
    message: str
    payment: PaymentRecordDTO


class ResetUpdatesDTO(DTOBase):
    order_ids: list[str] = Field(..., description="Live order ids whose update flag is cleared")


class ResetUpdatesResultDTO(DTOBase):
    reset: int
