"""Order aggregate: live orders, their lines and the archived history snapshot."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable, Mapping, Optional

from domain.common.exceptions import InvalidInputException
from domain.order import pricing

_CENT = Decimal("0.01")
# largest amount a Numeric(15, 2) column holds
MAX_AMOUNT = Decimal("9999999999999.99")


def _ensure_utc(dt: Optional[datetime]) -> Optional[datetime]:
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def _require_text(value: Any, field_name: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise InvalidInputException(f"{field_name} is required", field=field_name)
    return value.strip()


def _check_amount(value: Decimal, field_name: str) -> Decimal:
    if value > MAX_AMOUNT:
        raise InvalidInputException(
            f"{field_name} exceeds the maximum amount",
            field=field_name,
            details={field_name: str(value), "max": str(MAX_AMOUNT)},
        )
    return value


@dataclass(frozen=True)
class OrderLine:
    """One menu item on an order.

    ``line_total`` is not an init argument: it is always derived from
    ``quantity`` and ``unit_price`` by the pricing module.
    """

    menu_item: str
    quantity: int
    unit_price: Decimal
    line_total: Decimal = field(init=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "menu_item", _require_text(self.menu_item, "menu_item"))
        if isinstance(self.quantity, bool) or not isinstance(self.quantity, int):
            raise InvalidInputException("quantity must be an integer", field="quantity")
        if self.quantity <= 0:
            raise InvalidInputException(
                "quantity must be a positive integer",
                field="quantity",
                details={"quantity": self.quantity},
            )
        price = _check_amount(pricing.to_decimal(self.unit_price, field="unit_price"), "unit_price")
        try:
            has_sub_cents = price != price.quantize(_CENT)
        except InvalidOperation:
            has_sub_cents = True
        if has_sub_cents:
            raise InvalidInputException(
                "unit_price must have at most two decimal places",
                field="unit_price",
                details={"unit_price": str(price)},
            )
        object.__setattr__(self, "unit_price", price)
        object.__setattr__(
            self, "line_total", _check_amount(pricing.line_total(self.quantity, price), "line_total")
        )

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "OrderLine":
        """Build a line from a plain mapping; any ``line_total`` in it is ignored."""
        return cls(
            menu_item=data.get("menu_item"),
            quantity=data.get("quantity"),
            unit_price=data.get("unit_price"),
        )


@dataclass(frozen=True)
class OrderHistoryRecord:
    """Immutable snapshot of an order taken when it was closed."""

    order_id: str
    created_at: datetime
    table_number: str
    member_id: str
    lines: tuple[OrderLine, ...]
    final_price: Decimal
    closed_at: Optional[datetime] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "lines", tuple(self.lines))
        object.__setattr__(self, "created_at", _ensure_utc(self.created_at))
        object.__setattr__(self, "closed_at", _ensure_utc(self.closed_at))
        expected = pricing.order_total(self.lines)
        if Decimal(self.final_price) != expected:
            raise InvalidInputException(
                "final_price does not match the order lines",
                field="final_price",
                details={"final_price": str(self.final_price), "expected": str(expected)},
            )


@dataclass
class Order:
    """Live order, mutable until it is closed.

    Business rules:
    1. ``order_id`` is non-empty and never changes
    2. ``final_price`` stays ``None`` until the order is closed
    3. every edit of the lines marks the order as updated
    """

    order_id: str
    table_number: str
    member_id: str
    lines: list[OrderLine] = field(default_factory=list)
    created_at: Optional[datetime] = None
    is_closed: bool = False
    is_updated: bool = False
    remarks: Optional[str] = None
    final_price: Optional[Decimal] = None
    id: Optional[int] = None

    def __post_init__(self) -> None:
        self.order_id = _require_text(self.order_id, "order_id")
        self.table_number = _require_text(self.table_number, "table_number")
        self.member_id = _require_text(self.member_id, "member_id")
        self.lines = list(self.lines or [])
        _check_amount(self.total, "total")
        self.created_at = _ensure_utc(self.created_at) or datetime.now(timezone.utc)
        if not self.is_closed:
            self.final_price = None

    @classmethod
    def open(
        cls,
        *,
        order_id: str,
        table_number: str,
        member_id: str,
        lines: Iterable[Mapping[str, Any]] = (),
        remarks: Optional[str] = None,
    ) -> "Order":
        return cls(
            order_id=order_id,
            table_number=table_number,
            member_id=member_id,
            lines=[OrderLine.from_mapping(item) for item in lines],
            remarks=remarks,
        )

    @property
    def total(self) -> Decimal:
        return pricing.order_total(self.lines)

    def apply_changes(
        self,
        *,
        table_number: Optional[str] = None,
        lines: Optional[Iterable[Mapping[str, Any]]] = None,
        remarks: Optional[str] = None,
    ) -> None:
        """Merge a partial update; lines are rebuilt and re-priced."""
        if table_number is not None:
            self.table_number = _require_text(table_number, "table_number")
        if lines is not None:
            new_lines = [OrderLine.from_mapping(item) for item in lines]
            _check_amount(pricing.order_total(new_lines), "total")
            self.lines = new_lines
        if remarks is not None:
            self.remarks = remarks
        self.is_updated = True

    def clear_update_flag(self) -> None:
        self.is_updated = False

    def close(self, *, closed_at: Optional[datetime] = None) -> OrderHistoryRecord:
        """Settle the final price and return the history snapshot."""
        self.final_price = self.total
        self.is_closed = True
        return OrderHistoryRecord(
            order_id=self.order_id,
            created_at=self.created_at,
            table_number=self.table_number,
            member_id=self.member_id,
            lines=tuple(self.lines),
            final_price=self.final_price,
            closed_at=closed_at or datetime.now(timezone.utc),
        )
