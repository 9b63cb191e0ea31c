"""Price derivation for order lines and orders.

All line totals and final prices are computed here; nothing else in the
codebase multiplies or sums money.
"""
from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Iterable, Protocol, Union

from domain.common.exceptions import InvalidInputException

Number = Union[int, float, str, Decimal]


class PricedLine(Protocol):
    line_total: Decimal


def to_decimal(value: Number, *, field: str) -> Decimal:
    """Convert a numeric input to Decimal, rejecting bools and non-finite values."""
    if isinstance(value, bool):
        raise InvalidInputException(f"{field} must be a number", field=field)
    try:
        # floats go through str() so 0.1 stays 0.1
        result = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        raise InvalidInputException(f"{field} must be a number", field=field)
    if not result.is_finite():
        raise InvalidInputException(f"{field} must be a finite number", field=field)
    return result


def line_total(quantity: Number, unit_price: Number) -> Decimal:
    """Return ``quantity * unit_price``; zero quantity is allowed and yields 0."""
    qty = to_decimal(quantity, field="quantity")
    price = to_decimal(unit_price, field="unit_price")
    if qty < 0:
        raise InvalidInputException("quantity must not be negative", field="quantity",
                                    details={"quantity": str(qty)})
    if price < 0:
        raise InvalidInputException("unit_price must not be negative", field="unit_price",
                                    details={"unit_price": str(price)})
    return qty * price


def order_total(lines: Iterable[PricedLine]) -> Decimal:
    """Sum of the lines' totals; an empty order totals 0."""
    return sum((line.line_total for line in lines), Decimal("0"))
