"""Helpers shared by the SQLAlchemy repositories."""
from __future__ import annotations

from contextlib import contextmanager
from decimal import Decimal
from typing import Any, Iterable, Iterator, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from domain.common.exceptions import DuplicateOrderException, StoreUnavailableException
from domain.order.entity import OrderLine
from core.logging_config import get_logger

logger = get_logger(__name__)


@contextmanager
def store_errors(operation: str, *, order_id: Optional[str] = None) -> Iterator[None]:
    """Translate SQLAlchemy errors into domain exceptions.

    A unique-index violation on an order id becomes DuplicateOrderException,
    every other database error StoreUnavailableException.
    """
    try:
        yield
    except IntegrityError as exc:
        if order_id is not None:
            raise DuplicateOrderException(order_id) from exc
        logger.error("store_integrity_error", operation=operation, error=str(exc.orig))
        raise StoreUnavailableException(details={"operation": operation}) from exc
    except SQLAlchemyError as exc:
        logger.error("store_error", operation=operation, order_id=order_id, error=str(exc))
        raise StoreUnavailableException(details={"operation": operation}) from exc


def lines_to_json(lines: Iterable[OrderLine]) -> list[dict[str, Any]]:
    return [
        {
            "menu_item": line.menu_item,
            "quantity": line.quantity,
            "unit_price": str(line.unit_price),
            "line_total": str(line.line_total),
        }
        for line in lines
    ]


def lines_from_json(data: Optional[list[dict[str, Any]]]) -> list[OrderLine]:
    # stored line_total is informational; OrderLine re-derives it
    return [
        OrderLine(menu_item=item["menu_item"], quantity=int(item["quantity"]), unit_price=Decimal(item["unit_price"]))
        for item in (data or [])
    ]
