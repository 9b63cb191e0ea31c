"""
Order database models - SQLAlchemy ORM mappings
Note: infrastructure detail only; business rules live in domain.order.entity
"""
from datetime import datetime, timezone

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Index,
    Integer,
    JSON,
    Numeric,
    String,
    Text,
    text,
)

from .base import Base


class OrderModel(Base):
    """Live orders (mutable until closed)"""

    __tablename__ = "orders"
    __table_args__ = (
        Index("ix_orders_created_at", "created_at"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    order_id = Column(String(100), nullable=False, unique=True, comment="Business order id")
    table_number = Column(String(50), nullable=False, comment="Table number")
    member_id = Column(String(100), nullable=False, index=True, comment="Member id")
    # [{"menu_item", "quantity", "unit_price", "line_total"}], amounts as strings
    lines = Column(JSON, nullable=False, default=list, comment="Order lines snapshot")
    is_closed = Column(Boolean, nullable=False, default=False, server_default=text("false"))
    is_updated = Column(Boolean, nullable=False, default=False, server_default=text("false"))
    remarks = Column(Text, nullable=True)
    final_price = Column(Numeric(precision=15, scale=2), nullable=True, comment="Set only when closed")
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    def __repr__(self) -> str:
        return (
            f"<OrderModel(id={self.id}, order_id='{self.order_id}', "
            f"table_number='{self.table_number}', is_updated={self.is_updated})>"
        )


class OrderHistoryModel(Base):
    """Closed orders, written once at close time"""

    __tablename__ = "order_histories"
    __table_args__ = (
        Index("ix_order_histories_closed_at", "closed_at"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    # unique: a second close of the same order is rejected here
    order_id = Column(String(100), nullable=False, unique=True, comment="Business order id")
    table_number = Column(String(50), nullable=False)
    member_id = Column(String(100), nullable=False, index=True)
    lines = Column(JSON, nullable=False, default=list, comment="Order lines at close time")
    final_price = Column(Numeric(precision=15, scale=2), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, comment="Order creation time")
    closed_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    def __repr__(self) -> str:
        return f"<OrderHistoryModel(id={self.id}, order_id='{self.order_id}', final_price={self.final_price})>"
