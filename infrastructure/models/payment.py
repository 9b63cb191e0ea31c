"""
Payment record database model
"""
from sqlalchemy import Column, Integer, String, Numeric, DateTime, Index
from datetime import datetime, timezone

from .base import Base


class PaymentRecordModel(Base):
    """
    Payment selections against closed orders

    Append-only; order_id is deliberately not unique (retries)
    """
    __tablename__ = "payment_records"

    id = Column(Integer, primary_key=True, autoincrement=True)
    order_id = Column(String(100), nullable=False, index=True, comment="Business order id")
    member_id = Column(String(100), nullable=False, comment="Member id")
    final_price = Column(Numeric(precision=15, scale=2), nullable=False, comment="Copied from order history")
    payment_method = Column(String(20), nullable=False, comment="cash/online/credit")
    payment_time = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    __table_args__ = (
        Index("ix_payment_records_order_time", "order_id", "payment_time"),
    )

    def __repr__(self):
        return (
            f"<PaymentRecordModel(id={self.id}, order_id='{self.order_id}', "
            f"method='{self.payment_method}', final_price={self.final_price})>"
        )
