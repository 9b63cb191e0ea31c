"""Payment domain exports."""
from .entity import PaymentMethod, PaymentRecord
from .repository import PaymentRecordRepository

__all__ = ["PaymentMethod", "PaymentRecord", "PaymentRecordRepository"]
