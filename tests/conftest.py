"""Pytest bootstrap configuration.

Environment variables are set before any module reads application
settings: SQLite instead of PostgreSQL and eager Celery.
"""
import os

os.environ.setdefault("ENVIRONMENT", "testing")
os.environ.setdefault("DATABASE__URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("LOG_REQUEST_BODY_ENABLE_BY_DEFAULT", "false")

import copy
from functools import partial
from typing import Optional, Sequence

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

from application.services.order_service import OrderLifecycleService
from domain.common.exceptions import DuplicateOrderException, StoreUnavailableException
from domain.common.unit_of_work import AbstractUnitOfWork
from domain.order import Order, OrderHistoryRecord, OrderHistoryRepository, OrderRepository
from domain.payment import PaymentRecord, PaymentRecordRepository
from infrastructure.models import Base
from infrastructure.unit_of_work import SQLAlchemyUnitOfWork


class InMemoryStore:
    """Backing data shared by all units of work of one test."""

    def __init__(self) -> None:
        self.orders: dict[str, Order] = {}
        self.histories: dict[str, OrderHistoryRecord] = {}
        self.payments: list[PaymentRecord] = []
        self.fail_delete = False
        self.commits = 0


class InMemoryOrderRepository(OrderRepository):
    def __init__(self, store: InMemoryStore) -> None:
        self.store = store

    async def create(self, order: Order) -> Order:
        if order.order_id in self.store.orders:
            raise DuplicateOrderException(order.order_id)
        self.store.orders[order.order_id] = copy.deepcopy(order)
        return copy.deepcopy(order)

    async def get_by_order_id(self, order_id: str) -> Optional[Order]:
        order = self.store.orders.get(order_id)
        return copy.deepcopy(order) if order else None

    async def update(self, order: Order) -> Order:
        self.store.orders[order.order_id] = copy.deepcopy(order)
        return copy.deepcopy(order)

    async def delete(self, order_id: str) -> bool:
        if self.store.fail_delete:
            raise StoreUnavailableException(details={"operation": "order.delete"})
        return self.store.orders.pop(order_id, None) is not None

    async def list(self, *, skip: int = 0, limit: Optional[int] = None) -> list[Order]:
        # newest first, later inserts win ties
        orders = [o for _, o in sorted(enumerate(self.store.orders.values()), key=lambda p: (p[1].created_at, p[0]), reverse=True)]
        end = None if limit is None else skip + limit
        return [copy.deepcopy(o) for o in orders[skip:end]]

    async def reset_update_flags(self, order_ids: Sequence[str]) -> int:
        count = 0
        for order_id in order_ids:
            order = self.store.orders.get(order_id)
            if order is not None:
                order.clear_update_flag()
                count += 1
        return count


class InMemoryOrderHistoryRepository(OrderHistoryRepository):
    def __init__(self, store: InMemoryStore) -> None:
        self.store = store

    async def add(self, record: OrderHistoryRecord) -> OrderHistoryRecord:
        if record.order_id in self.store.histories:
            raise DuplicateOrderException(record.order_id)
        self.store.histories[record.order_id] = record
        return record

    async def get_by_order_id(self, order_id: str) -> Optional[OrderHistoryRecord]:
        return self.store.histories.get(order_id)


class InMemoryPaymentRecordRepository(PaymentRecordRepository):
    def __init__(self, store: InMemoryStore) -> None:
        self.store = store

    async def add(self, record: PaymentRecord) -> PaymentRecord:
        stored = PaymentRecord(
            id=len(self.store.payments) + 1,
            order_id=record.order_id,
            member_id=record.member_id,
            final_price=record.final_price,
            payment_method=record.payment_method,
            payment_time=record.payment_time,
        )
        self.store.payments.append(stored)
        return stored

    async def list_by_order_id(self, order_id: str) -> list[PaymentRecord]:
        return [p for p in self.store.payments if p.order_id == order_id]


class InMemoryUnitOfWork(AbstractUnitOfWork):
    def __init__(self, store: InMemoryStore, *, readonly: bool = False) -> None:
        super().__init__(readonly=readonly)
        self.store = store

    async def __aenter__(self) -> "InMemoryUnitOfWork":
        self.order_repository = InMemoryOrderRepository(self.store)
        self.order_history_repository = InMemoryOrderHistoryRepository(self.store)
        self.payment_record_repository = InMemoryPaymentRecordRepository(self.store)
        return self

    async def commit(self) -> None:
        self.store.commits += 1
        self._committed = True

    async def rollback(self) -> None:
        self._committed = False


class RecordingNotifier:
    """NotificationGateway double that remembers every payment link request."""

    def __init__(self, error: Optional[Exception] = None) -> None:
        self.sent: list[OrderHistoryRecord] = []
        self.error = error

    async def send_payment_link(self, record: OrderHistoryRecord) -> None:
        self.sent.append(record)
        if self.error is not None:
            raise self.error


@pytest.fixture
def store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def uow_factory(store):
    return partial(InMemoryUnitOfWork, store)


@pytest.fixture
def order_service(uow_factory, notifier) -> OrderLifecycleService:
    return OrderLifecycleService(uow_factory=uow_factory, notifier=notifier)


@pytest_asyncio.fixture
async def sqlite_session_factory(tmp_path):
    """Session factory bound to a fresh SQLite file with all tables created."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'orders.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(bind=engine, expire_on_commit=False)
    await engine.dispose()


@pytest.fixture
def sqlite_uow_factory(sqlite_session_factory):
    return partial(SQLAlchemyUnitOfWork, sqlite_session_factory)
