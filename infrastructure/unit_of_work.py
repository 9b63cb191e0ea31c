"""SQLAlchemy Unit of Work implementation"""
from __future__ import annotations

from typing import Optional, Callable

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from core.logging_config import get_logger
from domain.common.exceptions import StoreUnavailableException
from domain.common.unit_of_work import AbstractUnitOfWork
from infrastructure.database import AsyncSessionLocal
from infrastructure.repositories.order_repository import SQLAlchemyOrderRepository
from infrastructure.repositories.order_history_repository import SQLAlchemyOrderHistoryRepository
from infrastructure.repositories.payment_record_repository import SQLAlchemyPaymentRecordRepository

logger = get_logger(__name__)


class SQLAlchemyUnitOfWork(AbstractUnitOfWork):
    """Unit of Work backed by one AsyncSession"""

    def __init__(
        self,
        session_factory: Callable[[], AsyncSession] = AsyncSessionLocal,
        session: Optional[AsyncSession] = None,
        *,
        readonly: bool = False,
    ) -> None:
        super().__init__(readonly=readonly)
        self._session_factory = session_factory
        self._external_session = session
        self.session: Optional[AsyncSession] = session

    async def __aenter__(self) -> "SQLAlchemyUnitOfWork":
        if self.session is None:
            self.session = self._session_factory()
        self.order_repository = SQLAlchemyOrderRepository(self.session)
        self.order_history_repository = SQLAlchemyOrderHistoryRepository(self.session)
        self.payment_record_repository = SQLAlchemyPaymentRecordRepository(self.session)
        # readonly scopes run in autobegin mode without an explicit transaction
        if not self._readonly:
            try:
                await self.session.begin()
            except SQLAlchemyError as exc:
                await self._close_session()
                raise StoreUnavailableException(details={"operation": "begin"}) from exc
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        try:
            await super().__aexit__(exc_type, exc, tb)
        finally:
            await self._close_session()
            self.order_repository = None  # type: ignore[assignment]
            self.order_history_repository = None  # type: ignore[assignment]
            self.payment_record_repository = None  # type: ignore[assignment]

    async def _close_session(self) -> None:
        if self._external_session is None and self.session is not None:
            await self.session.close()
            self.session = None

    async def commit(self) -> None:
        if self._readonly:
            self._committed = True
            return
        if self.session and self.session.in_transaction():
            try:
                await self.session.commit()
            except SQLAlchemyError as exc:
                logger.error("uow_commit_failed", error=str(exc))
                await self.rollback()
                raise StoreUnavailableException(details={"operation": "commit"}) from exc
        self._committed = True

    async def rollback(self) -> None:
        if self.session and self.session.in_transaction():
            await self.session.rollback()
        self._committed = False
