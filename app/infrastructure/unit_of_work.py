import logging
from contextlib import asynccontextmanager
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.application.interfaces import UnitOfWork as AbstractUnitOfWork
from app.domain.exceptions import TransactionAbortedError
from app.infrastructure.repositories import (
    SQLAlchemyOrderRepository,
    SQLAlchemyProductRepository,
    SQLAlchemyUserRepository
)

logger = logging.getLogger(__name__)


class UnitOfWork:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    @asynccontextmanager
    async def __call__(self):
        async with self._session_factory() as session:
            try:
                uow_impl = _UnitOfWorkImpl(session)
                yield uow_impl
                # Если commit не вызван — rollback
                await session.rollback()
            except SQLAlchemyError as e:
                logger.error(f"Ошибка БД, транзакция отменена: {e}")
                await session.rollback()
                raise TransactionAbortedError("Транзакция отменена") from e
            except Exception:
                await session.rollback()
                raise


class _UnitOfWorkImpl(AbstractUnitOfWork):
    def __init__(self, session: AsyncSession):
        self._session = session
        self._products = SQLAlchemyProductRepository(session)
        self._orders = SQLAlchemyOrderRepository(session)
        self._users = SQLAlchemyUserRepository(session)

    @property
    def products(self) -> SQLAlchemyProductRepository:
        return self._products

    @property
    def orders(self) -> SQLAlchemyOrderRepository:
        return self._orders

    @property
    def users(self) -> SQLAlchemyUserRepository:
        return self._users

    async def commit(self):
        await self._session.commit()

    async def rollback(self):
        await self._session.rollback()
