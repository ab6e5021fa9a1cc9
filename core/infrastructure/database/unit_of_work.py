"""
Unit of Work Pattern Implementation.

Manages database transactions and repository lifecycle.
"""
from typing import Optional
import logging
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from core.domain.exceptions import PersistenceError
from core.infrastructure.database.repositories import (
    SQLAlchemyConversationRepository,
    SQLAlchemyNotificationRepository,
    SQLAlchemyOrderRepository,
    SQLAlchemyProductRepository,
    SQLAlchemyUserRepository,
    SqlAlchemySequenceCounter,
)


logger = logging.getLogger(__name__)


class UnitOfWork:
    """
    Unit of Work pattern implementation.

    Opens one session per context, exposes repositories bound to it and
    rolls everything back unless commit() is called.

    Usage:
        async with UnitOfWork(session_factory) as uow:
            order = await uow.orders.get(order_id)
            order.transition_to(...)
            await uow.orders.update(order)
            await uow.commit()
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        """
        Initialize Unit of Work.

        Args:
            session_factory: Factory producing async sessions
        """
        self.session_factory = session_factory
        self.session: Optional[AsyncSession] = None
        self._orders: Optional[SQLAlchemyOrderRepository] = None
        self._products: Optional[SQLAlchemyProductRepository] = None
        self._users: Optional[SQLAlchemyUserRepository] = None
        self._sequence: Optional[SqlAlchemySequenceCounter] = None
        self._conversations: Optional[SQLAlchemyConversationRepository] = None
        self._notifications: Optional[SQLAlchemyNotificationRepository] = None
        self._committed = False

    async def __aenter__(self):
        """Enter async context."""
        self.session = self.session_factory()
        self._committed = False
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """
        Exit async context.

        Rolls back transaction if exception occurred or nothing was committed.
        """
        try:
            if exc_type is not None:
                logger.info(f"Transaction aborted: {exc_type.__name__}: {exc_val}")
                await self.rollback()
            elif not self._committed:
                await self.session.rollback()
        finally:
            await self.session.close()
            self._reset()

    def _reset(self) -> None:
        self.session = None
        self._orders = None
        self._products = None
        self._users = None
        self._sequence = None
        self._conversations = None
        self._notifications = None

    @property
    def orders(self) -> SQLAlchemyOrderRepository:
        """
        Get order repository.

        Returns:
            Order repository instance
        """
        if self._orders is None:
            self._orders = SQLAlchemyOrderRepository(self.session)

        return self._orders

    @property
    def products(self) -> SQLAlchemyProductRepository:
        if self._products is None:
            self._products = SQLAlchemyProductRepository(self.session)
        return self._products

    @property
    def users(self) -> SQLAlchemyUserRepository:
        if self._users is None:
            self._users = SQLAlchemyUserRepository(self.session)
        return self._users

    @property
    def sequence(self) -> SqlAlchemySequenceCounter:
        """Per-day order counter running in this transaction."""
        if self._sequence is None:
            self._sequence = SqlAlchemySequenceCounter(self.session)
        return self._sequence

    @property
    def conversations(self) -> SQLAlchemyConversationRepository:
        if self._conversations is None:
            self._conversations = SQLAlchemyConversationRepository(self.session)
        return self._conversations

    @property
    def notifications(self) -> SQLAlchemyNotificationRepository:
        if self._notifications is None:
            self._notifications = SQLAlchemyNotificationRepository(self.session)
        return self._notifications

    async def commit(self):
        """Commit transaction."""
        try:
            await self.session.commit()
            self._committed = True
            logger.info("✅ Transaction committed")
        except SQLAlchemyError as e:
            logger.error(f"❌ Commit failed: {e}")
            await self.rollback()
            raise PersistenceError("Could not save changes") from e

    async def rollback(self):
        """Rollback transaction."""
        await self.session.rollback()
        logger.warning("Transaction rolled back")
