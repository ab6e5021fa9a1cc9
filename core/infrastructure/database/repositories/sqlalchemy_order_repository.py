"""
SQLAlchemy Order Repository Implementation.

Implements OrderRepository interface using SQLAlchemy.
"""
from typing import Dict, Iterable, List, Optional, Tuple
from datetime import datetime
from decimal import Decimal
import logging
from sqlalchemy import select, update, func, and_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm.exc import StaleDataError

from core.domain.entities import Order
from core.domain.enums import OrderStatus, PaymentStatus
from core.domain.exceptions import ConcurrentUpdateError
from core.domain.repositories import OrderRepository
from core.infrastructure.database.mappers import OrderMapper
from core.infrastructure.database.models import OrderModel


logger = logging.getLogger(__name__)


class SQLAlchemyOrderRepository(OrderRepository):
    """
    SQLAlchemy implementation of OrderRepository.

    Writes are guarded by the `version` column: an update based on a
    stale read raises ConcurrentUpdateError instead of overwriting.
    """

    def __init__(self, session: AsyncSession):
        """
        Initialize repository with database session.

        Args:
            session: SQLAlchemy async session
        """
        self.session = session

    def _select(self):
        return select(OrderModel).options(
            selectinload(OrderModel.items),
            selectinload(OrderModel.status_history),
        )

    async def add(self, order: Order) -> None:
        """
        Insert a new order with its items and first history entry.

        Args:
            order: Order entity to persist
        """
        model = OrderMapper.to_persistence(order)
        self.session.add(model)
        await self.session.flush()
        order.version = model.version
        logger.info(f"✅ Created order: {order.order_number}")

        # Note: Commit is handled by Unit of Work

    async def get(self, order_id: str) -> Optional[Order]:
        """
        Get order by ID, always re-reading the row.

        Args:
            order_id: Order ID to lookup

        Returns:
            Order entity if found, None otherwise
        """
        model = await self._load(order_id)
        if model is None:
            logger.info(f"Order not found: {order_id}")
            return None
        return OrderMapper.to_domain(model)

    async def update(self, order: Order) -> None:
        """
        Write back a mutated order.

        Args:
            order: Order previously returned by `get` in this session
        """
        model = await self.session.get(
            OrderModel,
            order.id,
            options=[selectinload(OrderModel.items), selectinload(OrderModel.status_history)],
        )
        if model is None or model.version != order.version:
            raise ConcurrentUpdateError(order.id)

        OrderMapper.apply(order, model)
        try:
            await self.session.flush()
        except (StaleDataError, IntegrityError) as e:
            logger.warning(f"Stale write rejected for order {order.order_number}: {e}")
            raise ConcurrentUpdateError(order.id) from e

        order.version = model.version
        logger.info(f"✅ Updated order: {order.order_number} -> {order.status.value}")

    async def list_for_buyer(
        self,
        buyer_id: str,
        statuses: Optional[Iterable[OrderStatus]] = None,
        offset: int = 0,
        limit: int = 20,
    ) -> Tuple[List[Order], int]:
        return await self._list(OrderModel.buyer_id == buyer_id, statuses, offset, limit)

    async def list_for_seller(
        self,
        seller_id: str,
        statuses: Optional[Iterable[OrderStatus]] = None,
        offset: int = 0,
        limit: int = 20,
    ) -> Tuple[List[Order], int]:
        return await self._list(OrderModel.seller_id == seller_id, statuses, offset, limit)

    async def count_by_status(self, seller_id: str) -> Dict[OrderStatus, int]:
        result = await self.session.execute(
            select(OrderModel.status, func.count(OrderModel.id))
            .where(OrderModel.seller_id == seller_id)
            .group_by(OrderModel.status)
        )
        counts = {status: 0 for status in OrderStatus}
        for status, count in result.all():
            counts[OrderStatus(status)] = count
        return counts

    async def revenue(
        self,
        seller_id: str,
        statuses: Iterable[OrderStatus],
        payment_status: Optional[PaymentStatus] = None,
    ) -> Tuple[Decimal, int]:
        conditions = [
            OrderModel.seller_id == seller_id,
            OrderModel.status.in_([s.value for s in statuses]),
        ]
        if payment_status is not None:
            conditions.append(OrderModel.payment_status == payment_status.value)

        result = await self.session.execute(
            select(func.coalesce(func.sum(OrderModel.total_amount), 0), func.count(OrderModel.id))
            .where(and_(*conditions))
        )
        total, count = result.one()
        return Decimal(str(total)), count

    async def find_stale_ids(self, status: OrderStatus, updated_before: datetime) -> List[str]:
        result = await self.session.execute(
            select(OrderModel.id)
            .where(
                and_(
                    OrderModel.status == status.value,
                    OrderModel.updated_at <= updated_before,
                )
            )
            .order_by(OrderModel.updated_at)
        )
        return list(result.scalars().all())

    async def link_conversation(self, order_id: str, conversation_id: str) -> None:
        # Core UPDATE: neither bumps the version nor touches updated_at
        await self.session.execute(
            update(OrderModel)
            .where(OrderModel.id == order_id)
            .values(conversation_id=conversation_id)
            .execution_options(synchronize_session=False)
        )

    # =========================================================================
    # PRIVATE METHODS
    # =========================================================================

    async def _load(self, order_id: str) -> Optional[OrderModel]:
        result = await self.session.execute(
            self._select()
            .where(OrderModel.id == order_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def _list(self, party_condition, statuses, offset: int, limit: int) -> Tuple[List[Order], int]:
        conditions = [party_condition]
        if statuses:
            conditions.append(OrderModel.status.in_([OrderStatus(s).value for s in statuses]))

        total = await self.session.scalar(
            select(func.count(OrderModel.id)).where(and_(*conditions))
        )
        result = await self.session.execute(
            self._select()
            .where(and_(*conditions))
            .order_by(OrderModel.created_at.desc(), OrderModel.order_number.desc())
            .offset(offset)
            .limit(limit)
        )
        orders = [OrderMapper.to_domain(m) for m in result.scalars().all()]
        return orders, total or 0
