"""
Delivery confirmation.

Buyers confirm or dispute receipt of an order; a periodic sweep
finalizes orders left out for delivery without an answer.
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import List, Optional

from sqlalchemy.ext.asyncio import async_sessionmaker

from core.domain.clock import Clock, utc_now
from core.domain.entities import Order
from core.domain.enums import OrderStatus
from core.domain.event_bus import EventBus
from core.domain.exceptions import AuthorizationError, OrderNotFoundError
from core.domain.value_objects import Actor
from core.infrastructure.database.unit_of_work import UnitOfWork


logger = logging.getLogger(__name__)


@dataclass
class AutoConfirmResult:
    confirmed: int = 0
    failed: int = 0
    order_numbers: List[str] = field(default_factory=list)


class DeliveryService:
    """Buyer delivery confirmation and the auto-confirmation sweep."""

    def __init__(
        self,
        session_factory: async_sessionmaker,
        event_bus: EventBus,
        clock: Clock = utc_now,
        auto_confirm_hours: int = 48,
    ):
        self._session_factory = session_factory
        self._event_bus = event_bus
        self._clock = clock
        self.auto_confirm_hours = auto_confirm_hours

    async def confirm_delivery(self, actor: Actor, order_id: str, confirmed: bool) -> Order:
        """
        Record the buyer's answer to the delivery prompt.

        Confirming an out-for-delivery order completes it. Confirming
        twice changes nothing and publishes nothing.

        Raises:
            OrderNotFoundError: Unknown order
            AuthorizationError: Actor is not the buyer
            DeliveryConfirmationNotAllowedError: Order is not awaiting receipt
        """
        now = self._clock()
        async with UnitOfWork(self._session_factory) as uow:
            order = await uow.orders.get(order_id)
            if order is None:
                raise OrderNotFoundError(order_id)
            if order.buyer_id != actor.id:
                raise AuthorizationError("Only the buyer can confirm delivery")

            if confirmed:
                changed = order.confirm_delivery(actor, now)
            else:
                order.deny_delivery(actor, now)
                changed = True

            if not changed:
                logger.info(f"Delivery of {order.order_number} already confirmed")
                return order

            await uow.orders.update(order)
            await uow.commit()

        logger.info(f"✅ Delivery response for {order.order_number}: confirmed={confirmed}")
        await self._event_bus.publish_all(order.pull_domain_events())
        return order

    async def auto_confirm_deliveries(self, now: Optional[datetime] = None) -> AutoConfirmResult:
        """
        Deliver every order that has been out for delivery for at least
        `auto_confirm_hours`.

        Each order commits in its own transaction; a failure is counted and
        the sweep moves on.
        """
        now = now or self._clock()
        cutoff = now - timedelta(hours=self.auto_confirm_hours)
        result = AutoConfirmResult()

        async with UnitOfWork(self._session_factory) as uow:
            order_ids = await uow.orders.find_stale_ids(OrderStatus.OUT_FOR_DELIVERY, cutoff)

        logger.info(f"Auto-confirm sweep: {len(order_ids)} candidate(s) older than {cutoff.isoformat()}")

        for order_id in order_ids:
            try:
                order = await self._auto_confirm_one(order_id, now, cutoff)
            except Exception as e:
                result.failed += 1
                logger.error(f"❌ Auto-confirm failed for order {order_id}: {e}", exc_info=True)
                continue
            if order is None:
                continue

            result.confirmed += 1
            result.order_numbers.append(order.order_number.value)
            await self._event_bus.publish_all(order.pull_domain_events())

        logger.info(f"✅ Auto-confirmed {result.confirmed} order(s), {result.failed} failed")
        return result

    async def _auto_confirm_one(self, order_id: str, now: datetime, cutoff: datetime) -> Optional[Order]:
        async with UnitOfWork(self._session_factory) as uow:
            order = await uow.orders.get(order_id)
            # Re-check: the order may have moved since the candidate query
            if order is None or order.status != OrderStatus.OUT_FOR_DELIVERY or order.updated_at > cutoff:
                return None

            order.auto_confirm_delivery(now, self.auto_confirm_hours)
            await uow.orders.update(order)
            await uow.commit()
        return order
