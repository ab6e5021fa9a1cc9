"""Application service for Order operations."""

import logging
import math
from datetime import timedelta, timezone
from decimal import Decimal
from typing import Callable, List, Optional, Tuple

from sqlalchemy.ext.asyncio import async_sessionmaker

from core.application.dtos.order_dto import (
    CreateOrderRequest,
    OrderDTO,
    OrderListDTO,
    SellerDashboardDTO,
    SellerOrderListDTO,
    SellerOrderStatsDTO,
    UpdateOrderStatusRequest,
)
from core.domain.clock import Clock, utc_now
from core.domain.entities import Order, OrderItem, TrackingUpdate, UserProfile
from core.domain.enums import OrderStatus, PaymentMethod, PaymentStatus
from core.domain.event_bus import EventBus
from core.domain.events import DomainEvent, InventoryAlertRaisedEvent
from core.domain.exceptions import (
    AuthorizationError,
    CashOnDeliveryUnavailableError,
    OrderNotFoundError,
    ProductNotFoundError,
    SelfPurchaseError,
    ValidationError,
)
from core.domain.repositories import SequenceCounter
from core.domain.services import (
    CancellationPolicy,
    InventoryLedger,
    PricingPolicy,
    SequenceIssuer,
)
from core.domain.value_objects import Actor, Money, ShippingAddress
from core.infrastructure.database.unit_of_work import UnitOfWork
from core.settings.sections.orders import OrderSettings


logger = logging.getLogger(__name__)

REVENUE_STATUSES = (OrderStatus.SHIPPED, OrderStatus.OUT_FOR_DELIVERY, OrderStatus.DELIVERED)
PENDING_ACTION_STATUSES = (OrderStatus.PENDING, OrderStatus.REFUND_REQUESTED)
MAX_PAGE_SIZE = 100


def parse_status_filter(raw: Optional[str]) -> Optional[List[OrderStatus]]:
    """`None`, `""` or `"all"` means no filter; otherwise a comma-separated list."""
    if raw is None or not raw.strip() or raw.strip() == "all":
        return None
    statuses = []
    for value in raw.split(","):
        value = value.strip()
        try:
            statuses.append(OrderStatus(value))
        except ValueError:
            raise ValidationError(f"Unknown order status: {value}", {"status": value})
    return statuses


def _page_bounds(page: int, limit: int) -> Tuple[int, int]:
    if page < 1 or limit < 1 or limit > MAX_PAGE_SIZE:
        raise ValidationError(
            f"page must be >= 1 and limit between 1 and {MAX_PAGE_SIZE}",
            {"page": page, "limit": limit},
        )
    return (page - 1) * limit, limit


class OrderApplicationService:
    """
    Application service for orchestrating order operations.

    Responsibilities:
    - Coordinate domain + infrastructure
    - Handle transactions via UoW (one per request)
    - Authorize the actor against the order's parties
    - Publish domain events only after commit
    """

    def __init__(
        self,
        session_factory: async_sessionmaker,
        event_bus: EventBus,
        settings: Optional[OrderSettings] = None,
        clock: Clock = utc_now,
        sequence_counter: Optional[SequenceCounter] = None,
    ) -> None:
        """Initialize order application service.

        Args:
            session_factory: SQLAlchemy async session factory
            event_bus: Outbound bus for post-commit side effects
            settings: Order settings (environment when omitted)
            clock: Time source
            sequence_counter: Counter backend; the transactional SQL
                counter of each unit of work when omitted
        """
        self._session_factory = session_factory
        self._event_bus = event_bus
        self._settings = settings or OrderSettings()
        self._clock = clock
        self._sequence_counter = sequence_counter

        self.ledger = InventoryLedger()
        self.pricing = PricingPolicy(
            free_shipping_threshold=self._settings.free_shipping_threshold,
            flat_shipping_charge=self._settings.flat_shipping_charge,
        )
        self.cancellation_policy = CancellationPolicy(
            window=timedelta(hours=self._settings.cancellation_window_hours)
        )

    # =========================================================================
    # BUYER OPERATIONS
    # =========================================================================

    async def create_order(self, actor: Actor, request: CreateOrderRequest) -> Order:
        """Place an order.

        Sequence issuance, order insert and stock decrement commit together
        or not at all.

        Args:
            actor: Authenticated buyer
            request: CreateOrderRequest DTO

        Returns:
            The committed order
        """
        now = self._clock()
        alert_event: Optional[InventoryAlertRaisedEvent] = None

        async with UnitOfWork(self._session_factory) as uow:
            # 1. Product and owner
            product = await uow.products.get(request.product_id)
            if product is None:
                raise ProductNotFoundError(request.product_id)
            if product.seller_id == actor.id:
                raise SelfPurchaseError()
            seller = await uow.users.get(product.seller_id) or UserProfile(
                id=product.seller_id, username=product.seller_id
            )

            # 2. Stock rules, then seller payment preferences
            reservation = self.ledger.reserve(product, request.quantity, request.selected_size)
            if request.payment_method == PaymentMethod.COD and not seller.cash_on_delivery_available:
                raise CashOnDeliveryUnavailableError()

            # 3. Pricing and snapshot
            unit_price = Money(reservation.unit_price.amount, self._settings.currency)
            quote = self.pricing.quote(unit_price, reservation.quantity)
            address = ShippingAddress(**request.shipping_address.model_dump())
            title = product.title + (f" ({reservation.size})" if reservation.size else "")
            item = OrderItem(
                product_id=product.id,
                title=title,
                unit_price=unit_price,
                quantity=reservation.quantity,
                image=product.image,
                selected_size=reservation.size,
            )

            # 4. Number, order, stock
            issuer = SequenceIssuer(self._sequence_counter or uow.sequence, self._settings.number_prefix)
            order_number = await issuer.issue(now)

            order = Order.place(
                order_number=order_number,
                buyer=actor,
                seller_id=product.seller_id,
                items=[item],
                shipping_charge=quote.shipping_charge,
                discount=quote.discount,
                payment_method=request.payment_method,
                shipping_address=address,
                now=now,
                buyer_notes=request.buyer_notes,
                conversation_id=request.conversation_id,
            )
            await uow.orders.add(order)

            applied = await uow.products.apply_reservation(reservation)
            order.record_placement(
                remaining_stock=applied.aggregate_remaining if product.manages_stock else None
            )

            alert = self.ledger.alert_for(
                product, applied, seller.alert_threshold(self._settings.low_stock_threshold)
            )
            if alert is not None:
                alert_event = InventoryAlertRaisedEvent(
                    product_id=alert.product_id,
                    seller_id=product.seller_id,
                    title=alert.title,
                    message=alert.message,
                    size=alert.size,
                    quantity_available=alert.quantity_available,
                )

            await uow.commit()

        logger.info(f"✅ Order placed: {order.order_number} ({order.total_amount})")

        events = order.pull_domain_events()
        if alert_event is not None:
            events.append(alert_event)
        await self._publish(events)
        return order

    async def list_buyer_orders(
        self,
        actor: Actor,
        status: Optional[str] = None,
        page: int = 1,
        limit: int = 20,
    ) -> OrderListDTO:
        statuses = parse_status_filter(status)
        offset, limit = _page_bounds(page, limit)
        async with UnitOfWork(self._session_factory) as uow:
            orders, total = await uow.orders.list_for_buyer(actor.id, statuses, offset, limit)
        return OrderListDTO(
            orders=[OrderDTO.from_domain(o) for o in orders],
            total=total,
            page=page,
            limit=limit,
            pages=math.ceil(total / limit),
        )

    async def get_order(self, actor: Actor, order_id: str) -> Order:
        """Get order by ID; only its buyer or seller may read it."""
        async with UnitOfWork(self._session_factory) as uow:
            order = await self._load(uow, order_id)
        if actor.id not in (order.buyer_id, order.seller_id):
            raise AuthorizationError("Not authorized to view this order")
        return order

    async def cancel_order(self, actor: Actor, order_id: str, reason: Optional[str] = None) -> Order:
        def cancel(order: Order, now):
            self._ensure_buyer(order, actor, "Not authorized to cancel this order")
            self.cancellation_policy.ensure_cancellable(order, now)
            order.cancel(actor, now, reason)

        return await self._mutate(order_id, cancel)

    async def request_refund(self, actor: Actor, order_id: str, reason: Optional[str] = None) -> Order:
        def refund(order: Order, now):
            self._ensure_buyer(order, actor)
            self.cancellation_policy.ensure_refundable(order)
            order.request_refund(actor, now, reason)

        return await self._mutate(order_id, refund)

    async def verify_payment(self, actor: Actor, order_id: str, transaction_id: Optional[str] = None) -> Order:
        """Record an online payment. Gateway signature checks are not performed."""
        def verify(order: Order, now):
            self._ensure_buyer(order, actor)
            millis = int(now.replace(tzinfo=timezone.utc).timestamp() * 1000)
            order.record_payment(transaction_id or f"TXN-{millis}", now)

        return await self._mutate(order_id, verify)

    # =========================================================================
    # SELLER OPERATIONS
    # =========================================================================

    async def list_seller_orders(
        self,
        actor: Actor,
        status: Optional[str] = None,
        page: int = 1,
        limit: int = 20,
    ) -> SellerOrderListDTO:
        statuses = parse_status_filter(status)
        offset, limit = _page_bounds(page, limit)
        async with UnitOfWork(self._session_factory) as uow:
            orders, total = await uow.orders.list_for_seller(actor.id, statuses, offset, limit)
            counts = await uow.orders.count_by_status(actor.id)
            revenue, _ = await uow.orders.revenue(actor.id, REVENUE_STATUSES)

        return SellerOrderListDTO(
            orders=[OrderDTO.from_domain(o) for o in orders],
            total=total,
            page=page,
            limit=limit,
            pages=math.ceil(total / limit),
            stats=SellerOrderStatsDTO(
                counts={status.value: count for status, count in counts.items()},
                total_revenue=revenue,
            ),
        )

    async def update_status(self, actor: Actor, order_id: str, request: UpdateOrderStatusRequest) -> Order:
        """Seller moves the order along the status graph."""
        tracking = TrackingUpdate(
            tracking_number=request.tracking_number,
            shipping_carrier=request.shipping_carrier,
            tracking_link=request.tracking_link,
            estimated_delivery=request.estimated_delivery,
        )

        def transition(order: Order, now):
            self._ensure_seller(order, actor)
            order.transition_to(request.status, actor, now, note=request.note, tracking=tracking)

        return await self._mutate(order_id, transition)

    async def add_seller_notes(self, actor: Actor, order_id: str, notes: Optional[str]) -> Order:
        def annotate(order: Order, now):
            self._ensure_seller(order, actor)
            order.update_seller_notes(notes, now)

        return await self._mutate(order_id, annotate)

    async def seller_stats(self, actor: Actor) -> SellerDashboardDTO:
        async with UnitOfWork(self._session_factory) as uow:
            counts = await uow.orders.count_by_status(actor.id)
            revenue, completed = await uow.orders.revenue(
                actor.id, REVENUE_STATUSES, payment_status=PaymentStatus.COMPLETED
            )
            recent, total = await uow.orders.list_for_seller(actor.id, None, 0, 5)

        return SellerDashboardDTO(
            counts={status.value: count for status, count in counts.items()},
            total_orders=total,
            total_revenue=revenue or Decimal("0"),
            completed_orders=completed,
            pending_actions=sum(counts[s] for s in PENDING_ACTION_STATUSES),
            recent_orders=[OrderDTO.from_domain(o) for o in recent],
        )

    # =========================================================================
    # HELPERS
    # =========================================================================

    async def _mutate(self, order_id: str, change: Callable[[Order, object], None]) -> Order:
        """Load the latest persisted order, apply `change`, commit, then publish."""
        now = self._clock()
        async with UnitOfWork(self._session_factory) as uow:
            order = await self._load(uow, order_id)
            change(order, now)
            await uow.orders.update(order)
            await uow.commit()

        await self._publish(order.pull_domain_events())
        return order

    async def _load(self, uow: UnitOfWork, order_id: str) -> Order:
        order = await uow.orders.get(order_id)
        if order is None:
            raise OrderNotFoundError(order_id)
        return order

    async def _publish(self, events: List[DomainEvent]) -> None:
        if events:
            await self._event_bus.publish_all(events)

    @staticmethod
    def _ensure_buyer(order: Order, actor: Actor, message: str = "Not authorized") -> None:
        if order.buyer_id != actor.id:
            raise AuthorizationError(message)

    @staticmethod
    def _ensure_seller(order: Order, actor: Actor, message: str = "Not authorized to update this order") -> None:
        if order.seller_id != actor.id:
            raise AuthorizationError(message)
