"""
Order aggregate root.

The order is a receipt: item snapshots are taken at checkout and never
change. Status only moves along ALLOWED_TRANSITIONS and every move is
appended to `status_history`, which is never truncated or reordered.

CRITICAL: This file must contain ZERO imports from:
- sqlalchemy
- pydantic
- fastapi
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional
import uuid

from ..enums import (
    ALLOWED_TRANSITIONS,
    DELIVERY_CONFIRMABLE_STATUSES,
    OrderStatus,
    PaymentMethod,
    PaymentStatus,
)
from ..events.base import DomainEvent
from ..events.order_events import (
    DeliveryConfirmationRespondedEvent,
    OrderPlacedEvent,
    OrderStatusChangedEvent,
)
from ..exceptions import (
    DeliveryConfirmationNotAllowedError,
    InvalidTransitionError,
    RefundNotAllowedError,
    SelfPurchaseError,
    ValidationError,
)
from ..value_objects import SYSTEM_ACTOR, Actor, Money, OrderNumber, ShippingAddress


@dataclass(frozen=True)
class OrderItem:
    """Line item snapshot taken at order time."""
    product_id: str
    title: str
    unit_price: Money
    quantity: int
    image: str = ""
    selected_size: Optional[str] = None

    def __post_init__(self):
        if isinstance(self.quantity, bool) or not isinstance(self.quantity, int) or self.quantity < 1:
            raise ValidationError(
                "Quantity must be a positive integer",
                {"quantity": self.quantity},
            )
        if self.unit_price.is_negative():
            raise ValidationError("Unit price cannot be negative")

    @property
    def total(self) -> Money:
        return self.unit_price.times(self.quantity)


@dataclass(frozen=True)
class StatusHistoryEntry:
    """One audit-trail entry."""
    status: OrderStatus
    timestamp: datetime
    note: Optional[str] = None
    actor_id: Optional[str] = None


@dataclass(frozen=True)
class TrackingUpdate:
    """Shipping metadata a seller may attach to a status update."""
    tracking_number: Optional[str] = None
    shipping_carrier: Optional[str] = None
    tracking_link: Optional[str] = None
    estimated_delivery: Optional[datetime] = None


@dataclass
class Order:
    """
    Order aggregate root.

    Invariants:
    - buyer_id != seller_id
    - every money field is non-negative
    - total_amount == subtotal + shipping_charge - discount
    """
    id: str
    order_number: OrderNumber
    buyer_id: str
    seller_id: str
    items: List[OrderItem]
    subtotal: Money
    shipping_charge: Money
    discount: Money
    total_amount: Money
    payment_method: PaymentMethod
    shipping_address: ShippingAddress
    created_at: datetime
    updated_at: datetime

    status: OrderStatus = OrderStatus.PENDING
    status_history: List[StatusHistoryEntry] = field(default_factory=list)

    # Payment
    payment_status: PaymentStatus = PaymentStatus.PENDING
    transaction_id: Optional[str] = None
    paid_at: Optional[datetime] = None

    # Shipping
    tracking_number: Optional[str] = None
    shipping_carrier: Optional[str] = None
    tracking_link: Optional[str] = None
    estimated_delivery: Optional[datetime] = None
    delivered_at: Optional[datetime] = None
    delivery_confirmed_at: Optional[datetime] = None

    # Communication
    conversation_id: Optional[str] = None
    buyer_notes: Optional[str] = None
    seller_notes: Optional[str] = None

    # Cancellation / refund
    cancellation_reason: Optional[str] = None
    cancelled_by: Optional[str] = None
    refund_amount: Optional[Money] = None
    refund_reason: Optional[str] = None

    # Optimistic concurrency token (0 = not persisted yet)
    version: int = 0

    _domain_events: List[DomainEvent] = field(default_factory=list, init=False, repr=False)

    def __post_init__(self):
        if self.buyer_id == self.seller_id:
            raise SelfPurchaseError()
        if not self.items:
            raise ValidationError("Order must contain at least one item")

        for name in ("subtotal", "shipping_charge", "discount", "total_amount"):
            if getattr(self, name).is_negative():
                raise ValidationError(f"{name} cannot be negative", {"field": name})

        expected_total = self.subtotal + self.shipping_charge - self.discount
        if expected_total.amount != self.total_amount.amount:
            raise ValidationError(
                f"Total mismatch: {self.total_amount} vs {expected_total}",
                {"expected_total": str(expected_total.amount)},
            )

    # =========================================================================
    # FACTORY
    # =========================================================================

    @classmethod
    def place(
        cls,
        order_number: OrderNumber,
        buyer: Actor,
        seller_id: str,
        items: List[OrderItem],
        shipping_charge: Money,
        payment_method: PaymentMethod,
        shipping_address: ShippingAddress,
        now: datetime,
        discount: Optional[Money] = None,
        buyer_notes: Optional[str] = None,
        conversation_id: Optional[str] = None,
    ) -> 'Order':
        """
        Create a new order in `pending` with its initial history entry.

        Args:
            order_number: Number issued by the sequence issuer
            buyer: Authenticated buyer
            seller_id: Owner of the purchased product
            items: Line item snapshots
            shipping_charge: Shipping fee from the pricing policy
            payment_method: cod or online
            shipping_address: Validated delivery address
            now: Creation timestamp

        Returns:
            New Order (not yet persisted)
        """
        if buyer.id == seller_id:
            raise SelfPurchaseError()

        currency = items[0].unit_price.currency if items else shipping_charge.currency
        subtotal = Money.zero(currency)
        for item in items:
            subtotal = subtotal + item.total
        discount = discount or Money.zero(currency)

        order = cls(
            id=uuid.uuid4().hex,
            order_number=order_number,
            buyer_id=buyer.id,
            seller_id=seller_id,
            items=list(items),
            subtotal=subtotal,
            shipping_charge=shipping_charge,
            discount=discount,
            total_amount=subtotal + shipping_charge - discount,
            payment_method=payment_method,
            shipping_address=shipping_address,
            created_at=now,
            updated_at=now,
            buyer_notes=buyer_notes,
            conversation_id=conversation_id,
        )
        order.status_history.append(StatusHistoryEntry(status=OrderStatus.PENDING, timestamp=now))
        return order

    def record_placement(self, remaining_stock: Optional[int] = None) -> None:
        """Record OrderPlacedEvent once stock has been reserved."""
        item = self.items[0]
        self._record_event(
            OrderPlacedEvent(
                order_id=self.id,
                order_number=self.order_number.value,
                buyer_id=self.buyer_id,
                seller_id=self.seller_id,
                product_id=item.product_id,
                title=item.title,
                unit_price=item.unit_price.amount,
                quantity=item.quantity,
                image=item.image,
                selected_size=item.selected_size,
                remaining_stock=remaining_stock,
                total_amount=self.total_amount.amount,
                conversation_id=self.conversation_id,
                user_id=self.buyer_id,
            )
        )

    # =========================================================================
    # STATE MACHINE
    # =========================================================================

    def can_transition_to(self, new_status: OrderStatus) -> bool:
        return new_status in ALLOWED_TRANSITIONS[self.status]

    def transition_to(
        self,
        new_status: OrderStatus,
        actor: Actor,
        now: datetime,
        note: Optional[str] = None,
        tracking: Optional[TrackingUpdate] = None,
    ) -> OrderStatus:
        """
        Move the order to `new_status`.

        The order is left untouched when the transition is not in
        ALLOWED_TRANSITIONS.

        Returns:
            The previous status

        Raises:
            InvalidTransitionError: If new_status is not reachable
        """
        new_status = OrderStatus(new_status)
        if not self.can_transition_to(new_status):
            raise InvalidTransitionError(self.status.value, new_status.value)

        previous_status = self.status
        self.status = new_status
        self.status_history.append(
            StatusHistoryEntry(status=new_status, timestamp=now, note=note, actor_id=actor.id)
        )
        if tracking:
            self._merge_tracking(tracking)
        if new_status == OrderStatus.DELIVERED:
            self._mark_delivered(now)
        elif new_status == OrderStatus.REFUNDED:
            self.payment_status = PaymentStatus.REFUNDED
        self.updated_at = now

        self._record_event(
            OrderStatusChangedEvent(
                order_id=self.id,
                order_number=self.order_number.value,
                buyer_id=self.buyer_id,
                seller_id=self.seller_id,
                previous_status=previous_status.value,
                new_status=new_status.value,
                actor_id=actor.id,
                note=note,
                tracking_number=self.tracking_number,
                tracking_link=self.tracking_link,
                estimated_delivery=self.estimated_delivery,
                request_confirmation=(
                    actor.id == self.seller_id and new_status in DELIVERY_CONFIRMABLE_STATUSES
                ),
                user_id=actor.id,
            )
        )
        return previous_status

    def cancel(self, actor: Actor, now: datetime, reason: Optional[str] = None) -> None:
        """
        Cancel the order. Cancellation policy is checked by the caller.

        Online orders that were already paid are marked for a full refund.
        """
        reason = reason or "Cancelled by buyer"
        self.transition_to(OrderStatus.CANCELLED, actor, now, note=reason)
        self.cancellation_reason = reason
        self.cancelled_by = actor.id

        if (
            self.payment_method == PaymentMethod.ONLINE
            and self.payment_status == PaymentStatus.COMPLETED
        ):
            self.refund_amount = self.total_amount
            self.refund_reason = "Order cancelled"

    def request_refund(self, actor: Actor, now: datetime, reason: Optional[str] = None) -> None:
        """Buyer asks for a refund of the whole order."""
        if self.status != OrderStatus.DELIVERED:
            raise RefundNotAllowedError(self.status.value)

        self.transition_to(OrderStatus.REFUND_REQUESTED, actor, now, note=reason)
        self.refund_reason = reason
        self.refund_amount = self.total_amount

    # =========================================================================
    # DELIVERY CONFIRMATION
    # =========================================================================

    def confirm_delivery(self, actor: Actor, now: datetime) -> bool:
        """
        Buyer confirms receipt.

        From out_for_delivery this transitions to delivered. On an order
        already delivered the first confirmation appends a history entry and
        stamps `delivery_confirmed_at`; `delivered_at` is left alone.
        Repeated confirmations are no-ops.

        Returns:
            True if anything changed
        """
        self._ensure_confirmable()
        if self.delivery_confirmed_at is not None:
            return False

        note = "Delivery confirmed by buyer"
        status_changed = self.status != OrderStatus.DELIVERED
        if status_changed:
            self._deliver(actor, now, note=note)
        else:
            self.status_history.append(
                StatusHistoryEntry(status=OrderStatus.DELIVERED, timestamp=now, note=note, actor_id=actor.id)
            )
        self.delivery_confirmed_at = now
        self.updated_at = now

        self._record_confirmation(confirmed=True, now=now, status_changed=status_changed, actor=actor)
        return True

    def deny_delivery(self, actor: Actor, now: datetime) -> None:
        """Buyer reports not having received the order. Status is unchanged."""
        self._ensure_confirmable()
        self.status_history.append(
            StatusHistoryEntry(
                status=self.status,
                timestamp=now,
                note="Buyer reported not receiving the order",
                actor_id=actor.id,
            )
        )
        self.updated_at = now
        self._record_confirmation(confirmed=False, now=now, status_changed=False, actor=actor)

    def auto_confirm_delivery(self, now: datetime, after_hours: int) -> None:
        """Sweep path: finalize a stale out_for_delivery order as the system actor."""
        if self.status != OrderStatus.OUT_FOR_DELIVERY:
            raise InvalidTransitionError(self.status.value, OrderStatus.DELIVERED.value)

        self._deliver(SYSTEM_ACTOR, now, note=f"Auto-confirmed after {after_hours} hours")
        self.delivery_confirmed_at = now
        self._record_confirmation(
            confirmed=True, now=now, status_changed=True, actor=SYSTEM_ACTOR, auto_confirmed=True
        )

    # =========================================================================
    # NON-STATUS UPDATES
    # =========================================================================

    def update_seller_notes(self, notes: Optional[str], now: datetime) -> None:
        self.seller_notes = notes
        self.updated_at = now

    def record_payment(self, transaction_id: str, now: datetime) -> None:
        """Mark an online payment as completed."""
        self.payment_status = PaymentStatus.COMPLETED
        self.transaction_id = transaction_id
        self.paid_at = now
        self.updated_at = now

    def link_conversation(self, conversation_id: str) -> None:
        self.conversation_id = conversation_id

    # =========================================================================
    # INTERNALS
    # =========================================================================

    def _ensure_confirmable(self) -> None:
        if self.status not in DELIVERY_CONFIRMABLE_STATUSES:
            raise DeliveryConfirmationNotAllowedError(self.status.value)

    def _deliver(self, actor: Actor, now: datetime, note: str) -> None:
        """Move to delivered without emitting a status-change event."""
        if not self.can_transition_to(OrderStatus.DELIVERED):
            raise InvalidTransitionError(self.status.value, OrderStatus.DELIVERED.value)
        self.status = OrderStatus.DELIVERED
        self.status_history.append(
            StatusHistoryEntry(status=OrderStatus.DELIVERED, timestamp=now, note=note, actor_id=actor.id)
        )
        self._mark_delivered(now)
        self.updated_at = now

    def _mark_delivered(self, now: datetime) -> None:
        self.delivered_at = now
        # Cash on delivery is settled at the door
        if self.payment_method == PaymentMethod.COD:
            self.payment_status = PaymentStatus.COMPLETED
            self.paid_at = now

    def _merge_tracking(self, tracking: TrackingUpdate) -> None:
        if tracking.tracking_number:
            self.tracking_number = tracking.tracking_number
        if tracking.shipping_carrier:
            self.shipping_carrier = tracking.shipping_carrier
        if tracking.tracking_link:
            self.tracking_link = tracking.tracking_link
        if tracking.estimated_delivery:
            self.estimated_delivery = tracking.estimated_delivery

    def _record_confirmation(
        self,
        confirmed: bool,
        now: datetime,
        status_changed: bool,
        actor: Actor,
        auto_confirmed: bool = False,
    ) -> None:
        self._record_event(
            DeliveryConfirmationRespondedEvent(
                order_id=self.id,
                order_number=self.order_number.value,
                buyer_id=self.buyer_id,
                seller_id=self.seller_id,
                confirmed=confirmed,
                responded_at=now,
                auto_confirmed=auto_confirmed,
                status_changed=status_changed,
                user_id=actor.id,
            )
        )

    # =========================================================================
    # EVENT COLLECTION
    # =========================================================================

    def get_domain_events(self) -> List[DomainEvent]:
        """
        Get all domain events collected by this aggregate.

        Returns:
            List of domain events (published after commit)
        """
        return list(self._domain_events)

    def clear_domain_events(self) -> None:
        """Clear all collected domain events (after publishing)."""
        self._domain_events.clear()

    def pull_domain_events(self) -> List[DomainEvent]:
        events = self.get_domain_events()
        self.clear_domain_events()
        return events

    def _record_event(self, event: DomainEvent) -> None:
        self._domain_events.append(event)
