"""Tests for the Order aggregate's status graph and lifecycle rules."""

from datetime import timedelta
from decimal import Decimal

import pytest

from core.domain.entities import Order, OrderItem, TrackingUpdate
from core.domain.enums import ALLOWED_TRANSITIONS, OrderStatus, PaymentMethod, PaymentStatus
from core.domain.events import (
    DeliveryConfirmationRespondedEvent,
    OrderPlacedEvent,
    OrderStatusChangedEvent,
)
from core.domain.exceptions import (
    DeliveryConfirmationNotAllowedError,
    InvalidTransitionError,
    RefundNotAllowedError,
    SelfPurchaseError,
    ValidationError,
)
from core.domain.value_objects import SYSTEM_ACTOR_ID, Actor, Money
from support import BUYER, SELLER, START, build_order


def advance(order: Order, *statuses: OrderStatus) -> Order:
    now = START
    for status in statuses:
        now = now + timedelta(hours=1)
        order.transition_to(status, SELLER, now)
    order.clear_domain_events()
    return order


# =============================================================================
# PLACEMENT
# =============================================================================

def test_place_creates_pending_order_with_one_history_entry():
    order = build_order(unit_price="100", quantity=2, shipping="50")

    assert order.status == OrderStatus.PENDING
    assert order.payment_status == PaymentStatus.PENDING
    assert order.subtotal.amount == Decimal("200")
    assert order.total_amount.amount == Decimal("250")
    assert len(order.status_history) == 1
    assert order.status_history[0].status == OrderStatus.PENDING
    assert order.status_history[0].timestamp == START


def test_place_rejects_self_purchase():
    with pytest.raises(SelfPurchaseError):
        Order.place(
            order_number=build_order().order_number,
            buyer=Actor(id=SELLER.id),
            seller_id=SELLER.id,
            items=build_order().items,
            shipping_charge=Money(Decimal("0")),
            payment_method=PaymentMethod.COD,
            shipping_address=build_order().shipping_address,
            now=START,
        )


def test_item_quantity_must_be_positive():
    with pytest.raises(ValidationError):
        OrderItem(product_id="p", title="t", unit_price=Money(Decimal("10")), quantity=0)


def test_record_placement_emits_order_placed_event():
    order = build_order()
    order.record_placement(remaining_stock=3)

    events = order.pull_domain_events()
    assert len(events) == 1
    assert isinstance(events[0], OrderPlacedEvent)
    assert events[0].order_number == order.order_number.value
    assert events[0].remaining_stock == 3
    assert order.get_domain_events() == []


# =============================================================================
# TRANSITION TABLE
# =============================================================================

@pytest.mark.parametrize(
    "current, target",
    [
        (current, target)
        for current in OrderStatus
        for target in OrderStatus
        if target not in ALLOWED_TRANSITIONS[current]
    ],
)
def test_disallowed_transitions_leave_order_untouched(current, target):
    order = build_order()
    order.status = current
    history_before = list(order.status_history)

    with pytest.raises(InvalidTransitionError) as exc_info:
        order.transition_to(target, SELLER, START + timedelta(hours=1))

    assert order.status == current
    assert order.status_history == history_before
    assert order.get_domain_events() == []
    assert exc_info.value.current == current.value
    assert exc_info.value.requested == target.value


def test_pending_to_shipped_is_rejected():
    order = build_order()

    with pytest.raises(InvalidTransitionError):
        order.transition_to(OrderStatus.SHIPPED, SELLER, START)

    assert order.status == OrderStatus.PENDING
    assert len(order.status_history) == 1


def test_happy_path_appends_history_in_order():
    order = advance(
        build_order(),
        OrderStatus.CONFIRMED,
        OrderStatus.PROCESSING,
        OrderStatus.SHIPPED,
        OrderStatus.OUT_FOR_DELIVERY,
    )

    assert [h.status for h in order.status_history] == [
        OrderStatus.PENDING,
        OrderStatus.CONFIRMED,
        OrderStatus.PROCESSING,
        OrderStatus.SHIPPED,
        OrderStatus.OUT_FOR_DELIVERY,
    ]
    assert all(h.actor_id == SELLER.id for h in order.status_history[1:])


def test_transition_records_event_and_merges_tracking():
    order = advance(build_order(), OrderStatus.CONFIRMED, OrderStatus.PROCESSING)
    eta = START + timedelta(days=3)

    previous = order.transition_to(
        OrderStatus.SHIPPED,
        SELLER,
        START + timedelta(hours=5),
        note="Packed",
        tracking=TrackingUpdate(
            tracking_number="TRK123",
            shipping_carrier="BlueDart",
            tracking_link="https://track.example/TRK123",
            estimated_delivery=eta,
        ),
    )

    assert previous == OrderStatus.PROCESSING
    assert order.tracking_number == "TRK123"
    assert order.shipping_carrier == "BlueDart"
    assert order.estimated_delivery == eta
    assert order.status_history[-1].note == "Packed"

    [event] = order.pull_domain_events()
    assert isinstance(event, OrderStatusChangedEvent)
    assert event.previous_status == "processing"
    assert event.new_status == "shipped"
    assert event.tracking_number == "TRK123"
    assert event.request_confirmation is False


def test_tracking_fields_are_only_overwritten_when_given():
    order = advance(build_order(), OrderStatus.CONFIRMED, OrderStatus.PROCESSING)
    order.transition_to(OrderStatus.SHIPPED, SELLER, START, tracking=TrackingUpdate(tracking_number="TRK1"))
    order.transition_to(
        OrderStatus.OUT_FOR_DELIVERY, SELLER, START, tracking=TrackingUpdate(shipping_carrier="Delhivery")
    )

    assert order.tracking_number == "TRK1"
    assert order.shipping_carrier == "Delhivery"


def test_seller_delivery_requests_buyer_confirmation_and_settles_cod():
    order = advance(build_order(), OrderStatus.CONFIRMED, OrderStatus.PROCESSING, OrderStatus.SHIPPED)
    delivered_at = START + timedelta(days=2)

    order.transition_to(OrderStatus.DELIVERED, SELLER, delivered_at)

    assert order.delivered_at == delivered_at
    assert order.payment_status == PaymentStatus.COMPLETED
    assert order.paid_at == delivered_at
    [event] = order.pull_domain_events()
    assert event.request_confirmation is True


def test_online_payment_is_not_settled_on_delivery():
    order = advance(
        build_order(payment_method=PaymentMethod.ONLINE),
        OrderStatus.CONFIRMED,
        OrderStatus.PROCESSING,
        OrderStatus.SHIPPED,
    )
    order.transition_to(OrderStatus.DELIVERED, SELLER, START)

    assert order.payment_status == PaymentStatus.PENDING
    assert order.paid_at is None


def test_refunded_marks_payment_refunded():
    order = advance(
        build_order(payment_method=PaymentMethod.ONLINE),
        OrderStatus.CONFIRMED,
        OrderStatus.PROCESSING,
        OrderStatus.SHIPPED,
        OrderStatus.DELIVERED,
    )
    order.request_refund(BUYER, START, "Damaged")
    order.transition_to(OrderStatus.REFUNDED, SELLER, START)

    assert order.status == OrderStatus.REFUNDED
    assert order.payment_status == PaymentStatus.REFUNDED


# =============================================================================
# CANCELLATION / REFUND
# =============================================================================

def test_cancel_uses_default_reason():
    order = build_order()
    order.cancel(BUYER, START + timedelta(hours=1))

    assert order.status == OrderStatus.CANCELLED
    assert order.cancellation_reason == "Cancelled by buyer"
    assert order.cancelled_by == BUYER.id
    assert order.refund_amount is None


def test_cancel_paid_online_order_marks_full_refund():
    order = build_order(payment_method=PaymentMethod.ONLINE)
    order.record_payment("TXN-1", START)

    order.cancel(BUYER, START + timedelta(hours=1), reason="Changed my mind")

    assert order.cancellation_reason == "Changed my mind"
    assert order.refund_amount == order.total_amount
    assert order.refund_reason == "Order cancelled"


def test_refund_only_for_delivered_orders():
    order = advance(build_order(), OrderStatus.CONFIRMED)

    with pytest.raises(RefundNotAllowedError):
        order.request_refund(BUYER, START, "Late")
    assert order.status == OrderStatus.CONFIRMED


def test_refund_request_records_amount_and_reason():
    order = advance(
        build_order(), OrderStatus.CONFIRMED, OrderStatus.PROCESSING, OrderStatus.SHIPPED, OrderStatus.DELIVERED
    )

    order.request_refund(BUYER, START, "Wrong size")

    assert order.status == OrderStatus.REFUND_REQUESTED
    assert order.refund_reason == "Wrong size"
    assert order.refund_amount == order.total_amount


# =============================================================================
# DELIVERY CONFIRMATION
# =============================================================================

def test_confirm_from_out_for_delivery_delivers_without_status_event():
    order = advance(
        build_order(), OrderStatus.CONFIRMED, OrderStatus.PROCESSING, OrderStatus.SHIPPED, OrderStatus.OUT_FOR_DELIVERY
    )
    now = START + timedelta(days=1)

    assert order.confirm_delivery(BUYER, now) is True

    assert order.status == OrderStatus.DELIVERED
    assert order.delivered_at == now
    assert order.delivery_confirmed_at == now
    assert order.payment_status == PaymentStatus.COMPLETED
    assert order.status_history[-1].note == "Delivery confirmed by buyer"
    [event] = order.pull_domain_events()
    assert isinstance(event, DeliveryConfirmationRespondedEvent)
    assert event.confirmed is True
    assert event.status_changed is True


def test_confirming_a_delivered_order_records_the_buyer_once():
    order = advance(
        build_order(), OrderStatus.CONFIRMED, OrderStatus.PROCESSING, OrderStatus.SHIPPED, OrderStatus.DELIVERED
    )
    delivered_at = order.delivered_at
    history_length = len(order.status_history)

    confirmed_at = START + timedelta(days=1)
    assert order.confirm_delivery(BUYER, confirmed_at) is True
    assert order.confirm_delivery(BUYER, START + timedelta(days=2)) is False

    assert order.status == OrderStatus.DELIVERED
    assert order.delivered_at == delivered_at
    assert len(order.status_history) == history_length + 1
    entry = order.status_history[-1]
    assert entry.status == OrderStatus.DELIVERED
    assert entry.timestamp == confirmed_at
    assert entry.note == "Delivery confirmed by buyer"
    assert entry.actor_id == BUYER.id
    assert len(order.pull_domain_events()) == 1


def test_deny_delivery_keeps_status_and_appends_history():
    order = advance(
        build_order(), OrderStatus.CONFIRMED, OrderStatus.PROCESSING, OrderStatus.SHIPPED, OrderStatus.OUT_FOR_DELIVERY
    )

    order.deny_delivery(BUYER, START + timedelta(days=1))

    assert order.status == OrderStatus.OUT_FOR_DELIVERY
    assert order.status_history[-1].status == OrderStatus.OUT_FOR_DELIVERY
    assert order.status_history[-1].note == "Buyer reported not receiving the order"
    [event] = order.pull_domain_events()
    assert event.confirmed is False


def test_confirmation_requires_delivery_status():
    order = advance(build_order(), OrderStatus.CONFIRMED, OrderStatus.PROCESSING, OrderStatus.SHIPPED)

    with pytest.raises(DeliveryConfirmationNotAllowedError):
        order.confirm_delivery(BUYER, START)
    with pytest.raises(DeliveryConfirmationNotAllowedError):
        order.deny_delivery(BUYER, START)


def test_auto_confirm_is_attributed_to_system_actor():
    order = advance(
        build_order(), OrderStatus.CONFIRMED, OrderStatus.PROCESSING, OrderStatus.SHIPPED, OrderStatus.OUT_FOR_DELIVERY
    )

    order.auto_confirm_delivery(START + timedelta(hours=50), after_hours=48)

    last = order.status_history[-1]
    assert order.status == OrderStatus.DELIVERED
    assert last.actor_id == SYSTEM_ACTOR_ID
    assert last.note == "Auto-confirmed after 48 hours"
    [event] = order.pull_domain_events()
    assert event.auto_confirmed is True
