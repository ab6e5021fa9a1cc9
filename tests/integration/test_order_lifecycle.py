"""
Order lifecycle against a real SQLite database.

Services are wired to an unstarted bus, so every post-commit side effect
(conversation messages, notifications, pushes) has happened by the time
the service call returns.
"""

from decimal import Decimal
from unittest.mock import AsyncMock

import pytest

from core.application.dtos import UpdateOrderStatusRequest
from core.domain.entities import MessageType
from core.domain.enums import NotificationType, OrderStatus, PaymentMethod, PaymentStatus
from core.domain.exceptions import (
    AuthorizationError,
    CancellationWindowExpiredError,
    CashOnDeliveryUnavailableError,
    DeliveryConfirmationNotAllowedError,
    InvalidTransitionError,
    OrderNotFoundError,
    ProductNotFoundError,
    RefundNotAllowedError,
    SelfPurchaseError,
    ValidationError,
)
from core.domain.services.inventory_ledger import INVENTORY_EMPTY, LOW_INVENTORY, SIZE_OUT_OF_STOCK
from core.domain.value_objects import SYSTEM_ACTOR_ID, Actor
from support import BUYER, SELLER, make_request


FULFILMENT = (
    OrderStatus.CONFIRMED,
    OrderStatus.PROCESSING,
    OrderStatus.SHIPPED,
    OrderStatus.OUT_FOR_DELIVERY,
)


async def advance(order_service, order_id, until=OrderStatus.OUT_FOR_DELIVERY):
    """Walk an order along the seller's happy path up to `until`."""
    order = None
    for status in FULFILMENT:
        order = await order_service.update_status(SELLER, order_id, UpdateOrderStatusRequest(status=status))
        if status == until:
            break
    return order


def titles(notifications):
    return [n.title for n in notifications]


# =============================================================================
# PLACEMENT
# =============================================================================

@pytest.mark.asyncio
async def test_place_order_on_flat_stock(order_service, seed, parties, push):
    await seed.product("prod-1", quantity=5, price="100")

    order = await order_service.create_order(BUYER, make_request("prod-1", quantity=2))

    assert order.order_number.value == "ORD-20250614-00001"
    assert order.status == OrderStatus.PENDING
    assert order.subtotal.amount == Decimal("200")
    assert order.shipping_charge.amount == Decimal("50")
    assert order.total_amount.amount == Decimal("250")
    assert [e.status for e in order.status_history] == [OrderStatus.PENDING]
    assert order.items[0].title == "Cotton Kurta"

    stock = await seed.stock("prod-1")
    assert stock["quantity_available"] == 3
    assert stock["is_out_of_stock"] is False

    messages = await seed.messages(BUYER.id, SELLER.id)
    assert [m.content for m in messages] == ["Order placed: 2 x Cotton Kurta | Stock left: 3"]
    assert messages[0].message_type == MessageType.PURCHASE
    assert messages[0].sender_id == BUYER.id

    stored = await seed.order(order.id)
    assert stored.conversation_id == messages[0].conversation_id

    seller_notes = await seed.notifications(SELLER.id)
    assert titles(seller_notes) == ["Order Placed", LOW_INVENTORY]
    assert seller_notes[0].message == "New order #ORD-20250614-00001 received"
    assert seller_notes[1].message == '"Cotton Kurta" is running low (3 left).'

    buyer_notes = await seed.notifications(BUYER.id)
    assert titles(buyer_notes) == ["Order Placed"]
    assert buyer_notes[0].type == NotificationType.ORDER_PLACED

    # Stock alerts are in-app only
    assert sorted(p["user_id"] for p in push.notifications_sent) == [BUYER.id, SELLER.id]


@pytest.mark.asyncio
async def test_order_numbers_increase_within_the_day(order_service, seed, parties, clock):
    await seed.product("prod-1", quantity=10)

    first = await order_service.create_order(BUYER, make_request("prod-1"))
    second = await order_service.create_order(BUYER, make_request("prod-1"))
    clock.advance(days=1)
    next_day = await order_service.create_order(BUYER, make_request("prod-1"))

    assert first.order_number.value == "ORD-20250614-00001"
    assert second.order_number.value == "ORD-20250614-00002"
    assert next_day.order_number.value == "ORD-20250615-00001"


@pytest.mark.asyncio
async def test_variant_alerts(order_service, seed, parties):
    await seed.product("prod-v", variants=(("S", 1, "380"), ("M", 1, "420")))

    order = await order_service.create_order(BUYER, make_request("prod-v", selected_size="S"))

    assert order.items[0].title == "Cotton Kurta (S)"
    assert order.items[0].unit_price.amount == Decimal("380")
    stock = await seed.stock("prod-v")
    assert stock["sizes"] == {"S": 0, "M": 1}
    assert stock["quantity_available"] == 1

    alerts = [n for n in await seed.notifications(SELLER.id) if n.type == NotificationType.SYSTEM]
    assert titles(alerts) == [SIZE_OUT_OF_STOCK]
    assert alerts[0].metadata["size"] == "S"

    await order_service.create_order(BUYER, make_request("prod-v", selected_size="M"))

    stock = await seed.stock("prod-v")
    assert stock == {"quantity_available": 0, "is_out_of_stock": True, "sizes": {"S": 0, "M": 0}}
    alerts = [n for n in await seed.notifications(SELLER.id) if n.type == NotificationType.SYSTEM]
    assert titles(alerts) == [SIZE_OUT_OF_STOCK, INVENTORY_EMPTY]
    assert alerts[1].message == '"Cotton Kurta" is now out of stock (all sizes).'


@pytest.mark.asyncio
async def test_free_shipping_over_threshold(order_service, seed, parties):
    await seed.product("prod-1", quantity=10, price="250")

    order = await order_service.create_order(BUYER, make_request("prod-1", quantity=2))

    assert order.shipping_charge.is_zero()
    assert order.total_amount.amount == Decimal("500")


@pytest.mark.asyncio
async def test_unmanaged_product_has_no_stock_suffix(order_service, seed, parties):
    await seed.product("prod-free", quantity=None)

    await order_service.create_order(BUYER, make_request("prod-free", quantity=3))

    messages = await seed.messages(BUYER.id, SELLER.id)
    assert messages[0].content == "Order placed: 3 x Cotton Kurta"


@pytest.mark.asyncio
async def test_cash_on_delivery_requires_seller_opt_in(order_service, seed):
    await seed.user(BUYER.id)
    await seed.user(SELLER.id, cod=False)
    await seed.product("prod-1", quantity=5)

    with pytest.raises(CashOnDeliveryUnavailableError):
        await order_service.create_order(BUYER, make_request("prod-1"))

    assert (await seed.stock("prod-1"))["quantity_available"] == 5

    order = await order_service.create_order(BUYER, make_request("prod-1", payment_method=PaymentMethod.ONLINE))
    # The rejected attempt did not consume a number
    assert order.order_number.value == "ORD-20250614-00001"


@pytest.mark.asyncio
async def test_rejected_placements_leave_no_trace(order_service, seed, parties):
    await seed.product("prod-1", quantity=1)

    with pytest.raises(SelfPurchaseError):
        await order_service.create_order(SELLER, make_request("prod-1"))
    with pytest.raises(ProductNotFoundError):
        await order_service.create_order(BUYER, make_request("missing"))

    assert (await seed.stock("prod-1"))["quantity_available"] == 1
    assert await seed.notifications(SELLER.id) == []
    result = await order_service.list_buyer_orders(BUYER)
    assert result.total == 0


# =============================================================================
# STATUS UPDATES
# =============================================================================

@pytest.mark.asyncio
async def test_invalid_transition_changes_nothing(order_service, seed, parties):
    await seed.product("prod-1", quantity=5)
    order = await order_service.create_order(BUYER, make_request("prod-1"))

    with pytest.raises(InvalidTransitionError):
        await order_service.update_status(
            SELLER, order.id, UpdateOrderStatusRequest(status=OrderStatus.SHIPPED)
        )

    stored = await seed.order(order.id)
    assert stored.status == OrderStatus.PENDING
    assert len(stored.status_history) == 1
    assert len(await seed.messages(BUYER.id, SELLER.id)) == 1


@pytest.mark.asyncio
async def test_shipping_merges_tracking_and_messages_buyer(order_service, seed, parties):
    await seed.product("prod-1", quantity=5)
    order = await order_service.create_order(BUYER, make_request("prod-1"))
    await advance(order_service, order.id, until=OrderStatus.PROCESSING)

    shipped = await order_service.update_status(
        SELLER,
        order.id,
        UpdateOrderStatusRequest(
            status=OrderStatus.SHIPPED,
            tracking_number="AWB123",
            shipping_carrier="Delhivery",
            tracking_link="https://track.example/AWB123",
            note="Packed",
        ),
    )

    assert shipped.tracking_number == "AWB123"
    assert shipped.shipping_carrier == "Delhivery"
    assert shipped.status_history[-1].note == "Packed"
    assert shipped.status_history[-1].actor_id == SELLER.id

    messages = await seed.messages(BUYER.id, SELLER.id)
    assert messages[-1].content == (
        "🚚 Your order #ORD-20250614-00001 has been shipped! Tracking: AWB123"
        "\n📎 Track here: https://track.example/AWB123"
    )
    assert messages[-1].sender_id == SELLER.id
    assert messages[-1].message_type == MessageType.ORDER_UPDATE

    buyer_notes = await seed.notifications(BUYER.id)
    assert titles(buyer_notes)[-1] == "Order Shipped"
    assert buyer_notes[-1].type == NotificationType.ORDER_SHIPPED


@pytest.mark.asyncio
async def test_out_for_delivery_asks_buyer_to_confirm(order_service, seed, parties):
    await seed.product("prod-1", quantity=5)
    order = await order_service.create_order(BUYER, make_request("prod-1"))

    await advance(order_service, order.id)

    messages = await seed.messages(BUYER.id, SELLER.id)
    prompt = messages[-1]
    assert prompt.message_type == MessageType.DELIVERY_CONFIRMATION
    assert prompt.delivery_confirmation.order_id == order.id
    assert prompt.delivery_confirmation.confirmed is False
    assert prompt.delivery_confirmation.confirmed_at is None
    assert prompt.content.endswith("If no response, it will be auto-confirmed in 48 hours.")
    assert messages[-2].content == (
        "📍 Your order #ORD-20250614-00001 is out for delivery! It should arrive today."
    )


@pytest.mark.asyncio
async def test_seller_notes(order_service, seed, parties):
    await seed.product("prod-1", quantity=5)
    order = await order_service.create_order(BUYER, make_request("prod-1"))

    updated = await order_service.add_seller_notes(SELLER, order.id, "Gift wrap")

    assert updated.seller_notes == "Gift wrap"
    assert (await seed.order(order.id)).seller_notes == "Gift wrap"
    with pytest.raises(AuthorizationError):
        await order_service.add_seller_notes(BUYER, order.id, "mine")


# =============================================================================
# CANCELLATION AND REFUNDS
# =============================================================================

@pytest.mark.asyncio
async def test_buyer_cancels_within_window(order_service, seed, parties, clock):
    await seed.product("prod-1", quantity=5)
    order = await order_service.create_order(BUYER, make_request("prod-1"))
    clock.advance(hours=2)

    cancelled = await order_service.cancel_order(BUYER, order.id, "Changed my mind")

    assert cancelled.status == OrderStatus.CANCELLED
    assert cancelled.cancellation_reason == "Changed my mind"
    assert cancelled.cancelled_by == BUYER.id
    assert cancelled.refund_amount is None

    messages = await seed.messages(BUYER.id, SELLER.id)
    assert messages[-1].content == (
        "❌ Order #ORD-20250614-00001 has been cancelled by the buyer. Reason: Changed my mind"
    )
    assert messages[-1].sender_id == BUYER.id
    assert titles(await seed.notifications(SELLER.id))[-1] == "Order Cancelled"


@pytest.mark.asyncio
async def test_cancellation_window_expires(order_service, seed, parties, clock):
    await seed.product("prod-1", quantity=5)
    order = await order_service.create_order(BUYER, make_request("prod-1"))
    clock.advance(hours=25)

    with pytest.raises(CancellationWindowExpiredError):
        await order_service.cancel_order(BUYER, order.id)

    assert (await seed.order(order.id)).status == OrderStatus.PENDING


@pytest.mark.asyncio
async def test_only_buyer_may_cancel(order_service, seed, parties):
    await seed.product("prod-1", quantity=5)
    order = await order_service.create_order(BUYER, make_request("prod-1"))

    with pytest.raises(AuthorizationError) as exc_info:
        await order_service.cancel_order(SELLER, order.id)

    assert exc_info.value.message == "Not authorized to cancel this order"


@pytest.mark.asyncio
async def test_paid_online_order_is_refunded_on_cancel(order_service, seed, parties):
    await seed.product("prod-1", quantity=5)
    order = await order_service.create_order(
        BUYER, make_request("prod-1", payment_method=PaymentMethod.ONLINE)
    )

    paid = await order_service.verify_payment(BUYER, order.id, "pay_123")
    assert paid.payment_status == PaymentStatus.COMPLETED
    assert paid.transaction_id == "pay_123"

    cancelled = await order_service.cancel_order(BUYER, order.id)
    assert cancelled.cancellation_reason == "Cancelled by buyer"
    assert cancelled.refund_amount.amount == order.total_amount.amount
    assert cancelled.refund_reason == "Order cancelled"


@pytest.mark.asyncio
async def test_verify_payment_generates_transaction_id(order_service, seed, parties):
    await seed.product("prod-1", quantity=5)
    order = await order_service.create_order(
        BUYER, make_request("prod-1", payment_method=PaymentMethod.ONLINE)
    )

    paid = await order_service.verify_payment(BUYER, order.id)

    assert paid.transaction_id.startswith("TXN-")
    assert paid.transaction_id[4:].isdigit()
    assert paid.paid_at is not None


@pytest.mark.asyncio
async def test_refund_flow(order_service, delivery_service, seed, parties):
    await seed.product("prod-1", quantity=5)
    order = await order_service.create_order(BUYER, make_request("prod-1"))

    with pytest.raises(RefundNotAllowedError):
        await order_service.request_refund(BUYER, order.id, "Damaged")

    await advance(order_service, order.id)
    await delivery_service.confirm_delivery(BUYER, order.id, confirmed=True)

    requested = await order_service.request_refund(BUYER, order.id, "Damaged")
    assert requested.status == OrderStatus.REFUND_REQUESTED
    assert requested.refund_reason == "Damaged"
    assert titles(await seed.notifications(SELLER.id))[-1] == "Refund Requested"

    refunded = await order_service.update_status(
        SELLER, order.id, UpdateOrderStatusRequest(status=OrderStatus.REFUNDED)
    )
    assert refunded.status == OrderStatus.REFUNDED
    assert refunded.payment_status == PaymentStatus.REFUNDED


# =============================================================================
# DELIVERY CONFIRMATION
# =============================================================================

@pytest.mark.asyncio
async def test_buyer_confirms_delivery(order_service, delivery_service, seed, parties):
    await seed.product("prod-1", quantity=5)
    order = await order_service.create_order(BUYER, make_request("prod-1"))
    await advance(order_service, order.id)

    delivered = await delivery_service.confirm_delivery(BUYER, order.id, confirmed=True)

    assert delivered.status == OrderStatus.DELIVERED
    assert delivered.payment_status == PaymentStatus.COMPLETED
    assert delivered.delivery_confirmed_at is not None
    assert delivered.status_history[-1].note == "Delivery confirmed by buyer"

    prompt = [m for m in await seed.messages(BUYER.id, SELLER.id) if m.delivery_confirmation][-1]
    assert prompt.delivery_confirmation.confirmed is True
    assert prompt.delivery_confirmation.confirmed_at == delivered.delivery_confirmed_at
    assert titles(await seed.notifications(SELLER.id))[-1] == "Delivery Confirmed"


@pytest.mark.asyncio
async def test_confirming_twice_is_a_no_op(order_service, delivery_service, seed, parties):
    await seed.product("prod-1", quantity=5)
    order = await order_service.create_order(BUYER, make_request("prod-1"))
    await advance(order_service, order.id)

    first = await delivery_service.confirm_delivery(BUYER, order.id, confirmed=True)
    second = await delivery_service.confirm_delivery(BUYER, order.id, confirmed=True)

    assert second.delivery_confirmed_at == first.delivery_confirmed_at
    assert len(second.status_history) == len(first.status_history)
    assert second.version == first.version
    assert titles(await seed.notifications(SELLER.id)).count("Delivery Confirmed") == 1


@pytest.mark.asyncio
async def test_confirming_an_already_delivered_order(order_service, delivery_service, seed, parties):
    await seed.product("prod-1", quantity=5)
    order = await order_service.create_order(BUYER, make_request("prod-1"))
    await advance(order_service, order.id, until=OrderStatus.SHIPPED)
    delivered = await order_service.update_status(
        SELLER, order.id, UpdateOrderStatusRequest(status=OrderStatus.DELIVERED)
    )

    confirmed = await delivery_service.confirm_delivery(BUYER, order.id, confirmed=True)

    assert confirmed.status == OrderStatus.DELIVERED
    assert confirmed.delivered_at == delivered.delivered_at
    assert confirmed.delivery_confirmed_at is not None
    assert len(confirmed.status_history) == len(delivered.status_history) + 1
    entry = confirmed.status_history[-1]
    assert entry.status == OrderStatus.DELIVERED
    assert entry.note == "Delivery confirmed by buyer"
    assert entry.actor_id == BUYER.id

    stored = await seed.order(order.id)
    assert [e.note for e in stored.status_history][-1] == "Delivery confirmed by buyer"

    again = await delivery_service.confirm_delivery(BUYER, order.id, confirmed=True)
    assert len(again.status_history) == len(confirmed.status_history)


@pytest.mark.asyncio
async def test_buyer_reports_missing_delivery(order_service, delivery_service, seed, parties):
    await seed.product("prod-1", quantity=5)
    order = await order_service.create_order(BUYER, make_request("prod-1"))
    before = await advance(order_service, order.id)

    disputed = await delivery_service.confirm_delivery(BUYER, order.id, confirmed=False)

    assert disputed.status == OrderStatus.OUT_FOR_DELIVERY
    assert len(disputed.status_history) == len(before.status_history) + 1
    assert disputed.status_history[-1].note == "Buyer reported not receiving the order"

    messages = await seed.messages(BUYER.id, SELLER.id)
    assert messages[-1].message_type == MessageType.DISPUTE
    assert messages[-1].content.startswith("⚠️ The buyer reported not receiving order #ORD-20250614-00001.")
    prompt = [m for m in messages if m.delivery_confirmation][-1]
    assert prompt.delivery_confirmation.confirmed is False
    assert titles(await seed.notifications(SELLER.id))[-1] == "Delivery Issue Reported"


@pytest.mark.asyncio
async def test_delivery_confirmation_rules(order_service, delivery_service, seed, parties):
    await seed.product("prod-1", quantity=5)
    order = await order_service.create_order(BUYER, make_request("prod-1"))

    with pytest.raises(DeliveryConfirmationNotAllowedError):
        await delivery_service.confirm_delivery(BUYER, order.id, confirmed=True)

    await advance(order_service, order.id)
    with pytest.raises(AuthorizationError) as exc_info:
        await delivery_service.confirm_delivery(SELLER, order.id, confirmed=True)
    assert exc_info.value.message == "Only the buyer can confirm delivery"

    with pytest.raises(OrderNotFoundError):
        await delivery_service.confirm_delivery(BUYER, "missing", confirmed=True)


@pytest.mark.asyncio
async def test_auto_confirm_sweep(order_service, delivery_service, seed, parties, clock):
    await seed.product("prod-1", quantity=5)
    stale = await order_service.create_order(BUYER, make_request("prod-1"))
    await advance(order_service, stale.id)
    clock.advance(hours=10)
    recent = await order_service.create_order(BUYER, make_request("prod-1"))
    await advance(order_service, recent.id)
    clock.advance(hours=40)

    result = await delivery_service.auto_confirm_deliveries()

    assert result.confirmed == 1
    assert result.failed == 0
    assert result.order_numbers == [stale.order_number.value]

    delivered = await seed.order(stale.id)
    assert delivered.status == OrderStatus.DELIVERED
    assert delivered.payment_status == PaymentStatus.COMPLETED
    assert delivered.status_history[-1].actor_id == SYSTEM_ACTOR_ID
    assert delivered.status_history[-1].note == "Auto-confirmed after 48 hours"
    assert (await seed.order(recent.id)).status == OrderStatus.OUT_FOR_DELIVERY

    buyer_notes = await seed.notifications(BUYER.id)
    assert buyer_notes[-1].title == "Order Delivered"
    assert buyer_notes[-1].sender_id is None

    # A second sweep finds nothing new
    again = await delivery_service.auto_confirm_deliveries()
    assert again.confirmed == 0


# =============================================================================
# QUERIES
# =============================================================================

@pytest.mark.asyncio
async def test_buyer_listing_filters_and_pages(order_service, seed, parties):
    await seed.product("prod-1", quantity=10)
    created = [await order_service.create_order(BUYER, make_request("prod-1")) for _ in range(3)]
    await order_service.cancel_order(BUYER, created[0].id)

    page = await order_service.list_buyer_orders(BUYER, page=1, limit=2)
    assert page.total == 3
    assert page.pages == 2
    assert [o.id for o in page.orders] == [created[2].id, created[1].id]

    cancelled = await order_service.list_buyer_orders(BUYER, status="cancelled")
    assert [o.id for o in cancelled.orders] == [created[0].id]

    both = await order_service.list_buyer_orders(BUYER, status="pending,cancelled")
    assert both.total == 3
    assert (await order_service.list_buyer_orders(BUYER, status="all")).total == 3

    with pytest.raises(ValidationError):
        await order_service.list_buyer_orders(BUYER, status="bogus")
    with pytest.raises(ValidationError):
        await order_service.list_buyer_orders(BUYER, limit=101)

    empty = await order_service.list_buyer_orders(Actor(id="nobody"))
    assert empty.total == 0
    assert empty.pages == 0


@pytest.mark.asyncio
async def test_get_order_is_limited_to_parties(order_service, seed, parties):
    await seed.product("prod-1", quantity=10)
    order = await order_service.create_order(BUYER, make_request("prod-1"))

    assert (await order_service.get_order(BUYER, order.id)).id == order.id
    assert (await order_service.get_order(SELLER, order.id)).id == order.id
    with pytest.raises(AuthorizationError):
        await order_service.get_order(Actor(id="stranger"), order.id)
    with pytest.raises(OrderNotFoundError):
        await order_service.get_order(BUYER, "missing")


@pytest.mark.asyncio
async def test_seller_statistics(order_service, delivery_service, seed, parties):
    await seed.product("prod-1", quantity=10, price="100")
    delivered = await order_service.create_order(BUYER, make_request("prod-1"))
    await advance(order_service, delivered.id)
    await delivery_service.confirm_delivery(BUYER, delivered.id, confirmed=True)
    shipped = await order_service.create_order(BUYER, make_request("prod-1"))
    await advance(order_service, shipped.id, until=OrderStatus.SHIPPED)
    await order_service.create_order(BUYER, make_request("prod-1"))

    stats = await order_service.seller_stats(SELLER)

    assert stats.total_orders == 3
    assert stats.counts["delivered"] == 1
    assert stats.counts["shipped"] == 1
    assert stats.counts["pending"] == 1
    assert stats.counts["refunded"] == 0
    # Only the delivered COD order has been paid
    assert stats.total_revenue == Decimal("150")
    assert stats.completed_orders == 1
    assert stats.pending_actions == 1
    assert len(stats.recent_orders) == 3

    listing = await order_service.list_seller_orders(SELLER, status="shipped,delivered")
    assert listing.total == 2
    assert listing.stats.total_revenue == Decimal("300")
    assert listing.stats.counts["pending"] == 1


# =============================================================================
# FAN-OUT ISOLATION
# =============================================================================

@pytest.mark.asyncio
async def test_push_failure_does_not_affect_the_order(order_service, seed, parties, push, event_bus):
    push.send_to_user = AsyncMock(side_effect=RuntimeError("push gateway down"))
    await seed.product("prod-1", quantity=5)

    order = await order_service.create_order(BUYER, make_request("prod-1"))

    assert (await seed.order(order.id)).status == OrderStatus.PENDING
    assert titles(await seed.notifications(SELLER.id))[0] == "Order Placed"
    assert len(await seed.messages(BUYER.id, SELLER.id)) == 1
    assert push.send_to_user.await_count == 2
    # Channel failures are contained by the notifier
    assert event_bus.failures == []
