"""Tests for pricing, the cancellation window, order numbers and the sequence issuer."""

from datetime import datetime, timedelta
from decimal import Decimal

import pytest

from core.domain.enums import OrderStatus
from core.domain.exceptions import (
    CancellationNotAllowedError,
    CancellationWindowExpiredError,
    RefundNotAllowedError,
    SequenceUnavailableError,
)
from core.domain.repositories import SequenceCounter
from core.domain.services import CancellationPolicy, PricingPolicy, SequenceIssuer, date_key_for
from core.domain.value_objects import Money, OrderNumber
from support import START, build_order


# =============================================================================
# PRICING
# =============================================================================

def test_flat_shipping_below_threshold():
    quote = PricingPolicy().quote(Money(Decimal("150")), 3)

    assert quote.subtotal.amount == Decimal("450")
    assert quote.shipping_charge.amount == Decimal("50")
    assert quote.discount.amount == Decimal("0")
    assert quote.total.amount == Decimal("500")


def test_shipping_waived_at_threshold():
    quote = PricingPolicy().quote(Money(Decimal("250")), 2)

    assert quote.subtotal.amount == Decimal("500")
    assert quote.shipping_charge.is_zero()
    assert quote.total.amount == Decimal("500")


def test_custom_pricing_settings():
    policy = PricingPolicy(free_shipping_threshold=Decimal("1000"), flat_shipping_charge=Decimal("80"))

    assert policy.quote(Money(Decimal("600")), 1).shipping_charge.amount == Decimal("80")
    assert policy.quote(Money(Decimal("600")), 2).shipping_charge.is_zero()


# =============================================================================
# CANCELLATION WINDOW
# =============================================================================

def test_cancellable_inside_window():
    policy = CancellationPolicy()
    order = build_order()

    policy.ensure_cancellable(order, START + timedelta(hours=23))


def test_boundary_is_inclusive():
    CancellationPolicy().ensure_cancellable(build_order(), START + timedelta(hours=24))


def test_window_expired_after_24_hours():
    with pytest.raises(CancellationWindowExpiredError) as exc_info:
        CancellationPolicy().ensure_cancellable(build_order(), START + timedelta(hours=25))

    assert exc_info.value.details["window_hours"] == 24


@pytest.mark.parametrize(
    "status",
    [OrderStatus.SHIPPED, OrderStatus.OUT_FOR_DELIVERY, OrderStatus.DELIVERED, OrderStatus.CANCELLED],
)
def test_not_cancellable_after_dispatch(status):
    order = build_order()
    order.status = status

    with pytest.raises(CancellationNotAllowedError) as exc_info:
        CancellationPolicy().ensure_cancellable(order, START)

    assert "refund" in exc_info.value.message


def test_refund_eligibility():
    order = build_order()
    policy = CancellationPolicy()

    with pytest.raises(RefundNotAllowedError):
        policy.ensure_refundable(order)

    order.status = OrderStatus.DELIVERED
    policy.ensure_refundable(order)


# =============================================================================
# ORDER NUMBERS
# =============================================================================

def test_order_number_format():
    number = OrderNumber.build("ORD", "20250614", 32)

    assert number.value == "ORD-20250614-00032"
    assert number.prefix == "ORD"
    assert number.date_key == "20250614"
    assert number.sequence == 32


def test_order_number_grows_past_five_digits():
    assert OrderNumber.build("ORD", "20250614", 123456).value == "ORD-20250614-123456"


@pytest.mark.parametrize("value", ["", "ORD-2025061-00001", "ORD-20250614-1", "ord-20250614-00001"])
def test_invalid_order_numbers(value):
    with pytest.raises(ValueError):
        OrderNumber(value)


def test_date_key_uses_calendar_day():
    assert date_key_for(datetime(2025, 1, 2, 23, 59, 59)) == "20250102"


class InMemoryCounter(SequenceCounter):
    def __init__(self):
        self.values = {}

    async def increment(self, date_key: str) -> int:
        self.values[date_key] = self.values.get(date_key, 0) + 1
        return self.values[date_key]


class BrokenCounter(SequenceCounter):
    async def increment(self, date_key: str) -> int:
        raise ConnectionError("counter store unreachable")


@pytest.mark.asyncio
async def test_issuer_resets_per_day():
    issuer = SequenceIssuer(InMemoryCounter(), prefix="ORD")

    first = await issuer.issue(datetime(2025, 6, 14, 10))
    second = await issuer.issue(datetime(2025, 6, 14, 11))
    next_day = await issuer.issue(datetime(2025, 6, 15, 0, 0, 1))

    assert first.value == "ORD-20250614-00001"
    assert second.value == "ORD-20250614-00002"
    assert next_day.value == "ORD-20250615-00001"


@pytest.mark.asyncio
async def test_issuer_has_no_fallback():
    issuer = SequenceIssuer(BrokenCounter())

    with pytest.raises(SequenceUnavailableError) as exc_info:
        await issuer.issue(START)

    assert exc_info.value.details["date_key"] == "20250614"
