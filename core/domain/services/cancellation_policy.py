"""Buyer cancellation and refund eligibility."""
from datetime import datetime, timedelta

from ..entities.order import Order
from ..enums import CANCELLABLE_STATUSES, OrderStatus
from ..exceptions import (
    CancellationNotAllowedError,
    CancellationWindowExpiredError,
    RefundNotAllowedError,
)


class CancellationPolicy:
    """
    Cancellation is allowed in pending/confirmed/processing and only
    within `window` of order creation. The boundary is hard: an order
    exactly `window` old can still be cancelled, one microsecond later it
    cannot.
    """

    def __init__(self, window: timedelta = timedelta(hours=24)):
        self.window = window

    @property
    def window_hours(self) -> int:
        return int(self.window.total_seconds() // 3600)

    def ensure_cancellable(self, order: Order, now: datetime) -> None:
        if order.status not in CANCELLABLE_STATUSES:
            raise CancellationNotAllowedError(order.status.value)
        if now - order.created_at > self.window:
            raise CancellationWindowExpiredError(self.window_hours)

    def ensure_refundable(self, order: Order) -> None:
        if order.status != OrderStatus.DELIVERED:
            raise RefundNotAllowedError(order.status.value)
