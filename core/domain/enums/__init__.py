"""Domain enumerations."""

from .order_status import (
    ALLOWED_TRANSITIONS,
    CANCELLABLE_STATUSES,
    DELIVERY_CONFIRMABLE_STATUSES,
    NotificationType,
    OrderStatus,
    PaymentMethod,
    PaymentStatus,
)

__all__ = [
    "ALLOWED_TRANSITIONS",
    "CANCELLABLE_STATUSES",
    "DELIVERY_CONFIRMABLE_STATUSES",
    "NotificationType",
    "OrderStatus",
    "PaymentMethod",
    "PaymentStatus",
]
