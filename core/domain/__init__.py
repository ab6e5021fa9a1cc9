"""Domain layer - pure domain models and interfaces."""

from .entities import Order, OrderItem, Product, StatusHistoryEntry
from .enums import OrderStatus, PaymentMethod, PaymentStatus
from .repositories import OrderRepository
from .value_objects import Actor, Money, OrderNumber

__all__ = [
    "Actor",
    "Money",
    "Order",
    "OrderItem",
    "OrderNumber",
    "OrderRepository",
    "OrderStatus",
    "PaymentMethod",
    "PaymentStatus",
    "Product",
    "StatusHistoryEntry",
]
