"""Domain entities."""
from .conversation import (
    Conversation,
    DeliveryConfirmation,
    Message,
    MessageType,
    participant_pair,
)
from .notification import Notification
from .order import Order, OrderItem, StatusHistoryEntry, TrackingUpdate
from .product import Product, SizeVariant, StockMode
from .user import DEFAULT_INVENTORY_ALERT_THRESHOLD, UserProfile

__all__ = [
    "Conversation",
    "DEFAULT_INVENTORY_ALERT_THRESHOLD",
    "DeliveryConfirmation",
    "Message",
    "MessageType",
    "Notification",
    "Order",
    "OrderItem",
    "Product",
    "SizeVariant",
    "StatusHistoryEntry",
    "StockMode",
    "TrackingUpdate",
    "UserProfile",
    "participant_pair",
]
