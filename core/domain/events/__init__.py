"""Domain events published through the outbound event bus."""
from .base import DomainEvent
from .order_events import (
    OrderPlacedEvent,
    OrderStatusChangedEvent,
    DeliveryConfirmationRespondedEvent,
    InventoryAlertRaisedEvent,
)

__all__ = [
    "DomainEvent",
    "OrderPlacedEvent",
    "OrderStatusChangedEvent",
    "DeliveryConfirmationRespondedEvent",
    "InventoryAlertRaisedEvent",
]
