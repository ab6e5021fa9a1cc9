"""
Order Domain Events.

Events recorded by the Order aggregate and the inventory ledger.

Architecture Integration:
- Collected on the aggregate while a unit of work is open
- Published to the outbound event bus only after commit
- Consumed by the fan-out notifier (chat message, in-app, push)
"""
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Optional

from .base import DomainEvent


@dataclass
class OrderPlacedEvent(DomainEvent):
    """
    A buyer placed an order and stock was reserved.

    Consumers: fan-out notifier (purchase message, seller + buyer notifications)
    """

    aggregate_field = "order_id"

    order_id: str = ""
    order_number: str = ""
    buyer_id: str = ""
    seller_id: str = ""
    product_id: str = ""
    title: str = ""
    unit_price: Decimal = Decimal("0")
    quantity: int = 1
    image: str = ""
    selected_size: Optional[str] = None
    remaining_stock: Optional[int] = None
    total_amount: Decimal = Decimal("0")
    conversation_id: Optional[str] = None


@dataclass
class OrderStatusChangedEvent(DomainEvent):
    """
    Order moved along the status graph.

    `request_confirmation` is set when the buyer should be asked to
    confirm receipt (seller marked the order delivered / out for delivery).
    """

    aggregate_field = "order_id"

    order_id: str = ""
    order_number: str = ""
    buyer_id: str = ""
    seller_id: str = ""
    previous_status: str = ""
    new_status: str = ""
    actor_id: Optional[str] = None
    note: Optional[str] = None
    tracking_number: Optional[str] = None
    tracking_link: Optional[str] = None
    estimated_delivery: Optional[datetime] = None
    request_confirmation: bool = False


@dataclass
class DeliveryConfirmationRespondedEvent(DomainEvent):
    """
    Buyer (or the auto-confirmation sweep) answered a delivery prompt.
    """

    aggregate_field = "order_id"

    order_id: str = ""
    order_number: str = ""
    buyer_id: str = ""
    seller_id: str = ""
    confirmed: bool = True
    responded_at: Optional[datetime] = None
    auto_confirmed: bool = False
    status_changed: bool = False


@dataclass
class InventoryAlertRaisedEvent(DomainEvent):
    """
    Stock for a product (or one of its sizes) ran low or out.

    Consumers: fan-out notifier (system notification to the seller)
    """

    aggregate_field = "product_id"

    product_id: str = ""
    seller_id: str = ""
    title: str = ""
    message: str = ""
    size: Optional[str] = None
    quantity_available: int = 0
