"""Application DTOs for Order operations."""

from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from core.domain.entities import Order, OrderItem, StatusHistoryEntry
from core.domain.enums import OrderStatus, PaymentMethod, PaymentStatus


# =============================================================================
# REQUESTS
# =============================================================================

class ShippingAddressDTO(BaseModel):
    """Delivery address supplied at checkout."""

    full_name: str = Field(..., min_length=1, description="Recipient name")
    phone: str = Field(..., min_length=1, description="Contact phone")
    address_line1: str = Field(..., min_length=1)
    address_line2: Optional[str] = None
    city: str = Field(..., min_length=1)
    state: str = Field(..., min_length=1)
    postal_code: str = Field(..., min_length=1)
    landmark: Optional[str] = None

    model_config = {"frozen": True}


class CreateOrderRequest(BaseModel):
    """Request DTO for placing an order."""

    product_id: str = Field(..., min_length=1, description="Product being purchased")
    quantity: int = Field(default=1, gt=0, strict=True, description="Units ordered")
    payment_method: PaymentMethod = Field(..., description="cod or online")
    shipping_address: ShippingAddressDTO
    selected_size: Optional[str] = Field(None, description="Size variant label")
    buyer_notes: Optional[str] = Field(None, max_length=2000)
    conversation_id: Optional[str] = Field(None, description="Existing buyer/seller conversation")

    model_config = {"frozen": True}


class UpdateOrderStatusRequest(BaseModel):
    """Seller status update with optional shipping metadata."""

    status: OrderStatus
    note: Optional[str] = Field(None, max_length=2000)
    tracking_number: Optional[str] = None
    shipping_carrier: Optional[str] = None
    tracking_link: Optional[str] = None
    estimated_delivery: Optional[datetime] = None

    model_config = {"frozen": True}


class ReasonRequest(BaseModel):
    """Cancellation / refund reason."""

    reason: Optional[str] = Field(None, max_length=2000)

    model_config = {"frozen": True}


class ConfirmDeliveryRequest(BaseModel):
    confirmed: bool = Field(..., description="True if the buyer received the order")

    model_config = {"frozen": True}


class SellerNotesRequest(BaseModel):
    seller_notes: Optional[str] = Field(None, max_length=5000)

    model_config = {"frozen": True}


class VerifyPaymentRequest(BaseModel):
    transaction_id: Optional[str] = Field(None, description="Gateway transaction id")

    model_config = {"frozen": True}


# =============================================================================
# RESPONSES
# =============================================================================

class OrderItemDTO(BaseModel):
    """DTO for order item snapshot."""

    product_id: str
    title: str
    unit_price: Decimal = Field(..., ge=0)
    quantity: int = Field(..., gt=0)
    image: str = ""
    selected_size: Optional[str] = None

    model_config = {"frozen": True}

    @classmethod
    def from_domain(cls, item: OrderItem) -> "OrderItemDTO":
        return cls(
            product_id=item.product_id,
            title=item.title,
            unit_price=item.unit_price.amount,
            quantity=item.quantity,
            image=item.image,
            selected_size=item.selected_size,
        )


class StatusHistoryDTO(BaseModel):
    status: OrderStatus
    timestamp: datetime
    note: Optional[str] = None
    actor_id: Optional[str] = None

    model_config = {"frozen": True}

    @classmethod
    def from_domain(cls, entry: StatusHistoryEntry) -> "StatusHistoryDTO":
        return cls(status=entry.status, timestamp=entry.timestamp, note=entry.note, actor_id=entry.actor_id)


class OrderDTO(BaseModel):
    """Response DTO for order details."""

    id: str
    order_number: str
    buyer_id: str
    seller_id: str
    items: List[OrderItemDTO] = Field(default_factory=list)

    currency: str
    subtotal: Decimal
    shipping_charge: Decimal
    discount: Decimal
    total_amount: Decimal

    payment_method: PaymentMethod
    payment_status: PaymentStatus
    transaction_id: Optional[str] = None
    paid_at: Optional[datetime] = None

    shipping_address: Dict[str, Optional[str]]
    tracking_number: Optional[str] = None
    shipping_carrier: Optional[str] = None
    tracking_link: Optional[str] = None
    estimated_delivery: Optional[datetime] = None
    delivered_at: Optional[datetime] = None
    delivery_confirmed_at: Optional[datetime] = None

    status: OrderStatus
    status_history: List[StatusHistoryDTO] = Field(default_factory=list)

    conversation_id: Optional[str] = None
    buyer_notes: Optional[str] = None
    seller_notes: Optional[str] = None

    cancellation_reason: Optional[str] = None
    cancelled_by: Optional[str] = None
    refund_amount: Optional[Decimal] = None
    refund_reason: Optional[str] = None

    created_at: datetime
    updated_at: datetime

    model_config = {"frozen": True}

    @classmethod
    def from_domain(cls, order: Order) -> "OrderDTO":
        return cls(
            id=order.id,
            order_number=order.order_number.value,
            buyer_id=order.buyer_id,
            seller_id=order.seller_id,
            items=[OrderItemDTO.from_domain(i) for i in order.items],
            currency=order.total_amount.currency,
            subtotal=order.subtotal.amount,
            shipping_charge=order.shipping_charge.amount,
            discount=order.discount.amount,
            total_amount=order.total_amount.amount,
            payment_method=order.payment_method,
            payment_status=order.payment_status,
            transaction_id=order.transaction_id,
            paid_at=order.paid_at,
            shipping_address=order.shipping_address.to_dict(),
            tracking_number=order.tracking_number,
            shipping_carrier=order.shipping_carrier,
            tracking_link=order.tracking_link,
            estimated_delivery=order.estimated_delivery,
            delivered_at=order.delivered_at,
            delivery_confirmed_at=order.delivery_confirmed_at,
            status=order.status,
            status_history=[StatusHistoryDTO.from_domain(h) for h in order.status_history],
            conversation_id=order.conversation_id,
            buyer_notes=order.buyer_notes,
            seller_notes=order.seller_notes,
            cancellation_reason=order.cancellation_reason,
            cancelled_by=order.cancelled_by,
            refund_amount=order.refund_amount.amount if order.refund_amount else None,
            refund_reason=order.refund_reason,
            created_at=order.created_at,
            updated_at=order.updated_at,
        )


class OrderActionResponse(BaseModel):
    """Message plus the order as it was committed."""

    message: str
    order: OrderDTO

    model_config = {"frozen": True}


class OrderListDTO(BaseModel):
    """DTO for listing orders."""

    orders: List[OrderDTO] = Field(default_factory=list, description="List of orders")
    total: int = Field(..., ge=0, description="Total count")
    page: int = Field(..., ge=1)
    limit: int = Field(..., ge=1)
    pages: int = Field(..., ge=0)

    model_config = {"frozen": True}


class SellerOrderStatsDTO(BaseModel):
    """Per-status counts plus revenue of shipped/out-for-delivery/delivered orders."""

    counts: Dict[str, int]
    total_revenue: Decimal

    model_config = {"frozen": True}


class SellerOrderListDTO(OrderListDTO):
    stats: SellerOrderStatsDTO


class SellerDashboardDTO(BaseModel):
    """Seller dashboard statistics."""

    counts: Dict[str, int]
    total_orders: int
    total_revenue: Decimal
    completed_orders: int
    pending_actions: int
    recent_orders: List[OrderDTO] = Field(default_factory=list)

    model_config = {"frozen": True}


class AutoConfirmResultDTO(BaseModel):
    message: str
    count: int
    failed: int
    order_numbers: List[str] = Field(default_factory=list)

    model_config = {"frozen": True}
