"""
Customer-facing texts for order events.

Conversation messages and in-app notification titles/bodies live here so
the notifier only decides who gets what.
"""
from typing import Optional, Tuple

from core.domain.enums import OrderStatus


def purchase_message(quantity: int, title: str, remaining_stock: Optional[int] = None) -> str:
    stock_suffix = f" | Stock left: {max(0, remaining_stock)}" if remaining_stock is not None else ""
    return f"Order placed: {quantity} x {title}{stock_suffix}"


def status_message(
    order_number: str,
    status: OrderStatus,
    tracking_number: Optional[str] = None,
    tracking_link: Optional[str] = None,
) -> str:
    """Chat message sent by the seller to the buyer on a status change."""
    if status == OrderStatus.CONFIRMED:
        return f"✅ Great news! Your order #{order_number} has been confirmed by the seller."
    if status == OrderStatus.PROCESSING:
        return f"🔧 Your order #{order_number} is now being processed and prepared for shipping."
    if status == OrderStatus.SHIPPED:
        content = f"🚚 Your order #{order_number} has been shipped!"
        if tracking_number:
            content += f" Tracking: {tracking_number}"
        if tracking_link:
            content += f"\n📎 Track here: {tracking_link}"
        return content
    if status == OrderStatus.OUT_FOR_DELIVERY:
        return f"📍 Your order #{order_number} is out for delivery! It should arrive today."
    if status == OrderStatus.DELIVERED:
        return f"🎉 Your order #{order_number} has been delivered! Thank you for shopping with us."
    if status == OrderStatus.CANCELLED:
        return f"❌ Your order #{order_number} has been cancelled."
    return f"📋 Order #{order_number} status updated to {status.label}."


def buyer_action_message(order_number: str, status: OrderStatus, note: Optional[str] = None) -> str:
    """Chat message sent by the buyer to the seller (cancellation, refund request)."""
    if status == OrderStatus.CANCELLED:
        content = f"❌ Order #{order_number} has been cancelled by the buyer."
    elif status == OrderStatus.REFUND_REQUESTED:
        content = f"↩️ Refund requested for order #{order_number}."
    else:
        content = f"📋 Order #{order_number} status updated to {status.label}."
    if note:
        content += f" Reason: {note}"
    return content


def delivery_confirmation_message(order_number: str, status: OrderStatus, auto_confirm_hours: int) -> str:
    if status == OrderStatus.OUT_FOR_DELIVERY:
        lead = f"📦 Your order #{order_number} is out for delivery! Please confirm once you receive it."
    else:
        lead = (
            f"📦 Your order #{order_number} has been marked as delivered! "
            "Please confirm if you received your order."
        )
    return f"{lead} If no response, it will be auto-confirmed in {auto_confirm_hours} hours."


def dispute_message(order_number: str) -> str:
    return (
        f"⚠️ The buyer reported not receiving order #{order_number}. "
        "Please check the delivery with your carrier."
    )


DELIVERY_CONFIRMATION_PREVIEW = "📦 Delivery confirmation request"


def status_preview(status: OrderStatus) -> str:
    return f"📋 Order update: {status.label}"


_STATUS_NOTIFICATIONS = {
    OrderStatus.CONFIRMED: ("Order Confirmed", "Order #{n} has been confirmed by the seller"),
    OrderStatus.PROCESSING: ("Order Processing", "Order #{n} is being prepared"),
    OrderStatus.SHIPPED: ("Order Shipped", "Order #{n} has been shipped"),
    OrderStatus.OUT_FOR_DELIVERY: ("Out for Delivery", "Order #{n} is out for delivery"),
    OrderStatus.DELIVERED: ("Order Delivered", "Order #{n} has been delivered"),
    OrderStatus.CANCELLED: ("Order Cancelled", "Order #{n} has been cancelled"),
    OrderStatus.REFUND_REQUESTED: ("Refund Requested", "Refund requested for order #{n}"),
    OrderStatus.REFUNDED: ("Refund Processed", "Refund processed for order #{n}"),
}


def status_notification(order_number: str, status: OrderStatus, for_buyer: bool = True) -> Tuple[str, str]:
    """In-app notification (title, body) for a status."""
    if status == OrderStatus.PENDING:
        if for_buyer:
            return "Order Placed", f"Your order #{order_number} has been placed successfully"
        return "Order Placed", f"New order #{order_number} received"

    title, body = _STATUS_NOTIFICATIONS.get(
        status, ("Order Update", "Order #{n} status updated to " + status.value)
    )
    return title, body.format(n=order_number)


def delivery_response_notification(order_number: str, confirmed: bool) -> Tuple[str, str]:
    """Notification to the seller when the buyer answers the delivery prompt."""
    if confirmed:
        return "Delivery Confirmed", f"The buyer confirmed receiving order #{order_number}"
    return "Delivery Issue Reported", f"The buyer reported not receiving order #{order_number}"
