"""Static mappers for domain entities ↔ database models."""

from decimal import Decimal
from typing import Optional

from core.domain.entities import (
    Conversation,
    DeliveryConfirmation,
    Message,
    MessageType,
    Notification,
    Order,
    OrderItem,
    Product,
    SizeVariant,
    StatusHistoryEntry,
    UserProfile,
)
from core.domain.enums import NotificationType, OrderStatus, PaymentMethod, PaymentStatus
from core.domain.value_objects import Money, OrderNumber, ShippingAddress

from .models import (
    ConversationModel,
    MessageModel,
    NotificationModel,
    OrderItemModel,
    OrderModel,
    OrderStatusHistoryModel,
    ProductModel,
    UserModel,
)


def _money(amount, currency: str) -> Money:
    return Money(amount=Decimal(str(amount)), currency=currency)


class OrderItemMapper:
    """Static mapper for OrderItem ↔ OrderItemModel transformation."""

    @staticmethod
    def to_domain(model: OrderItemModel, currency: str) -> OrderItem:
        """Convert ORM model to domain entity.

        Args:
            model: OrderItemModel instance
            currency: Order currency

        Returns:
            OrderItem domain entity
        """
        return OrderItem(
            product_id=model.product_id,
            title=model.title,
            unit_price=_money(model.unit_price, currency),
            quantity=model.quantity,
            image=model.image or "",
            selected_size=model.selected_size,
        )

    @staticmethod
    def to_persistence(entity: OrderItem, position: int) -> OrderItemModel:
        """Convert domain entity to ORM model.

        Args:
            entity: OrderItem domain entity
            position: Index of the line in the order

        Returns:
            OrderItemModel instance
        """
        return OrderItemModel(
            position=position,
            product_id=entity.product_id,
            title=entity.title,
            unit_price=entity.unit_price.amount,
            quantity=entity.quantity,
            image=entity.image,
            selected_size=entity.selected_size,
        )


class StatusHistoryMapper:
    """Static mapper for StatusHistoryEntry ↔ OrderStatusHistoryModel."""

    @staticmethod
    def to_domain(model: OrderStatusHistoryModel) -> StatusHistoryEntry:
        return StatusHistoryEntry(
            status=OrderStatus(model.status),
            timestamp=model.timestamp,
            note=model.note,
            actor_id=model.actor_id,
        )

    @staticmethod
    def to_persistence(entity: StatusHistoryEntry, position: int) -> OrderStatusHistoryModel:
        return OrderStatusHistoryModel(
            position=position,
            status=entity.status.value,
            timestamp=entity.timestamp,
            note=entity.note,
            actor_id=entity.actor_id,
        )


class OrderMapper:
    """Static mapper for Order ↔ OrderModel transformation."""

    @staticmethod
    def to_domain(model: OrderModel) -> Order:
        """Convert ORM model to domain entity.

        Args:
            model: OrderModel with items and status_history loaded

        Returns:
            Order domain entity
        """
        currency = model.currency
        return Order(
            id=model.id,
            order_number=OrderNumber(model.order_number),
            buyer_id=model.buyer_id,
            seller_id=model.seller_id,
            items=[OrderItemMapper.to_domain(item, currency) for item in model.items],
            subtotal=_money(model.subtotal, currency),
            shipping_charge=_money(model.shipping_charge, currency),
            discount=_money(model.discount, currency),
            total_amount=_money(model.total_amount, currency),
            payment_method=PaymentMethod(model.payment_method),
            shipping_address=ShippingAddress.from_dict(model.shipping_address),
            created_at=model.created_at,
            updated_at=model.updated_at,
            status=OrderStatus(model.status),
            status_history=[StatusHistoryMapper.to_domain(h) for h in model.status_history],
            payment_status=PaymentStatus(model.payment_status),
            transaction_id=model.transaction_id,
            paid_at=model.paid_at,
            tracking_number=model.tracking_number,
            shipping_carrier=model.shipping_carrier,
            tracking_link=model.tracking_link,
            estimated_delivery=model.estimated_delivery,
            delivered_at=model.delivered_at,
            delivery_confirmed_at=model.delivery_confirmed_at,
            conversation_id=model.conversation_id,
            buyer_notes=model.buyer_notes,
            seller_notes=model.seller_notes,
            cancellation_reason=model.cancellation_reason,
            cancelled_by=model.cancelled_by,
            refund_amount=(
                _money(model.refund_amount, currency) if model.refund_amount is not None else None
            ),
            refund_reason=model.refund_reason,
            version=model.version,
        )

    @staticmethod
    def to_persistence(entity: Order) -> OrderModel:
        """Convert a new domain entity to ORM model (with children)."""
        model = OrderModel(
            id=entity.id,
            order_number=entity.order_number.value,
            buyer_id=entity.buyer_id,
            seller_id=entity.seller_id,
            currency=entity.total_amount.currency,
            created_at=entity.created_at,
        )
        OrderMapper.apply(entity, model)
        model.items = [
            OrderItemMapper.to_persistence(item, position)
            for position, item in enumerate(entity.items)
        ]
        return model

    @staticmethod
    def apply(entity: Order, model: OrderModel) -> None:
        """Copy mutable fields onto a model and append unseen history entries."""
        model.subtotal = entity.subtotal.amount
        model.shipping_charge = entity.shipping_charge.amount
        model.discount = entity.discount.amount
        model.total_amount = entity.total_amount.amount

        model.payment_method = entity.payment_method.value
        model.payment_status = entity.payment_status.value
        model.transaction_id = entity.transaction_id
        model.paid_at = entity.paid_at

        model.shipping_address = entity.shipping_address.to_dict()
        model.tracking_number = entity.tracking_number
        model.shipping_carrier = entity.shipping_carrier
        model.tracking_link = entity.tracking_link
        model.estimated_delivery = entity.estimated_delivery
        model.delivered_at = entity.delivered_at
        model.delivery_confirmed_at = entity.delivery_confirmed_at

        model.status = entity.status.value
        model.conversation_id = entity.conversation_id
        model.buyer_notes = entity.buyer_notes
        model.seller_notes = entity.seller_notes

        model.cancellation_reason = entity.cancellation_reason
        model.cancelled_by = entity.cancelled_by
        model.refund_amount = entity.refund_amount.amount if entity.refund_amount else None
        model.refund_reason = entity.refund_reason

        model.updated_at = entity.updated_at

        # History is append-only: persist only entries beyond what is stored
        stored = len(model.status_history) if model.status_history else 0
        for position in range(stored, len(entity.status_history)):
            model.status_history.append(
                StatusHistoryMapper.to_persistence(entity.status_history[position], position)
            )


class ProductMapper:
    """Static mapper for ProductModel → Product."""

    @staticmethod
    def to_domain(model: ProductModel) -> Product:
        currency = model.currency
        return Product(
            id=model.id,
            seller_id=model.seller_id,
            title=model.title,
            price=_money(model.price, currency),
            image=model.image or "",
            quantity_available=model.quantity_available,
            is_out_of_stock=bool(model.is_out_of_stock),
            size_variants=[
                SizeVariant(size=v.size, quantity=v.quantity, price=_money(v.price, currency))
                for v in model.size_variants
            ],
        )


class UserMapper:

    @staticmethod
    def to_domain(model: UserModel) -> UserProfile:
        return UserProfile(
            id=model.id,
            username=model.username,
            name=model.name,
            cash_on_delivery_available=bool(model.cash_on_delivery_available),
            inventory_alert_threshold=model.inventory_alert_threshold,
            push_tokens=list(model.push_tokens or []),
        )


class ConversationMapper:

    @staticmethod
    def to_domain(model: ConversationModel) -> Conversation:
        return Conversation(
            id=model.id,
            participant_a=model.participant_a,
            participant_b=model.participant_b,
            created_at=model.created_at,
            last_message_preview=model.last_message_preview,
            last_message_sender_id=model.last_message_sender_id,
            last_message_at=model.last_message_at,
        )


class MessageMapper:

    @staticmethod
    def to_domain(model: MessageModel) -> Message:
        confirmation: Optional[DeliveryConfirmation] = None
        if model.delivery_confirmation:
            confirmation = DeliveryConfirmation.from_dict(model.delivery_confirmation)
        return Message(
            id=model.id,
            conversation_id=model.conversation_id,
            sender_id=model.sender_id,
            content=model.content,
            message_type=MessageType(model.message_type),
            created_at=model.created_at,
            order_id=model.order_id,
            metadata=dict(model.message_metadata or {}),
            delivery_confirmation=confirmation,
        )

    @staticmethod
    def to_persistence(entity: Message) -> MessageModel:
        return MessageModel(
            id=entity.id,
            conversation_id=entity.conversation_id,
            sender_id=entity.sender_id,
            content=entity.content,
            message_type=entity.message_type.value,
            order_id=entity.order_id,
            message_metadata=entity.metadata or None,
            delivery_confirmation=(
                entity.delivery_confirmation.to_dict() if entity.delivery_confirmation else None
            ),
            created_at=entity.created_at,
        )


class NotificationMapper:

    @staticmethod
    def to_domain(model: NotificationModel) -> Notification:
        return Notification(
            id=model.id,
            recipient_id=model.recipient_id,
            type=NotificationType(model.type),
            title=model.title,
            message=model.message,
            created_at=model.created_at,
            sender_id=model.sender_id,
            order_id=model.order_id,
            product_id=model.product_id,
            metadata=dict(model.payload or {}),
            is_read=bool(model.is_read),
        )

    @staticmethod
    def to_persistence(entity: Notification) -> NotificationModel:
        return NotificationModel(
            id=entity.id,
            recipient_id=entity.recipient_id,
            sender_id=entity.sender_id,
            type=entity.type.value,
            title=entity.title,
            message=entity.message,
            order_id=entity.order_id,
            product_id=entity.product_id,
            payload=entity.metadata or None,
            is_read=entity.is_read,
            created_at=entity.created_at,
        )
