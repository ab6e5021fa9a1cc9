"""
Fan-Out Notifier.

Turns committed order events into a conversation message, an in-app
notification and a push notification. The three channels are
independent: each runs in its own unit of work and a failure in one is
logged without affecting the others or the order itself.
"""
import logging
import uuid
from typing import Any, Awaitable, Callable, Dict, Optional

from sqlalchemy.ext.asyncio import async_sessionmaker

from core.application.interfaces import IPushNotificationService
from core.application.services import order_messages as texts
from core.domain.clock import Clock, utc_now
from core.domain.entities import DeliveryConfirmation, Message, MessageType, Notification
from core.domain.enums import NotificationType, OrderStatus
from core.domain.event_bus import EventBus
from core.domain.events import (
    DeliveryConfirmationRespondedEvent,
    InventoryAlertRaisedEvent,
    OrderPlacedEvent,
    OrderStatusChangedEvent,
)
from core.infrastructure.database.unit_of_work import UnitOfWork


logger = logging.getLogger(__name__)


class FanOutNotifier:
    """
    Post-commit side effects of the order lifecycle.

    Recipients:
    - placement: seller and buyer
    - seller-driven transitions: buyer
    - buyer cancellation / refund request: seller
    - delivery confirmation or dispute: seller
    - auto-confirmation: buyer
    - stock alerts: seller (in-app only)
    """

    def __init__(
        self,
        session_factory: async_sessionmaker,
        push_service: IPushNotificationService,
        clock: Clock = utc_now,
        auto_confirm_hours: int = 48,
    ):
        self._session_factory = session_factory
        self._push = push_service
        self._clock = clock
        self._auto_confirm_hours = auto_confirm_hours

    def register(self, bus: EventBus) -> None:
        """Subscribe every handler to the outbound bus."""
        bus.subscribe(OrderPlacedEvent, self.on_order_placed)
        bus.subscribe(OrderStatusChangedEvent, self.on_status_changed)
        bus.subscribe(DeliveryConfirmationRespondedEvent, self.on_delivery_response)
        bus.subscribe(InventoryAlertRaisedEvent, self.on_inventory_alert)

    # =========================================================================
    # EVENT HANDLERS
    # =========================================================================

    async def on_order_placed(self, event: OrderPlacedEvent) -> None:
        logger.info(f"Fan-out for new order {event.order_number}")

        async def post_purchase_message():
            content = texts.purchase_message(event.quantity, event.title, event.remaining_stock)
            async with UnitOfWork(self._session_factory) as uow:
                conversation = await uow.conversations.find_or_create(
                    event.buyer_id, event.seller_id, self._clock()
                )
                await uow.conversations.append_message(
                    self._message(
                        conversation.id,
                        sender_id=event.buyer_id,
                        content=content,
                        message_type=MessageType.PURCHASE,
                        order_id=event.order_id,
                        metadata={
                            "product_id": event.product_id,
                            "title": event.title,
                            "price": str(event.unit_price),
                            "image": event.image,
                        },
                    )
                )
                await uow.orders.link_conversation(event.order_id, conversation.id)
                await uow.commit()

        await self._run_channel("conversation", event.order_number, post_purchase_message)

        data = {"order_id": event.order_id, "order_number": event.order_number}
        for recipient, sender, for_buyer in (
            (event.seller_id, event.buyer_id, False),
            (event.buyer_id, event.seller_id, True),
        ):
            title, body = texts.status_notification(event.order_number, OrderStatus.PENDING, for_buyer)
            await self._notify_and_push(
                recipient_id=recipient,
                sender_id=sender,
                notification_type=NotificationType.ORDER_PLACED,
                title=title,
                body=body,
                order_id=event.order_id,
                metadata={**data, "status": OrderStatus.PENDING.value},
                order_number=event.order_number,
            )

    async def on_status_changed(self, event: OrderStatusChangedEvent) -> None:
        status = OrderStatus(event.new_status)
        buyer_acted = event.actor_id == event.buyer_id
        sender_id, recipient_id = (
            (event.buyer_id, event.seller_id) if buyer_acted else (event.seller_id, event.buyer_id)
        )
        logger.info(f"Fan-out for {event.order_number}: {event.previous_status} -> {status.value}")

        async def post_status_messages():
            now = self._clock()
            if buyer_acted:
                content = texts.buyer_action_message(event.order_number, status, event.note)
            else:
                content = texts.status_message(
                    event.order_number, status, event.tracking_number, event.tracking_link
                )

            async with UnitOfWork(self._session_factory) as uow:
                conversation = await uow.conversations.find_or_create(sender_id, recipient_id, now)
                await uow.conversations.append_message(
                    self._message(
                        conversation.id,
                        sender_id=sender_id,
                        content=content,
                        message_type=MessageType.ORDER_UPDATE,
                        order_id=event.order_id,
                        metadata={
                            "order_id": event.order_id,
                            "order_number": event.order_number,
                            "status": status.value,
                            "previous_status": event.previous_status,
                            "tracking_number": event.tracking_number,
                            "tracking_link": event.tracking_link,
                            "estimated_delivery": (
                                event.estimated_delivery.isoformat() if event.estimated_delivery else None
                            ),
                        },
                    ),
                    preview=texts.status_preview(status),
                )
                if event.request_confirmation:
                    await uow.conversations.append_message(
                        self._message(
                            conversation.id,
                            sender_id=sender_id,
                            content=texts.delivery_confirmation_message(
                                event.order_number, status, self._auto_confirm_hours
                            ),
                            message_type=MessageType.DELIVERY_CONFIRMATION,
                            order_id=event.order_id,
                            delivery_confirmation=DeliveryConfirmation(
                                order_id=event.order_id,
                                order_number=event.order_number,
                            ),
                        ),
                        preview=texts.DELIVERY_CONFIRMATION_PREVIEW,
                    )
                await uow.commit()

        await self._run_channel("conversation", event.order_number, post_status_messages)

        title, body = texts.status_notification(event.order_number, status, for_buyer=not buyer_acted)
        await self._notify_and_push(
            recipient_id=recipient_id,
            sender_id=sender_id,
            notification_type=NotificationType.for_status(status),
            title=title,
            body=body,
            order_id=event.order_id,
            metadata={"order_number": event.order_number, "status": status.value},
            order_number=event.order_number,
        )

    async def on_delivery_response(self, event: DeliveryConfirmationRespondedEvent) -> None:
        logger.info(
            f"Fan-out for delivery response on {event.order_number}: "
            f"confirmed={event.confirmed} auto={event.auto_confirmed}"
        )

        async def update_confirmation_record():
            async with UnitOfWork(self._session_factory) as uow:
                message = await uow.conversations.latest_delivery_confirmation(event.order_id)
                if message is None:
                    logger.info(f"No delivery-confirmation message for {event.order_number}")
                else:
                    message.delivery_confirmation = DeliveryConfirmation(
                        order_id=event.order_id,
                        order_number=event.order_number,
                        confirmed=event.confirmed,
                        confirmed_at=event.responded_at,
                    )
                    await uow.conversations.update_message(message)

                if not event.confirmed:
                    conversation = await uow.conversations.find_or_create(
                        event.buyer_id, event.seller_id, self._clock()
                    )
                    await uow.conversations.append_message(
                        self._message(
                            conversation.id,
                            sender_id=event.buyer_id,
                            content=texts.dispute_message(event.order_number),
                            message_type=MessageType.DISPUTE,
                            order_id=event.order_id,
                            metadata={"order_id": event.order_id, "order_number": event.order_number},
                        )
                    )
                await uow.commit()

        await self._run_channel("conversation", event.order_number, update_confirmation_record)

        if event.auto_confirmed:
            title, body = texts.status_notification(event.order_number, OrderStatus.DELIVERED)
            recipient_id, sender_id = event.buyer_id, None
            notification_type = NotificationType.ORDER_DELIVERED
        else:
            title, body = texts.delivery_response_notification(event.order_number, event.confirmed)
            recipient_id, sender_id = event.seller_id, event.buyer_id
            notification_type = (
                NotificationType.ORDER_DELIVERED if event.confirmed else NotificationType.SYSTEM
            )

        await self._notify_and_push(
            recipient_id=recipient_id,
            sender_id=sender_id,
            notification_type=notification_type,
            title=title,
            body=body,
            order_id=event.order_id,
            metadata={"order_number": event.order_number, "confirmed": event.confirmed},
            order_number=event.order_number,
        )

    async def on_inventory_alert(self, event: InventoryAlertRaisedEvent) -> None:
        metadata = {"product_id": event.product_id, "quantity_available": event.quantity_available}
        if event.size:
            metadata["size"] = event.size

        async def create_alert():
            await self._create_notification(
                Notification(
                    id=uuid.uuid4().hex,
                    recipient_id=event.seller_id,
                    type=NotificationType.SYSTEM,
                    title=event.title,
                    message=event.message,
                    created_at=self._clock(),
                    product_id=event.product_id,
                    metadata=metadata,
                )
            )

        await self._run_channel("notification", event.product_id, create_alert)

    # =========================================================================
    # CHANNELS
    # =========================================================================

    async def _notify_and_push(
        self,
        recipient_id: str,
        sender_id: Optional[str],
        notification_type: NotificationType,
        title: str,
        body: str,
        order_id: str,
        metadata: Dict[str, Any],
        order_number: str,
    ) -> None:
        if recipient_id == sender_id:
            logger.debug(f"Skipping self-notification for {recipient_id}")
            return

        async def create_in_app():
            await self._create_notification(
                Notification(
                    id=uuid.uuid4().hex,
                    recipient_id=recipient_id,
                    sender_id=sender_id,
                    type=notification_type,
                    title=title,
                    message=body,
                    created_at=self._clock(),
                    order_id=order_id,
                    metadata=metadata,
                )
            )

        async def send_push():
            await self._push.send_to_user(
                recipient_id,
                title,
                body,
                {"type": notification_type.value, "order_id": order_id, **metadata},
            )

        await self._run_channel("notification", order_number, create_in_app)
        await self._run_channel("push", order_number, send_push)

    async def _create_notification(self, notification: Notification) -> None:
        async with UnitOfWork(self._session_factory) as uow:
            await uow.notifications.add(notification)
            await uow.commit()

    async def _run_channel(self, channel: str, reference: str, action: Callable[[], Awaitable[None]]) -> bool:
        """Run one best-effort channel. Failures are logged, never raised."""
        try:
            await action()
            return True
        except Exception as e:
            logger.error(f"❌ {channel} fan-out failed for {reference}: {e}", exc_info=True)
            return False

    def _message(
        self,
        conversation_id: str,
        sender_id: str,
        content: str,
        message_type: MessageType,
        order_id: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
        delivery_confirmation: Optional[DeliveryConfirmation] = None,
    ) -> Message:
        return Message(
            id=uuid.uuid4().hex,
            conversation_id=conversation_id,
            sender_id=sender_id,
            content=content,
            message_type=message_type,
            created_at=self._clock(),
            order_id=order_id,
            metadata=metadata or {},
            delivery_confirmation=delivery_confirmation,
        )
