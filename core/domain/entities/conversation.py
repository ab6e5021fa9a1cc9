"""
Conversation thread and messages written by the fan-out notifier.

Messages are append-only with one exception: the confirmation
sub-record of a delivery-confirmation message is overwritten when the
buyer answers.
"""
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional, Tuple


class MessageType(str, Enum):
    TEXT = "text"
    PURCHASE = "purchase"
    ORDER_UPDATE = "order-update"
    DELIVERY_CONFIRMATION = "delivery-confirmation"
    DISPUTE = "dispute"


def participant_pair(user_a: str, user_b: str) -> Tuple[str, str]:
    """Unordered pair key for a two-party conversation."""
    return tuple(sorted((user_a, user_b)))


@dataclass
class DeliveryConfirmation:
    """Mutable sub-record embedded in a delivery-confirmation message."""
    order_id: str
    order_number: str
    confirmed: bool = False
    confirmed_at: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "order_id": self.order_id,
            "order_number": self.order_number,
            "confirmed": self.confirmed,
            "confirmed_at": self.confirmed_at.isoformat() if self.confirmed_at else None,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DeliveryConfirmation":
        confirmed_at = data.get("confirmed_at")
        return cls(
            order_id=data["order_id"],
            order_number=data["order_number"],
            confirmed=bool(data.get("confirmed", False)),
            confirmed_at=datetime.fromisoformat(confirmed_at) if confirmed_at else None,
        )


@dataclass
class Message:
    """System or user message inside a conversation."""
    id: str
    conversation_id: str
    sender_id: str
    content: str
    message_type: MessageType
    created_at: datetime
    order_id: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)
    delivery_confirmation: Optional[DeliveryConfirmation] = None


@dataclass
class Conversation:
    """Two-party conversation keyed by the unordered participant pair."""
    id: str
    participant_a: str
    participant_b: str
    created_at: datetime
    last_message_preview: Optional[str] = None
    last_message_sender_id: Optional[str] = None
    last_message_at: Optional[datetime] = None

    def involves(self, user_id: str) -> bool:
        return user_id in (self.participant_a, self.participant_b)
