"""Repository interfaces."""
from .conversation_repository import ConversationRepository
from .notification_repository import NotificationRepository
from .order_repository import OrderRepository
from .product_repository import ProductRepository
from .sequence_counter import SequenceCounter
from .user_repository import UserRepository

__all__ = [
    "ConversationRepository",
    "NotificationRepository",
    "OrderRepository",
    "ProductRepository",
    "SequenceCounter",
    "UserRepository",
]
