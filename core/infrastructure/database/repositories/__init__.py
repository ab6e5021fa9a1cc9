"""SQLAlchemy repository implementations."""
from .sqlalchemy_conversation_repository import SQLAlchemyConversationRepository
from .sqlalchemy_notification_repository import SQLAlchemyNotificationRepository
from .sqlalchemy_order_repository import SQLAlchemyOrderRepository
from .sqlalchemy_product_repository import SQLAlchemyProductRepository
from .sqlalchemy_sequence_counter import SqlAlchemySequenceCounter
from .sqlalchemy_user_repository import SQLAlchemyUserRepository

__all__ = [
    "SQLAlchemyConversationRepository",
    "SQLAlchemyNotificationRepository",
    "SQLAlchemyOrderRepository",
    "SQLAlchemyProductRepository",
    "SQLAlchemyUserRepository",
    "SqlAlchemySequenceCounter",
]
