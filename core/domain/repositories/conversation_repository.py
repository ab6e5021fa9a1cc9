"""Messaging collaborator interface used by the fan-out notifier."""
from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional

from ..entities.conversation import Conversation, Message


class ConversationRepository(ABC):

    @abstractmethod
    async def find_or_create(self, user_a: str, user_b: str, now: datetime) -> Conversation:
        """Conversation for the unordered pair, created on first contact."""
        pass

    @abstractmethod
    async def get(self, conversation_id: str) -> Optional[Conversation]:
        pass

    @abstractmethod
    async def append_message(self, message: Message, preview: Optional[str] = None) -> Message:
        """Append a message and refresh the conversation's last-message preview."""
        pass

    @abstractmethod
    async def latest_delivery_confirmation(self, order_id: str) -> Optional[Message]:
        """Most recent delivery-confirmation message for an order."""
        pass

    @abstractmethod
    async def update_message(self, message: Message) -> None:
        """Overwrite a stored message's delivery-confirmation sub-record."""
        pass

    @abstractmethod
    async def list_messages(self, conversation_id: str) -> List[Message]:
        pass
