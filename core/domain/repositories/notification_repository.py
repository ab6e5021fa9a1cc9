"""In-app notification store."""
from abc import ABC, abstractmethod
from typing import List

from ..entities.notification import Notification


class NotificationRepository(ABC):

    @abstractmethod
    async def add(self, notification: Notification) -> None:
        pass

    @abstractmethod
    async def list_for_recipient(self, recipient_id: str) -> List[Notification]:
        pass
