"""Read access to user preferences."""
from abc import ABC, abstractmethod
from typing import Optional

from ..entities.user import UserProfile


class UserRepository(ABC):

    @abstractmethod
    async def get(self, user_id: str) -> Optional[UserProfile]:
        pass
