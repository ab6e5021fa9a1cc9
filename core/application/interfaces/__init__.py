"""Application layer interfaces."""
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional


class IPushNotificationService(ABC):
    """
    Interface for push notification delivery.

    Push-token management belongs to the account collaborator; the
    implementation resolves a user's tokens itself. Delivery is
    fire-and-forget from the caller's perspective.
    """

    @abstractmethod
    async def send_to_user(
        self,
        user_id: str,
        title: str,
        body: str,
        data: Optional[Dict[str, Any]] = None,
    ) -> int:
        """
        Send a push notification to every device of a user.

        Args:
            user_id: Recipient
            title: Notification title
            body: Notification body
            data: Extra payload for the client (order id, type, ...)

        Returns:
            Number of devices the notification was accepted for
        """
        pass
