"""
Mock Push Notification Service Implementation.

This simulates push delivery for testing and when push is disabled.
"""
from typing import Any, Dict, List, Optional
import logging

from core.application.interfaces import IPushNotificationService


logger = logging.getLogger(__name__)


class MockPushNotificationService(IPushNotificationService):
    """
    Mock implementation of push notification service.

    Logs notifications instead of actually sending them.
    Useful for testing and demos.
    """

    def __init__(self):
        """Initialize mock push notification service."""
        self.notifications_sent: List[Dict[str, Any]] = []
        logger.info("MockPushNotificationService initialized (console logging)")

    async def send_to_user(
        self,
        user_id: str,
        title: str,
        body: str,
        data: Optional[Dict[str, Any]] = None,
    ) -> int:
        """
        Simulate push delivery.

        Returns:
            Always 1
        """
        self.notifications_sent.append({
            "user_id": user_id,
            "title": title,
            "body": body,
            "data": data or {},
        })

        logger.info(
            f"📱 🔔 PUSH NOTIFICATION:\n"
            f"   To: {user_id}\n"
            f"   Title: {title}\n"
            f"   Body: {body}"
        )
        return 1

    def get_notifications(self, user_id: Optional[str] = None) -> list:
        """Get sent notifications, optionally for one user (for testing)."""
        if user_id is None:
            return self.notifications_sent
        return [n for n in self.notifications_sent if n["user_id"] == user_id]

    def clear(self) -> None:
        """Clear notifications (for testing)."""
        self.notifications_sent.clear()
        logger.info("🗑️ Notifications cleared")
