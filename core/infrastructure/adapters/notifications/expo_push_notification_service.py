"""
Expo Push Notification Service Implementation.

Sends push notifications via the Expo push API.
"""
from typing import Any, Awaitable, Callable, Dict, List, Optional

import aiohttp

from core.application.interfaces import IPushNotificationService
from core.infrastructure.logging import get_logger
from core.settings.sections.push import PushSettings


logger = get_logger(__name__)

TokenResolver = Callable[[str], Awaitable[List[str]]]

_EXPO_TOKEN_PREFIXES = ("ExponentPushToken[", "ExpoPushToken[")


def is_expo_push_token(token: str) -> bool:
    return isinstance(token, str) and token.startswith(_EXPO_TOKEN_PREFIXES) and token.endswith("]")


class ExpoPushNotificationService(IPushNotificationService):
    """
    Expo implementation of push notification service.

    Tokens are looked up through `token_resolver`; malformed tokens are
    skipped. Errors are logged and reported as zero deliveries.
    """

    def __init__(self, settings: PushSettings, token_resolver: TokenResolver):
        """
        Initialize Expo push service.

        Args:
            settings: Push settings with endpoint and access token
            token_resolver: Async callable returning a user's push tokens
        """
        self.settings = settings
        self.endpoint = settings.endpoint
        self.token_resolver = token_resolver
        logger.info("ExpoPushNotificationService initialized")

    async def send_to_user(
        self,
        user_id: str,
        title: str,
        body: str,
        data: Optional[Dict[str, Any]] = None,
    ) -> int:
        """Send push notification to all valid devices of a user."""
        try:
            tokens = await self.token_resolver(user_id)
        except Exception as e:
            logger.error(f"Push token lookup failed for {user_id}: {e}", exc_info=True)
            return 0

        valid_tokens = [t for t in tokens if is_expo_push_token(t)]
        skipped = len(tokens) - len(valid_tokens)
        if skipped:
            logger.warning(f"Skipping {skipped} invalid push token(s) for {user_id}")
        if not valid_tokens:
            logger.info(f"No push tokens for {user_id}, skipping push")
            return 0

        messages = [
            {
                "to": token,
                "sound": "default",
                "title": title,
                "body": body,
                "data": data or {},
            }
            for token in valid_tokens
        ]
        return await self._send_messages(messages)

    async def _send_messages(self, messages: List[Dict[str, Any]]) -> int:
        """
        Post messages to Expo.

        Args:
            messages: Expo push message dicts

        Returns:
            Number of tickets with status "ok"
        """
        headers = {
            "Accept": "application/json",
            "Content-Type": "application/json",
        }
        if self.settings.access_token:
            headers["Authorization"] = f"Bearer {self.settings.access_token}"

        timeout = aiohttp.ClientTimeout(total=self.settings.timeout_seconds)
        try:
            async with aiohttp.ClientSession(timeout=timeout) as session:
                async with session.post(self.endpoint, json=messages, headers=headers) as response:
                    if response.status != 200:
                        error_text = await response.text()
                        logger.error(f"Expo push API error: {response.status} - {error_text}")
                        return 0
                    payload = await response.json()
        except Exception as e:
            logger.error(f"Failed to send push notification: {e}", exc_info=True)
            return 0

        tickets = payload.get("data", []) if isinstance(payload, dict) else []
        accepted = sum(1 for ticket in tickets if ticket.get("status") == "ok")
        for ticket in tickets:
            if ticket.get("status") == "error":
                logger.warning(f"Expo rejected push: {ticket.get('message')} {ticket.get('details')}")
        logger.info(f"Push notification sent to {accepted}/{len(messages)} device(s)")
        return accepted
