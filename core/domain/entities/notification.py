"""In-app notification record."""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional

from ..enums import NotificationType


@dataclass
class Notification:
    id: str
    recipient_id: str
    type: NotificationType
    title: str
    message: str
    created_at: datetime
    sender_id: Optional[str] = None
    order_id: Optional[str] = None
    product_id: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)
    is_read: bool = False
