"""Seller/buyer preferences read by the order lifecycle."""
from dataclasses import dataclass, field
from typing import List, Optional

DEFAULT_INVENTORY_ALERT_THRESHOLD = 3


@dataclass
class UserProfile:
    """
    Subset of the user record owned by the account collaborator.

    Only the fields the order lifecycle needs are modelled.
    """
    id: str
    username: str
    name: Optional[str] = None
    cash_on_delivery_available: bool = False
    inventory_alert_threshold: Optional[int] = None
    push_tokens: List[str] = field(default_factory=list)

    @property
    def display_name(self) -> str:
        return self.name or self.username

    def alert_threshold(self, default: int = DEFAULT_INVENTORY_ALERT_THRESHOLD) -> int:
        return self.inventory_alert_threshold or default
