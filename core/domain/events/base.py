"""
Base Domain Event.

Events are recorded on the aggregate while a unit of work is open and
handed to the outbound bus once it has committed.
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import ClassVar, Optional
import uuid

from ..clock import utc_now


@dataclass
class DomainEvent:
    """
    Base class for all domain events.

    Subclasses name the attribute holding their aggregate's identity in
    `aggregate_field`; `aggregate_id` is filled from it when not given.
    """

    aggregate_field: ClassVar[Optional[str]] = None

    event_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    aggregate_id: str = ""
    # Actor whose request produced the event
    user_id: Optional[str] = None
    occurred_at: datetime = field(default_factory=utc_now)

    def __post_init__(self):
        if not self.aggregate_id and self.aggregate_field:
            self.aggregate_id = getattr(self, self.aggregate_field, "") or ""

    @property
    def event_type(self) -> str:
        return type(self).__name__

    def __str__(self) -> str:
        return f"{self.event_type}({self.aggregate_id})"
