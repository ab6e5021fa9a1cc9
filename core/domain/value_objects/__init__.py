"""Domain value objects."""

from .value_objects import (
    SYSTEM_ACTOR,
    SYSTEM_ACTOR_ID,
    Actor,
    Money,
    ShippingAddress,
)
from .order_number import OrderNumber

__all__ = [
    "SYSTEM_ACTOR",
    "SYSTEM_ACTOR_ID",
    "Actor",
    "Money",
    "OrderNumber",
    "ShippingAddress",
]
