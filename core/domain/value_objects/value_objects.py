"""Domain value objects - pure Python immutable types."""

from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

from ..exceptions import ValidationError


@dataclass(frozen=True)
class Money:
    """
    Immutable monetary value with currency.

    CRITICAL: Always use Decimal, never float!
    """
    amount: Decimal
    currency: str = "INR"

    def __post_init__(self):
        # Convert to Decimal if needed
        if not isinstance(self.amount, Decimal):
            object.__setattr__(self, 'amount', Decimal(str(self.amount)))

        # Validate currency code (3 letters)
        if not isinstance(self.currency, str) or len(self.currency) != 3:
            raise ValueError(
                f"Currency must be 3-letter ISO code, got: {self.currency}"
            )

    @classmethod
    def zero(cls, currency: str = "INR") -> 'Money':
        return cls(amount=Decimal("0.00"), currency=currency)

    def __str__(self) -> str:
        return f"{self.amount} {self.currency}"

    def __add__(self, other: 'Money') -> 'Money':
        """Add two Money objects (must have same currency)."""
        if self.currency != other.currency:
            raise ValueError(
                f"Cannot add different currencies: {self.currency} vs {other.currency}"
            )
        return Money(amount=self.amount + other.amount, currency=self.currency)

    def __sub__(self, other: 'Money') -> 'Money':
        """Subtract two Money objects (must have same currency)."""
        if self.currency != other.currency:
            raise ValueError(
                f"Cannot subtract different currencies: {self.currency} vs {other.currency}"
            )
        return Money(amount=self.amount - other.amount, currency=self.currency)

    def __ge__(self, other: 'Money') -> bool:
        if self.currency != other.currency:
            raise ValueError(
                f"Cannot compare different currencies: {self.currency} vs {other.currency}"
            )
        return self.amount >= other.amount

    def times(self, quantity: int) -> 'Money':
        """Multiply by an item quantity."""
        return Money(amount=self.amount * quantity, currency=self.currency)

    def quantize(self) -> 'Money':
        return Money(
            amount=self.amount.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP),
            currency=self.currency,
        )

    def is_negative(self) -> bool:
        """Check if amount is negative."""
        return self.amount < 0

    def is_zero(self) -> bool:
        """Check if amount is zero."""
        return self.amount == 0


@dataclass(frozen=True)
class Actor:
    """
    Authenticated identity performing a mutation.

    Supplied by the authentication collaborator and trusted as-is.
    """
    id: str
    display_name: Optional[str] = None

    def __post_init__(self):
        if not self.id:
            raise ValueError("Actor id cannot be empty")

    @property
    def is_system(self) -> bool:
        return self.id == SYSTEM_ACTOR_ID


SYSTEM_ACTOR_ID = "000000000000000000000000"
SYSTEM_ACTOR = Actor(id=SYSTEM_ACTOR_ID, display_name="system")


@dataclass(frozen=True)
class ShippingAddress:
    """Delivery address embedded in an order."""
    full_name: str
    phone: str
    address_line1: str
    city: str
    state: str
    postal_code: str
    address_line2: Optional[str] = None
    landmark: Optional[str] = None

    REQUIRED_FIELDS = ("full_name", "phone", "address_line1", "city", "state", "postal_code")

    def __post_init__(self):
        for name in self.REQUIRED_FIELDS:
            value = getattr(self, name)
            if not isinstance(value, str) or not value.strip():
                raise ValidationError(
                    f"Shipping address field '{name}' is required",
                    {"field": name},
                )
            object.__setattr__(self, name, value.strip())

    def to_dict(self) -> dict:
        return {
            "full_name": self.full_name,
            "phone": self.phone,
            "address_line1": self.address_line1,
            "address_line2": self.address_line2,
            "city": self.city,
            "state": self.state,
            "postal_code": self.postal_code,
            "landmark": self.landmark,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ShippingAddress":
        return cls(
            full_name=data.get("full_name", ""),
            phone=data.get("phone", ""),
            address_line1=data.get("address_line1", ""),
            address_line2=data.get("address_line2"),
            city=data.get("city", ""),
            state=data.get("state", ""),
            postal_code=data.get("postal_code", ""),
            landmark=data.get("landmark"),
        )
