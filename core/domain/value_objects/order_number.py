"""Order number value object."""
import re
from dataclasses import dataclass

_ORDER_NUMBER_PATTERN = re.compile(r"^(?P<prefix>[A-Z][A-Z0-9]*)-(?P<date>\d{8})-(?P<seq>\d{5,})$")


@dataclass(frozen=True)
class OrderNumber:
    """
    Human-facing order identifier.

    Format: PREFIX-YYYYMMDD-NNNNN (sequence zero-padded to 5 digits)
    Examples:
    - ORD-20250614-00032
    - ORD-20250615-00001
    """
    value: str

    def __post_init__(self):
        if not self.value:
            raise ValueError("Order number cannot be empty")

        if not _ORDER_NUMBER_PATTERN.match(self.value):
            raise ValueError(
                f"Invalid order number format (expected PREFIX-YYYYMMDD-NNNNN): {self.value}"
            )

    @classmethod
    def build(cls, prefix: str, date_key: str, sequence: int) -> "OrderNumber":
        """Format a sequence value issued for `date_key`."""
        if sequence < 1:
            raise ValueError(f"Sequence must be positive, got {sequence}")
        return cls(value=f"{prefix}-{date_key}-{sequence:05d}")

    @property
    def prefix(self) -> str:
        return self._match().group("prefix")

    @property
    def date_key(self) -> str:
        return self._match().group("date")

    @property
    def sequence(self) -> int:
        return int(self._match().group("seq"))

    def _match(self) -> re.Match:
        return _ORDER_NUMBER_PATTERN.match(self.value)

    def __str__(self) -> str:
        return self.value
