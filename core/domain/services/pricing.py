"""Order pricing rules."""
from dataclasses import dataclass
from decimal import Decimal

from ..value_objects import Money


@dataclass(frozen=True)
class PriceQuote:
    subtotal: Money
    shipping_charge: Money
    discount: Money

    @property
    def total(self) -> Money:
        return self.subtotal + self.shipping_charge - self.discount


class PricingPolicy:
    """
    Flat shipping fee, waived once the subtotal reaches the threshold.

    No coupon system: the discount is always zero.
    """

    def __init__(
        self,
        free_shipping_threshold: Decimal = Decimal("500"),
        flat_shipping_charge: Decimal = Decimal("50"),
    ):
        self.free_shipping_threshold = Decimal(str(free_shipping_threshold))
        self.flat_shipping_charge = Decimal(str(flat_shipping_charge))

    def quote(self, unit_price: Money, quantity: int) -> PriceQuote:
        subtotal = unit_price.times(quantity)
        if subtotal.amount >= self.free_shipping_threshold:
            shipping = Money.zero(subtotal.currency)
        else:
            shipping = Money(self.flat_shipping_charge, subtotal.currency)
        return PriceQuote(
            subtotal=subtotal,
            shipping_charge=shipping,
            discount=Money.zero(subtotal.currency),
        )
