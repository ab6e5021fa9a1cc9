"""
Inventory Ledger.

Validates a purchase against a product's stock state and computes the
post-decrement state. Persistence applies the decrement with a
conditional update and hands the actual post-decrement numbers back to
`alert_for`.
"""
from dataclasses import dataclass
from typing import Optional

from ..entities.product import Product, StockMode
from ..exceptions import (
    InsufficientStockError,
    ProductOutOfStockError,
    SizeOutOfStockError,
    SizeRequiredError,
    SizeUnavailableError,
    ValidationError,
)
from ..value_objects import Money

INVENTORY_EMPTY = "Inventory Empty"
SIZE_OUT_OF_STOCK = "Size Out of Stock"
LOW_INVENTORY = "Low Inventory Alert"


@dataclass(frozen=True)
class StockReservation:
    """
    Stock change required by one order line.

    `remaining` is the selected variant's (or flat counter's) quantity
    after the decrement, `aggregate_remaining` the product total. Both are
    None for unmanaged products.
    """
    product_id: str
    mode: StockMode
    quantity: int
    unit_price: Money
    size: Optional[str] = None
    remaining: Optional[int] = None
    aggregate_remaining: Optional[int] = None

    @property
    def is_out_of_stock(self) -> bool:
        return self.aggregate_remaining == 0

    @property
    def requires_update(self) -> bool:
        return self.mode != StockMode.UNMANAGED


@dataclass(frozen=True)
class InventoryAlert:
    """System notification for the seller about low or exhausted stock."""
    product_id: str
    title: str
    message: str
    quantity_available: int
    size: Optional[str] = None


class InventoryLedger:
    """Stateless stock rules shared by order creation and its tests."""

    def reserve(self, product: Product, quantity: int, size: Optional[str] = None) -> StockReservation:
        """
        Validate availability and compute the post-decrement state.

        Raises:
            ValidationError: quantity is not a positive integer
            SizeRequiredError / SizeUnavailableError / SizeOutOfStockError
            InsufficientStockError: carries the available quantity
            ProductOutOfStockError
        """
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
            raise ValidationError("Quantity must be a positive integer", {"quantity": quantity})

        mode = product.stock_mode

        if mode == StockMode.VARIANTS:
            if not size:
                raise SizeRequiredError(product.available_sizes)
            variant = product.variant(size)
            if variant is None:
                raise SizeUnavailableError(size)
            if variant.quantity <= 0:
                raise SizeOutOfStockError(size)
            if quantity > variant.quantity:
                raise InsufficientStockError(variant.quantity, size=size)

            aggregate = sum(v.quantity for v in product.size_variants) - quantity
            return StockReservation(
                product_id=product.id,
                mode=mode,
                quantity=quantity,
                unit_price=variant.price,
                size=size,
                remaining=variant.quantity - quantity,
                aggregate_remaining=aggregate,
            )

        current = product.quantity_available
        if product.is_out_of_stock or (current is not None and current <= 0):
            raise ProductOutOfStockError()

        if mode == StockMode.FLAT:
            if quantity > current:
                raise InsufficientStockError(current)
            remaining = current - quantity
            return StockReservation(
                product_id=product.id,
                mode=mode,
                quantity=quantity,
                unit_price=product.price,
                remaining=remaining,
                aggregate_remaining=remaining,
            )

        return StockReservation(
            product_id=product.id,
            mode=mode,
            quantity=quantity,
            unit_price=product.price,
        )

    def alert_for(
        self,
        product: Product,
        reservation: StockReservation,
        threshold: int,
    ) -> Optional[InventoryAlert]:
        """
        Alert for the seller, computed from the applied reservation.

        Precedence: whole product empty, then selected size empty, then
        remaining quantity at or under the threshold.
        """
        if reservation.mode == StockMode.UNMANAGED or reservation.remaining is None:
            return None

        title = product.title
        if reservation.mode == StockMode.VARIANTS:
            size = reservation.size
            if reservation.aggregate_remaining == 0:
                return InventoryAlert(product.id, INVENTORY_EMPTY,
                                      f'"{title}" is now out of stock (all sizes).', 0)
            if reservation.remaining == 0:
                return InventoryAlert(product.id, SIZE_OUT_OF_STOCK,
                                      f'"{title}" size "{size}" is now out of stock.', 0, size=size)
            if reservation.remaining <= threshold:
                return InventoryAlert(
                    product.id,
                    LOW_INVENTORY,
                    f'"{title}" size "{size}" is running low ({reservation.remaining} left).',
                    reservation.remaining,
                    size=size,
                )
            return None

        if reservation.remaining == 0:
            return InventoryAlert(product.id, INVENTORY_EMPTY, f'"{title}" is now out of stock.', 0)
        if reservation.remaining <= threshold:
            return InventoryAlert(
                product.id,
                LOW_INVENTORY,
                f'"{title}" is running low ({reservation.remaining} left).',
                reservation.remaining,
            )
        return None
