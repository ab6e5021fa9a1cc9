"""
Product stock state as seen by the order lifecycle.

Products belong to the catalog collaborator; this core only reads them
with their owner and mutates their stock fields.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from ..value_objects import Money


class StockMode(str, Enum):
    """How a product tracks its inventory."""

    VARIANTS = "variants"      # per-size quantities
    FLAT = "flat"              # single managed counter
    UNMANAGED = "unmanaged"    # no tracking, unlimited stock


@dataclass
class SizeVariant:
    """Named stock-keeping sub-unit of a product."""
    size: str
    quantity: int
    price: Money


@dataclass
class Product:
    """Product with its owner and stock fields."""
    id: str
    seller_id: str
    title: str
    price: Money
    image: str = ""
    quantity_available: Optional[int] = None
    is_out_of_stock: bool = False
    size_variants: List[SizeVariant] = field(default_factory=list)

    @property
    def stock_mode(self) -> StockMode:
        if self.size_variants:
            return StockMode.VARIANTS
        if self.quantity_available is not None:
            return StockMode.FLAT
        return StockMode.UNMANAGED

    @property
    def manages_stock(self) -> bool:
        return self.stock_mode != StockMode.UNMANAGED

    def variant(self, size: str) -> Optional[SizeVariant]:
        for variant in self.size_variants:
            if variant.size == size:
                return variant
        return None

    @property
    def available_sizes(self) -> List[str]:
        return [v.size for v in self.size_variants]
