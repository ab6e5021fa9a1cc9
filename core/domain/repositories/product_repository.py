"""Repository interface for product stock state."""
from abc import ABC, abstractmethod
from typing import Optional

from ..entities.product import Product
from ..services.inventory_ledger import StockReservation


class ProductRepository(ABC):

    @abstractmethod
    async def get(self, product_id: str) -> Optional[Product]:
        """Product with owner id and current stock fields."""
        pass

    @abstractmethod
    async def apply_reservation(self, reservation: StockReservation) -> StockReservation:
        """
        Decrement stock only if enough is still available, atomically.

        Returns:
            The reservation with the actual post-decrement quantities

        Raises:
            InsufficientStockError: With the freshly read available quantity
        """
        pass
