"""Repository interfaces for Order aggregate."""

from abc import ABC, abstractmethod
from datetime import datetime
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Tuple

from ..entities.order import Order
from ..enums import OrderStatus, PaymentStatus


class OrderRepository(ABC):
    """Abstract repository for Order aggregate persistence."""

    @abstractmethod
    async def add(self, order: Order) -> None:
        """Persist a newly placed order.

        Args:
            order: Order aggregate in `pending`
        """
        pass

    @abstractmethod
    async def get(self, order_id: str) -> Optional[Order]:
        """Retrieve order by id, reading the latest persisted state.

        Args:
            order_id: Opaque order id

        Returns:
            Order if found, None otherwise
        """
        pass

    @abstractmethod
    async def update(self, order: Order) -> None:
        """Write back a mutated order.

        Raises:
            ConcurrentUpdateError: If the stored version no longer matches
        """
        pass

    @abstractmethod
    async def list_for_buyer(
        self,
        buyer_id: str,
        statuses: Optional[Iterable[OrderStatus]] = None,
        offset: int = 0,
        limit: int = 20,
    ) -> Tuple[List[Order], int]:
        """Buyer's orders, newest first, with the total match count."""
        pass

    @abstractmethod
    async def list_for_seller(
        self,
        seller_id: str,
        statuses: Optional[Iterable[OrderStatus]] = None,
        offset: int = 0,
        limit: int = 20,
    ) -> Tuple[List[Order], int]:
        """Seller's orders, newest first, with the total match count."""
        pass

    @abstractmethod
    async def count_by_status(self, seller_id: str) -> Dict[OrderStatus, int]:
        """Per-status order counts for a seller."""
        pass

    @abstractmethod
    async def revenue(
        self,
        seller_id: str,
        statuses: Iterable[OrderStatus],
        payment_status: Optional[PaymentStatus] = None,
    ) -> Tuple[Decimal, int]:
        """Sum of order totals and number of orders matching the filter."""
        pass

    @abstractmethod
    async def find_stale_ids(self, status: OrderStatus, updated_before: datetime) -> List[str]:
        """Ids of orders in `status` whose last update is at or before the cutoff."""
        pass

    @abstractmethod
    async def link_conversation(self, order_id: str, conversation_id: str) -> None:
        """Attach the buyer/seller conversation without touching status or version."""
        pass
