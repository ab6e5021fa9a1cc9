"""Application layer - services, interfaces, and DTOs."""

from .dtos import CreateOrderRequest, OrderDTO, OrderItemDTO, OrderListDTO
from .interfaces import IPushNotificationService
from .services import DeliveryService, FanOutNotifier, OrderApplicationService

__all__ = [
    # DTOs
    "CreateOrderRequest",
    "OrderDTO",
    "OrderItemDTO",
    "OrderListDTO",
    # Services
    "OrderApplicationService",
    "DeliveryService",
    "FanOutNotifier",
    # Interfaces
    "IPushNotificationService",
]
