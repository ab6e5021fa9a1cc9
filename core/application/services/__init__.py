"""Application services."""
from .delivery_service import AutoConfirmResult, DeliveryService
from .fan_out_notifier import FanOutNotifier
from .order_service import OrderApplicationService, parse_status_filter

__all__ = [
    "AutoConfirmResult",
    "DeliveryService",
    "FanOutNotifier",
    "OrderApplicationService",
    "parse_status_filter",
]
