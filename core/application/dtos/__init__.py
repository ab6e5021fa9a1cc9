"""Application DTOs."""

from .order_dto import (
    AutoConfirmResultDTO,
    ConfirmDeliveryRequest,
    CreateOrderRequest,
    OrderActionResponse,
    OrderDTO,
    OrderItemDTO,
    OrderListDTO,
    ReasonRequest,
    SellerDashboardDTO,
    SellerNotesRequest,
    SellerOrderListDTO,
    SellerOrderStatsDTO,
    ShippingAddressDTO,
    StatusHistoryDTO,
    UpdateOrderStatusRequest,
    VerifyPaymentRequest,
)

__all__ = [
    "AutoConfirmResultDTO",
    "ConfirmDeliveryRequest",
    "CreateOrderRequest",
    "OrderActionResponse",
    "OrderDTO",
    "OrderItemDTO",
    "OrderListDTO",
    "ReasonRequest",
    "SellerDashboardDTO",
    "SellerNotesRequest",
    "SellerOrderListDTO",
    "SellerOrderStatsDTO",
    "ShippingAddressDTO",
    "StatusHistoryDTO",
    "UpdateOrderStatusRequest",
    "VerifyPaymentRequest",
]
