"""
Orders endpoints.

Buyer checkout and tracking, seller fulfilment, delivery confirmation.
Domain errors are mapped to HTTP responses by the handlers in api.main.
"""
from fastapi import APIRouter, Depends, Query, status
from typing import Optional
import logging

from api.dependencies import get_current_actor, get_delivery_service, get_order_service
from core.application.dtos import (
    AutoConfirmResultDTO,
    ConfirmDeliveryRequest,
    CreateOrderRequest,
    OrderActionResponse,
    OrderDTO,
    OrderListDTO,
    ReasonRequest,
    SellerDashboardDTO,
    SellerNotesRequest,
    SellerOrderListDTO,
    UpdateOrderStatusRequest,
    VerifyPaymentRequest,
)
from core.application.services import DeliveryService, OrderApplicationService
from core.domain.value_objects import Actor


logger = logging.getLogger(__name__)
router = APIRouter()


# =============================================================================
# BUYER
# =============================================================================

@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    response_model=OrderActionResponse,
    summary="Place an order",
)
async def create_order(
    request: CreateOrderRequest,
    actor: Actor = Depends(get_current_actor),
    service: OrderApplicationService = Depends(get_order_service),
):
    """
    Place an order for one product.

    Stock is reserved and the order number issued in the same transaction.
    """
    order = await service.create_order(actor, request)
    return OrderActionResponse(message="Order placed successfully", order=OrderDTO.from_domain(order))


@router.get(
    "",
    response_model=OrderListDTO,
    summary="List my orders",
)
async def list_my_orders(
    status_filter: Optional[str] = Query(
        default=None, alias="status", description="'all' or comma-separated statuses"
    ),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
    actor: Actor = Depends(get_current_actor),
    service: OrderApplicationService = Depends(get_order_service),
):
    return await service.list_buyer_orders(actor, status_filter, page, limit)


# =============================================================================
# SELLER
# =============================================================================

@router.get(
    "/seller/orders",
    response_model=SellerOrderListDTO,
    summary="List orders received by the seller",
)
async def list_seller_orders(
    status_filter: Optional[str] = Query(
        default=None, alias="status", description="'all' or comma-separated statuses"
    ),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
    actor: Actor = Depends(get_current_actor),
    service: OrderApplicationService = Depends(get_order_service),
):
    return await service.list_seller_orders(actor, status_filter, page, limit)


@router.get(
    "/seller/stats",
    response_model=SellerDashboardDTO,
    summary="Seller dashboard statistics",
)
async def seller_stats(
    actor: Actor = Depends(get_current_actor),
    service: OrderApplicationService = Depends(get_order_service),
):
    return await service.seller_stats(actor)


# =============================================================================
# MAINTENANCE
# =============================================================================

@router.post(
    "/auto-confirm-deliveries",
    response_model=AutoConfirmResultDTO,
    summary="Auto-confirm stale deliveries",
    description="Deliver orders left out for delivery past the confirmation window",
)
async def auto_confirm_deliveries(
    actor: Actor = Depends(get_current_actor),
    service: DeliveryService = Depends(get_delivery_service),
):
    logger.info(f"Auto-confirmation sweep requested by {actor.id}")
    result = await service.auto_confirm_deliveries()
    return AutoConfirmResultDTO(
        message=f"Auto-confirmed {result.confirmed} orders",
        count=result.confirmed,
        failed=result.failed,
        order_numbers=result.order_numbers,
    )


# =============================================================================
# SINGLE ORDER
# =============================================================================

@router.get(
    "/{order_id}",
    response_model=OrderDTO,
    summary="Get order by ID",
)
async def get_order(
    order_id: str,
    actor: Actor = Depends(get_current_actor),
    service: OrderApplicationService = Depends(get_order_service),
):
    order = await service.get_order(actor, order_id)
    return OrderDTO.from_domain(order)


@router.post("/{order_id}/cancel", response_model=OrderActionResponse, summary="Cancel an order")
async def cancel_order(
    order_id: str,
    request: Optional[ReasonRequest] = None,
    actor: Actor = Depends(get_current_actor),
    service: OrderApplicationService = Depends(get_order_service),
):
    order = await service.cancel_order(actor, order_id, request.reason if request else None)
    return OrderActionResponse(message="Order cancelled successfully", order=OrderDTO.from_domain(order))


@router.post("/{order_id}/refund", response_model=OrderActionResponse, summary="Request a refund")
async def request_refund(
    order_id: str,
    request: Optional[ReasonRequest] = None,
    actor: Actor = Depends(get_current_actor),
    service: OrderApplicationService = Depends(get_order_service),
):
    order = await service.request_refund(actor, order_id, request.reason if request else None)
    return OrderActionResponse(message="Refund requested successfully", order=OrderDTO.from_domain(order))


@router.post(
    "/{order_id}/confirm-delivery",
    response_model=OrderActionResponse,
    summary="Confirm or dispute delivery",
)
async def confirm_delivery(
    order_id: str,
    request: ConfirmDeliveryRequest,
    actor: Actor = Depends(get_current_actor),
    service: DeliveryService = Depends(get_delivery_service),
):
    order = await service.confirm_delivery(actor, order_id, request.confirmed)
    message = (
        "Delivery confirmed successfully"
        if request.confirmed
        else "Delivery issue reported. The seller has been notified."
    )
    return OrderActionResponse(message=message, order=OrderDTO.from_domain(order))


@router.post("/{order_id}/verify-payment", response_model=OrderActionResponse, summary="Verify payment")
async def verify_payment(
    order_id: str,
    request: Optional[VerifyPaymentRequest] = None,
    actor: Actor = Depends(get_current_actor),
    service: OrderApplicationService = Depends(get_order_service),
):
    order = await service.verify_payment(actor, order_id, request.transaction_id if request else None)
    return OrderActionResponse(message="Payment verified successfully", order=OrderDTO.from_domain(order))


@router.patch("/{order_id}/status", response_model=OrderActionResponse, summary="Update order status")
async def update_order_status(
    order_id: str,
    request: UpdateOrderStatusRequest,
    actor: Actor = Depends(get_current_actor),
    service: OrderApplicationService = Depends(get_order_service),
):
    order = await service.update_status(actor, order_id, request)
    return OrderActionResponse(
        message=f"Order status updated to {order.status.value}",
        order=OrderDTO.from_domain(order),
    )


@router.patch("/{order_id}/notes", response_model=OrderActionResponse, summary="Update seller notes")
async def update_seller_notes(
    order_id: str,
    request: SellerNotesRequest,
    actor: Actor = Depends(get_current_actor),
    service: OrderApplicationService = Depends(get_order_service),
):
    order = await service.add_seller_notes(actor, order_id, request.seller_notes)
    return OrderActionResponse(message="Notes updated successfully", order=OrderDTO.from_domain(order))
