"""
Domain exceptions.

Every error raised by the order lifecycle derives from OrderError and
carries a user-displayable message plus machine-readable details.

CRITICAL: This file must contain ZERO imports from:
- sqlalchemy
- pydantic
- fastapi
"""
from typing import Any, Dict, Optional


class OrderError(Exception):
    """Base class for order lifecycle errors."""

    code = "order_error"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        return {"detail": self.message, "code": self.code, **self.details}


# =============================================================================
# VALIDATION (400)
# =============================================================================

class ValidationError(OrderError, ValueError):
    """Missing or malformed input. Raised before any mutation."""

    code = "validation_error"


class CashOnDeliveryUnavailableError(ValidationError):
    code = "cod_unavailable"

    def __init__(self):
        super().__init__("Cash on Delivery is not available for this seller")


# =============================================================================
# AUTHORIZATION (403)
# =============================================================================

class AuthorizationError(OrderError):
    """Actor is not allowed to perform the operation on this order."""

    code = "not_authorized"


class SelfPurchaseError(AuthorizationError):
    code = "self_purchase"

    def __init__(self):
        super().__init__("Cannot buy your own product")


# =============================================================================
# NOT FOUND (404)
# =============================================================================

class NotFoundError(OrderError):
    code = "not_found"


class OrderNotFoundError(NotFoundError):
    code = "order_not_found"

    def __init__(self, order_id: str):
        super().__init__("Order not found", {"order_id": order_id})


class ProductNotFoundError(NotFoundError):
    code = "product_not_found"

    def __init__(self, product_id: str):
        super().__init__("Product not found", {"product_id": product_id})


# =============================================================================
# CONFLICTS (409)
# =============================================================================

class ConflictError(OrderError):
    """Request is well formed but conflicts with the current state."""

    code = "conflict"


class StockError(ConflictError):
    """Base for inventory rejections."""

    code = "no_stock"

    def __init__(self, message: str, available_quantity: Optional[int] = None):
        details = {}
        if available_quantity is not None:
            details["available_quantity"] = available_quantity
        super().__init__(message, details)
        self.available_quantity = available_quantity


class SizeRequiredError(StockError):
    code = "size_required"

    def __init__(self, available_sizes=None):
        super().__init__("Please select a size")
        if available_sizes:
            self.details["available_sizes"] = list(available_sizes)


class SizeUnavailableError(StockError):
    code = "size_unavailable"

    def __init__(self, size: str):
        super().__init__(f'Size "{size}" is not available', available_quantity=0)
        self.details["size"] = size


class SizeOutOfStockError(StockError):
    code = "size_out_of_stock"

    def __init__(self, size: str):
        super().__init__(f'Size "{size}" is out of stock', available_quantity=0)
        self.details["size"] = size


class InsufficientStockError(StockError):
    code = "insufficient_stock"

    def __init__(self, available_quantity: int, size: Optional[str] = None):
        if size:
            message = f'Only {available_quantity} item(s) available in size "{size}"'
        else:
            message = f"Only {available_quantity} item(s) available in stock"
        super().__init__(message, available_quantity=available_quantity)
        if size:
            self.details["size"] = size


class ProductOutOfStockError(StockError):
    code = "out_of_stock"

    def __init__(self):
        super().__init__("This product is out of stock", available_quantity=0)


class InvalidTransitionError(ConflictError):
    code = "invalid_transition"

    def __init__(self, current: str, requested: str):
        super().__init__(
            f"Cannot transition from {current} to {requested}",
            {"current_status": current, "requested_status": requested},
        )
        self.current = current
        self.requested = requested


class CancellationNotAllowedError(ConflictError):
    code = "cancellation_not_allowed"

    def __init__(self, status: str):
        super().__init__(
            "Order cannot be cancelled at this stage. Please request a refund instead.",
            {"status": status},
        )


class CancellationWindowExpiredError(ConflictError):
    code = "cancellation_window_expired"

    def __init__(self, window_hours: int):
        super().__init__(
            f"Order cannot be cancelled after {window_hours} hours of placement. "
            "Please request a refund instead.",
            {"window_hours": window_hours},
        )


class RefundNotAllowedError(ConflictError):
    code = "refund_not_allowed"

    def __init__(self, status: str):
        super().__init__("Can only request refund for delivered orders", {"status": status})


class DeliveryConfirmationNotAllowedError(ConflictError):
    code = "delivery_confirmation_not_allowed"

    def __init__(self, status: str):
        super().__init__(
            "Can only confirm delivery for orders marked as delivered or out for delivery",
            {"status": status},
        )


class ConcurrentUpdateError(ConflictError):
    """The order changed underneath this request; nothing was written."""

    code = "concurrent_update"

    def __init__(self, order_id: str):
        super().__init__(
            "Order was modified by another request, please retry",
            {"order_id": order_id},
        )


# =============================================================================
# INFRASTRUCTURE (5xx)
# =============================================================================

class InfrastructureError(OrderError):
    """Fatal to the current operation. Details are logged, not returned."""

    code = "infrastructure_error"


class SequenceUnavailableError(InfrastructureError):
    code = "sequence_unavailable"

    def __init__(self, date_key: str):
        super().__init__("Order numbers cannot be issued right now", {"date_key": date_key})


class PersistenceError(InfrastructureError):
    code = "persistence_error"
