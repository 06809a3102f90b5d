# Overview: Error kinds raised by the order core; each carries a stable discriminant.

"""
Order core error kinds.

Every error raised by the order core derives from OrderCoreError and carries:
- kind: stable discriminant the HTTP layer maps to a response class
- status_code: suggested HTTP status (forbidden / not found / client error)
- details: structured context for display (quantities, plan limits, ids)

Errors are raised synchronously by the component that detects them and are
never retried inside the core.
"""

from __future__ import annotations


class OrderCoreError(Exception):
    """Base class for all order core errors."""
    kind = "OrderCoreError"
    status_code = 400

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict:
        return {
            "kind": self.kind,
            "error": self.message,
            "details": self.details,
        }


class StoreNotFound(OrderCoreError):
    kind = "StoreNotFound"
    status_code = 404

    def __init__(self, message: str = "Store not found", details: dict | None = None):
        super().__init__(message, details)


class ProductNotFound(OrderCoreError):
    kind = "ProductNotFound"
    status_code = 404

    def __init__(self, product_ref: str):
        super().__init__(f"Product not found: {product_ref}", {"product_ref": product_ref})
        self.product_ref = product_ref


class InsufficientStock(OrderCoreError):
    kind = "InsufficientStock"
    status_code = 409

    def __init__(self, product_name: str, available: int, requested: int, product_ref: str | None = None):
        super().__init__(
            f"Insufficient stock for {product_name}. Available: {available}, Requested: {requested}",
            {
                "product_ref": product_ref,
                "product_name": product_name,
                "available": available,
                "requested": requested,
            },
        )
        self.product_name = product_name
        self.available = available
        self.requested = requested


class OrderNotFound(OrderCoreError):
    kind = "OrderNotFound"
    status_code = 404

    def __init__(self, order_id: str):
        super().__init__("Order not found", {"order_id": order_id})


class OwnershipMismatch(OrderCoreError):
    """Resource belongs to a different store than the caller's."""
    kind = "OwnershipMismatch"
    status_code = 403

    def __init__(self, message: str = "Order does not belong to your store", details: dict | None = None):
        super().__init__(message, details)


class QuotaExceeded(OrderCoreError):
    kind = "QuotaExceeded"
    status_code = 403

    def __init__(self, plan: str, limit: int, resource: str = "monthly orders"):
        super().__init__(
            f"You reached the limit of {limit} {resource} on the {plan} plan. "
            f"Upgrade to continue.",
            {"plan": plan, "limit": limit, "resource": resource},
        )
        self.plan = plan
        self.limit = limit


class ValidationFailure(OrderCoreError):
    kind = "ValidationFailure"
    status_code = 400


class ProductAlreadyAdded(OrderCoreError):
    kind = "ProductAlreadyAdded"
    status_code = 409

    def __init__(self, catalog_id: int):
        super().__init__("Product already added to this store", {"catalog_id": catalog_id})
