# Overview: Stock mutator; applies signed quantity deltas to whichever inventory owns a product.

"""
Stock mutation semantics (authoritative)

- adjust_stock reads the current quantity and writes current + delta.
  There is no lock and no compare-and-swap: two concurrent requests against
  the same product can both read N and both write N - k (lost update).
- Results are not clamped at zero. Callers validate sufficiency before a
  negative delta (pricing_service); a negative result is a caller bug.
- A decrement that leaves quantity <= LOW_STOCK_THRESHOLD flags low_stock.
  The flag is consumed by notification_service, not handled here.
- ATOMIC_STOCK_DECREMENT=True switches decrements to a single conditional
  UPDATE (quantity = quantity - k WHERE quantity >= k) and raises
  InsufficientStock when no row matched.

Nothing here commits; the caller owns the transaction.
"""

from __future__ import annotations

from dataclasses import dataclass

from flask import current_app
from sqlalchemy import update

from storefront.extensions import db
from storefront.errors import InsufficientStock, ProductNotFound
from .inventory_service import ProductRef, find_product


LOW_STOCK_THRESHOLD = 5


@dataclass(frozen=True)
class StockAdjustment:
    ref: ProductRef
    store_id: str
    name: str
    previous_quantity: int
    new_quantity: int
    delta: int
    low_stock: bool

    def to_dict(self) -> dict:
        return {
            "product_id": self.ref.product_id,
            "product_type": self.ref.product_type,
            "store_id": self.store_id,
            "name": self.name,
            "previous_quantity": self.previous_quantity,
            "quantity": self.new_quantity,
            "delta": self.delta,
        }


def _low_stock_threshold() -> int:
    return int(current_app.config.get("LOW_STOCK_THRESHOLD", LOW_STOCK_THRESHOLD))


def _is_low_stock(new_quantity: int, delta: int) -> bool:
    return delta < 0 and new_quantity <= _low_stock_threshold()


def _atomic_decrement(ref: ProductRef, delta: int) -> StockAdjustment:
    model = ref.model
    requested = -delta
    stmt = (
        update(model)
        .where(model.id == ref.product_id, model.quantity >= requested)
        .values(quantity=model.quantity + delta)
        .execution_options(synchronize_session=False)
    )
    result = db.session.execute(stmt)

    product = find_product(ref)
    if product is None:
        raise ProductNotFound(ref.product_id)
    db.session.refresh(product)

    if not result.rowcount:
        raise InsufficientStock(product.name, product.quantity, requested, ref.product_id)

    new_quantity = product.quantity
    return StockAdjustment(
        ref=ref,
        store_id=product.store_id,
        name=product.name,
        previous_quantity=new_quantity - delta,
        new_quantity=new_quantity,
        delta=delta,
        low_stock=_is_low_stock(new_quantity, delta),
    )


def adjust_stock(ref: ProductRef, delta: int) -> StockAdjustment:
    """
    Apply a signed delta to the inventory named by ref.

    Negative for sales, positive for restitution. Raises ProductNotFound when
    the inventory row no longer exists.
    """
    if delta < 0 and current_app.config.get("ATOMIC_STOCK_DECREMENT"):
        return _atomic_decrement(ref, delta)

    product = find_product(ref)
    if product is None:
        raise ProductNotFound(ref.product_id)

    previous_quantity = product.quantity
    new_quantity = previous_quantity + delta
    product.quantity = new_quantity
    db.session.flush()

    return StockAdjustment(
        ref=ref,
        store_id=product.store_id,
        name=product.name,
        previous_quantity=previous_quantity,
        new_quantity=new_quantity,
        delta=delta,
        low_stock=_is_low_stock(new_quantity, delta),
    )
