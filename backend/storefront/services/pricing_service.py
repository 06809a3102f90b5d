# Overview: Order pricing and stock validation; turns requested lines into priced, resolved items.

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from storefront.errors import InsufficientStock, ValidationFailure
from .inventory_service import ProductRef
from .product_resolver import ResolvedProduct, resolve_product


@dataclass(frozen=True)
class OrderLine:
    """A requested line: bare product reference plus quantity."""
    product_ref: str
    quantity: int


@dataclass(frozen=True)
class PreparedItem:
    ref: ProductRef
    name: str
    image_url: str | None
    unit_price_cents: int
    quantity: int

    @property
    def product_type(self) -> str:
        return self.ref.product_type

    @property
    def line_total_cents(self) -> int:
        return self.unit_price_cents * self.quantity


@dataclass(frozen=True)
class PreparedOrder:
    items: list[PreparedItem]
    total_cents: int
    computed_total_cents: int


def _validate_line(line: OrderLine) -> None:
    if not line.product_ref:
        raise ValidationFailure("product_ref is required", {"field": "product_ref"})
    if isinstance(line.quantity, bool) or not isinstance(line.quantity, int) or line.quantity < 1:
        raise ValidationFailure(
            "quantity must be a positive integer",
            {"field": "quantity", "product_ref": line.product_ref},
        )


def prepare_order_items(
    store_id: str,
    lines: Iterable[OrderLine],
    total_cents: int | None = None,
) -> PreparedOrder:
    """
    Resolve, price and stock-check every requested line.

    Fails fast: the first unresolved reference raises ProductNotFound, the
    first shortfall raises InsufficientStock. Repeated references are summed
    before the stock check so an order cannot oversell by splitting a product
    over several lines. Nothing is written.

    A non-zero total_cents replaces the computed total on the result.
    """
    lines = list(lines)
    if not lines:
        raise ValidationFailure("Order must contain at least one item", {"field": "items"})

    resolved: dict[str, ResolvedProduct] = {}
    requested: dict[str, int] = {}
    items: list[PreparedItem] = []

    for line in lines:
        _validate_line(line)

        product = resolved.get(line.product_ref)
        if product is None:
            product = resolve_product(store_id, line.product_ref)
            resolved[line.product_ref] = product

        wanted = requested.get(line.product_ref, 0) + line.quantity
        if product.quantity < wanted:
            raise InsufficientStock(product.name, product.quantity, wanted, line.product_ref)
        requested[line.product_ref] = wanted

        items.append(PreparedItem(
            ref=product.ref,
            name=product.name,
            image_url=product.image_url,
            unit_price_cents=product.price_cents,
            quantity=line.quantity,
        ))

    computed = sum(item.line_total_cents for item in items)
    return PreparedOrder(
        items=items,
        total_cents=total_cents or computed,
        computed_total_cents=computed,
    )
