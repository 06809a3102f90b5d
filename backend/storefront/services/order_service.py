# Overview: Order lifecycle; create (staff/online), status updates and deletion with stock restitution.

"""
Order lifecycle (authoritative)

Create:
    store lookup -> [plan quota] -> prepare_order_items (resolve, price, stock
    check) -> order number -> insert order + items -> adjust_stock(-qty) per
    item -> commit -> fan-out -> return order

    Insert and every decrement share one transaction. Any failure rolls the
    whole order back, so a rejected order leaves no order row and no stock
    change. Fan-out starts only after the commit.

Channels:
    staff  (create_order):        owner identity, optional plan quota,
                                  status defaults to "approved"
    online (create_online_order): store by subdomain, status forced to
                                  "pending", no quota check, owner push +
                                  order:created realtime event

Update status: ownership checked, then unconditional overwrite.

Delete: ownership checked, each item's quantity is restored to the inventory
named by its product_type; items whose product is gone are skipped with a
warning. The order row is deleted and items cascade.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone

from flask import current_app

from storefront.extensions import db
from storefront.errors import (
    OrderNotFound,
    OwnershipMismatch,
    ProductNotFound,
    ValidationFailure,
)
from storefront.models import Order, OrderItem, Store
from storefront.models.orders import (
    ORDER_STATUS_APPROVED,
    ORDER_STATUS_PENDING,
    PRODUCT_TYPE_CATALOG,
)
from storefront.time_utils import parse_iso_datetime
from . import notification_service
from .inventory_service import ProductRef
from .order_number_service import generate_order_number
from .plan_limits_service import check_can_create_order
from .pricing_service import OrderLine, prepare_order_items
from .stock_service import StockAdjustment, adjust_stock
from .store_service import get_store_by_owner, get_store_by_subdomain


RECENT_SALES_LIMIT = 3


@dataclass
class CreateOrderDTO:
    items: list[OrderLine]
    payment_method: str
    customer_name: str | None = None
    customer_phone: str | None = None
    total_cents: int | None = None
    created_at: str | datetime | None = None
    is_delivery: bool = False
    delivery_street: str | None = None
    delivery_number: str | None = None
    delivery_neighborhood: str | None = None

    @classmethod
    def from_dict(cls, data: dict) -> "CreateOrderDTO":
        """Build from a parsed request body; items accept product_ref or store_product_id."""
        raw_items = data.get("items") or []
        if not isinstance(raw_items, list):
            raise ValidationFailure("items must be a list", {"field": "items"})

        lines = []
        for raw in raw_items:
            if not isinstance(raw, dict):
                raise ValidationFailure("each item must be an object", {"field": "items"})
            lines.append(OrderLine(
                product_ref=raw.get("product_ref") or raw.get("store_product_id"),
                quantity=raw.get("quantity"),
            ))

        return cls(
            items=lines,
            payment_method=data.get("payment_method"),
            customer_name=data.get("customer_name"),
            customer_phone=data.get("customer_phone"),
            total_cents=data.get("total_cents"),
            created_at=data.get("created_at"),
            is_delivery=bool(data.get("is_delivery", False)),
            delivery_street=data.get("delivery_street"),
            delivery_number=data.get("delivery_number"),
            delivery_neighborhood=data.get("delivery_neighborhood"),
        )

    def validate(self) -> None:
        if not self.items:
            raise ValidationFailure("Order must contain at least one item", {"field": "items"})
        for line in self.items:
            if not line.product_ref:
                raise ValidationFailure("product_ref is required", {"field": "items"})
            if isinstance(line.quantity, bool) or not isinstance(line.quantity, int) or line.quantity < 1:
                raise ValidationFailure(
                    "quantity must be a positive integer",
                    {"field": "quantity", "product_ref": line.product_ref},
                )

        if not self.payment_method or not str(self.payment_method).strip():
            raise ValidationFailure("payment_method is required", {"field": "payment_method"})

        if self.total_cents is not None:
            if isinstance(self.total_cents, bool) or not isinstance(self.total_cents, int) or self.total_cents < 0:
                raise ValidationFailure("total_cents must be a non-negative integer", {"field": "total_cents"})

        if self.is_delivery:
            missing = [
                name for name in ("delivery_street", "delivery_number", "delivery_neighborhood")
                if not str(getattr(self, name) or "").strip()
            ]
            if missing:
                raise ValidationFailure(
                    "Delivery address is required for delivery orders",
                    {"missing": missing},
                )

    def resolved_created_at(self, now: datetime | None) -> datetime | None:
        if isinstance(self.created_at, datetime):
            if self.created_at.tzinfo is None:
                return self.created_at
            return self.created_at.astimezone(timezone.utc).replace(tzinfo=None)
        if self.created_at:
            try:
                return parse_iso_datetime(self.created_at)
            except ValueError as exc:
                raise ValidationFailure("created_at must be an ISO-8601 datetime", {"field": "created_at"}) from exc
        return now


def _build_items(prepared) -> list[OrderItem]:
    items = []
    for position, item in enumerate(prepared.items):
        is_catalog = item.product_type == PRODUCT_TYPE_CATALOG
        items.append(OrderItem(
            position=position,
            product_type=item.product_type,
            store_product_id=item.ref.product_id if is_catalog else None,
            store_product_custom_id=None if is_catalog else item.ref.product_id,
            name=item.name,
            image_url=item.image_url,
            unit_price_cents=item.unit_price_cents,
            quantity=item.quantity,
        ))
    return items


def _place_order(
    store: Store,
    dto: CreateOrderDTO,
    status: str,
    now: datetime | None,
) -> tuple[Order, list[StockAdjustment]]:
    prepared = prepare_order_items(store.id, dto.items, dto.total_cents)

    try:
        order = Order(
            order_number=generate_order_number(now),
            store_id=store.id,
            status=status,
            customer_name=dto.customer_name,
            customer_phone=dto.customer_phone,
            payment_method=str(dto.payment_method).strip(),
            total_cents=prepared.total_cents,
            is_delivery=dto.is_delivery,
            delivery_street=dto.delivery_street,
            delivery_number=dto.delivery_number,
            delivery_neighborhood=dto.delivery_neighborhood,
            items=_build_items(prepared),
        )
        created_at = dto.resolved_created_at(now)
        if created_at is not None:
            order.created_at = created_at

        db.session.add(order)
        db.session.flush()

        adjustments = [adjust_stock(item.ref, -item.quantity) for item in prepared.items]

        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    current_app.logger.info(
        "Order %s created for store %s (%d item(s), total_cents=%d, status=%s)",
        order.order_number, store.id, len(prepared.items), order.total_cents, order.status,
    )
    return order, adjustments


def create_order(
    dto: CreateOrderDTO,
    owner_id: str,
    status: str | None = None,
    plan: str | None = None,
    now: datetime | None = None,
) -> Order:
    """
    Staff channel. The monthly order quota is enforced only when plan is given,
    counted over the calendar month containing now.
    """
    store = get_store_by_owner(owner_id)
    dto.validate()

    if plan is not None:
        check_can_create_order(store.id, plan, now)

    order, adjustments = _place_order(store, dto, status or ORDER_STATUS_APPROVED, now)

    notification_service.notify_low_stock(store, adjustments)
    return order


def create_online_order(dto: CreateOrderDTO, subdomain: str, now: datetime | None = None) -> Order:
    """Public storefront channel. Always pending; no plan quota check."""
    store = get_store_by_subdomain(subdomain)
    dto.validate()

    order, adjustments = _place_order(store, dto, ORDER_STATUS_PENDING, now)

    notification_service.notify_order_created(order, store)
    notification_service.notify_low_stock(store, adjustments)
    return order


def _get_owned_order(order_id: str, owner_id: str) -> tuple[Store, Order]:
    store = get_store_by_owner(owner_id)
    order = db.session.query(Order).filter_by(id=order_id).first()
    if not order:
        raise OrderNotFound(order_id)
    if order.store_id != store.id:
        raise OwnershipMismatch(details={"order_id": order_id})
    return store, order


def get_order(order_id: str, owner_id: str) -> Order:
    _, order = _get_owned_order(order_id, owner_id)
    return order


def update_order_status(order_id: str, owner_id: str, status: str) -> Order:
    """Overwrite the status as given. Any string may follow any other."""
    _, order = _get_owned_order(order_id, owner_id)
    if not isinstance(status, str):
        raise ValidationFailure("status must be a string", {"field": "status"})

    previous = order.status
    order.status = status
    db.session.commit()

    current_app.logger.info("Order %s status %s -> %s", order.order_number, previous, order.status)
    notification_service.notify_order_updated(order)
    return order


def delete_order(order_id: str, owner_id: str) -> None:
    _, order = _get_owned_order(order_id, owner_id)
    order_number = order.order_number

    try:
        for item in order.items:
            ref = ProductRef(item.product_type, item.product_id)
            try:
                adjust_stock(ref, item.quantity)
            except ProductNotFound:
                current_app.logger.warning(
                    "Skipping stock restitution for %s on order %s: product no longer exists",
                    ref, order_number,
                )

        db.session.delete(order)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    current_app.logger.info("Order %s deleted; stock restituted", order_number)


def get_recent_sales(owner_id: str, limit: int = RECENT_SALES_LIMIT) -> list[Order]:
    store = get_store_by_owner(owner_id)
    return (
        db.session.query(Order)
        .filter_by(store_id=store.id)
        .order_by(Order.created_at.desc())
        .limit(limit)
        .all()
    )
