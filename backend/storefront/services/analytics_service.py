# Overview: Read-side sales analytics (dashboard totals, paginated listing, period metrics, monthly brand breakdown).

"""
Sales analytics (read-only)

Revenue counts only orders whose status is an "approved" variant, matched
case-insensitively. Order counts include every status.

Estimated profit is a fixed 30% of revenue, rounded half up in integer cents.
It is a placeholder, not a margin calculation.

Date ranges are whole UTC days and inclusive at both ends:
    from 00:00:00 .. to 23:59:59.999999
"""

from __future__ import annotations

import calendar
import math
from collections import OrderedDict
from datetime import date, datetime
from typing import Iterable

from sqlalchemy import func

from storefront.extensions import db
from storefront.errors import ValidationFailure
from storefront.models import Order, OrderItem, StoreProduct, StoreProductCustom
from storefront.models.orders import ORDER_STATUS_APPROVED, PRODUCT_TYPE_CATALOG
from storefront.time_utils import (
    date_range_bounds,
    day_bounds,
    month_range,
    parse_iso_date,
    previous_period,
    utcnow,
)
from .store_service import get_store, get_store_by_owner


PROFIT_RATE_PERCENT = 30
UNKNOWN_BRAND = "unknown"
MAX_PAGE_SIZE = 100


def estimated_profit_cents(revenue_cents: int) -> int:
    return (revenue_cents * PROFIT_RATE_PERCENT + 50) // 100


def is_approved(status: str | None) -> bool:
    return (status or "").lower() == ORDER_STATUS_APPROVED


def summarize(orders: Iterable[Order]) -> dict:
    orders = list(orders)
    revenue = sum(o.total_cents for o in orders if is_approved(o.status))
    return {
        "total_orders": len(orders),
        "total_revenue_cents": revenue,
        "estimated_profit_cents": estimated_profit_cents(revenue),
    }


def _orders_query(store_id: str, bounds: tuple[datetime, datetime] | None = None):
    query = db.session.query(Order).filter(Order.store_id == store_id)
    if bounds is not None:
        start, end = bounds
        query = query.filter(Order.created_at >= start, Order.created_at <= end)
    return query


def _list_orders(store_id: str, bounds: tuple[datetime, datetime] | None) -> list[Order]:
    return (
        _orders_query(store_id, bounds)
        .order_by(Order.created_at.desc(), Order.order_number.desc())
        .all()
    )


def get_dashboard(owner_id: str, date_from: str | date | None = None, date_to: str | date | None = None) -> dict:
    store = get_store_by_owner(owner_id)
    orders = _list_orders(store.id, date_range_bounds(date_from, date_to))

    data = summarize(orders)
    data["orders"] = [o.to_dict() for o in orders]
    return data


def get_dashboard_paginated(
    owner_id: str,
    page: int = 1,
    limit: int = 10,
    date_from: str | date | None = None,
    date_to: str | date | None = None,
    search: str | None = None,
    status: str | None = None,
) -> dict:
    """
    One page of orders (newest first) with totals computed over that page only.

    search matches customer name case-insensitively; status is an exact match.
    """
    if page < 1:
        raise ValidationFailure("page must be >= 1", {"field": "page"})
    if limit < 1 or limit > MAX_PAGE_SIZE:
        raise ValidationFailure(f"limit must be between 1 and {MAX_PAGE_SIZE}", {"field": "limit"})

    store = get_store_by_owner(owner_id)
    query = _orders_query(store.id, date_range_bounds(date_from, date_to))
    if status:
        query = query.filter(Order.status == status)
    if search and search.strip():
        query = query.filter(Order.customer_name.ilike(f"%{search.strip()}%"))

    total = query.order_by(None).count()
    orders = (
        query.order_by(Order.created_at.desc(), Order.order_number.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )

    data = summarize(orders)
    data["orders"] = [o.to_dict() for o in orders]
    data["pagination"] = {
        "page": page,
        "limit": limit,
        "total": total,
        "total_pages": math.ceil(total / limit),
    }
    return data


def get_metrics(
    owner_id: str,
    date_from: str | date | None = None,
    date_to: str | date | None = None,
    now: datetime | None = None,
) -> dict:
    """
    Current period totals compared with the preceding period of equal length.

    Without both bounds the current period is the calendar month containing
    now. percentage_change holds absolute differences (current - previous).
    """
    store = get_store_by_owner(owner_id)

    start = parse_iso_date(date_from)
    end = parse_iso_date(date_to)
    if start is None or end is None:
        start, end = month_range(now or utcnow())
    if end < start:
        raise ValidationFailure("date_to must not be before date_from", {"field": "date_to"})

    prev_start, prev_end = previous_period(start, end)

    current = summarize(_orders_query(store.id, day_bounds(start, end)).all())
    previous = summarize(_orders_query(store.id, day_bounds(prev_start, prev_end)).all())

    return {
        **current,
        "percentage_change": {
            "orders": current["total_orders"] - previous["total_orders"],
            "revenue": current["total_revenue_cents"] - previous["total_revenue_cents"],
            "profit": current["estimated_profit_cents"] - previous["estimated_profit_cents"],
        },
        "current_period": {
            "from": start.isoformat(),
            "to": end.isoformat(),
        },
        "previous_period": {
            "from": prev_start.isoformat(),
            "to": prev_end.isoformat(),
            **previous,
        },
    }


def _brands_by_item(items: list[OrderItem]) -> dict[str, str]:
    """item id -> brand of the inventory record it was sold from."""
    catalog_ids = {i.store_product_id for i in items if i.product_type == PRODUCT_TYPE_CATALOG}
    custom_ids = {i.store_product_custom_id for i in items if i.product_type != PRODUCT_TYPE_CATALOG}

    catalog_brands = {}
    if catalog_ids:
        rows = db.session.query(StoreProduct.id, StoreProduct.brand, StoreProduct.company).filter(
            StoreProduct.id.in_(catalog_ids)
        )
        catalog_brands = {pid: brand or company for pid, brand, company in rows}

    custom_brands = {}
    if custom_ids:
        rows = db.session.query(StoreProductCustom.id, StoreProductCustom.brand, StoreProductCustom.company).filter(
            StoreProductCustom.id.in_(custom_ids)
        )
        custom_brands = {pid: brand or company for pid, brand, company in rows}

    brands = {}
    for item in items:
        if item.product_type == PRODUCT_TYPE_CATALOG:
            brand = catalog_brands.get(item.store_product_id)
        else:
            brand = custom_brands.get(item.store_product_custom_id)
        brands[item.id] = brand or UNKNOWN_BRAND
    return brands


def get_monthly_summary(store_id: str, year: int) -> list[dict]:
    """
    Approved revenue per month of year with a per-brand split, in major units.

    Always 12 entries, January first. Brand values sum line totals
    (unit price x quantity); the month value sums order totals.
    """
    get_store(store_id)

    start, _ = day_bounds(date(year, 1, 1), date(year, 1, 1))
    _, end = day_bounds(date(year, 12, 31), date(year, 12, 31))

    orders = (
        _orders_query(store_id, (start, end))
        .filter(func.lower(Order.status) == ORDER_STATUS_APPROVED)
        .all()
    )
    items = [item for o in orders for item in o.items]
    brands = _brands_by_item(items)

    month_totals = [0] * 12
    month_brands: list[OrderedDict[str, int]] = [OrderedDict() for _ in range(12)]
    for order in orders:
        idx = order.created_at.month - 1
        month_totals[idx] += order.total_cents
        for item in order.items:
            brand = brands[item.id]
            month_brands[idx][brand] = month_brands[idx].get(brand, 0) + item.line_total_cents

    return [
        {
            "label": calendar.month_abbr[m + 1],
            "full_label": calendar.month_name[m + 1],
            "value": month_totals[m] / 100,
            "brands": [{"name": name, "value": cents / 100} for name, cents in month_brands[m].items()],
        }
        for m in range(12)
    ]
