# Overview: Plan quota checks and usage reporting backed by live order/product counts.

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import func

from storefront.extensions import db
from storefront.errors import QuotaExceeded
from storefront.models import Order
from storefront import plans
from storefront.time_utils import day_bounds, month_range, utcnow
from .inventory_service import count_store_products
from .store_service import get_store


@dataclass(frozen=True)
class PlanUsageSnapshot:
    monthly_orders: int
    products: int


def count_monthly_orders(store_id: str, now: datetime | None = None) -> int:
    """Orders of the store created in the calendar month containing now, any status."""
    first, last = month_range(now or utcnow())
    start, end = day_bounds(first, last)
    count = (
        db.session.query(func.count(Order.id))
        .filter(Order.store_id == store_id, Order.created_at >= start, Order.created_at <= end)
        .scalar()
    )
    return int(count or 0)


def usage_snapshot(store_id: str, now: datetime | None = None) -> PlanUsageSnapshot:
    return PlanUsageSnapshot(
        monthly_orders=count_monthly_orders(store_id, now),
        products=count_store_products(store_id),
    )


def check_can_create_order(store_id: str, plan: str | None, now: datetime | None = None) -> int:
    """Raise QuotaExceeded when the monthly order quota is used up; return the current count."""
    current = count_monthly_orders(store_id, now)
    if not plans.can_create_order(plan, current):
        raise QuotaExceeded(plans.normalize_plan(plan), plans.limits_for(plan).monthly_orders)
    return current


def check_can_add_product(store_id: str, plan: str | None) -> int:
    current = count_store_products(store_id)
    if not plans.can_add_product(plan, current):
        raise QuotaExceeded(
            plans.normalize_plan(plan),
            plans.limits_for(plan).max_products,
            resource="products",
        )
    return current


def _remaining(current: int, limit: int) -> int | str:
    if limit == plans.UNLIMITED:
        return "unlimited"
    return max(0, limit - current)


def get_usage_percentage(current: int, limit: int) -> int:
    if limit == plans.UNLIMITED or limit <= 0:
        return 0
    return min(100, round(current * 100 / limit))


def get_usage_info(store_id: str, plan: str | None = None, now: datetime | None = None) -> dict:
    """Limits, usage, remaining allowance and percentage per quota for a store."""
    if plan is None:
        plan = get_store(store_id).plan
    plan = plans.normalize_plan(plan)
    limits = plans.limits_for(plan)
    usage = usage_snapshot(store_id, now)

    return {
        "plan": plan,
        "limits": limits.to_dict(),
        "usage": {
            "monthly_orders": usage.monthly_orders,
            "products": usage.products,
        },
        "remaining": {
            "monthly_orders": _remaining(usage.monthly_orders, limits.monthly_orders),
            "products": _remaining(usage.products, limits.max_products),
        },
        "percentage": {
            "monthly_orders": get_usage_percentage(usage.monthly_orders, limits.monthly_orders),
            "products": get_usage_percentage(usage.products, limits.max_products),
        },
    }
