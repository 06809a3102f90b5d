# Overview: Subscription plan limits and quota predicates (pure, no I/O).

from __future__ import annotations

from dataclasses import asdict, dataclass


PLAN_FREE = "Free"
PLAN_STARTER = "Starter"
PLAN_EXCLUSIVE = "Exclusive"

PLANS = (PLAN_FREE, PLAN_STARTER, PLAN_EXCLUSIVE)

# Sentinel for "no limit"
UNLIMITED = -1


@dataclass(frozen=True)
class PlanLimits:
    monthly_orders: int
    max_products: int
    can_use_online_store: bool
    can_use_whatsapp_integration: bool
    can_export_reports: bool
    priority_support: bool

    def to_dict(self) -> dict:
        return asdict(self)


PLAN_LIMITS: dict[str, PlanLimits] = {
    PLAN_FREE: PlanLimits(
        monthly_orders=10,
        max_products=30,
        can_use_online_store=True,
        can_use_whatsapp_integration=False,
        can_export_reports=False,
        priority_support=False,
    ),
    PLAN_STARTER: PlanLimits(
        monthly_orders=40,
        max_products=200,
        can_use_online_store=True,
        can_use_whatsapp_integration=False,
        can_export_reports=True,
        priority_support=True,
    ),
    PLAN_EXCLUSIVE: PlanLimits(
        monthly_orders=UNLIMITED,
        max_products=UNLIMITED,
        can_use_online_store=True,
        can_use_whatsapp_integration=True,
        can_export_reports=True,
        priority_support=True,
    ),
}


def normalize_plan(plan: str | None) -> str:
    """Unrecognized tags fall back to the most restrictive plan."""
    return plan if plan in PLAN_LIMITS else PLAN_FREE


def limits_for(plan: str | None) -> PlanLimits:
    return PLAN_LIMITS[normalize_plan(plan)]


def is_within_limit(current: int, limit: int) -> bool:
    """
    The limit is the count allowed, so the attempt at current == limit fails.
    """
    if limit == UNLIMITED:
        return True
    return current < limit


def can_create_order(plan: str | None, current_monthly_orders: int) -> bool:
    return is_within_limit(current_monthly_orders, limits_for(plan).monthly_orders)


def can_add_product(plan: str | None, current_products: int) -> bool:
    return is_within_limit(current_products, limits_for(plan).max_products)


def has_feature(plan: str | None, feature: str) -> bool:
    value = getattr(limits_for(plan), feature, None)
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return value != 0
    return False
