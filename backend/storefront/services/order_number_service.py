# Overview: Order number allocation (ORD-<epoch ms>-<0..999>).

"""
Order numbers are human-facing and globally unique.

Format: ORD-<milliseconds since epoch>-<random 0..999>. The orders table holds
a unique index on order_number; candidates already taken are redrawn a
bounded number of times before giving up.
"""

from __future__ import annotations

import random
from datetime import datetime, timezone

from storefront.extensions import db
from storefront.errors import OrderCoreError
from storefront.models import Order
from storefront.time_utils import utcnow


ORDER_NUMBER_PREFIX = "ORD"
MAX_ATTEMPTS = 5

_rng = random.SystemRandom()


def format_order_number(now: datetime, suffix: int) -> str:
    millis = int(now.replace(tzinfo=timezone.utc).timestamp() * 1000)
    return f"{ORDER_NUMBER_PREFIX}-{millis}-{suffix}"


def generate_order_number(now: datetime | None = None) -> str:
    now = now or utcnow()
    for _ in range(MAX_ATTEMPTS):
        candidate = format_order_number(now, _rng.randint(0, 999))
        taken = db.session.query(Order.id).filter_by(order_number=candidate).first()
        if not taken:
            return candidate
    raise OrderCoreError("Could not allocate a unique order number", {"attempts": MAX_ATTEMPTS})
