# Overview: Best-effort notification fan-out (realtime events + push) after committed order mutations.

"""
Fan-out contract

- Called only after the order write has been committed.
- Payloads are snapshotted to plain dicts in the caller's context; delivery
  runs on a background thread inside its own application context, so the
  caller never waits on a publisher or push provider.
- NOTIFICATIONS_INLINE=True delivers on the calling thread (tests, CLI).
- Every exception raised while building or delivering a notification is
  logged with current_app.logger.exception and swallowed. Nothing here may
  abort or fail an order operation.

Rooms:
    order:created      -> user:<owner_id>   (online channel)
    order:updated      -> store:<store_id>
    product:low-stock  -> store:<store_id>
"""

from __future__ import annotations

import threading
from typing import Callable, Iterable

from flask import current_app

from storefront import realtime
from storefront.models import Order, Store
from storefront.time_utils import to_utc_z
from . import push_service
from .push_service import PushMessage, format_cents
from .stock_service import StockAdjustment


def _run_guarded(app, label: str, fn: Callable, *args) -> None:
    try:
        fn(*args)
    except Exception:
        app.logger.exception("Notification fan-out failed: %s", label)


def _dispatch(label: str, fn: Callable, *args) -> threading.Thread | None:
    """Run fn off the request path; returns the worker thread when one was started."""
    app = current_app._get_current_object()

    if app.config.get("NOTIFICATIONS_INLINE"):
        _run_guarded(app, label, fn, *args)
        return None

    def _worker():
        with app.app_context():
            _run_guarded(app, label, fn, *args)

    thread = threading.Thread(target=_worker, name=f"fanout-{label}", daemon=True)
    thread.start()
    return thread


def order_summary(order: Order) -> dict:
    return {
        "id": order.id,
        "order_number": order.order_number,
        "store_id": order.store_id,
        "status": order.status,
        "customer_name": order.customer_name,
        "total_cents": order.total_cents,
        "payment_method": order.payment_method,
        "is_delivery": order.is_delivery,
        "item_count": sum(item.quantity for item in order.items),
        "created_at": to_utc_z(order.created_at),
    }


# --- Delivery (runs inside the dispatched context) --------------------------

def _send_push(owner_id: str, store_id: str, message: PushMessage) -> None:
    tokens = push_service.tokens_for_owner(owner_id, store_id)
    if not any(tokens.values()):
        return
    sent = push_service.get_dispatcher().send_to_grouped_tokens(tokens, message)
    if any(sent.values()):
        push_service.mark_tokens_used(t for group in tokens.values() for t in group)


def _deliver_order_created(summary: dict, owner_id: str, store_id: str) -> None:
    realtime.get_publisher().publish(
        realtime.user_room(owner_id), realtime.EVENT_ORDER_CREATED, summary,
    )

    symbol = current_app.config.get("CURRENCY_SYMBOL", "R$")
    customer = summary.get("customer_name") or "Online customer"
    _send_push(owner_id, store_id, PushMessage(
        title="New order received",
        body=f"{customer} placed order {summary['order_number']} - {format_cents(summary['total_cents'], symbol)}",
        data={"type": "order:created", "order_id": summary["id"]},
    ))


def _deliver_low_stock(items: list[dict], owner_id: str, store_id: str) -> None:
    publisher = realtime.get_publisher()
    for item in items:
        publisher.publish(realtime.store_room(store_id), realtime.EVENT_LOW_STOCK, item)

    for item in items:
        _send_push(owner_id, store_id, PushMessage(
            title="Low stock",
            body=f"{item['name']} has only {item['quantity']} unit(s) left",
            data={"type": "product:low-stock", "product_id": item["product_id"]},
        ))


def _deliver_order_updated(summary: dict, store_id: str) -> None:
    realtime.get_publisher().publish(
        realtime.store_room(store_id), realtime.EVENT_ORDER_UPDATED, summary,
    )


# --- Entry points (called by order_service after commit) --------------------

def notify_order_created(order: Order, store: Store) -> threading.Thread | None:
    try:
        summary = order_summary(order)
        owner_id, store_id = store.owner_user_id, store.id
    except Exception:
        current_app.logger.exception("Could not snapshot order for fan-out")
        return None
    return _dispatch("order-created", _deliver_order_created, summary, owner_id, store_id)


def notify_low_stock(store: Store, adjustments: Iterable[StockAdjustment]) -> threading.Thread | None:
    try:
        items = [adj.to_dict() for adj in adjustments if adj.low_stock]
        if not items:
            return None
        owner_id, store_id = store.owner_user_id, store.id
    except Exception:
        current_app.logger.exception("Could not snapshot low-stock items for fan-out")
        return None
    return _dispatch("low-stock", _deliver_low_stock, items, owner_id, store_id)


def notify_order_updated(order: Order) -> threading.Thread | None:
    try:
        summary = order_summary(order)
    except Exception:
        current_app.logger.exception("Could not snapshot order for fan-out")
        return None
    return _dispatch("order-updated", _deliver_order_updated, summary, summary["store_id"])
