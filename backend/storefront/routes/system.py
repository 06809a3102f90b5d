# backend/storefront/routes/system.py
"""
System health endpoint.

Reports database reachability and which notification channels are
configured, for deployment debugging.
"""

import time
from flask import Blueprint, current_app
from ..extensions import db
from ..models import Order, Store
from storefront import realtime
from storefront.services import push_service
from storefront.time_utils import to_utc_z, utcnow

system_bp = Blueprint("system", __name__)


def check_database_health() -> dict:
    start_time = time.time()
    try:
        store_count = db.session.query(Store).count()
        order_count = db.session.query(Order).count()

        elapsed_ms = (time.time() - start_time) * 1000
        return {
            "status": "healthy",
            "latency_ms": round(elapsed_ms, 2),
            "details": {
                "stores": store_count,
                "orders": order_count,
            }
        }
    except Exception:
        elapsed_ms = (time.time() - start_time) * 1000
        current_app.logger.exception("Database health check failed")
        return {
            "status": "unhealthy",
            "latency_ms": round(elapsed_ms, 2),
            "error": "Database error"
        }


def check_notification_health() -> dict:
    """Missing push credentials degrade the service; orders still go through."""
    publisher = current_app.extensions.get(realtime.EXTENSION_KEY)
    dispatcher = current_app.extensions.get(push_service.EXTENSION_KEY)

    missing = [
        key for key in ("EXPO_ACCESS_TOKEN", "FCM_SERVER_KEY")
        if not current_app.config.get(key)
    ]
    details = {
        "realtime_publisher": type(publisher).__name__ if publisher else None,
        "push_providers": sorted(dispatcher.providers) if dispatcher else [],
        "inline": bool(current_app.config.get("NOTIFICATIONS_INLINE")),
    }

    if publisher is None or dispatcher is None:
        return {"status": "unhealthy", "error": "Notification channels not installed", "details": details}
    if missing:
        return {"status": "degraded", "warning": f"Missing credentials: {', '.join(missing)}", "details": details}
    return {"status": "healthy", "details": details}


@system_bp.get("/health")
def health():
    """
    Returns:
    - 200: healthy or degraded
    - 503: database unreachable or notification channels missing
    """
    start_time = time.time()

    database_health = check_database_health()
    notification_health = check_notification_health()

    all_checks = [database_health, notification_health]
    if any(check["status"] == "unhealthy" for check in all_checks):
        overall_status, http_status = "unhealthy", 503
    elif any(check["status"] == "degraded" for check in all_checks):
        overall_status, http_status = "degraded", 200
    else:
        overall_status, http_status = "healthy", 200

    total_elapsed_ms = (time.time() - start_time) * 1000

    return {
        "status": overall_status,
        "timestamp": to_utc_z(utcnow()),
        "total_latency_ms": round(total_elapsed_ms, 2),
        "checks": {
            "database": database_health,
            "notifications": notification_health,
        }
    }, http_status
