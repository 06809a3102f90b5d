# backend/storefront/config.py
from __future__ import annotations
import os


def _env_flag(name: str, default: bool = False) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///storefront.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Inventory
    LOW_STOCK_THRESHOLD = int(os.environ.get("LOW_STOCK_THRESHOLD", "5"))
    # Opt-in conditional UPDATE for stock decrements (off = read-then-write)
    ATOMIC_STOCK_DECREMENT = _env_flag("ATOMIC_STOCK_DECREMENT")

    # Notification fan-out
    NOTIFICATIONS_INLINE = _env_flag("NOTIFICATIONS_INLINE")
    EXPO_ACCESS_TOKEN = os.environ.get("EXPO_ACCESS_TOKEN", "")
    EXPO_PUSH_URL = os.environ.get("EXPO_PUSH_URL", "https://exp.host/--/api/v2/push/send")
    FCM_SERVER_KEY = os.environ.get("FCM_SERVER_KEY", "")
    FCM_PUSH_URL = os.environ.get("FCM_PUSH_URL", "https://fcm.googleapis.com/fcm/send")
    PUSH_TIMEOUT_SECONDS = float(os.environ.get("PUSH_TIMEOUT_SECONDS", "10"))

    CURRENCY_SYMBOL = os.environ.get("CURRENCY_SYMBOL", "R$")
