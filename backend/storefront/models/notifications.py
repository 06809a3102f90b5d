from __future__ import annotations

from ..extensions import db
from storefront.time_utils import to_utc_z, utcnow
from .common import new_id


PUSH_PROVIDER_EXPO = "expo"
PUSH_PROVIDER_FCM = "fcm"
PUSH_PROVIDER_APNS = "apns"

PUSH_PROVIDERS = (PUSH_PROVIDER_EXPO, PUSH_PROVIDER_FCM, PUSH_PROVIDER_APNS)


class PushToken(db.Model):
    """Device token registered by a store owner for push notifications."""
    __tablename__ = "push_tokens"
    __table_args__ = (
        db.Index("ix_push_tokens_store_active", "store_id", "is_active"),
    )

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    token = db.Column(db.String(255), nullable=False, unique=True)
    provider = db.Column(db.String(16), nullable=False)

    user_id = db.Column(db.String(64), nullable=False, index=True)
    store_id = db.Column(db.String(36), db.ForeignKey("stores.id"), nullable=False, index=True)

    device_id = db.Column(db.String(128), nullable=True)
    device_name = db.Column(db.String(128), nullable=True)

    is_active = db.Column(db.Boolean, nullable=False, default=True)
    last_used_at = db.Column(db.DateTime, nullable=True)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    def __repr__(self) -> str:
        return f"<PushToken provider={self.provider} user_id={self.user_id} active={self.is_active}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "token": self.token,
            "provider": self.provider,
            "user_id": self.user_id,
            "store_id": self.store_id,
            "device_id": self.device_id,
            "device_name": self.device_name,
            "is_active": self.is_active,
            "last_used_at": to_utc_z(self.last_used_at),
            "created_at": to_utc_z(self.created_at),
        }
