from __future__ import annotations

from ..extensions import db
from ..plans import PLAN_FREE
from storefront.time_utils import to_utc_z, utcnow
from .common import new_id


class Store(db.Model):
    """
    Tenant root: every inventory item, order and push token belongs to a store.

    One store per owning user. The plan tag is written only by the billing
    synchronizer; the order core reads it.
    """
    __tablename__ = "stores"
    __table_args__ = (
        db.UniqueConstraint("owner_user_id", name="uq_stores_owner"),
    )

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    owner_user_id = db.Column(db.String(64), nullable=False, index=True)
    name = db.Column(db.String(120), nullable=False)
    subdomain = db.Column(db.String(63), nullable=False, unique=True, index=True)
    plan = db.Column(db.String(32), nullable=False, default=PLAN_FREE)

    phone = db.Column(db.String(32), nullable=True)
    address = db.Column(db.String(255), nullable=True)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    def __repr__(self) -> str:
        return f"<Store id={self.id} subdomain={self.subdomain!r} plan={self.plan}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "owner_user_id": self.owner_user_id,
            "name": self.name,
            "subdomain": self.subdomain,
            "plan": self.plan,
            "phone": self.phone,
            "address": self.address,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
