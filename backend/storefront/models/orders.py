from __future__ import annotations

from ..extensions import db
from storefront.time_utils import to_utc_z, utcnow
from .common import new_id


ORDER_STATUS_PENDING = "pending"
ORDER_STATUS_APPROVED = "approved"
ORDER_STATUS_CANCELLED = "cancelled"
ORDER_STATUS_DELIVERED = "delivered"

PRODUCT_TYPE_CATALOG = "catalog"
PRODUCT_TYPE_CUSTOM = "custom"


class Order(db.Model):
    """
    Order document.

    status is a free-form string: no transition table restricts which status
    may follow which. Deleting an order cascades to its items; stock
    restitution is the caller's job (order_service.delete_order).
    """
    __tablename__ = "orders"
    __table_args__ = (
        db.Index("ix_orders_store_created", "store_id", "created_at"),
        db.Index("ix_orders_store_status", "store_id", "status"),
    )

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    order_number = db.Column(db.String(64), nullable=False, unique=True, index=True)
    store_id = db.Column(db.String(36), db.ForeignKey("stores.id"), nullable=False, index=True)

    status = db.Column(db.String(32), nullable=False, default=ORDER_STATUS_APPROVED)

    customer_name = db.Column(db.String(255), nullable=True)
    customer_phone = db.Column(db.String(32), nullable=True)
    payment_method = db.Column(db.String(32), nullable=False)

    # All amounts in cents
    total_cents = db.Column(db.Integer, nullable=False)

    is_delivery = db.Column(db.Boolean, nullable=False, default=False)
    delivery_street = db.Column(db.String(255), nullable=True)
    delivery_number = db.Column(db.String(32), nullable=True)
    delivery_neighborhood = db.Column(db.String(120), nullable=True)

    # Caller may backdate created_at for imported/retroactive orders
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    store = db.relationship("Store", backref=db.backref("orders", lazy=True))
    items = db.relationship(
        "OrderItem",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderItem.position",
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return f"<Order {self.order_number} total_cents={self.total_cents} status={self.status!r}>"

    def to_dict(self, include_items: bool = True) -> dict:
        data = {
            "id": self.id,
            "order_number": self.order_number,
            "store_id": self.store_id,
            "status": self.status,
            "customer_name": self.customer_name,
            "customer_phone": self.customer_phone,
            "payment_method": self.payment_method,
            "total_cents": self.total_cents,
            "is_delivery": self.is_delivery,
            "delivery_street": self.delivery_street,
            "delivery_number": self.delivery_number,
            "delivery_neighborhood": self.delivery_neighborhood,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
        if include_items:
            data["items"] = [item.to_dict() for item in self.items]
        return data


class OrderItem(db.Model):
    """
    Order line. name, image and unit price are captured at order time and
    never follow later edits of the source product.

    Exactly one of store_product_id / store_product_custom_id is set and it
    agrees with product_type. Neither is a hard foreign key: the source
    product may be deleted while the order survives.
    """
    __tablename__ = "order_items"
    __table_args__ = (
        db.CheckConstraint(
            "(product_type = 'catalog' AND store_product_id IS NOT NULL AND store_product_custom_id IS NULL)"
            " OR (product_type = 'custom' AND store_product_custom_id IS NOT NULL AND store_product_id IS NULL)",
            name="ck_order_items_single_product_ref",
        ),
    )

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    order_id = db.Column(
        db.String(36), db.ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True
    )
    position = db.Column(db.Integer, nullable=False, default=0)

    product_type = db.Column(db.String(16), nullable=False, default=PRODUCT_TYPE_CATALOG)
    store_product_id = db.Column(db.String(36), nullable=True, index=True)
    store_product_custom_id = db.Column(db.String(36), nullable=True, index=True)

    name = db.Column(db.String(255), nullable=False)
    image_url = db.Column(db.String(500), nullable=True)
    unit_price_cents = db.Column(db.Integer, nullable=False)
    quantity = db.Column(db.Integer, nullable=False)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    order = db.relationship("Order", back_populates="items")

    @property
    def product_id(self) -> str:
        if self.product_type == PRODUCT_TYPE_CUSTOM:
            return self.store_product_custom_id
        return self.store_product_id

    @property
    def line_total_cents(self) -> int:
        return self.unit_price_cents * self.quantity

    def __repr__(self) -> str:
        return f"<OrderItem {self.product_type}:{self.product_id} qty={self.quantity}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "order_id": self.order_id,
            "product_type": self.product_type,
            "store_product_id": self.store_product_id,
            "store_product_custom_id": self.store_product_custom_id,
            "name": self.name,
            "image_url": self.image_url,
            "unit_price_cents": self.unit_price_cents,
            "quantity": self.quantity,
            "line_total_cents": self.line_total_cents,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
