from __future__ import annotations

from ..extensions import db
from storefront.time_utils import to_utc_z, utcnow
from .common import new_id


PRODUCT_STATUS_ACTIVE = "active"
PRODUCT_STATUS_INACTIVE = "inactive"


class StoreProduct(db.Model):
    """
    Catalog-linked inventory item: a store's priced and stocked instance of a
    CatalogProduct.

    DISJOINTNESS: ids share one space with StoreProductCustom. An order line
    references exactly one of the two; the resolver checks this table first.

    quantity is written only by the stock mutator (stock_service.adjust_stock).
    Display fields (name, brand, company, category, image) are copied from the
    catalog entry when the product is added.
    """
    __tablename__ = "store_products"
    __table_args__ = (
        db.UniqueConstraint("store_id", "catalog_id", name="uq_store_products_store_catalog"),
        db.Index("ix_store_products_store_status", "store_id", "status"),
    )

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    store_id = db.Column(db.String(36), db.ForeignKey("stores.id"), nullable=False, index=True)
    catalog_id = db.Column(db.Integer, db.ForeignKey("catalog_products.id"), nullable=False, index=True)

    name = db.Column(db.String(255), nullable=False)
    brand = db.Column(db.String(120), nullable=True)
    company = db.Column(db.String(120), nullable=True)
    category = db.Column(db.String(120), nullable=True)
    image_url = db.Column(db.String(500), nullable=True)

    # Store-chosen selling price; catalog normal price captured for on-sale flag
    price_cents = db.Column(db.Integer, nullable=False)
    catalog_price_cents = db.Column(db.Integer, nullable=True)
    cost_price_cents = db.Column(db.Integer, nullable=True)

    quantity = db.Column(db.Integer, nullable=False, default=0)
    valid_until = db.Column(db.Date, nullable=True)
    status = db.Column(db.String(16), nullable=False, default=PRODUCT_STATUS_ACTIVE, index=True)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    store = db.relationship("Store", backref=db.backref("store_products", lazy=True))
    catalog = db.relationship("CatalogProduct")

    @property
    def on_sale(self) -> bool:
        if self.catalog_price_cents is None:
            return False
        return self.price_cents < self.catalog_price_cents

    def __repr__(self) -> str:
        return f"<StoreProduct id={self.id} name={self.name!r} qty={self.quantity} store_id={self.store_id}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "type": "catalog",
            "store_id": self.store_id,
            "catalog_id": self.catalog_id,
            "name": self.name,
            "brand": self.brand,
            "company": self.company,
            "category": self.category,
            "image_url": self.image_url,
            "price_cents": self.price_cents,
            "catalog_price_cents": self.catalog_price_cents,
            "cost_price_cents": self.cost_price_cents,
            "quantity": self.quantity,
            "valid_until": self.valid_until.isoformat() if self.valid_until else None,
            "status": self.status,
            "on_sale": self.on_sale,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class StoreProductCustom(db.Model):
    """
    Custom inventory item: authored by the store, no catalog backing.

    Same mutation rules as StoreProduct; the resolver falls back to this table.
    """
    __tablename__ = "store_products_custom"
    __table_args__ = (
        db.Index("ix_store_products_custom_store_status", "store_id", "status"),
    )

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    store_id = db.Column(db.String(36), db.ForeignKey("stores.id"), nullable=False, index=True)

    name = db.Column(db.String(255), nullable=False)
    brand = db.Column(db.String(120), nullable=True)
    company = db.Column(db.String(120), nullable=True)
    category = db.Column(db.String(120), nullable=True)
    barcode = db.Column(db.String(64), nullable=True)
    image_url = db.Column(db.String(500), nullable=True)

    price_cents = db.Column(db.Integer, nullable=False)
    cost_price_cents = db.Column(db.Integer, nullable=True)

    quantity = db.Column(db.Integer, nullable=False, default=0)
    valid_until = db.Column(db.Date, nullable=True)
    status = db.Column(db.String(16), nullable=False, default=PRODUCT_STATUS_ACTIVE, index=True)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    store = db.relationship("Store", backref=db.backref("custom_products", lazy=True))

    def __repr__(self) -> str:
        return f"<StoreProductCustom id={self.id} name={self.name!r} qty={self.quantity} store_id={self.store_id}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "type": "custom",
            "store_id": self.store_id,
            "name": self.name,
            "brand": self.brand,
            "company": self.company,
            "category": self.category,
            "barcode": self.barcode,
            "image_url": self.image_url,
            "price_cents": self.price_cents,
            "cost_price_cents": self.cost_price_cents,
            "quantity": self.quantity,
            "valid_until": self.valid_until.isoformat() if self.valid_until else None,
            "status": self.status,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
