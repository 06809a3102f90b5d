from __future__ import annotations

from ..extensions import db
from storefront.time_utils import to_utc_z, utcnow


class CatalogProduct(db.Model):
    """
    Globally shared product template. Read-only reference data for the core;
    stores stock it through StoreProduct.
    """
    __tablename__ = "catalog_products"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    brand = db.Column(db.String(120), nullable=True)
    company = db.Column(db.String(120), nullable=True)
    category = db.Column(db.String(120), nullable=True)

    # Authoritative storage in cents
    normal_price_cents = db.Column(db.Integer, nullable=False, default=0)
    suggested_price_cents = db.Column(db.Integer, nullable=False, default=0)

    barcode = db.Column(db.String(64), nullable=True, index=True)
    image_url = db.Column(db.String(500), nullable=True)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    def __repr__(self) -> str:
        return f"<CatalogProduct id={self.id} name={self.name!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "brand": self.brand,
            "company": self.company,
            "category": self.category,
            "normal_price_cents": self.normal_price_cents,
            "suggested_price_cents": self.suggested_price_cents,
            "barcode": self.barcode,
            "image_url": self.image_url,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
