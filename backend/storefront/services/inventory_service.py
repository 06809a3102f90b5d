# Overview: Service-layer operations for both inventories; encapsulates business logic and database work.

"""
Inventory invariants (authoritative)

Two disjoint inventories per store:
- StoreProduct: catalog-linked, created by adding a CatalogProduct (once per store)
- StoreProductCustom: store-authored, created directly from store data

Identifiers share one id space. A product reference is turned into a tagged
ProductRef exactly once (product_resolver) and the tag is threaded through
pricing, stock mutation and restitution; nothing downstream re-queries both
tables to rediscover the type.

quantity is never written here; only stock_service.adjust_stock mutates it.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date

from sqlalchemy import func

from storefront.extensions import db
from storefront.errors import (
    OwnershipMismatch,
    ProductAlreadyAdded,
    ProductNotFound,
    QuotaExceeded,
    ValidationFailure,
)
from storefront.models import CatalogProduct, Store, StoreProduct, StoreProductCustom
from storefront.models.inventory import PRODUCT_STATUS_ACTIVE, PRODUCT_STATUS_INACTIVE
from storefront.models.orders import PRODUCT_TYPE_CATALOG, PRODUCT_TYPE_CUSTOM
from storefront import plans
from storefront.time_utils import parse_iso_date


PRODUCT_MODELS = {
    PRODUCT_TYPE_CATALOG: StoreProduct,
    PRODUCT_TYPE_CUSTOM: StoreProductCustom,
}

DEFAULT_CUSTOM_CATEGORY = "Kits"

_UNSET = object()


@dataclass(frozen=True)
class ProductRef:
    """Tagged product reference: Catalog(id) | Custom(id)."""
    product_type: str
    product_id: str

    @classmethod
    def catalog(cls, product_id: str) -> "ProductRef":
        return cls(PRODUCT_TYPE_CATALOG, product_id)

    @classmethod
    def custom(cls, product_id: str) -> "ProductRef":
        return cls(PRODUCT_TYPE_CUSTOM, product_id)

    @property
    def model(self):
        return PRODUCT_MODELS[self.product_type]

    def __str__(self) -> str:
        return f"{self.product_type}:{self.product_id}"


def find_product(ref: ProductRef, store_id: str | None = None):
    """Fetch the inventory row for a tagged reference, or None if it is gone."""
    query = db.session.query(ref.model).filter_by(id=ref.product_id)
    if store_id is not None:
        query = query.filter_by(store_id=store_id)
    return query.first()


def count_store_products(store_id: str) -> int:
    """Products across both inventories (plan quota counter)."""
    catalog_count = db.session.query(func.count(StoreProduct.id)).filter_by(store_id=store_id).scalar()
    custom_count = db.session.query(func.count(StoreProductCustom.id)).filter_by(store_id=store_id).scalar()
    return int(catalog_count or 0) + int(custom_count or 0)


def _ensure_product_quota(store_id: str, plan: str | None) -> None:
    if plan is None:
        return
    current = count_store_products(store_id)
    if not plans.can_add_product(plan, current):
        raise QuotaExceeded(
            plans.normalize_plan(plan),
            plans.limits_for(plan).max_products,
            resource="products",
        )


def _require_non_negative(field: str, value: int | None) -> None:
    if value is None:
        return
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationFailure(f"{field} must be an integer", {"field": field})
    if value < 0:
        raise ValidationFailure(f"{field} must be >= 0", {"field": field})


def _coerce_status(status: str) -> str:
    if status not in (PRODUCT_STATUS_ACTIVE, PRODUCT_STATUS_INACTIVE):
        raise ValidationFailure(
            f"status must be '{PRODUCT_STATUS_ACTIVE}' or '{PRODUCT_STATUS_INACTIVE}'",
            {"field": "status"},
        )
    return status


def add_catalog_product(
    store_id: str,
    catalog_id: int,
    *,
    quantity: int,
    price_cents: int | None = None,
    cost_price_cents: int | None = None,
    valid_until: str | date | None = None,
    plan: str | None = None,
) -> StoreProduct:
    """
    Stock a catalog product in a store.

    Price defaults to the catalog suggested price. A catalog product can be
    added once per store.
    """
    _require_non_negative("quantity", quantity)
    _require_non_negative("price_cents", price_cents)
    _require_non_negative("cost_price_cents", cost_price_cents)

    catalog = db.session.query(CatalogProduct).filter_by(id=catalog_id).first()
    if not catalog:
        raise ProductNotFound(str(catalog_id))

    existing = db.session.query(StoreProduct).filter_by(store_id=store_id, catalog_id=catalog_id).first()
    if existing:
        raise ProductAlreadyAdded(catalog_id)

    _ensure_product_quota(store_id, plan)

    product = StoreProduct(
        store_id=store_id,
        catalog_id=catalog.id,
        name=catalog.name,
        brand=catalog.brand,
        company=catalog.company,
        category=catalog.category,
        image_url=catalog.image_url,
        price_cents=price_cents if price_cents is not None else catalog.suggested_price_cents,
        catalog_price_cents=catalog.normal_price_cents,
        cost_price_cents=cost_price_cents,
        quantity=quantity,
        valid_until=parse_iso_date(valid_until),
        status=PRODUCT_STATUS_ACTIVE,
    )
    db.session.add(product)
    db.session.commit()
    return product


def create_custom_product(
    store_id: str,
    *,
    name: str,
    price_cents: int,
    quantity: int,
    cost_price_cents: int | None = None,
    category: str | None = None,
    image_url: str | None = None,
    valid_until: str | date | None = None,
    plan: str | None = None,
) -> StoreProductCustom:
    """Create a store-authored product. Brand and company default to the store name."""
    if not name or not name.strip():
        raise ValidationFailure("name is required", {"field": "name"})
    _require_non_negative("price_cents", price_cents)
    _require_non_negative("quantity", quantity)
    _require_non_negative("cost_price_cents", cost_price_cents)

    store = db.session.query(Store).filter_by(id=store_id).first()
    store_name = store.name if store else None

    _ensure_product_quota(store_id, plan)

    product = StoreProductCustom(
        store_id=store_id,
        name=name.strip(),
        brand=store_name,
        company=store_name,
        barcode=store.subdomain if store else None,
        category=category or DEFAULT_CUSTOM_CATEGORY,
        image_url=image_url,
        price_cents=price_cents,
        cost_price_cents=cost_price_cents,
        quantity=quantity,
        valid_until=parse_iso_date(valid_until),
        status=PRODUCT_STATUS_ACTIVE,
    )
    db.session.add(product)
    db.session.commit()
    return product


def _update_product(
    ref: ProductRef,
    store_id: str,
    *,
    price_cents=_UNSET,
    cost_price_cents=_UNSET,
    status=_UNSET,
    valid_until=_UNSET,
):
    product = find_product(ref)
    if not product:
        raise ProductNotFound(ref.product_id)
    if product.store_id != store_id:
        raise OwnershipMismatch(
            "Product does not belong to your store",
            {"product_ref": ref.product_id},
        )

    if price_cents is not _UNSET:
        if price_cents is None:
            raise ValidationFailure("price_cents is required", {"field": "price_cents"})
        _require_non_negative("price_cents", price_cents)
        product.price_cents = price_cents
    if cost_price_cents is not _UNSET:
        _require_non_negative("cost_price_cents", cost_price_cents)
        product.cost_price_cents = cost_price_cents
    if status is not _UNSET:
        product.status = _coerce_status(status)
    if valid_until is not _UNSET:
        product.valid_until = parse_iso_date(valid_until)

    db.session.commit()
    return product


def update_store_product(store_id: str, product_id: str, **changes) -> StoreProduct:
    """Update price, cost price, status or validity date of a catalog-linked item."""
    return _update_product(ProductRef.catalog(product_id), store_id, **changes)


def update_custom_product(store_id: str, product_id: str, **changes) -> StoreProductCustom:
    """Update price, cost price, status or validity date of a custom item."""
    return _update_product(ProductRef.custom(product_id), store_id, **changes)
