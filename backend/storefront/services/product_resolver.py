from __future__ import annotations

from dataclasses import dataclass

from storefront.errors import ProductNotFound
from .inventory_service import ProductRef, find_product


@dataclass(frozen=True)
class ResolvedProduct:
    """Unified view of a product from either inventory."""
    ref: ProductRef
    name: str
    price_cents: int
    quantity: int
    image_url: str | None = None
    brand: str | None = None

    @property
    def product_type(self) -> str:
        return self.ref.product_type


def resolve_product(store_id: str, product_ref: str) -> ResolvedProduct:
    """
    Resolve a bare reference to exactly one inventory.

    Lookup order is fixed: catalog-linked first, custom as the fallback. The
    winning type decides which table later receives the stock mutation.
    """
    for ref in (ProductRef.catalog(product_ref), ProductRef.custom(product_ref)):
        product = find_product(ref, store_id)
        if product is not None:
            return ResolvedProduct(
                ref=ref,
                name=product.name,
                price_cents=product.price_cents,
                quantity=product.quantity,
                image_url=product.image_url,
                brand=product.brand,
            )

    raise ProductNotFound(product_ref)
