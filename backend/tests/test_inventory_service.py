# Overview: Pytest coverage for inventory operations on both product tables.

from datetime import date

import pytest

from storefront.errors import (
    OwnershipMismatch,
    ProductAlreadyAdded,
    ProductNotFound,
    QuotaExceeded,
    ValidationFailure,
)
from storefront.models import StoreProductCustom
from storefront.services import inventory_service


class TestAddCatalogProduct:
    def test_copies_catalog_fields_and_defaults_price(self, db_session, store_a, catalog_product):
        product = inventory_service.add_catalog_product(store_a.id, catalog_product.id, quantity=7)

        assert product.name == "Perfume Essencial"
        assert product.brand == "Natura"
        assert product.price_cents == 4500
        assert product.catalog_price_cents == 5000
        assert product.on_sale is True
        assert product.quantity == 7

    def test_store_price_at_or_above_catalog_is_not_on_sale(self, db_session, store_a, catalog_product):
        product = inventory_service.add_catalog_product(
            store_a.id, catalog_product.id, quantity=1, price_cents=5000,
        )
        assert product.on_sale is False

    def test_duplicate_rejected(self, db_session, store_a, catalog_product):
        inventory_service.add_catalog_product(store_a.id, catalog_product.id, quantity=1)
        with pytest.raises(ProductAlreadyAdded):
            inventory_service.add_catalog_product(store_a.id, catalog_product.id, quantity=1)

    def test_same_catalog_product_in_two_stores(self, db_session, store_a, store_b, catalog_product):
        inventory_service.add_catalog_product(store_a.id, catalog_product.id, quantity=1)
        inventory_service.add_catalog_product(store_b.id, catalog_product.id, quantity=1)
        assert inventory_service.count_store_products(store_b.id) == 1

    def test_unknown_catalog_entry(self, db_session, store_a):
        with pytest.raises(ProductNotFound):
            inventory_service.add_catalog_product(store_a.id, 424242, quantity=1)

    def test_negative_quantity_rejected(self, db_session, store_a, catalog_product):
        with pytest.raises(ValidationFailure):
            inventory_service.add_catalog_product(store_a.id, catalog_product.id, quantity=-1)


class TestCreateCustomProduct:
    def test_defaults_from_store(self, db_session, store_a):
        product = inventory_service.create_custom_product(
            store_a.id, name="  Kit Dia das Maes ", price_cents=3990, quantity=4, valid_until="2025-12-31",
        )

        assert product.name == "Kit Dia das Maes"
        assert product.brand == "Loja A"
        assert product.company == "Loja A"
        assert product.barcode == "loja-a"
        assert product.category == "Kits"
        assert product.valid_until == date(2025, 12, 31)

    def test_name_required(self, db_session, store_a):
        with pytest.raises(ValidationFailure):
            inventory_service.create_custom_product(store_a.id, name=" ", price_cents=1, quantity=1)

    def test_product_quota_counts_both_inventories(self, db_session, store_a, store_product_a):
        for i in range(29):
            db_session.add(StoreProductCustom(store_id=store_a.id, name=f"P{i}", price_cents=1, quantity=1))
        db_session.commit()

        with pytest.raises(QuotaExceeded) as exc_info:
            inventory_service.create_custom_product(
                store_a.id, name="One too many", price_cents=1, quantity=1, plan="Free",
            )
        assert exc_info.value.limit == 30


class TestUpdateProducts:
    def test_update_price_and_status(self, db_session, store_a, store_product_a):
        product = inventory_service.update_store_product(
            store_a.id, store_product_a.id, price_cents=800, status="inactive",
        )
        assert product.price_cents == 800
        assert product.status == "inactive"
        assert product.quantity == 10

    def test_invalid_status(self, db_session, store_a, custom_product_a):
        with pytest.raises(ValidationFailure):
            inventory_service.update_custom_product(store_a.id, custom_product_a.id, status="archived")

    def test_other_store_cannot_update(self, db_session, store_a, store_b, custom_product_b):
        with pytest.raises(OwnershipMismatch):
            inventory_service.update_custom_product(store_a.id, custom_product_b.id, price_cents=1)

    def test_wrong_table_is_not_found(self, db_session, store_a, custom_product_a):
        with pytest.raises(ProductNotFound):
            inventory_service.update_store_product(store_a.id, custom_product_a.id, price_cents=1)
