# Overview: Pytest coverage for stock mutation and the low-stock signal.

import pytest

from storefront.errors import InsufficientStock, ProductNotFound
from storefront.services.inventory_service import ProductRef
from storefront.services.stock_service import adjust_stock


@pytest.fixture
def atomic_stock(app):
    app.config["ATOMIC_STOCK_DECREMENT"] = True
    yield
    app.config["ATOMIC_STOCK_DECREMENT"] = False


class TestAdjustStock:
    def test_decrement_writes_to_owning_inventory(self, db_session, store_product_a):
        adj = adjust_stock(ProductRef.catalog(store_product_a.id), -4)
        db_session.commit()

        assert adj.previous_quantity == 10
        assert adj.new_quantity == 6
        assert adj.low_stock is False
        db_session.refresh(store_product_a)
        assert store_product_a.quantity == 6

    def test_low_stock_at_threshold(self, db_session, store_product_a):
        adj = adjust_stock(ProductRef.catalog(store_product_a.id), -5)
        assert adj.new_quantity == 5
        assert adj.low_stock is True

    def test_increment_never_flags_low_stock(self, db_session, custom_product_a):
        adj = adjust_stock(ProductRef.custom(custom_product_a.id), 1)
        assert adj.new_quantity == 4
        assert adj.low_stock is False

    def test_result_is_not_clamped(self, db_session, custom_product_a):
        """Sufficiency is the caller's job; the mutator writes whatever the delta gives."""
        adj = adjust_stock(ProductRef.custom(custom_product_a.id), -5)
        assert adj.new_quantity == -2

    def test_missing_product_raises(self, db_session):
        with pytest.raises(ProductNotFound):
            adjust_stock(ProductRef.custom("gone"), 1)

    def test_wrong_tag_does_not_touch_other_inventory(self, db_session, custom_product_a):
        with pytest.raises(ProductNotFound):
            adjust_stock(ProductRef.catalog(custom_product_a.id), -1)
        db_session.refresh(custom_product_a)
        assert custom_product_a.quantity == 3

    def test_threshold_comes_from_config(self, app, db_session, store_product_a):
        app.config["LOW_STOCK_THRESHOLD"] = 8
        try:
            adj = adjust_stock(ProductRef.catalog(store_product_a.id), -2)
        finally:
            app.config["LOW_STOCK_THRESHOLD"] = 5
        assert adj.low_stock is True


class TestAtomicDecrement:
    def test_conditional_update_applies(self, db_session, atomic_stock, store_product_a):
        adj = adjust_stock(ProductRef.catalog(store_product_a.id), -7)
        db_session.commit()

        assert adj.previous_quantity == 10
        assert adj.new_quantity == 3
        assert adj.low_stock is True
        db_session.refresh(store_product_a)
        assert store_product_a.quantity == 3

    def test_zero_rows_raises_insufficient_stock(self, db_session, atomic_stock, custom_product_a):
        with pytest.raises(InsufficientStock) as exc_info:
            adjust_stock(ProductRef.custom(custom_product_a.id), -4)

        assert exc_info.value.available == 3
        assert exc_info.value.requested == 4
        db_session.refresh(custom_product_a)
        assert custom_product_a.quantity == 3

    def test_missing_product_raises_not_found(self, db_session, atomic_stock):
        with pytest.raises(ProductNotFound):
            adjust_stock(ProductRef.catalog("gone"), -1)
