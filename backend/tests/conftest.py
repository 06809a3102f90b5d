"""
Pytest fixtures for storefront backend tests.

Provides test database setup, two isolated stores with both inventory types,
an in-memory realtime publisher and a push dispatcher on a mock transport.
"""

from datetime import datetime

import httpx
import pytest

from storefront import create_app, realtime
from storefront.extensions import db
from storefront.models import (
    CatalogProduct,
    Order,
    Store,
    StoreProduct,
    StoreProductCustom,
)
from storefront.services import push_service


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'NOTIFICATIONS_INLINE': True,
        'EXPO_ACCESS_TOKEN': '',
        'FCM_SERVER_KEY': '',
    })

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Create fresh database for each test."""
    with app.app_context():
        # Clear all data but keep schema
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        yield db.session

        # Cleanup after test
        db.session.rollback()


@pytest.fixture(scope='function')
def publisher(app):
    """Swap in an in-memory realtime publisher."""
    previous = app.extensions[realtime.EXTENSION_KEY]
    memory = realtime.InMemoryPublisher()
    app.extensions[realtime.EXTENSION_KEY] = memory
    yield memory
    app.extensions[realtime.EXTENSION_KEY] = previous


@pytest.fixture(scope='function')
def push_requests(app):
    """Push dispatcher with credentials whose HTTP calls land in a list."""
    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(200, json={"data": []})

    config = dict(app.config)
    config.update({"EXPO_ACCESS_TOKEN": "expo-test-token", "FCM_SERVER_KEY": "fcm-test-key"})

    previous = app.extensions[push_service.EXTENSION_KEY]
    app.extensions[push_service.EXTENSION_KEY] = push_service.build_dispatcher(
        config, transport=httpx.MockTransport(handler)
    )
    yield requests
    app.extensions[push_service.EXTENSION_KEY] = previous


@pytest.fixture(scope='function')
def store_a(db_session):
    """Create Store A (first tenant) on the Free plan."""
    store = Store(owner_user_id="owner-a", name="Loja A", subdomain="loja-a", plan="Free")
    db_session.add(store)
    db_session.commit()
    return store


@pytest.fixture(scope='function')
def store_b(db_session):
    """Create Store B (second tenant) on the Exclusive plan."""
    store = Store(owner_user_id="owner-b", name="Loja B", subdomain="loja-b", plan="Exclusive")
    db_session.add(store)
    db_session.commit()
    return store


@pytest.fixture(scope='function')
def catalog_product(db_session):
    product = CatalogProduct(
        name="Perfume Essencial",
        brand="Natura",
        company="Natura",
        category="Perfumaria",
        normal_price_cents=5000,
        suggested_price_cents=4500,
        barcode="7891234567890",
    )
    db_session.add(product)
    db_session.commit()
    return product


@pytest.fixture(scope='function')
def store_product_a(db_session, store_a, catalog_product):
    """Catalog-linked item in Store A: 10 units at 1000 cents."""
    product = StoreProduct(
        store_id=store_a.id,
        catalog_id=catalog_product.id,
        name=catalog_product.name,
        brand=catalog_product.brand,
        company=catalog_product.company,
        price_cents=1000,
        catalog_price_cents=catalog_product.normal_price_cents,
        quantity=10,
    )
    db_session.add(product)
    db_session.commit()
    return product


@pytest.fixture(scope='function')
def custom_product_a(db_session, store_a):
    """Custom item in Store A: 3 units at 2500 cents."""
    product = StoreProductCustom(
        store_id=store_a.id,
        name="Kit Presente",
        brand="Loja A",
        company="Loja A",
        category="Kits",
        price_cents=2500,
        quantity=3,
    )
    db_session.add(product)
    db_session.commit()
    return product


@pytest.fixture(scope='function')
def custom_product_b(db_session, store_b):
    """Custom item in Store B."""
    product = StoreProductCustom(
        store_id=store_b.id,
        name="Kit Loja B",
        brand="Loja B",
        company="Loja B",
        price_cents=900,
        quantity=20,
    )
    db_session.add(product)
    db_session.commit()
    return product


@pytest.fixture(scope='function')
def make_order(db_session):
    """Insert an order row directly (no items, no stock movement)."""
    counter = {"n": 0}

    def _make(store, total_cents, status="approved", created_at=None, customer_name=None):
        counter["n"] += 1
        order = Order(
            order_number=f"ORD-TEST-{counter['n']}",
            store_id=store.id,
            status=status,
            payment_method="pix",
            total_cents=total_cents,
            customer_name=customer_name,
            created_at=created_at or datetime(2025, 3, 15, 12, 0, 0),
        )
        db_session.add(order)
        db_session.commit()
        return order

    return _make
