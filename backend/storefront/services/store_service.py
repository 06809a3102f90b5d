from __future__ import annotations

from storefront.extensions import db
from storefront.errors import StoreNotFound
from storefront.models import Store


def find_store_by_owner(owner_user_id: str) -> Store | None:
    return db.session.query(Store).filter_by(owner_user_id=owner_user_id).first()


def find_store_by_subdomain(subdomain: str) -> Store | None:
    if not subdomain:
        return None
    return db.session.query(Store).filter_by(subdomain=subdomain.strip().lower()).first()


def find_store_by_id(store_id: str) -> Store | None:
    return db.session.query(Store).filter_by(id=store_id).first()


def get_store_by_owner(owner_user_id: str) -> Store:
    store = find_store_by_owner(owner_user_id)
    if not store:
        raise StoreNotFound()
    return store


def get_store_by_subdomain(subdomain: str) -> Store:
    store = find_store_by_subdomain(subdomain)
    if not store:
        raise StoreNotFound(details={"subdomain": subdomain})
    return store


def get_store(store_id: str) -> Store:
    store = find_store_by_id(store_id)
    if not store:
        raise StoreNotFound(details={"store_id": store_id})
    return store
