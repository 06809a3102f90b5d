from .tenancy import Store
from .catalog import CatalogProduct
from .inventory import StoreProduct, StoreProductCustom
from .orders import Order, OrderItem
from .notifications import PushToken

__all__ = [
    'Store',
    'CatalogProduct',
    'StoreProduct', 'StoreProductCustom',
    'Order', 'OrderItem',
    'PushToken',
]
