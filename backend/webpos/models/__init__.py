from .auth import User
from .inventory import Product
from .sales import Sale

__all__ = [
    'User',
    'Product',
    'Sale',
]
