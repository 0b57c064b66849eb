from .inventory import Product
from .sales import Sale, PAYMENT_METHODS
from .closings import DailyClosing

__all__ = [
    'Product',
    'Sale', 'PAYMENT_METHODS',
    'DailyClosing',
]
