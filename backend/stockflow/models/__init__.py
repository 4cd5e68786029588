from .inventory import Product, StockEntry
from .sales import Sale, SaleLineItem
from .events import ProcessedSaleEvent

__all__ = [
    'Product', 'StockEntry',
    'Sale', 'SaleLineItem',
    'ProcessedSaleEvent',
]
