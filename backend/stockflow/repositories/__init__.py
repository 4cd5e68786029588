# Overview: Persistence layer; turns SQLAlchemy rows into immutable records.

from .products import ProductRepository, to_product_record
from .stock import StockRepository, StockGroup
from .sales import SaleRepository

__all__ = [
    "ProductRepository", "to_product_record",
    "StockRepository", "StockGroup",
    "SaleRepository",
]
