# backend/stockflow/services/products_service.py
"""
Product catalog.

SKU is the immutable business key: creating a product with a SKU that is
already in use fails with DuplicateSKUError and leaves the catalog unchanged.
Prices must be >= 0 (InvalidPriceError otherwise).
"""
from __future__ import annotations

import logging

from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..records import ProductRecord
from ..repositories import ProductRepository
from ..validation import (
    DuplicateSKUError,
    NotFoundError,
    ValidationError,
    enforce_price,
)
from .concurrency import run_with_retry

logger = logging.getLogger(__name__)


class ProductCatalog:
    def __init__(self, products: ProductRepository):
        self.products = products

    def create_product(
        self,
        *,
        sku: str,
        name: str,
        cost_price,
        sale_price,
        description: str | None = None,
    ) -> ProductRecord:
        sku = (sku or "").strip()
        name = (name or "").strip()
        if not sku:
            raise ValidationError("sku cannot be blank")
        if not name:
            raise ValidationError("name cannot be blank")
        cost = enforce_price("cost_price", cost_price)
        sale = enforce_price("sale_price", sale_price)

        def _op():
            if self.products.sku_exists(sku):
                raise DuplicateSKUError(sku)
            try:
                product = self.products.create(
                    sku=sku,
                    name=name,
                    description=description,
                    cost_price=cost,
                    sale_price=sale,
                )
                db.session.commit()
            except IntegrityError:
                # Lost a race with another insert of the same SKU
                db.session.rollback()
                raise DuplicateSKUError(sku)
            return product

        product = run_with_retry(_op)
        logger.info("Created product %s (sku=%s)", product.id, product.sku)
        return product

    def get_product(self, product_id: int) -> ProductRecord:
        product = self.products.find(product_id)
        if product is None:
            raise NotFoundError("Product not found")
        return product

    def list_products(self) -> list[ProductRecord]:
        return self.products.list_all()
