from __future__ import annotations

from decimal import Decimal
from typing import Iterable, Optional

from ..extensions import db
from ..models import Product
from ..records import ProductRecord


def to_product_record(product: Product) -> ProductRecord:
    return ProductRecord(
        id=product.id,
        sku=product.sku,
        name=product.name,
        description=product.description,
        cost_price=Decimal(product.cost_price),
        sale_price=Decimal(product.sale_price),
        created_at=product.created_at,
        updated_at=product.updated_at,
    )


class ProductRepository:
    """Product rows in, ProductRecord out. Flushes, never commits."""

    def create(
        self,
        *,
        sku: str,
        name: str,
        cost_price: Decimal,
        sale_price: Decimal,
        description: str | None = None,
    ) -> ProductRecord:
        product = Product(
            sku=sku,
            name=name,
            description=description,
            cost_price=cost_price,
            sale_price=sale_price,
        )
        db.session.add(product)
        db.session.flush()
        return to_product_record(product)

    def sku_exists(self, sku: str) -> bool:
        return db.session.query(Product.id).filter_by(sku=sku).first() is not None

    def find(self, product_id: int) -> Optional[ProductRecord]:
        product = db.session.get(Product, product_id)
        return to_product_record(product) if product else None

    def find_many(self, product_ids: Iterable[int]) -> dict[int, ProductRecord]:
        ids = set(product_ids)
        if not ids:
            return {}
        products = db.session.query(Product).filter(Product.id.in_(ids)).all()
        return {p.id: to_product_record(p) for p in products}

    def list_all(self) -> list[ProductRecord]:
        products = db.session.query(Product).order_by(Product.id.asc()).all()
        return [to_product_record(p) for p in products]
