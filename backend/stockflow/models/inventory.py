from __future__ import annotations

from ..extensions import db
from ..time_utils import utcnow


class Product(db.Model):
    """
    Product master data.

    SKU is the immutable business key and is unique across the catalog.
    Prices are stored as NUMERIC(10, 2); cost_price and sale_price are both >= 0.
    Products are never deleted.
    """
    __tablename__ = "products"
    __table_args__ = (
        db.UniqueConstraint("sku", name="uq_products_sku"),
        db.CheckConstraint("cost_price >= 0", name="ck_products_cost_price_non_negative"),
        db.CheckConstraint("sale_price >= 0", name="ck_products_sale_price_non_negative"),
        db.Index("ix_products_name", "name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    sku = db.Column(db.String(255), nullable=False)
    name = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=True)

    cost_price = db.Column(db.Numeric(10, 2), nullable=False)
    sale_price = db.Column(db.Numeric(10, 2), nullable=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    def __repr__(self) -> str:
        return f"<Product id={self.id} sku={self.sku!r} name={self.name!r}>"


class StockEntry(db.Model):
    """
    Quantity on hand for a product.

    More than one row may exist per product; readers that need the real
    on-hand figure sum them. quantity never drops below zero.
    version_id gives optimistic locking on concurrent decrements.
    """
    __tablename__ = "stock_entries"
    __table_args__ = (
        db.CheckConstraint("quantity >= 0", name="ck_stock_entries_quantity_non_negative"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)

    quantity = db.Column(db.Integer, nullable=False, default=0)
    last_updated = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    version_id = db.Column(db.Integer, nullable=False, default=1)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    product = db.relationship("Product")
    __mapper_args__ = {"version_id_col": version_id}

    def __repr__(self) -> str:
        return f"<StockEntry id={self.id} product_id={self.product_id} quantity={self.quantity}>"
