from __future__ import annotations

from ..extensions import db
from ..time_utils import utcnow


SALE_STATUS_PENDING = "pending"
SALE_STATUS_COMPLETED = "completed"


class Sale(db.Model):
    """
    Sale header.

    Lifecycle: pending -> completed, never back. Totals are derived from the
    line items and are only final once status is completed.
    """
    __tablename__ = "sales"
    __table_args__ = (
        db.CheckConstraint(
            "status IN ('pending', 'completed')",
            name="ck_sales_status_valid",
        ),
        db.Index("ix_sales_status_created", "status", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    total_amount = db.Column(db.Numeric(10, 2), nullable=False, default=0)
    total_cost = db.Column(db.Numeric(10, 2), nullable=False, default=0)
    total_profit = db.Column(db.Numeric(10, 2), nullable=False, default=0)

    status = db.Column(db.String(16), nullable=False, default=SALE_STATUS_PENDING, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    items = db.relationship(
        "SaleLineItem",
        back_populates="sale",
        cascade="all, delete-orphan",
    )


class SaleLineItem(db.Model):
    """One product/quantity pairing on a sale, with prices snapshotted at sale time."""
    __tablename__ = "sale_line_items"
    __table_args__ = (
        db.CheckConstraint("quantity >= 1", name="ck_sale_line_items_quantity_positive"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    sale_id = db.Column(db.Integer, db.ForeignKey("sales.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)

    quantity = db.Column(db.Integer, nullable=False)
    unit_price = db.Column(db.Numeric(10, 2), nullable=False)
    unit_cost = db.Column(db.Numeric(10, 2), nullable=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    sale = db.relationship("Sale", back_populates="items")
    product = db.relationship("Product", lazy="raise")
