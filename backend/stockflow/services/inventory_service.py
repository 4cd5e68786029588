# Overview: Service-layer operations for the stock ledger; restock, consolidated view, sale-side consumption.

# backend/stockflow/services/inventory_service.py
"""
Stock Ledger Invariants (authoritative)

Storage:
- Stock is kept in StockEntry rows; more than one row may exist per product.
- quantity >= 0 holds after every mutation. A decrement that would go below
  zero is an error, never clamped.

Restock (merge-or-create):
- add_stock() increments the product's first row in place and refreshes
  last_updated, or creates the row if the product has none yet.
- Applied per call: two additions to the same product inside one bulk call
  both land on the same row.
- add_bulk_stock() applies add_stock() item by item. Items before a failing
  item stay committed unless atomic=True, in which case the whole batch is
  one transaction.

Availability (mode chosen at construction):
- consolidated: available = SUM(quantity) over all rows of the product;
  consume() drains rows in id order.
- single_row: available = quantity of the first row; consume() decrements
  that row only.

Consolidated view:
- One StockSummary per product with stock rows. Monetary figures use the
  current product prices and are rounded to 2 places; margin uses unit
  prices: (sale - cost) / sale * 100, 0 when sale price is 0.
"""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Iterable, Optional

from ..extensions import db
from ..money import margin_percentage, quantize
from ..records import ProductRecord, StockEntryRecord, StockSummary
from ..repositories import ProductRepository, StockRepository
from ..validation import NotFoundError, ValidationError, coerce_int
from .concurrency import run_with_retry

logger = logging.getLogger(__name__)


class StockBatchError(ValidationError):
    """A bulk restock stopped at item `index`; `applied` holds what was committed before it."""

    def __init__(self, index: int, error: Exception, applied: list[StockEntryRecord]):
        super().__init__(f"Item {index}: {error}")
        self.index = index
        self.error = error
        self.applied = applied


class ConsistencyViolation(RuntimeError):
    """Stock cannot cover a quantity that already passed availability validation."""

    def __init__(self, message: str, *, product_id: int, requested: int, available: int | None):
        super().__init__(message)
        self.product_id = product_id
        self.requested = requested
        self.available = available


def summarize_stock(
    product: ProductRecord,
    quantity: int,
    *,
    last_updated: Optional[datetime] = None,
    created_at: Optional[datetime] = None,
    updated_at: Optional[datetime] = None,
) -> StockSummary:
    total_cost_value = quantity * product.cost_price
    total_sale_value = quantity * product.sale_price
    return StockSummary(
        product_id=product.id,
        product=product,
        quantity=quantity,
        total_cost_value=quantize(total_cost_value),
        total_sale_value=quantize(total_sale_value),
        projected_profit=quantize(total_sale_value - total_cost_value),
        profit_margin_percentage=margin_percentage(product.sale_price, product.cost_price),
        last_updated=last_updated,
        created_at=created_at,
        updated_at=updated_at,
    )


class StockLedger:
    def __init__(
        self,
        stock: StockRepository,
        products: ProductRepository,
        *,
        consolidated: bool = True,
    ):
        self.stock = stock
        self.products = products
        self.consolidated = consolidated

    # Restock

    def _validated_item(self, product_id, quantity) -> tuple[int, int]:
        product_id = coerce_int("product_id", product_id)
        quantity = coerce_int("quantity", quantity)
        if quantity < 1:
            raise ValidationError("quantity must be >= 1")
        if self.products.find(product_id) is None:
            raise NotFoundError(f"Product {product_id} not found")
        return product_id, quantity

    def _add_stock_inner(self, product_id, quantity) -> StockEntryRecord:
        product_id, quantity = self._validated_item(product_id, quantity)
        entry = self.stock.merge_or_create(product_id, quantity)
        logger.info(
            "Added %s units to product %s (entry %s now %s)",
            quantity, product_id, entry.id, entry.quantity,
        )
        return entry

    def add_stock(self, product_id: int, quantity: int) -> StockEntryRecord:
        def _op():
            entry = self._add_stock_inner(product_id, quantity)
            db.session.commit()
            return entry

        return run_with_retry(_op)

    def add_bulk_stock(
        self,
        items: Iterable[tuple[int, int]],
        *,
        atomic: bool = False,
    ) -> list[StockEntryRecord]:
        items = list(items)
        if not items:
            raise ValidationError("at least one item is required")

        if atomic:
            def _op():
                applied: list[StockEntryRecord] = []
                for index, (product_id, quantity) in enumerate(items):
                    try:
                        applied.append(self._add_stock_inner(product_id, quantity))
                    except ValueError as exc:
                        raise StockBatchError(index, exc, [])
                db.session.commit()
                return applied

            return run_with_retry(_op)

        applied: list[StockEntryRecord] = []
        for index, (product_id, quantity) in enumerate(items):
            try:
                applied.append(self.add_stock(product_id, quantity))
            except ValueError as exc:
                logger.warning("Bulk restock stopped at item %s: %s", index, exc)
                raise StockBatchError(index, exc, applied)
        return applied

    # Reads

    def find_by_product(self, product_id: int, *, lock: bool = False) -> Optional[StockEntryRecord]:
        return self.stock.find_by_product(product_id, lock=lock)

    def available_quantity(self, product_id: int, *, lock: bool = False) -> Optional[int]:
        """On-hand quantity under the configured mode; None when the product has no stock row."""
        if self.consolidated:
            return self.stock.total_for_product(product_id, lock=lock)
        entry = self.stock.find_by_product(product_id, lock=lock)
        return entry.quantity if entry else None

    def get_consolidated_stock(self) -> list[StockSummary]:
        groups = self.stock.grouped()
        products = self.products.find_many(g.product_id for g in groups)
        return [
            summarize_stock(
                products[g.product_id],
                g.quantity,
                last_updated=g.last_updated,
                created_at=g.created_at,
                updated_at=g.updated_at,
            )
            for g in groups
        ]

    # Sale side

    def consume(self, product_id: int, quantity: int) -> list[StockEntryRecord]:
        """
        Decrement stock for a sold quantity. Runs inside the caller's
        transaction (flush only).

        Raises ConsistencyViolation when the product has no stock row or the
        rows cannot cover the quantity.
        """
        rows = self.stock.rows_for_product(product_id, lock=True)
        if not rows:
            raise ConsistencyViolation(
                f"Product {product_id} has no stock entry",
                product_id=product_id,
                requested=quantity,
                available=None,
            )

        if not self.consolidated:
            rows = rows[:1]

        available = sum(r.quantity for r in rows)
        if available < quantity:
            raise ConsistencyViolation(
                f"Product {product_id} has {available} units, cannot remove {quantity}",
                product_id=product_id,
                requested=quantity,
                available=available,
            )

        updated: list[StockEntryRecord] = []
        remaining = quantity
        for row in rows:
            if remaining == 0:
                break
            take = min(row.quantity, remaining)
            if take == 0:
                continue
            updated.append(self.stock.decrement(row.id, take))
            remaining -= take
        return updated
