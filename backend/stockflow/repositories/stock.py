from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from sqlalchemy import func

from ..extensions import db
from ..models import StockEntry
from ..records import StockEntryRecord
from ..services.concurrency import lock_for_update
from ..time_utils import utcnow


@dataclass(frozen=True)
class StockGroup:
    """All stock rows of one product, summed."""
    product_id: int
    quantity: int
    last_updated: Optional[datetime]
    created_at: Optional[datetime]
    updated_at: Optional[datetime]


def to_stock_record(entry: StockEntry) -> StockEntryRecord:
    return StockEntryRecord(
        id=entry.id,
        product_id=entry.product_id,
        quantity=entry.quantity,
        last_updated=entry.last_updated,
        created_at=entry.created_at,
        updated_at=entry.updated_at,
    )


class StockRepository:
    """
    Stock rows for products.

    Rows for a product are always visited in id order, so "the first row"
    is deterministic. Flushes, never commits.
    """

    def _rows_query(self, product_id: int, *, lock: bool = False):
        query = (
            db.session.query(StockEntry)
            .filter(StockEntry.product_id == product_id)
            .order_by(StockEntry.id.asc())
        )
        if lock:
            query = lock_for_update(query)
        return query

    def find_by_product(self, product_id: int, *, lock: bool = False) -> Optional[StockEntryRecord]:
        entry = self._rows_query(product_id, lock=lock).first()
        return to_stock_record(entry) if entry else None

    def rows_for_product(self, product_id: int, *, lock: bool = False) -> list[StockEntryRecord]:
        return [to_stock_record(e) for e in self._rows_query(product_id, lock=lock).all()]

    def total_for_product(self, product_id: int, *, lock: bool = False) -> Optional[int]:
        """Sum across all rows, or None when the product has no stock row at all."""
        rows = self._rows_query(product_id, lock=lock).all()
        if not rows:
            return None
        return sum(r.quantity for r in rows)

    def merge_or_create(self, product_id: int, quantity: int) -> StockEntryRecord:
        """Increment the product's first stock row in place, or create one."""
        entry = self._rows_query(product_id, lock=True).first()
        now = utcnow()
        if entry is not None:
            entry.quantity = entry.quantity + quantity
            entry.last_updated = now
        else:
            entry = StockEntry(product_id=product_id, quantity=quantity, last_updated=now)
            db.session.add(entry)
        db.session.flush()
        return to_stock_record(entry)

    def decrement(self, entry_id: int, quantity: int) -> StockEntryRecord:
        entry = db.session.get(StockEntry, entry_id)
        if entry is None:
            raise LookupError(f"stock entry {entry_id} not found")
        if entry.quantity - quantity < 0:
            raise ValueError("decrement would make stock negative")
        entry.quantity = entry.quantity - quantity
        entry.last_updated = utcnow()
        db.session.flush()
        return to_stock_record(entry)

    def grouped(self) -> list[StockGroup]:
        rows = (
            db.session.query(
                StockEntry.product_id,
                func.sum(StockEntry.quantity).label("quantity"),
                func.max(StockEntry.last_updated).label("last_updated"),
                func.min(StockEntry.created_at).label("created_at"),
                func.max(StockEntry.updated_at).label("updated_at"),
            )
            .group_by(StockEntry.product_id)
            .order_by(StockEntry.product_id.asc())
            .all()
        )
        return [
            StockGroup(
                product_id=row.product_id,
                quantity=int(row.quantity or 0),
                last_updated=row.last_updated,
                created_at=row.created_at,
                updated_at=row.updated_at,
            )
            for row in rows
        ]
