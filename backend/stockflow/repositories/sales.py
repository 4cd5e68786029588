from __future__ import annotations

from decimal import Decimal
from typing import Optional

from ..extensions import db
from ..models import Product, Sale, SaleLineItem
from ..models.sales import SALE_STATUS_COMPLETED, SALE_STATUS_PENDING
from ..records import SaleLineItemRecord, SaleRecord
from .products import to_product_record


class SaleRepository:
    """
    Sales and their line items.

    get() assembles the full sale (items plus the product of each item) with
    two explicit queries. Flushes, never commits.
    """

    def create_pending(self) -> int:
        sale = Sale(
            total_amount=Decimal("0"),
            total_cost=Decimal("0"),
            total_profit=Decimal("0"),
            status=SALE_STATUS_PENDING,
        )
        db.session.add(sale)
        db.session.flush()
        return sale.id

    def add_line_item(
        self,
        *,
        sale_id: int,
        product_id: int,
        quantity: int,
        unit_price: Decimal,
        unit_cost: Decimal,
    ) -> None:
        db.session.add(SaleLineItem(
            sale_id=sale_id,
            product_id=product_id,
            quantity=quantity,
            unit_price=unit_price,
            unit_cost=unit_cost,
        ))
        db.session.flush()

    def complete(self, sale_id: int, *, total_amount: Decimal, total_cost: Decimal) -> None:
        sale = db.session.get(Sale, sale_id)
        if sale is None:
            raise LookupError(f"sale {sale_id} not found")
        if sale.status != SALE_STATUS_PENDING:
            raise ValueError(f"Cannot complete sale with status {sale.status}")
        sale.total_amount = total_amount
        sale.total_cost = total_cost
        sale.total_profit = total_amount - total_cost
        sale.status = SALE_STATUS_COMPLETED
        db.session.flush()

    def get(self, sale_id: int) -> Optional[SaleRecord]:
        sale = db.session.get(Sale, sale_id)
        if sale is None:
            return None

        rows = (
            db.session.query(SaleLineItem, Product)
            .join(Product, Product.id == SaleLineItem.product_id)
            .filter(SaleLineItem.sale_id == sale_id)
            .order_by(SaleLineItem.id.asc())
            .all()
        )
        items = tuple(
            SaleLineItemRecord(
                id=item.id,
                sale_id=item.sale_id,
                product_id=item.product_id,
                quantity=item.quantity,
                unit_price=Decimal(item.unit_price),
                unit_cost=Decimal(item.unit_cost),
                product=to_product_record(product),
            )
            for item, product in rows
        )

        return SaleRecord(
            id=sale.id,
            status=sale.status,
            total_amount=Decimal(sale.total_amount),
            total_cost=Decimal(sale.total_cost),
            total_profit=Decimal(sale.total_profit),
            items=items,
            created_at=sale.created_at,
            updated_at=sale.updated_at,
        )
