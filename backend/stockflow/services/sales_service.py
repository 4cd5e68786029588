"""
Sales Service - sale transaction workflow

Flow for create_sale(), all inside one database transaction:
1. Validate availability for every item before anything is written
   (fail-fast on the first item that cannot be covered).
2. Open a pending sale with zero totals.
3. Write one line item per requested item, snapshotting the product's
   current sale/cost price, and accumulate totals.
4. Complete the sale with its final totals.
5. Publish SaleCompleted; the inventory reconciler decrements stock.
6. Commit and return the completed sale.

A failure at any step rolls back everything, so no pending sale, line item
or stock change survives a rejected sale.

Concurrency: the check in step 1 and the decrement in step 5 share the
transaction. SQLite takes its write lock at BEGIN IMMEDIATE; other
databases lock the stock rows with SELECT ... FOR UPDATE. StockEntry rows
are version-checked and a conflict is retried.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Iterable

from ..extensions import db
from ..models.sales import SALE_STATUS_COMPLETED
from ..records import ProductRecord, SaleRecord
from ..repositories import ProductRepository, SaleRepository
from ..validation import NotFoundError, normalize_sale_items
from .concurrency import begin_immediate, run_with_retry
from .events import SaleCompleted, SaleEventBus
from .inventory_service import StockLedger

logger = logging.getLogger(__name__)


class SaleError(Exception):
    """Raised for sale operation errors."""
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


class OutOfStockError(SaleError):
    def __init__(self, product: ProductRecord):
        super().__init__(
            f"Product '{product.name}' has no stock available.",
            details={"product_id": product.id, "sku": product.sku, "name": product.name},
        )
        self.product = product


class InsufficientStockError(SaleError):
    def __init__(self, product: ProductRecord, *, available: int, requested: int):
        super().__init__(
            f"Insufficient stock for product '{product.name}'. "
            f"Available: {available}, Requested: {requested}",
            details={
                "product_id": product.id,
                "sku": product.sku,
                "name": product.name,
                "available": available,
                "requested": requested,
            },
        )
        self.product = product
        self.available = available
        self.requested = requested


class SalesService:
    def __init__(
        self,
        *,
        products: ProductRepository,
        ledger: StockLedger,
        sales: SaleRepository,
        events: SaleEventBus,
    ):
        self.products = products
        self.ledger = ledger
        self.sales = sales
        self.events = events

    def _validate_stock_availability(self, items: list[tuple[int, int]]) -> dict[int, ProductRecord]:
        """
        Check every item in order against on-hand stock. Quantities for the
        same product accumulate, so repeated lines are checked against their
        running total. Returns the products looked up, keyed by id.
        """
        products: dict[int, ProductRecord] = {}
        requested: dict[int, int] = {}

        for product_id, quantity in items:
            product = products.get(product_id) or self.products.find(product_id)
            if product is None:
                raise NotFoundError(f"Product {product_id} not found")
            products[product_id] = product

            available = self.ledger.available_quantity(product_id, lock=True)
            if available is None:
                raise OutOfStockError(product)

            requested[product_id] = requested.get(product_id, 0) + quantity
            if available < requested[product_id]:
                raise InsufficientStockError(
                    product, available=available, requested=requested[product_id]
                )

        return products

    def create_sale(self, items: Iterable) -> SaleRecord:
        items = normalize_sale_items(items)

        def _op():
            begin_immediate()
            products = self._validate_stock_availability(items)

            sale_id = self.sales.create_pending()

            total_amount = Decimal("0")
            total_cost = Decimal("0")
            for product_id, quantity in items:
                product = products[product_id]
                unit_price = product.sale_price
                unit_cost = product.cost_price

                total_amount += unit_price * quantity
                total_cost += unit_cost * quantity

                self.sales.add_line_item(
                    sale_id=sale_id,
                    product_id=product_id,
                    quantity=quantity,
                    unit_price=unit_price,
                    unit_cost=unit_cost,
                )

            self.sales.complete(sale_id, total_amount=total_amount, total_cost=total_cost)

            sale = self.sales.get(sale_id)
            self.events.publish(SaleCompleted(sale=sale))

            db.session.commit()
            return sale

        try:
            sale = run_with_retry(_op)
        except SaleError as exc:
            logger.info("Sale rejected: %s", exc)
            raise

        logger.info(
            "Completed sale %s: amount=%s cost=%s profit=%s",
            sale.id, sale.total_amount, sale.total_cost, sale.total_profit,
        )
        return sale

    def get_sale_details(self, sale_id: int) -> SaleRecord:
        sale = self.sales.get(sale_id)
        if sale is None:
            raise NotFoundError("Sale not found")
        return sale

    def redeliver(self, sale_id: int) -> SaleRecord:
        """
        Publish SaleCompleted again for an existing sale. Listeners are
        expected to be idempotent on the sale id.
        """
        def _op():
            begin_immediate()
            sale = self.get_sale_details(sale_id)
            if sale.status != SALE_STATUS_COMPLETED:
                raise SaleError(f"Cannot redeliver sale with status {sale.status}")
            self.events.publish(SaleCompleted(sale=sale))
            db.session.commit()
            return sale

        return run_with_retry(_op)
