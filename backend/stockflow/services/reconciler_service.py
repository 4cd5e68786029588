# Overview: Applies stock decrements when a sale completes.

from __future__ import annotations

import logging

from .events import SaleCompleted
from .idempotency_service import IdempotencyStore
from .inventory_service import ConsistencyViolation, StockLedger

logger = logging.getLogger(__name__)


class InventoryReconciler:
    """
    Listener for SaleCompleted.

    Each sale id is decremented at most once while its idempotency key is
    retained; a repeated delivery is logged and skipped. Runs inside the
    publisher's transaction and never commits itself.
    """

    def __init__(self, ledger: StockLedger, idempotency: IdempotencyStore):
        self.ledger = ledger
        self.idempotency = idempotency

    def __call__(self, event: SaleCompleted) -> bool:
        return self.handle(event)

    def handle(self, event: SaleCompleted) -> bool:
        """Returns True when stock was decremented, False for a duplicate delivery."""
        sale = event.sale

        if not self.idempotency.claim(event.idempotency_key):
            logger.warning("Sale ID %s already processed, skipping inventory update", sale.id)
            return False

        logger.info("Processing inventory update for sale ID: %s", sale.id)

        for item in sale.items:
            try:
                entries = self.ledger.consume(item.product_id, item.quantity)
            except ConsistencyViolation as exc:
                logger.error(
                    "Inventory consistency violation for sale %s, product %s: %s",
                    sale.id, item.product_id, exc,
                )
                raise
            logger.info(
                "Updated inventory for product %s: reduced %s units (%d stock entries touched). New quantity: %s",
                item.product_id, item.quantity, len(entries),
                self.ledger.available_quantity(item.product_id),
            )

        logger.info("Inventory update completed for sale ID: %s", sale.id)
        return True
