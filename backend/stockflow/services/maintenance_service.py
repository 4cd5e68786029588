# Overview: Service-layer operations for maintenance; encapsulates business logic and database work.

from __future__ import annotations

import logging

from ..extensions import db
from .concurrency import run_with_retry
from .idempotency_service import IdempotencyStore

logger = logging.getLogger(__name__)


def purge_sale_events(store: IdempotencyStore) -> int:
    """
    Delete sale-event idempotency records past their retention window.

    Once purged, a redelivered event for that sale would be processed again.
    """
    def _op():
        deleted = store.purge_expired()
        db.session.commit()
        return deleted

    deleted = run_with_retry(_op)
    logger.info("Purged %s expired sale event record(s)", deleted)
    return deleted
