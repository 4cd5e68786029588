# Overview: Idempotency keys with a retention window, stored in processed_sale_events.

from __future__ import annotations

from datetime import timedelta

from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import ProcessedSaleEvent
from ..time_utils import utcnow


class IdempotencyStore:
    """
    Remembers processed keys for `retention_seconds`.

    claim() and is_processed() only flush; the marker commits (or rolls
    back) together with the work it guards.
    """

    def __init__(self, *, retention_seconds: int = 3600):
        if retention_seconds <= 0:
            raise ValueError("retention_seconds must be > 0")
        self.retention = timedelta(seconds=retention_seconds)

    def _find(self, key: str) -> ProcessedSaleEvent | None:
        return db.session.query(ProcessedSaleEvent).filter_by(key=key).first()

    def is_processed(self, key: str) -> bool:
        record = self._find(key)
        return record is not None and record.expires_at > utcnow()

    def claim(self, key: str) -> bool:
        """
        Record `key` as processed. Returns False when an unexpired record
        already exists, including one inserted concurrently by another
        claimant; an expired record is renewed.

        The insert runs in a savepoint so a lost race leaves the caller's
        transaction usable. On SQLite the caller's transaction must already
        be open (begin_immediate), otherwise the savepoint becomes the outer
        transaction and releasing it commits.
        """
        now = utcnow()
        record = self._find(key)
        if record is not None:
            if record.expires_at > now:
                return False
            record.processed_at = now
            record.expires_at = now + self.retention
            db.session.flush()
            return True

        try:
            with db.session.begin_nested():
                db.session.add(ProcessedSaleEvent(key=key, processed_at=now, expires_at=now + self.retention))
        except IntegrityError:
            return False
        return True

    def purge_expired(self) -> int:
        deleted = db.session.query(ProcessedSaleEvent).filter(
            ProcessedSaleEvent.expires_at <= utcnow()
        ).delete(synchronize_session=False)
        return deleted
