from __future__ import annotations

from ..extensions import db
from ..time_utils import utcnow


class ProcessedSaleEvent(db.Model):
    """
    Idempotency marker for sale-completed deliveries.

    A row means the event keyed by `key` was handled; it stops counting once
    expires_at has passed and may then be purged.
    """
    __tablename__ = "processed_sale_events"
    __table_args__ = (
        db.UniqueConstraint("key", name="uq_processed_sale_events_key"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    key = db.Column(db.String(64), nullable=False)
    processed_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    expires_at = db.Column(db.DateTime(timezone=True), nullable=False, index=True)

    def __repr__(self) -> str:
        return f"<ProcessedSaleEvent key={self.key!r} expires_at={self.expires_at}>"
