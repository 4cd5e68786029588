# Overview: In-process dispatch of sale-completed notifications.

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable

from ..records import SaleRecord
from ..time_utils import utcnow

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SaleCompleted:
    sale: SaleRecord
    occurred_at: datetime = field(default_factory=utcnow)

    @property
    def idempotency_key(self) -> str:
        return f"sale:{self.sale.id}"


SaleListener = Callable[[SaleCompleted], object]


class SaleEventBus:
    """
    Synchronous publisher: listeners run in the caller's stack and inside the
    caller's transaction. A listener exception propagates to the publisher.
    """

    def __init__(self):
        self._listeners: list[SaleListener] = []

    def subscribe(self, listener: SaleListener) -> None:
        self._listeners.append(listener)

    def publish(self, event: SaleCompleted) -> None:
        logger.debug("Dispatching sale-completed for sale %s to %d listener(s)", event.sale.id, len(self._listeners))
        for listener in self._listeners:
            listener(event)
