"""
Sale-completed delivery tests.

Verifies:
- Stock for a sale is decremented exactly once per retention window
- Duplicate deliveries are logged and skipped
- Expired idempotency records are renewed or purged
- Event bus dispatch and retry helper behaviour
"""

import logging
from datetime import timedelta

import pytest
from sqlalchemy.orm.exc import StaleDataError

from stockflow.models import ProcessedSaleEvent
from stockflow.records import SaleLineItemRecord, SaleRecord
from stockflow.repositories import SaleRepository
from stockflow.services import concurrency, idempotency_service
from stockflow.services.events import SaleCompleted, SaleEventBus
from stockflow.services.idempotency_service import IdempotencyStore
from stockflow.services.inventory_service import ConsistencyViolation
from stockflow.services.maintenance_service import purge_sale_events
from stockflow.services.sales_service import SaleError
from stockflow.time_utils import utcnow
from stockflow.validation import NotFoundError


def _advance_clock(monkeypatch, seconds):
    later = utcnow() + timedelta(seconds=seconds)
    monkeypatch.setattr(idempotency_service, "utcnow", lambda: later)


class TestDuplicateDelivery:
    def test_redeliver_does_not_decrement_twice(self, services, stocked_laptop, on_hand, caplog):
        sale = services.sales.create_sale([(stocked_laptop.id, 1)])
        assert on_hand(stocked_laptop.id) == 49

        with caplog.at_level(logging.WARNING, logger="stockflow"):
            services.sales.redeliver(sale.id)

        assert on_hand(stocked_laptop.id) == 49
        assert f"Sale ID {sale.id} already processed" in caplog.text

    def test_handle_returns_false_for_duplicate(self, services, stocked_laptop, on_hand):
        sale = services.sales.create_sale([(stocked_laptop.id, 2)])

        assert services.reconciler.handle(SaleCompleted(sale=sale)) is False
        assert services.reconciler(SaleCompleted(sale=sale)) is False
        assert on_hand(stocked_laptop.id) == 48

    def test_redeliver_after_retention_processes_again(self, services, stocked_laptop, on_hand, monkeypatch):
        sale = services.sales.create_sale([(stocked_laptop.id, 1)])

        _advance_clock(monkeypatch, 3601)
        services.sales.redeliver(sale.id)

        assert on_hand(stocked_laptop.id) == 48

    def test_redeliver_unknown_sale(self, services, db_session):
        with pytest.raises(NotFoundError):
            services.sales.redeliver(777)

    def test_redeliver_pending_sale_rejected(self, services, db_session):
        sale_id = SaleRepository().create_pending()
        db_session.commit()

        with pytest.raises(SaleError):
            services.sales.redeliver(sale_id)


class TestReconcilerFailures:
    def test_missing_stock_entry(self, services, db_session, mouse, caplog):
        sale = SaleRecord(
            id=999,
            status="completed",
            total_amount=mouse.sale_price,
            total_cost=mouse.cost_price,
            total_profit=mouse.profit_per_unit,
            items=(SaleLineItemRecord(
                id=1, sale_id=999, product_id=mouse.id, quantity=1,
                unit_price=mouse.sale_price, unit_cost=mouse.cost_price,
            ),),
        )

        # Same transaction shape as a sale: write lock first, then the listener
        concurrency.begin_immediate()
        with caplog.at_level(logging.ERROR, logger="stockflow"):
            with pytest.raises(ConsistencyViolation):
                services.reconciler.handle(SaleCompleted(sale=sale))
        db_session.rollback()

        assert "Inventory consistency violation for sale 999" in caplog.text
        assert db_session.query(ProcessedSaleEvent).count() == 0


class TestIdempotencyStore:
    def test_claim_once(self, db_session):
        store = IdempotencyStore(retention_seconds=60)

        assert store.claim("sale:1") is True
        assert store.claim("sale:1") is False
        assert store.is_processed("sale:1") is True
        assert store.is_processed("sale:2") is False

    def test_expired_record_is_renewed(self, db_session, monkeypatch):
        store = IdempotencyStore(retention_seconds=60)
        store.claim("sale:1")
        db_session.commit()

        _advance_clock(monkeypatch, 61)
        assert store.is_processed("sale:1") is False
        assert store.claim("sale:1") is True
        assert db_session.query(ProcessedSaleEvent).count() == 1

    def test_concurrent_first_claim_reports_duplicate(self, db_session, monkeypatch):
        store = IdempotencyStore(retention_seconds=60)
        store.claim("sale:1")
        db_session.commit()

        concurrency.begin_immediate()
        # Another claimant inserted the key after this one looked it up
        monkeypatch.setattr(store, "_find", lambda key: None)

        assert store.claim("sale:2") is True
        assert store.claim("sale:1") is False
        db_session.commit()

        keys = sorted(e.key for e in db_session.query(ProcessedSaleEvent).all())
        assert keys == ["sale:1", "sale:2"]

    def test_purge_expired(self, services, db_session, monkeypatch):
        store = services.idempotency
        store.claim("sale:1")
        store.claim("sale:2")
        db_session.commit()

        assert purge_sale_events(store) == 0

        _advance_clock(monkeypatch, 3601)
        assert purge_sale_events(store) == 2
        assert db_session.query(ProcessedSaleEvent).count() == 0

    def test_retention_must_be_positive(self):
        with pytest.raises(ValueError):
            IdempotencyStore(retention_seconds=0)


class TestEventBus:
    def test_listeners_called_in_order(self, laptop):
        calls = []
        bus = SaleEventBus()
        bus.subscribe(lambda e: calls.append(("first", e.sale.id)))
        bus.subscribe(lambda e: calls.append(("second", e.sale.id)))

        sale = SaleRecord(id=5, status="completed", total_amount=laptop.sale_price,
                          total_cost=laptop.cost_price, total_profit=laptop.profit_per_unit)
        bus.publish(SaleCompleted(sale=sale))

        assert calls == [("first", 5), ("second", 5)]

    def test_listener_error_propagates(self, laptop):
        def boom(event):
            raise RuntimeError("listener failed")

        bus = SaleEventBus()
        bus.subscribe(boom)
        sale = SaleRecord(id=6, status="completed", total_amount=laptop.sale_price,
                          total_cost=laptop.cost_price, total_profit=laptop.profit_per_unit)

        with pytest.raises(RuntimeError):
            bus.publish(SaleCompleted(sale=sale))

    def test_idempotency_key(self, laptop):
        sale = SaleRecord(id=42, status="completed", total_amount=laptop.sale_price,
                          total_cost=laptop.cost_price, total_profit=laptop.profit_per_unit)
        assert SaleCompleted(sale=sale).idempotency_key == "sale:42"


class TestRunWithRetry:
    def test_retries_stale_data(self, app, monkeypatch):
        monkeypatch.setattr(concurrency.time, "sleep", lambda s: None)
        attempts = []

        def op():
            attempts.append(1)
            if len(attempts) < 3:
                raise StaleDataError("version mismatch")
            return "ok"

        with app.app_context():
            assert concurrency.run_with_retry(op) == "ok"
        assert len(attempts) == 3

    def test_gives_up_after_attempts(self, app, monkeypatch):
        monkeypatch.setattr(concurrency.time, "sleep", lambda s: None)

        def op():
            raise StaleDataError("version mismatch")

        with app.app_context():
            with pytest.raises(StaleDataError):
                concurrency.run_with_retry(op, attempts=2)

    def test_other_errors_not_retried(self, app):
        attempts = []

        def op():
            attempts.append(1)
            raise KeyError("nope")

        with app.app_context():
            with pytest.raises(KeyError):
                concurrency.run_with_retry(op)
        assert len(attempts) == 1
