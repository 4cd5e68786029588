"""
Pytest fixtures for stockflow backend tests.

Provides an in-memory application, a per-test clean database, the service
bundle and a few catalog/stock fixtures.
"""

from decimal import Decimal

import pytest
from stockflow import create_app
from stockflow.extensions import db
from stockflow.wiring import get_services


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'API_TOKENS': {},
        'STOCK_CHECK_MODE': 'consolidated',
        'SALE_EVENT_RETENTION_SECONDS': 3600,
    })

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Create fresh database for each test."""
    with app.app_context():
        # Clear all data but keep schema
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        yield db.session

        # Cleanup after test
        db.session.rollback()


@pytest.fixture(scope='function')
def services(db_session):
    """Service bundle wired by create_app."""
    return get_services()


@pytest.fixture(scope='function')
def laptop(services):
    """Product costing 800.00, selling at 1200.00."""
    return services.catalog.create_product(
        sku="NB-001",
        name="Notebook",
        cost_price=Decimal("800.00"),
        sale_price=Decimal("1200.00"),
        description="14 inch notebook",
    )


@pytest.fixture(scope='function')
def mouse(services):
    """Product costing 10.00, selling at 15.00."""
    return services.catalog.create_product(
        sku="MS-001",
        name="Mouse",
        cost_price=Decimal("10.00"),
        sale_price=Decimal("15.00"),
    )


@pytest.fixture(scope='function')
def stocked_laptop(services, laptop):
    """Laptop with 50 units on hand."""
    services.ledger.add_stock(laptop.id, 50)
    return laptop


@pytest.fixture(scope='function')
def on_hand(services):
    """Consolidated quantity lookup: on_hand(product_id) -> int (0 without stock)."""
    def _on_hand(product_id: int) -> int:
        for summary in services.ledger.get_consolidated_stock():
            if summary.product_id == product_id:
                return summary.quantity
        return 0
    return _on_hand
