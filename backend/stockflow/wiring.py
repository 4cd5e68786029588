# Overview: Builds the service graph for an app and exposes it to routes and CLI.

from __future__ import annotations

from dataclasses import dataclass

from flask import Flask, current_app

from .config import STOCK_CHECK_MODES
from .repositories import ProductRepository, SaleRepository, StockRepository
from .services.events import SaleEventBus
from .services.idempotency_service import IdempotencyStore
from .services.inventory_service import StockLedger
from .services.products_service import ProductCatalog
from .services.reconciler_service import InventoryReconciler
from .services.sales_service import SalesService

EXTENSION_KEY = "stockflow"


@dataclass(frozen=True)
class Services:
    catalog: ProductCatalog
    ledger: StockLedger
    sales: SalesService
    reconciler: InventoryReconciler
    events: SaleEventBus
    idempotency: IdempotencyStore


def build_services(app: Flask) -> Services:
    """Construct repositories and services from app config and register them on the app."""
    mode = app.config["STOCK_CHECK_MODE"]
    if mode not in STOCK_CHECK_MODES:
        raise ValueError(
            f"STOCK_CHECK_MODE must be one of {', '.join(STOCK_CHECK_MODES)}, got {mode!r}"
        )

    products = ProductRepository()
    stock = StockRepository()
    sales = SaleRepository()

    ledger = StockLedger(stock, products, consolidated=(mode == "consolidated"))
    idempotency = IdempotencyStore(retention_seconds=app.config["SALE_EVENT_RETENTION_SECONDS"])
    reconciler = InventoryReconciler(ledger, idempotency)

    events = SaleEventBus()
    events.subscribe(reconciler)

    services = Services(
        catalog=ProductCatalog(products),
        ledger=ledger,
        sales=SalesService(products=products, ledger=ledger, sales=sales, events=events),
        reconciler=reconciler,
        events=events,
        idempotency=idempotency,
    )
    app.extensions[EXTENSION_KEY] = services
    return services


def get_services() -> Services:
    return current_app.extensions[EXTENSION_KEY]
