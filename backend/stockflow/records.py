# Overview: Immutable value objects returned by the repositories.
"""
Records are assembled explicitly by the persistence layer from query
results. They never hold a session or lazy relations, so services and
routes can pass them around after the transaction has ended.

Monetary fields are Decimal; to_dict() renders them as 2-place strings and
datetimes as ISO-8601 'Z' strings.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Optional

from .money import ZERO, format_money, margin_percentage, quantize
from .time_utils import to_utc_z


@dataclass(frozen=True)
class ProductRecord:
    id: int
    sku: str
    name: str
    description: Optional[str]
    cost_price: Decimal
    sale_price: Decimal
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def profit_per_unit(self) -> Decimal:
        return quantize(self.sale_price - self.cost_price)

    @property
    def profit_margin(self) -> Decimal:
        return margin_percentage(self.sale_price, self.cost_price)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "sku": self.sku,
            "name": self.name,
            "description": self.description,
            "cost_price": format_money(self.cost_price),
            "sale_price": format_money(self.sale_price),
            "profit_per_unit": format_money(self.profit_per_unit),
            "profit_margin": format_money(self.profit_margin),
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


@dataclass(frozen=True)
class StockEntryRecord:
    id: int
    product_id: int
    quantity: int
    last_updated: Optional[datetime]
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "product_id": self.product_id,
            "quantity": self.quantity,
            "last_updated": to_utc_z(self.last_updated),
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


@dataclass(frozen=True)
class StockSummary:
    """Consolidated view of every stock row for one product."""
    product_id: int
    product: ProductRecord
    quantity: int
    total_cost_value: Decimal
    total_sale_value: Decimal
    projected_profit: Decimal
    profit_margin_percentage: Decimal
    last_updated: Optional[datetime]
    created_at: Optional[datetime]
    updated_at: Optional[datetime]

    def to_dict(self) -> dict:
        return {
            "product_id": self.product_id,
            "product": {
                "sku": self.product.sku,
                "name": self.product.name,
                "description": self.product.description,
                "cost_price": format_money(self.product.cost_price),
                "sale_price": format_money(self.product.sale_price),
            },
            "quantity": self.quantity,
            "total_cost_value": format_money(self.total_cost_value),
            "total_sale_value": format_money(self.total_sale_value),
            "projected_profit": format_money(self.projected_profit),
            "profit_margin_percentage": format_money(self.profit_margin_percentage),
            "last_updated": to_utc_z(self.last_updated),
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


@dataclass(frozen=True)
class SaleLineItemRecord:
    id: int
    sale_id: int
    product_id: int
    quantity: int
    unit_price: Decimal
    unit_cost: Decimal
    product: Optional[ProductRecord] = None

    @property
    def subtotal(self) -> Decimal:
        return quantize(self.unit_price * self.quantity)

    @property
    def total_cost(self) -> Decimal:
        return quantize(self.unit_cost * self.quantity)

    @property
    def profit(self) -> Decimal:
        return self.subtotal - self.total_cost

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "sale_id": self.sale_id,
            "product_id": self.product_id,
            "quantity": self.quantity,
            "unit_price": format_money(self.unit_price),
            "unit_cost": format_money(self.unit_cost),
            "subtotal": format_money(self.subtotal),
            "total_cost": format_money(self.total_cost),
            "profit": format_money(self.profit),
            "product": self.product.to_dict() if self.product else None,
        }


@dataclass(frozen=True)
class SaleRecord:
    id: int
    status: str
    total_amount: Decimal
    total_cost: Decimal
    total_profit: Decimal
    items: tuple[SaleLineItemRecord, ...] = field(default_factory=tuple)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def profit_margin(self) -> Decimal:
        if self.total_amount <= 0:
            return ZERO
        return quantize(self.total_profit / self.total_amount * 100)

    @property
    def total_items(self) -> int:
        return sum(item.quantity for item in self.items)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "status": self.status,
            "total_amount": format_money(self.total_amount),
            "total_cost": format_money(self.total_cost),
            "total_profit": format_money(self.total_profit),
            "profit_margin": format_money(self.profit_margin),
            "total_items": self.total_items,
            "items": [item.to_dict() for item in self.items],
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
