from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable

from sqlalchemy import Integer, Numeric, String, Text
from sqlalchemy.orm import DeclarativeMeta

from .money import quantize


# Maximum price: 9,999,999.99 (fits NUMERIC(10, 2))
MAX_PRICE = Decimal("9999999.99")


class ValidationError(ValueError):
    """400-level input problem."""


class InvalidPriceError(ValidationError):
    """Price is negative, above MAX_PRICE, or not a number."""


class ConflictError(ValueError):
    """409-level business rule conflict (e.g., duplicate SKU)."""


class DuplicateSKUError(ConflictError):
    """SKU already used by another product."""

    def __init__(self, sku: str):
        super().__init__(f"SKU already exists: {sku}")
        self.sku = sku


class NotFoundError(ValueError):
    """404-level missing entity (product, sale)."""


@dataclass(frozen=True)
class ModelValidationPolicy:
    """
    Central policy layer:
    - writable_fields: what clients are allowed to set (security boundary)
    - required_on_create: fields required for POST
    """
    writable_fields: set[str]
    required_on_create: set[str] = None  # type: ignore


def _columns_by_key(model: DeclarativeMeta) -> dict[str, Any]:
    mapper = model.__mapper__
    return {c.key: c for c in mapper.columns}


def coerce_int(key: str, value: Any) -> int:
    """Strict integer coercion: rejects bools, floats, decimals and scientific notation."""
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            raise ValidationError(f"{key} must be an integer")
        if 'e' in stripped.lower():
            raise ValidationError(f"{key} must be a plain integer (scientific notation not allowed)")
        if '.' in stripped:
            raise ValidationError(f"{key} must be an integer (no decimals)")
        try:
            return int(stripped)
        except ValueError:
            raise ValidationError(f"{key} must be an integer")
    if isinstance(value, float):
        raise ValidationError(f"{key} must be an integer, not a decimal")
    raise ValidationError(f"{key} must be an integer")


def coerce_decimal(key: str, value: Any) -> Decimal:
    if isinstance(value, bool):
        raise InvalidPriceError(f"{key} must be a number")
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, (int, float, str)):
        try:
            result = Decimal(str(value).strip())
        except InvalidOperation:
            raise InvalidPriceError(f"{key} must be a number")
    else:
        raise InvalidPriceError(f"{key} must be a number")
    if not result.is_finite():
        raise InvalidPriceError(f"{key} must be a finite number")
    return result


def _coerce_value(col, value: Any):
    coltype = col.type

    if value is None:
        return None

    if isinstance(coltype, Integer):
        return coerce_int(col.key, value)

    if isinstance(coltype, Numeric):
        return coerce_decimal(col.key, value)

    # Strings / Text
    if isinstance(coltype, (String, Text)):
        if not isinstance(value, str):
            raise ValidationError(f"{col.key} must be a string")
        return value.strip()

    # Default: leave as-is
    return value


def validate_payload(
    *,
    model: DeclarativeMeta,
    payload: dict,
    policy: ModelValidationPolicy,
    partial: bool,
) -> dict:
    """
    Validates + normalizes incoming JSON against:
    - SQLAlchemy column metadata (nullable, type, String length)
    - a policy allowlist (writable_fields)
    - required_on_create (if partial=False)
    Returns a cleaned patch dict with only writable fields.
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    required = policy.required_on_create or set()
    if not partial:
        missing = sorted(f for f in required if f not in payload)
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    cols = _columns_by_key(model)

    # Reject unknown / non-writable fields
    for k in payload.keys():
        if k not in policy.writable_fields:
            raise ValidationError(f"Field not allowed: {k}")
        if k not in cols:
            raise ValidationError(f"Unknown field: {k}")

    patch: dict = {}

    for k, raw in payload.items():
        col = cols[k]

        if raw is None:
            if not col.nullable:
                raise ValidationError(f"{k} cannot be null")
            patch[k] = None
            continue

        val = _coerce_value(col, raw)

        # Blank string check for non-nullable text fields
        if isinstance(col.type, (String, Text)) and not col.nullable:
            if isinstance(val, str) and val == "":
                raise ValidationError(f"{k} cannot be blank")

        # Max length check for String(n)
        if isinstance(col.type, String) and col.type.length and isinstance(val, str):
            if len(val) > col.type.length:
                raise ValidationError(f"{k} exceeds max length {col.type.length}")

        patch[k] = val

    return patch


def enforce_price(key: str, value: Any) -> Decimal:
    """Validated price rounded to cents, matching what NUMERIC(10, 2) stores."""
    price = coerce_decimal(key, value)
    if price < 0:
        raise InvalidPriceError(f"{key} must be >= 0")
    price = quantize(price)
    if price > MAX_PRICE:
        raise InvalidPriceError(f"{key} cannot exceed {MAX_PRICE:,}")
    return price


def enforce_rules_product(patch: dict) -> None:
    """
    Business rules that are not captured by SQLAlchemy metadata alone.
    Keep these small and centralized.
    """
    for key in ("cost_price", "sale_price"):
        if key in patch and patch[key] is not None:
            patch[key] = enforce_price(key, patch[key])


def normalize_sale_items(items: Iterable) -> list[tuple[int, int]]:
    """
    Coerce sale items into [(product_id, quantity), ...], order preserved.

    Items may be {"product_id", "quantity"} objects or (product_id, quantity)
    pairs; quantity must be >= 1 and at least one item is required.
    """
    normalized: list[tuple[int, int]] = []
    for index, item in enumerate(items):
        if isinstance(item, dict):
            unknown = set(item) - {"product_id", "quantity"}
            if unknown:
                raise ValidationError(f"items[{index}]: field not allowed: {', '.join(sorted(unknown))}")
            if "product_id" not in item or "quantity" not in item:
                raise ValidationError(f"items[{index}]: product_id and quantity required")
            product_id, quantity = item["product_id"], item["quantity"]
        elif isinstance(item, (tuple, list)) and len(item) == 2:
            product_id, quantity = item
        else:
            raise ValidationError(f"items[{index}] must be an object")

        product_id = coerce_int(f"items[{index}].product_id", product_id)
        quantity = coerce_int(f"items[{index}].quantity", quantity)
        if quantity < 1:
            raise ValidationError(f"items[{index}].quantity must be >= 1")
        normalized.append((product_id, quantity))

    if not normalized:
        raise ValidationError("items must be a non-empty list")
    return normalized


def parse_sale_items(payload: Any) -> list:
    """Pull the raw item list out of {"items": [...]}; items are checked by normalize_sale_items."""
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")
    items = payload.get("items")
    if not isinstance(items, list) or not items:
        raise ValidationError("items must be a non-empty list")
    return items
