# backend/stockflow/routes/inventory.py
"""
Stock ledger routes.

- GET  /api/inventory        consolidated stock, one entry per product
- POST /api/inventory        restock one product: {"product_id", "quantity"}
- POST /api/inventory/bulk   restock many: [{"product_id", "quantity"}, ...]

Bulk restock applies items in order. When an item fails, the items before it
stay applied and the response reports the failing index; ?atomic=1 applies
the whole batch or nothing.
"""
from flask import Blueprint, request

from ..models import StockEntry
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    ValidationError,
    NotFoundError,
)
from ..services.inventory_service import StockBatchError
from ..decorators import require_auth
from ..wiring import get_services


inventory_bp = Blueprint("inventory", __name__, url_prefix="/api/inventory")

STOCK_POLICY = ModelValidationPolicy(
    writable_fields={"product_id", "quantity"},
    required_on_create={"product_id", "quantity"},
)


@inventory_bp.get("")
@require_auth
def get_inventory_route():
    summaries = get_services().ledger.get_consolidated_stock()
    return {"items": [s.to_dict() for s in summaries], "count": len(summaries)}


@inventory_bp.post("")
@require_auth
def add_stock_route():
    payload = request.get_json(silent=True)

    try:
        patch = validate_payload(model=StockEntry, payload=payload, policy=STOCK_POLICY, partial=False)
        entry = get_services().ledger.add_stock(patch["product_id"], patch["quantity"])
    except NotFoundError as e:
        return {"error": str(e)}, 404
    except ValidationError as e:
        return {"error": str(e)}, 400

    return {"entry": entry.to_dict()}, 201


@inventory_bp.post("/bulk")
@require_auth
def add_bulk_stock_route():
    payload = request.get_json(silent=True)
    atomic = request.args.get("atomic", "0").lower() in {"1", "true", "yes"}

    if not isinstance(payload, list) or not payload:
        return {"error": "Expected a non-empty JSON list of items"}, 400

    items = []
    try:
        for index, raw in enumerate(payload):
            try:
                patch = validate_payload(model=StockEntry, payload=raw, policy=STOCK_POLICY, partial=False)
            except ValidationError as e:
                raise ValidationError(f"Item {index}: {e}")
            items.append((patch["product_id"], patch["quantity"]))

        entries = get_services().ledger.add_bulk_stock(items, atomic=atomic)
    except StockBatchError as e:
        return {
            "error": str(e),
            "failed_index": e.index,
            "applied": [entry.to_dict() for entry in e.applied],
        }, 400
    except ValidationError as e:
        return {"error": str(e)}, 400

    return {"entries": [entry.to_dict() for entry in entries], "count": len(entries)}, 201
