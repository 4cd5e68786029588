# Overview: Flask API routes for sales; parses input and returns JSON responses.

"""Sales API routes"""

from flask import Blueprint, request, jsonify, current_app

from ..validation import ValidationError, NotFoundError, parse_sale_items
from ..services.sales_service import SaleError
from ..services.inventory_service import ConsistencyViolation
from ..decorators import require_auth
from ..wiring import get_services


sales_bp = Blueprint("sales", __name__, url_prefix="/api/sales")


@sales_bp.post("")
@require_auth
def create_sale_route():
    """
    Create and complete a sale.

    Body: {"items": [{"product_id": 1, "quantity": 2}, ...]}
    400 with details when stock is missing or insufficient.
    """
    try:
        items = parse_sale_items(request.get_json(silent=True))
        sale = get_services().sales.create_sale(items)
        return jsonify({"sale": sale.to_dict()}), 201

    except SaleError as e:
        return jsonify({"error": str(e), "details": e.details}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except ConsistencyViolation:
        current_app.logger.exception("Inventory consistency violation while creating sale")
        return jsonify({"error": "Internal server error"}), 500
    except Exception:
        current_app.logger.exception("Failed to create sale")
        return jsonify({"error": "Internal server error"}), 500


@sales_bp.get("/<int:sale_id>")
@require_auth
def get_sale_route(sale_id: int):
    """Get sale with line items and their products."""
    try:
        sale = get_services().sales.get_sale_details(sale_id)
    except NotFoundError:
        return jsonify({"error": "Sale not found"}), 404

    return jsonify({"sale": sale.to_dict()}), 200
