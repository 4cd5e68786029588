# Overview: Flask API routes for the product catalog; parses input and returns JSON responses.

from flask import Blueprint, request, current_app, g

from ..models import Product
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    enforce_rules_product,
    ValidationError,
    ConflictError,
    NotFoundError,
)
from ..decorators import require_auth
from ..wiring import get_services

PRODUCT_POLICY = ModelValidationPolicy(
    writable_fields={"sku", "name", "description", "cost_price", "sale_price"},
    required_on_create={"sku", "name", "cost_price", "sale_price"},
)

products_bp = Blueprint("products", __name__, url_prefix="/api/products")


@products_bp.get("")
@require_auth
def list_products():
    products = get_services().catalog.list_products()
    return {"items": [p.to_dict() for p in products], "count": len(products)}


@products_bp.post("")
@require_auth
def create_product_route():
    """Create a new product. 409 when the SKU is taken."""
    payload = request.get_json(silent=True)

    try:
        patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=False)
        enforce_rules_product(patch)
        created = get_services().catalog.create_product(
            sku=patch["sku"],
            name=patch["name"],
            cost_price=patch["cost_price"],
            sale_price=patch["sale_price"],
            description=patch.get("description"),
        )
    except ValidationError as e:
        return {"error": str(e)}, 400
    except ConflictError as e:
        return {"error": str(e)}, 409

    current_app.logger.info("Product %s created by %s", created.id, g.caller)
    return created.to_dict(), 201


@products_bp.get("/<int:product_id>")
@require_auth
def get_product_route(product_id: int):
    try:
        product = get_services().catalog.get_product(product_id)
    except NotFoundError as e:
        return {"error": str(e)}, 404
    return product.to_dict(), 200
