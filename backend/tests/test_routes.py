"""
HTTP API tests.

Verifies status codes and response shapes for products, inventory, sales,
the health check and bearer-token authentication.
"""

import pytest


def _create_product(client, **overrides):
    payload = {
        "sku": "KB-001",
        "name": "Keyboard",
        "cost_price": "25.00",
        "sale_price": "40.00",
    }
    payload.update(overrides)
    return client.post("/api/products", json=payload)


# ============================================================================
# PRODUCTS
# ============================================================================

class TestProductRoutes:
    def test_create_product(self, client, db_session):
        response = _create_product(client, description="Mechanical")

        assert response.status_code == 201
        data = response.get_json()
        assert data["sku"] == "KB-001"
        assert data["cost_price"] == "25.00"
        assert data["sale_price"] == "40.00"
        assert data["profit_margin"] == "37.50"
        assert data["created_at"].endswith("Z")

    def test_duplicate_sku_conflict(self, client, db_session):
        assert _create_product(client).status_code == 201
        response = _create_product(client, name="Other")

        assert response.status_code == 409
        assert "KB-001" in response.get_json()["error"]

    def test_negative_price(self, client, db_session):
        response = _create_product(client, sale_price=-1)
        assert response.status_code == 400

    def test_missing_fields(self, client, db_session):
        response = client.post("/api/products", json={"sku": "X"})
        assert response.status_code == 400
        assert "Missing required fields" in response.get_json()["error"]

    def test_unknown_field(self, client, db_session):
        response = _create_product(client, id=5)
        assert response.status_code == 400

    def test_get_and_list(self, client, laptop, mouse):
        response = client.get(f"/api/products/{laptop.id}")
        assert response.status_code == 200
        assert response.get_json()["name"] == "Notebook"

        listing = client.get("/api/products").get_json()
        assert listing["count"] == 2

    def test_get_missing_product(self, client, db_session):
        assert client.get("/api/products/404").status_code == 404


# ============================================================================
# INVENTORY
# ============================================================================

class TestInventoryRoutes:
    def test_add_stock(self, client, laptop):
        response = client.post("/api/inventory", json={"product_id": laptop.id, "quantity": 5})

        assert response.status_code == 201
        assert response.get_json()["entry"]["quantity"] == 5

        again = client.post("/api/inventory", json={"product_id": laptop.id, "quantity": 3})
        assert again.get_json()["entry"]["quantity"] == 8

    def test_add_stock_unknown_product(self, client, db_session):
        response = client.post("/api/inventory", json={"product_id": 999, "quantity": 1})
        assert response.status_code == 404

    @pytest.mark.parametrize("quantity", [0, -3, 1.5, "abc"])
    def test_add_stock_bad_quantity(self, client, laptop, quantity):
        response = client.post("/api/inventory", json={"product_id": laptop.id, "quantity": quantity})
        assert response.status_code == 400

    def test_consolidated_listing(self, client, stocked_laptop):
        response = client.get("/api/inventory")

        assert response.status_code == 200
        data = response.get_json()
        assert data["count"] == 1
        item = data["items"][0]
        assert item["quantity"] == 50
        assert item["total_cost_value"] == "40000.00"
        assert item["total_sale_value"] == "60000.00"
        assert item["projected_profit"] == "20000.00"
        assert item["profit_margin_percentage"] == "33.33"

    def test_bulk(self, client, laptop, mouse):
        response = client.post("/api/inventory/bulk", json=[
            {"product_id": laptop.id, "quantity": 2},
            {"product_id": mouse.id, "quantity": 4},
            {"product_id": laptop.id, "quantity": 1},
        ])

        assert response.status_code == 201
        data = response.get_json()
        assert data["count"] == 3
        assert [e["quantity"] for e in data["entries"]] == [2, 4, 3]

    def test_bulk_partial_failure(self, client, laptop, on_hand):
        response = client.post("/api/inventory/bulk", json=[
            {"product_id": laptop.id, "quantity": 2},
            {"product_id": 999, "quantity": 4},
        ])

        assert response.status_code == 400
        data = response.get_json()
        assert data["failed_index"] == 1
        assert len(data["applied"]) == 1
        assert on_hand(laptop.id) == 2

    def test_bulk_atomic_failure(self, client, laptop, on_hand):
        response = client.post("/api/inventory/bulk?atomic=1", json=[
            {"product_id": laptop.id, "quantity": 2},
            {"product_id": 999, "quantity": 4},
        ])

        assert response.status_code == 400
        assert response.get_json()["applied"] == []
        assert on_hand(laptop.id) == 0

    def test_bulk_rejects_non_list(self, client, db_session):
        response = client.post("/api/inventory/bulk", json={"product_id": 1, "quantity": 1})
        assert response.status_code == 400

    def test_bulk_item_shape_error(self, client, laptop, on_hand):
        response = client.post("/api/inventory/bulk", json=[
            {"product_id": laptop.id, "quantity": 2},
            {"product_id": laptop.id},
        ])

        assert response.status_code == 400
        assert response.get_json()["error"].startswith("Item 1:")
        assert on_hand(laptop.id) == 0


# ============================================================================
# SALES
# ============================================================================

class TestSaleRoutes:
    def test_create_sale(self, client, stocked_laptop, on_hand):
        response = client.post("/api/sales", json={"items": [{"product_id": stocked_laptop.id, "quantity": 1}]})

        assert response.status_code == 201
        sale = response.get_json()["sale"]
        assert sale["status"] == "completed"
        assert sale["total_amount"] == "1200.00"
        assert sale["total_cost"] == "800.00"
        assert sale["total_profit"] == "400.00"
        assert sale["items"][0]["product"]["sku"] == "NB-001"
        assert on_hand(stocked_laptop.id) == 49

        fetched = client.get(f"/api/sales/{sale['id']}")
        assert fetched.status_code == 200
        assert fetched.get_json()["sale"]["id"] == sale["id"]

    def test_insufficient_stock(self, client, stocked_laptop):
        response = client.post("/api/sales", json={"items": [{"product_id": stocked_laptop.id, "quantity": 60}]})

        assert response.status_code == 400
        data = response.get_json()
        assert data["details"]["available"] == 50
        assert data["details"]["requested"] == 60

    def test_out_of_stock(self, client, laptop):
        response = client.post("/api/sales", json={"items": [{"product_id": laptop.id, "quantity": 1}]})
        assert response.status_code == 400
        assert response.get_json()["details"]["sku"] == "NB-001"

    def test_unknown_product(self, client, db_session):
        response = client.post("/api/sales", json={"items": [{"product_id": 999, "quantity": 1}]})
        assert response.status_code == 404

    @pytest.mark.parametrize("payload", [
        None,
        {},
        {"items": []},
        {"items": [{"product_id": 1}]},
        {"items": [{"product_id": 1, "quantity": 0}]},
        {"items": [{"product_id": 1, "quantity": 1, "price": "1.00"}]},
    ])
    def test_bad_payload(self, client, db_session, payload):
        response = client.post("/api/sales", json=payload)
        assert response.status_code == 400

    def test_get_missing_sale(self, client, db_session):
        assert client.get("/api/sales/31337").status_code == 404


# ============================================================================
# SYSTEM AND AUTH
# ============================================================================

class TestHealth:
    def test_health(self, client, db_session):
        response = client.get("/health")
        assert response.status_code == 200
        data = response.get_json()
        assert data["status"] == "healthy"
        assert data["checks"]["database"]["status"] == "healthy"


class TestAuthentication:
    @pytest.fixture(autouse=True)
    def tokens(self, app, monkeypatch):
        monkeypatch.setitem(app.config, "API_TOKENS", {"secret": "tester"})

    def test_missing_header(self, client, db_session):
        response = client.get("/api/products")
        assert response.status_code == 401
        assert response.get_json()["error"] == "Authentication required"

    def test_invalid_token(self, client, db_session):
        response = client.get("/api/products", headers={"Authorization": "Bearer wrong"})
        assert response.status_code == 401
        assert response.get_json()["error"] == "Invalid token"

    def test_valid_token(self, client, db_session):
        response = client.get("/api/products", headers={"Authorization": "Bearer secret"})
        assert response.status_code == 200

    def test_health_is_public(self, client, db_session):
        assert client.get("/health").status_code == 200
