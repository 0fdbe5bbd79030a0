"""
Integration Tests — Catalog Endpoints

Tests:
- Products, warehouses, vendors, raw materials
- BOM creation and activation
- Channel listings and sales orders
"""
from fastapi.testclient import TestClient


class TestProducts:
    def test_create_product(self, client: TestClient):
        resp = client.post("/api/v1/catalog/products", json={
            "sku": "SKU-CAP-001",
            "name": "Canvas Cap",
            "unit_cost": "3.20",
        })
        assert resp.status_code == 201
        data = resp.json()
        assert data["sku"] == "SKU-CAP-001"
        assert data["status"] == "active"

    def test_duplicate_sku_is_rejected(self, client: TestClient, product):
        resp = client.post("/api/v1/catalog/products", json={"sku": product.sku, "name": "Copy"})
        assert resp.status_code == 422
        assert resp.json()["error"]["code"] == "VALIDATION_ERROR"

    def test_get_nonexistent_product_returns_404(self, client: TestClient):
        resp = client.get("/api/v1/catalog/products/99999")
        assert resp.status_code == 404
        body = resp.json()
        assert body["success"] is False
        assert body["error"]["code"] == "NOT_FOUND"

    def test_list_products(self, client: TestClient, product):
        resp = client.get("/api/v1/catalog/products")
        assert resp.status_code == 200
        assert [p["id"] for p in resp.json()] == [product.id]


class TestBoms:
    def test_create_and_activate_bom(self, client: TestClient, product, raw_material):
        resp = client.post("/api/v1/catalog/boms", json={
            "product_id": product.id,
            "name": "Tee v2",
            "version": "2.0",
            "components": [
                {"raw_material_id": raw_material.id, "name": "Cotton", "quantity": "1.5", "unit": "m"},
            ],
        })
        assert resp.status_code == 201
        bom = resp.json()
        assert bom["status"] == "draft"

        resp = client.post(f"/api/v1/catalog/boms/{bom['id']}/activate")
        assert resp.status_code == 200
        assert resp.json()["status"] == "active"

        resp = client.get(f"/api/v1/catalog/products/{product.id}/active-bom")
        assert resp.status_code == 200
        assert resp.json()["id"] == bom["id"]
        assert float(resp.json()["components"][0]["quantity"]) == 1.5

    def test_activating_replaces_previous_active_bom(self, client: TestClient, product, raw_material, bom):
        resp = client.post("/api/v1/catalog/boms", json={
            "product_id": product.id,
            "name": "Tee v2",
            "activate": True,
            "components": [{"raw_material_id": raw_material.id, "name": "Cotton", "quantity": "3"}],
        })
        assert resp.status_code == 201

        statuses = {b["id"]: b["status"] for b in client.get(
            "/api/v1/catalog/boms", params={"product_id": product.id}
        ).json()}
        assert statuses[resp.json()["id"]] == "active"
        assert statuses[bom.id] != "active"

    def test_missing_active_bom_returns_404(self, client: TestClient, product):
        resp = client.get(f"/api/v1/catalog/products/{product.id}/active-bom")
        assert resp.status_code == 404


class TestChannelListings:
    def test_listing_requires_channel_filter(self, client: TestClient):
        resp = client.get("/api/v1/catalog/channel-listings")
        assert resp.status_code == 422

    def test_create_and_filter_listings(self, client: TestClient, product, warehouse):
        for channel in ("shopify", "amazon"):
            resp = client.post("/api/v1/catalog/channel-listings", json={
                "channel": channel,
                "product_id": product.id,
                "warehouse_id": warehouse.id,
                "channel_reported_quantity": "7",
            })
            assert resp.status_code == 201

        resp = client.get("/api/v1/catalog/channel-listings", params={"channel": "amazon"})
        assert resp.status_code == 200
        assert [item["channel"] for item in resp.json()] == ["amazon"]


class TestSalesOrders:
    def test_create_sales_order(self, client: TestClient, product):
        resp = client.post("/api/v1/catalog/sales-orders", json={
            "channel": "shopify",
            "order_date": "2026-10-01T12:00:00",
            "lines": [{"product_id": product.id, "quantity": "4", "unit_price": "19.99"}],
        })
        assert resp.status_code == 201
        assert resp.json()["status"] == "confirmed"

    def test_sales_order_needs_lines(self, client: TestClient):
        resp = client.post("/api/v1/catalog/sales-orders", json={
            "order_date": "2026-10-01T12:00:00",
            "lines": [],
        })
        assert resp.status_code == 422
