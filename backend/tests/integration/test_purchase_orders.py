"""
Integration Tests — Purchase Order Endpoints

Tests:
- Create, add items, send
- Receiving into raw-material stock and status progression
"""
from fastapi.testclient import TestClient


class TestPurchaseOrders:
    def test_create_with_items(self, client: TestClient, vendor, raw_material):
        resp = client.post("/api/v1/purchase-orders", json={
            "vendor_id": vendor.id,
            "expected_date": "2026-11-15",
            "items": [{"raw_material_id": raw_material.id, "quantity": "100", "unit_price": "2.50"}],
        })
        assert resp.status_code == 201
        po = resp.json()
        assert po["po_number"].startswith("PO-")
        assert po["status"] == "draft"
        assert float(po["total_amount"]) == 250.0

    def test_item_needs_a_target(self, client: TestClient, vendor):
        resp = client.post("/api/v1/purchase-orders", json={
            "vendor_id": vendor.id,
            "items": [{"quantity": "1"}],
        })
        assert resp.status_code == 422

    def test_add_item_then_send(self, client: TestClient, vendor, raw_material):
        po = client.post("/api/v1/purchase-orders", json={"vendor_id": vendor.id}).json()

        resp = client.post(f"/api/v1/purchase-orders/{po['id']}/send")
        assert resp.status_code == 422

        resp = client.post(f"/api/v1/purchase-orders/{po['id']}/items", json={
            "raw_material_id": raw_material.id, "quantity": "8", "unit_price": "2",
        })
        assert resp.status_code == 200
        assert float(resp.json()["total_amount"]) == 16.0

        resp = client.post(f"/api/v1/purchase-orders/{po['id']}/send")
        assert resp.status_code == 200
        assert resp.json()["status"] == "sent"

    def test_receive_updates_status_and_stock(self, client: TestClient, vendor, raw_material, warehouse):
        po = client.post("/api/v1/purchase-orders", json={
            "vendor_id": vendor.id,
            "items": [{"raw_material_id": raw_material.id, "quantity": "30"}],
        }).json()
        client.post(f"/api/v1/purchase-orders/{po['id']}/send")
        item_id = po["items"][0]["id"]

        resp = client.post(f"/api/v1/purchase-orders/{po['id']}/receive", json={
            "item_id": item_id, "quantity": "10", "warehouse_id": warehouse.id,
        })
        assert resp.status_code == 200
        assert resp.json()["status"] == "partial"
        assert float(resp.json()["items"][0]["received_quantity"]) == 10.0

        resp = client.post(f"/api/v1/purchase-orders/{po['id']}/receive", json={
            "item_id": item_id, "quantity": "25", "warehouse_id": warehouse.id,
        })
        assert resp.status_code == 422

        resp = client.post(f"/api/v1/purchase-orders/{po['id']}/receive", json={
            "item_id": item_id, "quantity": "20", "warehouse_id": warehouse.id,
        })
        assert resp.json()["status"] == "received"

    def test_cancel_draft(self, client: TestClient, vendor):
        po = client.post("/api/v1/purchase-orders", json={"vendor_id": vendor.id}).json()

        resp = client.patch(f"/api/v1/purchase-orders/{po['id']}/status", json={"status": "cancelled"})
        assert resp.status_code == 200
        assert resp.json()["status"] == "cancelled"

        resp = client.patch(f"/api/v1/purchase-orders/{po['id']}/status", json={"status": "sent"})
        assert resp.status_code == 409

    def test_filter_by_vendor(self, client: TestClient, vendor):
        client.post("/api/v1/purchase-orders", json={"vendor_id": vendor.id})

        assert len(client.get("/api/v1/purchase-orders", params={"vendor_id": vendor.id}).json()) == 1
        assert client.get("/api/v1/purchase-orders", params={"vendor_id": 99999}).json() == []
