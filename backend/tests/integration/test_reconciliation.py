"""
Integration Tests — Reconciliation Endpoints

Tests:
- Running a channel reconciliation against ledger availability
- Line listing and resolution
"""
import pytest
from fastapi.testclient import TestClient


@pytest.fixture()
def shopify_listing(client: TestClient, product, warehouse, lot):
    resp = client.post("/api/v1/catalog/channel-listings", json={
        "channel": "shopify",
        "store_id": "main",
        "product_id": product.id,
        "warehouse_id": warehouse.id,
        "channel_reported_quantity": "102",
    })
    return resp.json()


class TestReconciliationRuns:
    def test_run_classifies_listing(self, client: TestClient, shopify_listing):
        resp = client.post("/api/v1/reconciliation/runs", json={"channel": "shopify", "store_id": "main"})
        assert resp.status_code == 201
        run = resp.json()
        assert run["run_number"].startswith("REC-")
        assert run["status"] == "completed"
        assert (run["total_lines"], run["warning_lines"]) == (1, 1)

        (line,) = run["lines"]
        assert line["listing_id"] == shopify_listing["id"]
        assert float(line["internal_qty"]) == 100.0
        assert float(line["channel_qty"]) == 102.0
        assert line["status"] == "warning"
        assert line["suggested_action"] == "push_internal_to_channel"

    def test_run_for_unlisted_channel_is_empty(self, client: TestClient, shopify_listing):
        resp = client.post("/api/v1/reconciliation/runs", json={"channel": "etsy"})
        assert resp.status_code == 201
        assert resp.json()["total_lines"] == 0
        assert resp.json()["lines"] == []

    def test_run_requires_channel(self, client: TestClient):
        resp = client.post("/api/v1/reconciliation/runs", json={"channel": ""})
        assert resp.status_code == 422

    def test_list_and_get_runs(self, client: TestClient, shopify_listing):
        run_id = client.post("/api/v1/reconciliation/runs", json={"channel": "shopify"}).json()["id"]

        listed = client.get("/api/v1/reconciliation/runs", params={"channel": "shopify"}).json()
        assert [r["id"] for r in listed] == [run_id]
        assert client.get(f"/api/v1/reconciliation/runs/{run_id}").status_code == 200
        assert client.get("/api/v1/reconciliation/runs/99999").status_code == 404


class TestReconciliationLines:
    def test_resolve_line_once(self, client: TestClient, shopify_listing):
        run_id = client.post("/api/v1/reconciliation/runs", json={"channel": "shopify"}).json()["id"]
        (line,) = client.get(f"/api/v1/reconciliation/runs/{run_id}/lines", params={"status": "warning"}).json()

        resp = client.post(f"/api/v1/reconciliation/lines/{line['id']}/resolve", json={"note": "Pushed 100 to Shopify"})
        assert resp.status_code == 200
        assert resp.json()["resolution_note"] == "Pushed 100 to Shopify"
        assert resp.json()["resolved_at"] is not None

        again = client.post(f"/api/v1/reconciliation/lines/{line['id']}/resolve", json={"note": "again"})
        assert again.status_code == 409

    def test_resolve_requires_note(self, client: TestClient, shopify_listing):
        run_id = client.post("/api/v1/reconciliation/runs", json={"channel": "shopify"}).json()["id"]
        line_id = client.get(f"/api/v1/reconciliation/runs/{run_id}/lines").json()[0]["id"]

        resp = client.post(f"/api/v1/reconciliation/lines/{line_id}/resolve", json={"note": ""})
        assert resp.status_code == 422
