"""
Integration Tests — Suggested Purchase Order Endpoints

Tests:
- Generation from a production plan
- Approve (exactly one PO) and reject flows
"""
import pytest
from fastapi.testclient import TestClient


@pytest.fixture()
def plan_id(client: TestClient, product, bom, make_forecast):
    forecast = make_forecast(product.id, 300)
    resp = client.post("/api/v1/production-plans/generate", json={
        "forecast_id": forecast.id,
        "safety_stock_percent": 0,
    })
    return resp.json()["id"]


def _generate(client: TestClient, plan_id: int):
    resp = client.post("/api/v1/suggested-pos/generate", json={"production_plan_id": plan_id})
    assert resp.status_code == 201
    return resp.json()


class TestSuggestionGeneration:
    def test_generate_groups_requirements_by_vendor(self, client: TestClient, plan_id, vendor):
        result = _generate(client, plan_id)

        assert result["skipped_requirement_ids"] == []
        (spo,) = result["suggested"]
        assert spo["spo_number"].startswith("SPO-")
        assert spo["vendor_id"] == vendor.id
        assert spo["status"] == "pending"
        assert spo["vendor_lead_time_days"] == 14
        assert spo["rationale_source"] == "template"
        assert 0 <= spo["priority_score"] <= 100
        (item,) = spo["items"]
        assert float(item["quantity"]) == 660.0
        assert float(spo["total_amount"]) == 1650.0

    def test_generate_for_missing_plan_returns_404(self, client: TestClient):
        resp = client.post("/api/v1/suggested-pos/generate", json={"production_plan_id": 99999})
        assert resp.status_code == 404

    def test_list_pending(self, client: TestClient, plan_id):
        _generate(client, plan_id)

        resp = client.get("/api/v1/suggested-pos", params={"status": "pending"})
        assert resp.status_code == 200
        assert len(resp.json()) == 1

    def test_generating_again_does_not_duplicate(self, client: TestClient, plan_id):
        first = _generate(client, plan_id)["suggested"]

        again = _generate(client, plan_id)

        assert again["suggested"] == []
        listed = client.get("/api/v1/suggested-pos", params={"production_plan_id": plan_id}).json()
        assert [s["id"] for s in listed] == [first[0]["id"]]


class TestSuggestionDecisions:
    def test_approve_creates_draft_purchase_order_once(self, client: TestClient, plan_id):
        spo = _generate(client, plan_id)["suggested"][0]

        resp = client.post(f"/api/v1/suggested-pos/{spo['id']}/approve", json={"decided_by": "planner"})
        assert resp.status_code == 200
        po = resp.json()
        assert po["status"] == "draft"
        assert po["suggested_po_id"] == spo["id"]
        assert float(po["total_amount"]) == float(spo["total_amount"])

        again = client.post(f"/api/v1/suggested-pos/{spo['id']}/approve")
        assert again.status_code == 409
        assert again.json()["error"]["code"] == "ALREADY_CONVERTED"

        spo_after = client.get(f"/api/v1/suggested-pos/{spo['id']}").json()
        assert spo_after["status"] == "converted"
        assert spo_after["converted_po_id"] == po["id"]
        assert spo_after["decided_by"] == "planner"
        assert len(client.get("/api/v1/purchase-orders").json()) == 1

    def test_reject_then_approve_is_refused(self, client: TestClient, plan_id):
        spo = _generate(client, plan_id)["suggested"][0]

        resp = client.post(f"/api/v1/suggested-pos/{spo['id']}/reject", json={
            "reason": "Supplier on credit hold",
            "decided_by": "buyer",
        })
        assert resp.status_code == 200
        assert resp.json()["status"] == "rejected"
        assert resp.json()["rejection_reason"] == "Supplier on credit hold"

        resp = client.post(f"/api/v1/suggested-pos/{spo['id']}/approve")
        assert resp.status_code == 409
        assert resp.json()["error"]["code"] == "INVALID_STATE_TRANSITION"
        assert client.get("/api/v1/purchase-orders").json() == []

    def test_reject_requires_reason(self, client: TestClient, plan_id):
        spo = _generate(client, plan_id)["suggested"][0]

        resp = client.post(f"/api/v1/suggested-pos/{spo['id']}/reject", json={"reason": ""})
        assert resp.status_code == 422
