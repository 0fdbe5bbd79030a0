"""
Integration Tests — Forecasting Endpoints

Tests:
- POST /api/v1/forecasting/generate (deterministic fallback without a reasoning key)
- Listing, retrieval and status transitions
- Accuracy snapshots against booked sales
"""
from datetime import timedelta

from fastapi.testclient import TestClient

from opsplan.utils.clock import utcnow


class TestForecastGeneration:
    def test_generate_uses_historical_average_offline(self, client: TestClient, product):
        order_date = (utcnow() - timedelta(days=1)).isoformat()
        client.post("/api/v1/catalog/sales-orders", json={
            "order_date": order_date,
            "lines": [{"product_id": product.id, "quantity": "40"}],
        })

        resp = client.post("/api/v1/forecasting/generate", json={
            "product_ids": [product.id],
            "forecast_months": 3,
        })
        assert resp.status_code == 201
        (forecast,) = resp.json()
        assert forecast["product_id"] == product.id
        assert forecast["method"] == "historical_avg"
        assert forecast["status"] == "active"
        assert forecast["forecast_number"].startswith("FC-")
        assert float(forecast["forecasted_quantity"]) == 120.0
        assert forecast["data_points_used"] == 1

    def test_generate_without_history_forecasts_zero(self, client: TestClient, product):
        resp = client.post("/api/v1/forecasting/generate", json={"product_ids": [product.id]})
        assert resp.status_code == 201
        assert float(resp.json()[0]["forecasted_quantity"]) == 0.0

    def test_generate_for_unknown_product_returns_404(self, client: TestClient):
        resp = client.post("/api/v1/forecasting/generate", json={"product_ids": [99999]})
        assert resp.status_code == 404

    def test_generate_validates_horizon(self, client: TestClient, product):
        resp = client.post("/api/v1/forecasting/generate", json={
            "product_ids": [product.id],
            "forecast_months": 0,
        })
        assert resp.status_code == 422


class TestForecastQueries:
    def test_list_and_get(self, client: TestClient, product, make_forecast):
        forecast = make_forecast(product.id, 300)

        listed = client.get("/api/v1/forecasting/forecasts", params={"product_id": product.id}).json()
        assert [f["id"] for f in listed] == [forecast.id]

        resp = client.get(f"/api/v1/forecasting/forecasts/{forecast.id}")
        assert resp.status_code == 200
        assert float(resp.json()["forecasted_quantity"]) == 300.0

    def test_status_transition(self, client: TestClient, product, make_forecast):
        forecast = make_forecast(product.id, 300)

        resp = client.patch(f"/api/v1/forecasting/forecasts/{forecast.id}/status", json={"status": "superseded"})
        assert resp.status_code == 200
        assert resp.json()["status"] == "superseded"

        resp = client.patch(f"/api/v1/forecasting/forecasts/{forecast.id}/status", json={"status": "active"})
        assert resp.status_code == 409
        assert resp.json()["error"]["code"] == "INVALID_STATE_TRANSITION"


class TestForecastAccuracy:
    def test_record_and_list_accuracy(self, client: TestClient, product, make_forecast):
        today = utcnow().date()
        forecast = make_forecast(
            product.id, 80, period_start=today - timedelta(days=10), period_end=today + timedelta(days=20),
        )
        client.post("/api/v1/catalog/sales-orders", json={
            "order_date": (utcnow() - timedelta(hours=1)).isoformat(),
            "lines": [{"product_id": product.id, "quantity": "100"}],
        })

        resp = client.post(f"/api/v1/forecasting/forecasts/{forecast.id}/accuracy")
        assert resp.status_code == 201
        record = resp.json()
        assert record["demand_forecast_id"] == forecast.id
        assert float(record["actual_quantity"]) == 100.0
        assert float(record["variance_quantity"]) == 20.0
        assert float(record["variance_percent"]) == 25.0

        history = client.get("/api/v1/forecasting/accuracy", params={"product_id": product.id}).json()
        assert [h["id"] for h in history] == [record["id"]]

    def test_accuracy_for_future_period_is_rejected(self, client: TestClient, product, make_forecast):
        today = utcnow().date()
        forecast = make_forecast(product.id, 80, period_start=today + timedelta(days=40), period_end=today + timedelta(days=70))

        resp = client.post(f"/api/v1/forecasting/forecasts/{forecast.id}/accuracy")
        assert resp.status_code == 422
        assert resp.json()["error"]["code"] == "VALIDATION_ERROR"

    def test_accuracy_for_unknown_forecast_returns_404(self, client: TestClient):
        resp = client.post("/api/v1/forecasting/forecasts/99999/accuracy")
        assert resp.status_code == 404
