import json
from datetime import date, datetime
from decimal import Decimal

import pytest

from opsplan.core.exceptions import (
    EntityNotFoundException,
    InvalidStateTransitionException,
    ValidationException,
)
from opsplan.ml.strategies import HistoricalAverageStrategy, build_monthly_frame
from opsplan.schemas.catalog import ProductCreate, SalesOrderCreate, SalesOrderLineCreate
from opsplan.services.forecast_service import ForecastService
from opsplan.services.reasoning_service import ReasoningResult
from opsplan.utils.events import ForecastGeneratedEvent


NOW = datetime(2026, 10, 19, 9, 30)


class StaticHistory:
    def __init__(self, lines):
        self.lines = lines

    def order_lines(self, since, product_ids=None):
        return [line for line in self.lines if line[2] >= since]

def _history(product_id):
    # July and September sold, August had no orders.
    return StaticHistory([
        (product_id, Decimal("60"), datetime(2026, 7, 3)),
        (product_id, Decimal("40"), datetime(2026, 7, 21)),
        (product_id, Decimal("200"), datetime(2026, 9, 12)),
    ])

def test_monthly_frame_fills_gaps_between_sales_months():
    df = build_monthly_frame([
        (datetime(2026, 7, 3), 60),
        (datetime(2026, 7, 21), 40),
        (datetime(2026, 9, 12), 200),
    ])

    assert [ts.strftime("%Y-%m") for ts in df["ds"]] == ["2026-07", "2026-08", "2026-09"]
    assert list(df["y"]) == [100.0, 0.0, 200.0]

def test_historical_average_rounds_half_up():
    df = build_monthly_frame([(datetime(2026, 8, 1), 1), (datetime(2026, 9, 1), 2)])

    estimate = HistoricalAverageStrategy().forecast(df, 3, date(2026, 11, 1))

    assert estimate.forecasted_quantity == Decimal("5")
    assert estimate.method == "historical_avg"
    assert [m["month"] for m in estimate.monthly_breakdown] == ["2026-11", "2026-12", "2027-01"]

def test_forecast_period_starts_next_month_and_spans_horizon():
    assert ForecastService.forecast_period(date(2026, 10, 19), 3) == (date(2026, 11, 1), date(2027, 1, 31))
    assert ForecastService.forecast_period(date(2026, 12, 31), 1) == (date(2027, 1, 1), date(2027, 1, 31))

def test_falls_back_to_historical_average_when_reasoning_fails(db, product, reasoning_stub):
    reasoning = reasoning_stub(ReasoningResult.failure("timeout"))
    service = ForecastService(db, reasoning=reasoning, history_source=_history(product.id))

    first = service.generate_forecasts([product.id], forecast_months=3, now=NOW)[0]
    second = service.generate_forecasts([product.id], forecast_months=3, now=NOW)[0]

    assert first.method == "historical_avg"
    assert first.forecasted_quantity == Decimal("300")
    assert first.confidence_level == Decimal("50")
    assert first.data_points_used == 3
    assert (first.period_start, first.period_end) == (date(2026, 11, 1), date(2027, 1, 31))
    assert second.forecasted_quantity == first.forecasted_quantity
    assert second.id != first.id
    assert len(reasoning.calls) == 2

def test_uses_reasoning_estimate_when_payload_is_valid(db, product, reasoning_stub):
    payload = {
        "forecastedQuantity": 412.6,
        "confidenceLevel": 82,
        "trendDirection": "increasing",
        "analysis": "Sales doubled after the summer promotion.",
        "monthlyBreakdown": [
            {"month": "2026-11", "quantity": 130},
            {"month": "2026-12", "quantity": 140},
            {"month": "2027-01", "quantity": 142.6},
        ],
    }
    reasoning = reasoning_stub(ReasoningResult(ok=True, content="```json\n" + json.dumps(payload) + "\n```"))
    service = ForecastService(db, reasoning=reasoning, history_source=_history(product.id))

    forecast = service.generate_forecasts([product.id], now=NOW)[0]

    assert forecast.method == "ai_trend"
    assert forecast.forecasted_quantity == Decimal("413")
    assert forecast.trend_direction == "up"
    assert forecast.confidence_level == Decimal("82")
    assert len(json.loads(forecast.monthly_breakdown)) == 3
    prompt = reasoning.calls[0]["messages"][-1]["content"]
    assert product.sku in prompt
    assert "2026-08" in prompt
    assert reasoning.calls[0]["schema"] is not None

@pytest.mark.parametrize("content", [
    "I think demand will go up.",
    json.dumps({"forecastedQuantity": 10, "confidenceLevel": 70, "trendDirection": "sideways"}),
    json.dumps({"forecastedQuantity": -5, "confidenceLevel": 70, "trendDirection": "up"}),
])
def test_malformed_reasoning_output_falls_back(db, product, reasoning_stub, content):
    reasoning = reasoning_stub(ReasoningResult(ok=True, content=content))
    service = ForecastService(db, reasoning=reasoning, history_source=_history(product.id))

    forecast = service.generate_forecasts([product.id], now=NOW)[0]

    assert forecast.method == "historical_avg"
    assert forecast.forecasted_quantity == Decimal("300")

def test_product_without_history_forecasts_zero(db, product):
    service = ForecastService(db, history_source=StaticHistory([]))

    forecast = service.generate_forecasts([product.id], now=NOW)[0]

    assert forecast.method == "historical_avg"
    assert forecast.forecasted_quantity == Decimal("0")
    assert forecast.data_points_used == 0

def test_history_outside_window_is_ignored(db, product):
    history = StaticHistory([(product.id, Decimal("500"), datetime(2024, 1, 5))])
    service = ForecastService(db, history_source=history)

    forecast = service.generate_forecasts([product.id], history_months=12, now=NOW)[0]

    assert forecast.forecasted_quantity == Decimal("0")

def test_unknown_product_is_rejected(db):
    with pytest.raises(EntityNotFoundException):
        ForecastService(db, history_source=StaticHistory([])).generate_forecasts([9999], now=NOW)

def test_sql_history_ignores_cancelled_orders(db, product, catalog):
    catalog.create_sales_order(SalesOrderCreate(
        order_date=datetime(2026, 9, 2),
        lines=[SalesOrderLineCreate(product_id=product.id, quantity=Decimal("30"))],
    ))
    catalog.create_sales_order(SalesOrderCreate(
        order_date=datetime(2026, 9, 3),
        status="cancelled",
        lines=[SalesOrderLineCreate(product_id=product.id, quantity=Decimal("900"))],
    ))

    forecast = ForecastService(db).generate_forecasts([product.id], forecast_months=2, now=NOW)[0]

    assert forecast.forecasted_quantity == Decimal("60")

def test_generation_publishes_event_and_status_can_advance(db, product, events):
    service = ForecastService(db, history_source=StaticHistory([]))
    forecast = service.generate_forecasts([product.id], now=NOW)[0]

    assert [e.forecast_id for e in events if isinstance(e, ForecastGeneratedEvent)] == [forecast.id]

    assert service.update_status(forecast.id, "superseded").status == "superseded"
    with pytest.raises(InvalidStateTransitionException):
        service.update_status(forecast.id, "active")


@pytest.fixture()
def autumn_forecast(db, product, make_forecast):
    forecast = make_forecast(product.id, 300, period_start=date(2026, 9, 1), period_end=date(2026, 11, 30))
    forecast.monthly_breakdown = json.dumps([
        {"month": "2026-09", "quantity": 100},
        {"month": "2026-10", "quantity": 100},
        {"month": "2026-11", "quantity": 100},
    ])
    db.commit()
    return forecast


def _sell(catalog, product_id, order_date, quantity, status="confirmed"):
    catalog.create_sales_order(SalesOrderCreate(
        order_date=order_date,
        status=status,
        lines=[SalesOrderLineCreate(product_id=product_id, quantity=Decimal(quantity))],
    ))


def test_record_accuracy_compares_period_sales_so_far(db, catalog, product, autumn_forecast):
    _sell(catalog, product.id, datetime(2026, 8, 30), "999")
    _sell(catalog, product.id, datetime(2026, 9, 5), "80")
    _sell(catalog, product.id, datetime(2026, 10, 2), "125")
    _sell(catalog, product.id, datetime(2026, 10, 3), "900", status="cancelled")
    _sell(catalog, product.id, datetime(2026, 10, 25), "500")

    record = ForecastService(db).record_accuracy(autumn_forecast.id, now=NOW)

    assert record.demand_forecast_id == autumn_forecast.id
    assert record.forecasted_quantity == Decimal("300")
    assert record.actual_quantity == Decimal("205")
    assert record.variance_quantity == Decimal("-95")
    assert record.variance_percent == Decimal("-31.67")
    # September off by 20/80, October by 25/125; November has not started.
    assert record.mape == Decimal("22.50")
    assert record.months_evaluated == 2
    assert (record.period_start, record.period_end) == (date(2026, 9, 1), date(2026, 11, 30))

def test_record_accuracy_without_breakdown_leaves_mape_empty(db, catalog, product, make_forecast):
    forecast = make_forecast(product.id, 0, period_start=date(2026, 10, 1), period_end=date(2026, 10, 31))
    _sell(catalog, product.id, datetime(2026, 10, 4), "12")

    record = ForecastService(db).record_accuracy(forecast.id, now=NOW)

    assert record.actual_quantity == Decimal("12")
    assert record.variance_percent is None
    assert record.mape is None
    assert record.months_evaluated == 0

def test_record_accuracy_rejects_future_period(db, product, make_forecast):
    forecast = make_forecast(product.id, 300)

    with pytest.raises(ValidationException):
        ForecastService(db).record_accuracy(forecast.id, now=NOW)

def test_accuracy_history_is_newest_first_and_filterable(db, catalog, product, autumn_forecast, make_forecast):
    other = catalog.create_product(ProductCreate(sku="SKU-OTHER", name="Other Tee"))
    other_forecast = make_forecast(other.id, 50, period_start=date(2026, 10, 1), period_end=date(2026, 10, 31))
    service = ForecastService(db)
    older = service.record_accuracy(autumn_forecast.id, now=datetime(2026, 10, 1, 8))
    newer = service.record_accuracy(autumn_forecast.id, now=NOW)
    elsewhere = service.record_accuracy(other_forecast.id, now=datetime(2026, 10, 10))

    assert [r.id for r in service.list_accuracy(product_id=product.id)] == [newer.id, older.id]
    assert [r.id for r in service.list_accuracy()] == [newer.id, elsewhere.id, older.id]
    assert [r.id for r in service.list_accuracy(limit=1)] == [newer.id]
