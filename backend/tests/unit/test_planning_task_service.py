from types import SimpleNamespace

import pytest
from pydantic import ValidationError

from opsplan.schemas.planning_task import (
    ForecastTask,
    ProductionPlanTask,
    ReconciliationTask,
    SuggestedPOTask,
    planning_task_adapter,
)
from opsplan.services.planning_task_service import run_planning_task


def test_adapter_dispatches_on_kind():
    task = planning_task_adapter.validate_python({"kind": "reconciliation", "channel": "shopify"})

    assert isinstance(task, ReconciliationTask)
    assert task.store_id is None


@pytest.mark.parametrize("payload", [
    {"kind": "stocktake"},
    {"kind": "production_plan"},
    {"kind": "forecast", "forecast_months": 0},
])
def test_adapter_rejects_unknown_or_incomplete_tasks(payload):
    with pytest.raises(ValidationError):
        planning_task_adapter.validate_python(payload)


def test_pipeline_runs_task_by_task(db, product, bom):
    forecasts = run_planning_task(db, ForecastTask(product_ids=[product.id]))
    assert forecasts.entity_type == "demand_forecast"
    assert forecasts.details["methods"] == ["historical_avg"]

    plan = run_planning_task(db, ProductionPlanTask(forecast_id=forecasts.entity_ids[0]))
    assert plan.entity_type == "production_plan"
    assert plan.details["requirements"] == 1

    suggestions = run_planning_task(db, SuggestedPOTask(production_plan_id=plan.entity_ids[0]))
    assert suggestions.entity_type == "suggested_purchase_order"
    # Zero forecast means zero shortage, so nothing to buy.
    assert suggestions.entity_ids == []


def test_reconciliation_task_reports_run_status(db):
    result = run_planning_task(db, ReconciliationTask(channel="shopify"))

    assert result.entity_type == "reconciliation_run"
    assert result.details["status"] == "completed"
    assert result.details["critical_lines"] == 0


def test_unknown_task_type_is_rejected(db):
    with pytest.raises(TypeError):
        run_planning_task(db, SimpleNamespace(kind="stocktake"))
