"""
Planning Task Runner

Single entry point for scheduled / queued planning work. Each task kind maps
to exactly one service call; the HTTP router and the CLI script share it.
"""
import logging

from sqlalchemy.orm import Session

from opsplan.schemas.planning_task import (
    ForecastTask,
    PlanningTask,
    PlanningTaskResult,
    ProductionPlanTask,
    ReconciliationTask,
    SuggestedPOTask,
)
from opsplan.services.forecast_service import ForecastService
from opsplan.services.production_plan_service import ProductionPlanService
from opsplan.services.reconciliation_service import ReconciliationService
from opsplan.services.suggested_po_service import SuggestedPOService

logger = logging.getLogger(__name__)


def run_planning_task(db: Session, task: PlanningTask) -> PlanningTaskResult:
    logger.info("planning_task_started kind=%s", task.kind)

    if isinstance(task, ForecastTask):
        forecasts = ForecastService(db).generate_forecasts(
            product_ids=task.product_ids,
            forecast_months=task.forecast_months,
            history_months=task.history_months,
        )
        result = PlanningTaskResult(
            kind=task.kind,
            entity_type="demand_forecast",
            entity_ids=[f.id for f in forecasts],
            details={"methods": sorted({f.method for f in forecasts})},
        )
    elif isinstance(task, ProductionPlanTask):
        plan = ProductionPlanService(db).generate_production_plan(
            task.forecast_id, safety_stock_percent=task.safety_stock_percent,
        )
        result = PlanningTaskResult(
            kind=task.kind,
            entity_type="production_plan",
            entity_ids=[plan.id],
            details={"planned_quantity": str(plan.planned_quantity), "requirements": len(plan.requirements)},
        )
    elif isinstance(task, SuggestedPOTask):
        generated = SuggestedPOService(db).generate(task.production_plan_id)
        result = PlanningTaskResult(
            kind=task.kind,
            entity_type="suggested_purchase_order",
            entity_ids=[s.id for s in generated.suggested],
            details={"skipped_requirement_ids": [r.id for r in generated.skipped_requirements]},
        )
    elif isinstance(task, ReconciliationTask):
        run = ReconciliationService(db).run(task.channel, task.store_id)
        result = PlanningTaskResult(
            kind=task.kind,
            entity_type="reconciliation_run",
            entity_ids=[run.id],
            details={"status": run.status, "critical_lines": run.critical_lines, "warning_lines": run.warning_lines},
        )
    else:
        raise TypeError(f"Unsupported planning task: {type(task).__name__}")

    logger.info("planning_task_completed kind=%s entity_ids=%s", result.kind, result.entity_ids)
    return result
