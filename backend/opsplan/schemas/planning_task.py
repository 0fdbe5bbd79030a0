"""Planning task payloads, discriminated on ``kind``."""
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, Field, TypeAdapter


class ForecastTask(BaseModel):
    kind: Literal["forecast"] = "forecast"
    product_ids: Optional[List[int]] = None
    forecast_months: int = Field(default=3, ge=1, le=24)
    history_months: int = Field(default=12, ge=1, le=60)


class ProductionPlanTask(BaseModel):
    kind: Literal["production_plan"] = "production_plan"
    forecast_id: int
    safety_stock_percent: Optional[float] = Field(None, ge=0, le=500)


class SuggestedPOTask(BaseModel):
    kind: Literal["suggested_pos"] = "suggested_pos"
    production_plan_id: int


class ReconciliationTask(BaseModel):
    kind: Literal["reconciliation"] = "reconciliation"
    channel: str = Field(..., min_length=1, max_length=50)
    store_id: Optional[str] = None


PlanningTask = Annotated[
    Union[ForecastTask, ProductionPlanTask, SuggestedPOTask, ReconciliationTask],
    Field(discriminator="kind"),
]

planning_task_adapter = TypeAdapter(PlanningTask)


class PlanningTaskRequest(BaseModel):
    task: PlanningTask


class PlanningTaskResult(BaseModel):
    kind: str
    entity_type: str
    entity_ids: List[int]
    details: Dict[str, Any] = Field(default_factory=dict)
