from datetime import datetime, date
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field


class ProductionPlanGenerateRequest(BaseModel):
    forecast_id: int
    safety_stock_percent: Optional[float] = Field(None, ge=0, le=500)


class ProductionPlanStatusUpdateRequest(BaseModel):
    status: str = Field(pattern="^(draft|approved|in_progress|completed|cancelled)$")


class MaterialRequirementResponse(BaseModel):
    id: int
    production_plan_id: int
    raw_material_id: int
    required_quantity: Decimal
    unit: str
    current_inventory: Decimal
    on_order_quantity: Decimal
    shortage_quantity: Decimal
    suggested_order_quantity: Decimal
    preferred_vendor_id: Optional[int] = None
    estimated_unit_cost: Optional[Decimal] = None
    estimated_total_cost: Optional[Decimal] = None
    lead_time_days: Optional[int] = None
    required_by_date: Optional[date] = None
    latest_order_date: Optional[date] = None
    is_urgent: bool
    status: str
    generated_po_id: Optional[int] = None

    class Config:
        from_attributes = True


class ProductionPlanResponse(BaseModel):
    id: int
    plan_number: str
    forecast_id: int
    product_id: int
    bom_id: Optional[int] = None
    forecasted_quantity: Decimal
    safety_stock_percent: Decimal
    safety_stock: Decimal
    current_inventory: Decimal
    planned_quantity: Decimal
    planned_start_date: Optional[date] = None
    planned_end_date: Optional[date] = None
    status: str
    notes: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class ProductionPlanDetailResponse(ProductionPlanResponse):
    requirements: List[MaterialRequirementResponse] = []
