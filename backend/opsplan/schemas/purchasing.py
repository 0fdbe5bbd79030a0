from datetime import datetime, date
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field, model_validator


# ── Purchase orders ──────────────────────────────────────────────────────────

class PurchaseOrderItemCreate(BaseModel):
    raw_material_id: Optional[int] = None
    product_id: Optional[int] = None
    description: Optional[str] = None
    quantity: Decimal = Field(gt=0)
    unit_price: Decimal = Field(default=Decimal("0"), ge=0)

    @model_validator(mode="after")
    def require_target(self):
        if self.raw_material_id is None and self.product_id is None:
            raise ValueError("raw_material_id or product_id is required")
        return self


class PurchaseOrderCreate(BaseModel):
    vendor_id: int
    expected_date: Optional[date] = None
    notes: Optional[str] = None
    items: List[PurchaseOrderItemCreate] = Field(default_factory=list)


class PurchaseOrderStatusUpdateRequest(BaseModel):
    status: str = Field(pattern="^(draft|sent|confirmed|partial|received|cancelled)$")


class PurchaseOrderReceiveRequest(BaseModel):
    item_id: int
    quantity: Decimal = Field(gt=0)
    warehouse_id: int


class PurchaseOrderItemResponse(BaseModel):
    id: int
    raw_material_id: Optional[int] = None
    product_id: Optional[int] = None
    description: str
    quantity: Decimal
    received_quantity: Decimal
    unit_price: Decimal
    total_price: Decimal

    class Config:
        from_attributes = True


class PurchaseOrderResponse(BaseModel):
    id: int
    po_number: str
    vendor_id: int
    status: str
    order_date: Optional[date] = None
    expected_date: Optional[date] = None
    total_amount: Decimal
    suggested_po_id: Optional[int] = None
    notes: Optional[str] = None
    created_at: datetime
    items: List[PurchaseOrderItemResponse] = []

    class Config:
        from_attributes = True


# ── Suggested purchase orders ────────────────────────────────────────────────

class SuggestedPOGenerateRequest(BaseModel):
    production_plan_id: int


class SuggestedPOApproveRequest(BaseModel):
    decided_by: Optional[str] = Field(None, max_length=100)


class SuggestedPORejectRequest(BaseModel):
    reason: str = Field(..., min_length=1, max_length=2000)
    decided_by: Optional[str] = Field(None, max_length=100)


class SuggestedPoItemResponse(BaseModel):
    id: int
    material_requirement_id: int
    raw_material_id: int
    description: str
    quantity: Decimal
    unit: str
    unit_price: Decimal
    total_price: Decimal
    shortage_ratio: Decimal

    class Config:
        from_attributes = True


class SuggestedPurchaseOrderResponse(BaseModel):
    id: int
    spo_number: str
    production_plan_id: int
    vendor_id: int
    total_amount: Decimal
    suggested_order_date: date
    required_by_date: date
    estimated_delivery_date: date
    vendor_lead_time_days: int
    days_until_required: int
    is_urgent: bool
    priority_score: int
    rationale: Optional[str] = None
    rationale_source: str
    status: str
    rejection_reason: Optional[str] = None
    converted_po_id: Optional[int] = None
    decided_by: Optional[str] = None
    decided_at: Optional[datetime] = None
    created_at: datetime
    items: List[SuggestedPoItemResponse] = []

    class Config:
        from_attributes = True


class SuggestedPOGenerationResponse(BaseModel):
    suggested: List[SuggestedPurchaseOrderResponse]
    skipped_requirement_ids: List[int]
