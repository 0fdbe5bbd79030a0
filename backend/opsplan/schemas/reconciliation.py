from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field


class ReconciliationRunRequest(BaseModel):
    channel: str = Field(..., min_length=1, max_length=50)
    store_id: Optional[str] = None


class ResolveLineRequest(BaseModel):
    note: str = Field(..., min_length=1, max_length=2000)


class ReconciliationLineResponse(BaseModel):
    id: int
    run_id: int
    listing_id: Optional[int] = None
    product_id: int
    warehouse_id: Optional[int] = None
    internal_qty: Decimal
    channel_qty: Decimal
    delta: Decimal
    variance_percent: Decimal
    status: str
    suggested_action: str
    resolution_note: Optional[str] = None
    resolved_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ReconciliationRunResponse(BaseModel):
    id: int
    run_number: str
    channel: str
    store_id: Optional[str] = None
    status: str
    total_lines: int
    passed_lines: int
    warning_lines: int
    critical_lines: int
    notes: Optional[str] = None
    started_at: datetime
    completed_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ReconciliationRunDetailResponse(ReconciliationRunResponse):
    lines: List[ReconciliationLineResponse] = []
