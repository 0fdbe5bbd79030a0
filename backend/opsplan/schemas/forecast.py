from datetime import datetime, date
from decimal import Decimal
from typing import Any, List, Optional

from pydantic import BaseModel, Field, field_validator


_TREND_ALIASES = {
    "up": "up",
    "upward": "up",
    "increasing": "up",
    "growth": "up",
    "down": "down",
    "downward": "down",
    "decreasing": "down",
    "decline": "down",
    "stable": "stable",
    "flat": "stable",
    "steady": "stable",
}


class AIMonthlyQuantity(BaseModel):
    month: str
    quantity: float = Field(ge=0)


class AIForecastPayload(BaseModel):
    """Structured answer expected from the reasoning service."""

    forecastedQuantity: float = Field(ge=0)
    confidenceLevel: float
    trendDirection: str
    analysis: str = ""
    monthlyBreakdown: List[AIMonthlyQuantity] = Field(default_factory=list)

    @field_validator("confidenceLevel")
    @classmethod
    def clamp_confidence(cls, value: float) -> float:
        return max(0.0, min(100.0, float(value)))

    @field_validator("trendDirection", mode="before")
    @classmethod
    def normalize_trend(cls, value: Any) -> str:
        trend = _TREND_ALIASES.get(str(value).strip().lower())
        if trend is None:
            raise ValueError(f"Unknown trend direction '{value}'")
        return trend


class ForecastGenerateRequest(BaseModel):
    product_ids: Optional[List[int]] = None
    forecast_months: int = Field(default=3, ge=1, le=24)
    history_months: int = Field(default=12, ge=1, le=60)


class DemandForecastResponse(BaseModel):
    id: int
    forecast_number: str
    product_id: int
    period_start: date
    period_end: date
    forecasted_quantity: Decimal
    confidence_level: Decimal
    trend_direction: str
    method: str
    data_points_used: int
    analysis: Optional[str] = None
    monthly_breakdown: Optional[str] = None
    status: str
    created_at: datetime

    class Config:
        from_attributes = True


class ForecastStatusUpdateRequest(BaseModel):
    status: str = Field(pattern="^(draft|active|superseded|expired)$")


class ForecastAccuracyResponse(BaseModel):
    id: int
    demand_forecast_id: int
    product_id: int
    forecasted_quantity: Decimal
    actual_quantity: Decimal
    variance_quantity: Decimal
    variance_percent: Optional[Decimal] = None
    mape: Optional[Decimal] = None
    months_evaluated: int
    period_start: date
    period_end: date
    calculated_at: datetime

    class Config:
        from_attributes = True
