"""
Forecasting Strategy Pattern — GoF Strategy Pattern

- Each estimation method is an interchangeable strategy over the same
  monthly frame (columns ``ds`` month-start Timestamp, ``y`` float).
- ``forecast`` returns ``None`` when a strategy cannot produce an estimate;
  ``HistoricalAverageStrategy`` never does, which makes it the fallback.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal, ROUND_HALF_UP
import json
import logging
from typing import Any, Dict, Iterable, List, Optional, Tuple

import numpy as np
import pandas as pd
from dateutil.relativedelta import relativedelta
from pydantic import ValidationError

from opsplan.schemas.forecast import AIForecastPayload
from opsplan.services.reasoning_service import ReasoningService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ForecastSnapshot:
    """Read-only prompt context, built fresh for every product on every run."""

    product_id: int
    sku: str
    name: str
    category: Optional[str]
    current_inventory: float
    monthly_sales: Tuple[Tuple[str, float], ...]
    forecast_months: int
    history_months: int
    as_of: date

    def to_prompt_dict(self) -> Dict[str, Any]:
        return {
            "product": {"id": self.product_id, "sku": self.sku, "name": self.name, "category": self.category},
            "current_inventory": self.current_inventory,
            "monthly_sales": [{"month": m, "quantity": q} for m, q in self.monthly_sales],
            "forecast_months": self.forecast_months,
            "history_months": self.history_months,
            "as_of": self.as_of.isoformat(),
        }


@dataclass
class ForecastEstimate:
    forecasted_quantity: Decimal
    confidence_level: Decimal
    trend_direction: str
    method: str
    analysis: str = ""
    monthly_breakdown: List[Dict[str, Any]] = field(default_factory=list)

    def breakdown_json(self) -> str:
        return json.dumps(self.monthly_breakdown, default=str)


def build_monthly_frame(rows: Iterable[Tuple[Any, Any]]) -> pd.DataFrame:
    """Bucket (order_date, quantity) rows by calendar month; gaps between sales months count as zero."""
    df = pd.DataFrame(list(rows), columns=["order_date", "quantity"])
    if df.empty:
        return pd.DataFrame({"ds": pd.Series(dtype="datetime64[ns]"), "y": pd.Series(dtype=float)})

    df["month"] = pd.to_datetime(df["order_date"]).dt.to_period("M")
    df["quantity"] = df["quantity"].astype(float)
    monthly = df.groupby("month")["quantity"].sum()
    full_range = pd.period_range(monthly.index.min(), monthly.index.max(), freq="M")
    monthly = monthly.reindex(full_range, fill_value=0.0)
    return pd.DataFrame({"ds": monthly.index.to_timestamp(), "y": monthly.values.astype(float)})


def frame_to_pairs(df: pd.DataFrame) -> Tuple[Tuple[str, float], ...]:
    return tuple((ts.strftime("%Y-%m"), round(float(y), 4)) for ts, y in zip(df["ds"], df["y"]))


def forecast_months_from(start: date, horizon: int) -> List[str]:
    return [(start + relativedelta(months=i)).strftime("%Y-%m") for i in range(horizon)]


# ── Abstract Strategy ────────────────────────────────────────────────────────

class BaseForecastStrategy(ABC):

    @property
    @abstractmethod
    def model_id(self) -> str:
        ...

    @abstractmethod
    def forecast(
        self,
        df: pd.DataFrame,
        horizon: int,
        period_start: date,
        snapshot: Optional[ForecastSnapshot] = None,
    ) -> Optional[ForecastEstimate]:
        ...


# ── Concrete Strategy 1: Historical Average (deterministic fallback) ─────────

class HistoricalAverageStrategy(BaseForecastStrategy):
    """mean(monthly sales) x horizon, rounded half-up to whole units."""

    CONFIDENCE = Decimal("50")

    @property
    def model_id(self) -> str:
        return "historical_avg"

    def forecast(
        self,
        df: pd.DataFrame,
        horizon: int,
        period_start: date,
        snapshot: Optional[ForecastSnapshot] = None,
    ) -> ForecastEstimate:
        mean = float(np.mean(df["y"].values)) if len(df) > 0 else 0.0
        total = (Decimal(str(mean)) * horizon).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
        per_month = round(mean, 2)
        return ForecastEstimate(
            forecasted_quantity=total,
            confidence_level=self.CONFIDENCE,
            trend_direction="stable",
            method=self.model_id,
            analysis=f"Historical average of {len(df)} month(s) of sales projected over {horizon} month(s).",
            monthly_breakdown=[
                {"month": m, "quantity": per_month} for m in forecast_months_from(period_start, horizon)
            ],
        )


# ── Concrete Strategy 2: AI trend analysis ───────────────────────────────────

class AITrendStrategy(BaseForecastStrategy):
    """Delegates the estimate to the reasoning service; ``None`` on any failure."""

    SYSTEM_PROMPT = (
        "You are a demand planning analyst. Given monthly unit sales for one product, "
        "forecast total demand for the requested number of future months."
    )

    def __init__(self, reasoning: ReasoningService) -> None:
        self._reasoning = reasoning

    @property
    def model_id(self) -> str:
        return "ai_trend"

    def forecast(
        self,
        df: pd.DataFrame,
        horizon: int,
        period_start: date,
        snapshot: Optional[ForecastSnapshot] = None,
    ) -> Optional[ForecastEstimate]:
        if snapshot is None:
            return None

        messages = [
            {"role": "system", "content": self.SYSTEM_PROMPT},
            {
                "role": "user",
                "content": (
                    f"Forecast the next {horizon} month(s) starting {period_start:%Y-%m}. "
                    f"Context: {json.dumps(snapshot.to_prompt_dict())}"
                ),
            },
        ]
        result = self._reasoning.invoke(messages, schema=AIForecastPayload.model_json_schema())
        if not result.ok:
            logger.warning("ai_forecast_unavailable product_id=%s error=%s", snapshot.product_id, result.error)
            return None

        try:
            payload = AIForecastPayload.model_validate(result.json_payload())
        except (ValueError, ValidationError) as exc:
            logger.warning("ai_forecast_malformed product_id=%s error=%s", snapshot.product_id, exc)
            return None

        return ForecastEstimate(
            forecasted_quantity=Decimal(str(payload.forecastedQuantity)).quantize(
                Decimal("1"), rounding=ROUND_HALF_UP
            ),
            confidence_level=Decimal(str(payload.confidenceLevel)).quantize(Decimal("0.01")),
            trend_direction=payload.trendDirection,
            method=self.model_id,
            analysis=payload.analysis,
            monthly_breakdown=[item.model_dump() for item in payload.monthlyBreakdown],
        )
