"""
Forecasting Router — Thin Controller (SRP / DIP)
ForecastService picks the AI trend strategy and falls back to the historical average.
"""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import Optional, List

from opsplan.database import get_db
from opsplan.schemas.forecast import (
    DemandForecastResponse,
    ForecastAccuracyResponse,
    ForecastGenerateRequest,
    ForecastStatusUpdateRequest,
)
from opsplan.services.forecast_service import ForecastService

router = APIRouter(prefix="/forecasting", tags=["Demand Forecasting"])


def get_forecast_service(db: Session = Depends(get_db)) -> ForecastService:
    return ForecastService(db)


@router.post("/generate", response_model=List[DemandForecastResponse], status_code=201)
def generate_forecasts(
    payload: ForecastGenerateRequest,
    service: ForecastService = Depends(get_forecast_service),
):
    """One forecast per product; an empty product list means every active product."""
    return service.generate_forecasts(
        product_ids=payload.product_ids,
        forecast_months=payload.forecast_months,
        history_months=payload.history_months,
    )


@router.get("/forecasts", response_model=List[DemandForecastResponse])
def list_forecasts(
    product_id: Optional[int] = None,
    status: Optional[str] = None,
    method: Optional[str] = None,
    service: ForecastService = Depends(get_forecast_service),
):
    return service.list_forecasts(product_id=product_id, status=status, method=method)


@router.get("/forecasts/{forecast_id}", response_model=DemandForecastResponse)
def get_forecast(forecast_id: int, service: ForecastService = Depends(get_forecast_service)):
    return service.get_forecast(forecast_id)


@router.patch("/forecasts/{forecast_id}/status", response_model=DemandForecastResponse)
def update_forecast_status(
    forecast_id: int,
    payload: ForecastStatusUpdateRequest,
    service: ForecastService = Depends(get_forecast_service),
):
    return service.update_status(forecast_id, payload.status)


@router.post("/forecasts/{forecast_id}/accuracy", response_model=ForecastAccuracyResponse, status_code=201)
def record_forecast_accuracy(forecast_id: int, service: ForecastService = Depends(get_forecast_service)):
    """Compare the forecast against sales booked so far in its period."""
    return service.record_accuracy(forecast_id)


@router.get("/accuracy", response_model=List[ForecastAccuracyResponse])
def list_forecast_accuracy(
    product_id: Optional[int] = None,
    limit: int = Query(default=50, ge=1, le=500),
    service: ForecastService = Depends(get_forecast_service),
):
    return service.list_accuracy(product_id=product_id, limit=limit)
