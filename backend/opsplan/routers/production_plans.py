"""
Production Plan Router — Thin Controller (SRP / DIP)
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import Optional, List

from opsplan.database import get_db
from opsplan.schemas.production_plan import (
    MaterialRequirementResponse,
    ProductionPlanDetailResponse,
    ProductionPlanGenerateRequest,
    ProductionPlanResponse,
    ProductionPlanStatusUpdateRequest,
)
from opsplan.services.production_plan_service import ProductionPlanService

router = APIRouter(prefix="/production-plans", tags=["Production Planning"])


def get_production_plan_service(db: Session = Depends(get_db)) -> ProductionPlanService:
    return ProductionPlanService(db)


@router.post("/generate", response_model=ProductionPlanDetailResponse, status_code=201)
def generate_production_plan(
    payload: ProductionPlanGenerateRequest,
    service: ProductionPlanService = Depends(get_production_plan_service),
):
    return service.generate_production_plan(payload.forecast_id, safety_stock_percent=payload.safety_stock_percent)


@router.get("", response_model=List[ProductionPlanResponse])
def list_plans(
    product_id: Optional[int] = None,
    forecast_id: Optional[int] = None,
    status: Optional[str] = None,
    service: ProductionPlanService = Depends(get_production_plan_service),
):
    return service.list_plans(product_id=product_id, forecast_id=forecast_id, status=status)


@router.get("/{plan_id}", response_model=ProductionPlanDetailResponse)
def get_plan(plan_id: int, service: ProductionPlanService = Depends(get_production_plan_service)):
    return service.get_plan(plan_id)


@router.get("/{plan_id}/requirements", response_model=List[MaterialRequirementResponse])
def list_requirements(
    plan_id: int,
    shortage_only: bool = False,
    service: ProductionPlanService = Depends(get_production_plan_service),
):
    return service.list_requirements(plan_id, shortage_only=shortage_only)


@router.patch("/{plan_id}/status", response_model=ProductionPlanResponse)
def update_plan_status(
    plan_id: int,
    payload: ProductionPlanStatusUpdateRequest,
    service: ProductionPlanService = Depends(get_production_plan_service),
):
    return service.update_plan_status(plan_id, payload.status)
