"""
Suggested Purchase Order Router — Thin Controller (SRP / DIP)
Approval is the only path from planning into live purchase orders.
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import Optional, List

from opsplan.database import get_db
from opsplan.schemas.purchasing import (
    PurchaseOrderResponse,
    SuggestedPOApproveRequest,
    SuggestedPOGenerateRequest,
    SuggestedPOGenerationResponse,
    SuggestedPORejectRequest,
    SuggestedPurchaseOrderResponse,
)
from opsplan.services.suggested_po_service import SuggestedPOService

router = APIRouter(prefix="/suggested-pos", tags=["Suggested Purchase Orders"])


def get_suggested_po_service(db: Session = Depends(get_db)) -> SuggestedPOService:
    return SuggestedPOService(db)


@router.post("/generate", response_model=SuggestedPOGenerationResponse, status_code=201)
def generate_suggested_pos(
    payload: SuggestedPOGenerateRequest,
    service: SuggestedPOService = Depends(get_suggested_po_service),
):
    result = service.generate(payload.production_plan_id)
    return SuggestedPOGenerationResponse(
        suggested=result.suggested,
        skipped_requirement_ids=[r.id for r in result.skipped_requirements],
    )


@router.get("", response_model=List[SuggestedPurchaseOrderResponse])
def list_suggested_pos(
    status: Optional[str] = None,
    production_plan_id: Optional[int] = None,
    vendor_id: Optional[int] = None,
    service: SuggestedPOService = Depends(get_suggested_po_service),
):
    return service.list_suggested(status=status, production_plan_id=production_plan_id, vendor_id=vendor_id)


@router.get("/{spo_id}", response_model=SuggestedPurchaseOrderResponse)
def get_suggested_po(spo_id: int, service: SuggestedPOService = Depends(get_suggested_po_service)):
    return service.get_suggested(spo_id)


@router.post("/{spo_id}/approve", response_model=PurchaseOrderResponse)
def approve_suggested_po(
    spo_id: int,
    payload: Optional[SuggestedPOApproveRequest] = None,
    service: SuggestedPOService = Depends(get_suggested_po_service),
):
    return service.approve(spo_id, decided_by=payload.decided_by if payload else None)


@router.post("/{spo_id}/reject", response_model=SuggestedPurchaseOrderResponse)
def reject_suggested_po(
    spo_id: int,
    payload: SuggestedPORejectRequest,
    service: SuggestedPOService = Depends(get_suggested_po_service),
):
    return service.reject(spo_id, payload.reason, decided_by=payload.decided_by)
