"""
Reconciliation Router — Thin Controller (SRP / DIP)
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import Optional, List

from opsplan.database import get_db
from opsplan.schemas.reconciliation import (
    ReconciliationLineResponse,
    ReconciliationRunDetailResponse,
    ReconciliationRunRequest,
    ReconciliationRunResponse,
    ResolveLineRequest,
)
from opsplan.services.reconciliation_service import ReconciliationService

router = APIRouter(prefix="/reconciliation", tags=["Channel Reconciliation"])


def get_reconciliation_service(db: Session = Depends(get_db)) -> ReconciliationService:
    return ReconciliationService(db)


@router.post("/runs", response_model=ReconciliationRunDetailResponse, status_code=201)
def run_reconciliation(
    payload: ReconciliationRunRequest,
    service: ReconciliationService = Depends(get_reconciliation_service),
):
    return service.run(payload.channel, payload.store_id)


@router.get("/runs", response_model=List[ReconciliationRunResponse])
def list_runs(
    channel: Optional[str] = None,
    status: Optional[str] = None,
    service: ReconciliationService = Depends(get_reconciliation_service),
):
    return service.list_runs(channel=channel, status=status)


@router.get("/runs/{run_id}", response_model=ReconciliationRunDetailResponse)
def get_run(run_id: int, service: ReconciliationService = Depends(get_reconciliation_service)):
    return service.get_run(run_id)


@router.get("/runs/{run_id}/lines", response_model=List[ReconciliationLineResponse])
def list_lines(
    run_id: int,
    status: Optional[str] = None,
    service: ReconciliationService = Depends(get_reconciliation_service),
):
    return service.list_lines(run_id, status=status)


@router.post("/lines/{line_id}/resolve", response_model=ReconciliationLineResponse)
def resolve_line(
    line_id: int,
    payload: ResolveLineRequest,
    service: ReconciliationService = Depends(get_reconciliation_service),
):
    return service.resolve_line(line_id, payload.note)
