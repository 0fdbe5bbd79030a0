"""
Inventory Router — Thin Controller (SRP / DIP)
"""
from datetime import date, datetime
from typing import List, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from opsplan.database import get_db
from opsplan.schemas.inventory import (
    AdjustmentRequest,
    AvailabilityResponse,
    BucketMoveRequest,
    ConsumeRequest,
    DerivedQuantityResponse,
    InventoryBalanceResponse,
    InventoryLotResponse,
    InventoryReservationResponse,
    InventoryTransactionResponse,
    LotReceiveRequest,
    LotStatusUpdateRequest,
    RawMaterialAdjustmentRequest,
    RawMaterialTransactionResponse,
    ReleaseRequest,
    ReservationRequest,
    TransferRequest,
)
from opsplan.services.inventory_service import InventoryLedgerService

router = APIRouter(prefix="/inventory", tags=["Inventory Ledger"])


def get_inventory_service(db: Session = Depends(get_db)) -> InventoryLedgerService:
    return InventoryLedgerService(db)


# ── Lots & balances ──────────────────────────────────────────────────────────

@router.get("/lots", response_model=List[InventoryLotResponse])
def list_lots(
    product_id: Optional[int] = None,
    status: Optional[str] = None,
    service: InventoryLedgerService = Depends(get_inventory_service),
):
    return service.list_lots(product_id=product_id, status=status)


@router.post("/lots", response_model=InventoryLotResponse, status_code=201)
def receive_lot(
    payload: LotReceiveRequest,
    service: InventoryLedgerService = Depends(get_inventory_service),
):
    return service.receive(**payload.model_dump())


@router.get("/lots/{lot_id}", response_model=InventoryLotResponse)
def get_lot(lot_id: int, service: InventoryLedgerService = Depends(get_inventory_service)):
    return service.get_lot(lot_id)


@router.patch("/lots/{lot_id}/status", response_model=InventoryLotResponse)
def update_lot_status(
    lot_id: int,
    payload: LotStatusUpdateRequest,
    service: InventoryLedgerService = Depends(get_inventory_service),
):
    return service.set_lot_status(lot_id, payload.status)


@router.post("/lots/expire", response_model=List[InventoryLotResponse])
def expire_lots(
    as_of: Optional[date] = None,
    service: InventoryLedgerService = Depends(get_inventory_service),
):
    return service.expire_lots(as_of=as_of)


@router.get("/balances", response_model=List[InventoryBalanceResponse])
def list_balances(
    product_id: Optional[int] = None,
    warehouse_id: Optional[int] = None,
    lot_id: Optional[int] = None,
    service: InventoryLedgerService = Depends(get_inventory_service),
):
    return service.list_balances(product_id=product_id, warehouse_id=warehouse_id, lot_id=lot_id)


@router.get("/availability/{product_id}", response_model=AvailabilityResponse)
def product_availability(
    product_id: int,
    warehouse_id: Optional[int] = None,
    service: InventoryLedgerService = Depends(get_inventory_service),
):
    return AvailabilityResponse(
        product_id=product_id,
        warehouse_id=warehouse_id,
        available_qty=service.available_for_product(product_id, warehouse_id),
    )


@router.get("/lots/{lot_id}/warehouses/{warehouse_id}/derived", response_model=DerivedQuantityResponse)
def derived_quantity(
    lot_id: int,
    warehouse_id: int,
    as_of: Optional[datetime] = None,
    service: InventoryLedgerService = Depends(get_inventory_service),
):
    balance = service.get_balance(lot_id, warehouse_id)
    return DerivedQuantityResponse(
        lot_id=lot_id,
        warehouse_id=warehouse_id,
        as_of=as_of,
        derived_on_hand_qty=service.derive_quantity(lot_id, warehouse_id, as_of=as_of),
        balance_on_hand_qty=balance.on_hand_qty,
    )


# ── Reservations ─────────────────────────────────────────────────────────────

@router.get("/reservations", response_model=List[InventoryReservationResponse])
def list_reservations(
    product_id: Optional[int] = None,
    reference_type: Optional[str] = None,
    reference_id: Optional[str] = None,
    status: Optional[str] = None,
    service: InventoryLedgerService = Depends(get_inventory_service),
):
    return service.list_reservations(
        product_id=product_id, reference_type=reference_type, reference_id=reference_id, status=status,
    )


@router.post("/reservations", response_model=InventoryReservationResponse, status_code=201)
def reserve_stock(
    payload: ReservationRequest,
    service: InventoryLedgerService = Depends(get_inventory_service),
):
    return service.reserve(**payload.model_dump())


@router.post("/reservations/release", response_model=InventoryBalanceResponse)
def release_stock(
    payload: ReleaseRequest,
    service: InventoryLedgerService = Depends(get_inventory_service),
):
    return service.release(**payload.model_dump())


@router.post("/reservations/consume", response_model=InventoryBalanceResponse)
def consume_stock(
    payload: ConsumeRequest,
    service: InventoryLedgerService = Depends(get_inventory_service),
):
    return service.consume(**payload.model_dump())


# ── Corrections & movements ──────────────────────────────────────────────────

@router.post("/adjustments", response_model=InventoryTransactionResponse, status_code=201)
def adjust_stock(
    payload: AdjustmentRequest,
    service: InventoryLedgerService = Depends(get_inventory_service),
):
    return service.adjust(**payload.model_dump())


@router.post("/transfers", response_model=InventoryBalanceResponse)
def transfer_stock(
    payload: TransferRequest,
    service: InventoryLedgerService = Depends(get_inventory_service),
):
    return service.transfer(**payload.model_dump())


@router.post("/bucket-moves", response_model=InventoryBalanceResponse)
def move_between_buckets(
    payload: BucketMoveRequest,
    service: InventoryLedgerService = Depends(get_inventory_service),
):
    return service.move_between_buckets(**payload.model_dump())


@router.get("/transactions", response_model=List[InventoryTransactionResponse])
def list_transactions(
    product_id: Optional[int] = None,
    lot_id: Optional[int] = None,
    warehouse_id: Optional[int] = None,
    transaction_type: Optional[str] = None,
    reference_type: Optional[str] = None,
    reference_id: Optional[str] = None,
    service: InventoryLedgerService = Depends(get_inventory_service),
):
    return service.list_transactions(
        product_id=product_id,
        lot_id=lot_id,
        warehouse_id=warehouse_id,
        transaction_type=transaction_type,
        reference_type=reference_type,
        reference_id=reference_id,
    )


# ── Raw materials ────────────────────────────────────────────────────────────

@router.post("/raw-materials/adjustments", response_model=RawMaterialTransactionResponse, status_code=201)
def adjust_raw_material(
    payload: RawMaterialAdjustmentRequest,
    service: InventoryLedgerService = Depends(get_inventory_service),
):
    return service.adjust_raw_material(**payload.model_dump())
