"""
Purchase Order Router — Thin Controller (SRP / DIP)
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import Optional, List

from opsplan.database import get_db
from opsplan.schemas.purchasing import (
    PurchaseOrderCreate,
    PurchaseOrderItemCreate,
    PurchaseOrderReceiveRequest,
    PurchaseOrderResponse,
    PurchaseOrderStatusUpdateRequest,
)
from opsplan.services.purchase_order_service import PurchaseOrderService

router = APIRouter(prefix="/purchase-orders", tags=["Purchase Orders"])


def get_purchase_order_service(db: Session = Depends(get_db)) -> PurchaseOrderService:
    return PurchaseOrderService(db)


@router.post("", response_model=PurchaseOrderResponse, status_code=201)
def create_purchase_order(
    payload: PurchaseOrderCreate,
    service: PurchaseOrderService = Depends(get_purchase_order_service),
):
    return service.create_purchase_order(
        vendor_id=payload.vendor_id,
        items=[item.model_dump() for item in payload.items],
        expected_date=payload.expected_date,
        notes=payload.notes,
    )


@router.get("", response_model=List[PurchaseOrderResponse])
def list_purchase_orders(
    vendor_id: Optional[int] = None,
    status: Optional[str] = None,
    service: PurchaseOrderService = Depends(get_purchase_order_service),
):
    return service.list_purchase_orders(vendor_id=vendor_id, status=status)


@router.get("/{po_id}", response_model=PurchaseOrderResponse)
def get_purchase_order(po_id: int, service: PurchaseOrderService = Depends(get_purchase_order_service)):
    return service.get_purchase_order(po_id)


@router.post("/{po_id}/items", response_model=PurchaseOrderResponse)
def add_purchase_order_item(
    po_id: int,
    payload: PurchaseOrderItemCreate,
    service: PurchaseOrderService = Depends(get_purchase_order_service),
):
    return service.add_item(po_id, payload.model_dump())


@router.post("/{po_id}/send", response_model=PurchaseOrderResponse)
def send_purchase_order(po_id: int, service: PurchaseOrderService = Depends(get_purchase_order_service)):
    return service.mark_sent(po_id)


@router.patch("/{po_id}/status", response_model=PurchaseOrderResponse)
def update_purchase_order_status(
    po_id: int,
    payload: PurchaseOrderStatusUpdateRequest,
    service: PurchaseOrderService = Depends(get_purchase_order_service),
):
    return service.update_status(po_id, payload.status)


@router.post("/{po_id}/receive", response_model=PurchaseOrderResponse)
def receive_purchase_order_item(
    po_id: int,
    payload: PurchaseOrderReceiveRequest,
    service: PurchaseOrderService = Depends(get_purchase_order_service),
):
    return service.receive_item(po_id, payload.item_id, payload.quantity, payload.warehouse_id)
