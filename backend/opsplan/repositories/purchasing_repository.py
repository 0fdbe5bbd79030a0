from decimal import Decimal
from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from opsplan.models.purchasing import (
    PurchaseOrder,
    PurchaseOrderItem,
    SuggestedPurchaseOrder,
)
from opsplan.repositories.base import BaseRepository

OPEN_PO_STATUSES = ("sent", "confirmed", "partial")


class PurchaseOrderRepository(BaseRepository[PurchaseOrder]):
    def __init__(self, db: Session):
        super().__init__(PurchaseOrder, db)

    def get_item(self, item_id: int) -> Optional[PurchaseOrderItem]:
        return self.db.get(PurchaseOrderItem, item_id)

    def on_order_quantity(self, raw_material_id: int) -> Decimal:
        """Ordered minus received across purchase orders still awaiting delivery."""
        value = (
            self.db.query(
                func.coalesce(func.sum(PurchaseOrderItem.quantity - PurchaseOrderItem.received_quantity), 0)
            )
            .join(PurchaseOrder, PurchaseOrder.id == PurchaseOrderItem.purchase_order_id)
            .filter(
                PurchaseOrderItem.raw_material_id == raw_material_id,
                PurchaseOrder.status.in_(OPEN_PO_STATUSES),
            )
            .scalar()
        )
        return Decimal(str(value or 0))

    def list_filtered(self, vendor_id: Optional[int] = None, status: Optional[str] = None) -> List[PurchaseOrder]:
        q = self.db.query(PurchaseOrder)
        if vendor_id is not None:
            q = q.filter(PurchaseOrder.vendor_id == vendor_id)
        if status is not None:
            q = q.filter(PurchaseOrder.status == status)
        return q.order_by(PurchaseOrder.id.desc()).all()

    def count_for_suggestion(self, suggested_po_id: int) -> int:
        return self.db.query(PurchaseOrder).filter(PurchaseOrder.suggested_po_id == suggested_po_id).count()


class SuggestedPurchaseOrderRepository(BaseRepository[SuggestedPurchaseOrder]):
    def __init__(self, db: Session):
        super().__init__(SuggestedPurchaseOrder, db)

    def list_filtered(
        self,
        status: Optional[str] = None,
        production_plan_id: Optional[int] = None,
        vendor_id: Optional[int] = None,
    ) -> List[SuggestedPurchaseOrder]:
        q = self.db.query(SuggestedPurchaseOrder)
        if status is not None:
            q = q.filter(SuggestedPurchaseOrder.status == status)
        if production_plan_id is not None:
            q = q.filter(SuggestedPurchaseOrder.production_plan_id == production_plan_id)
        if vendor_id is not None:
            q = q.filter(SuggestedPurchaseOrder.vendor_id == vendor_id)
        return q.order_by(SuggestedPurchaseOrder.priority_score.desc(), SuggestedPurchaseOrder.id).all()
