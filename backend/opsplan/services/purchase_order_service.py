"""
Purchase Order Service — Service Layer (SRP / DIP)

Live procurement documents. Suggested-PO approval is the planning side's
only write path in here (``create_purchase_order(..., commit=False)``).
"""
import logging
from datetime import date
from typing import Any, Dict, Iterable, List, Optional, Protocol

from sqlalchemy.orm import Session

from opsplan.core.exceptions import (
    EntityNotFoundException,
    ExternalServiceUnavailableException,
    InvalidStateTransitionException,
    ValidationException,
)
from opsplan.models.purchasing import PurchaseOrder, PurchaseOrderItem
from opsplan.repositories.catalog_repository import VendorRepository
from opsplan.repositories.purchasing_repository import PurchaseOrderRepository
from opsplan.services.inventory_service import InventoryLedgerService
from opsplan.utils.clock import utcnow
from opsplan.utils.events import EntityCreatedEvent, StatusChangedEvent, get_event_bus
from opsplan.utils.numbering import document_number
from opsplan.utils.quantities import ZERO, money, qty, to_decimal

logger = logging.getLogger(__name__)

PO_TRANSITIONS = {
    "draft": {"sent", "cancelled"},
    "sent": {"confirmed", "partial", "received", "cancelled"},
    "confirmed": {"partial", "received", "cancelled"},
    "partial": {"received"},
    "received": set(),
    "cancelled": set(),
}
RECEIVABLE_STATUSES = {"sent", "confirmed", "partial"}


class PurchaseOrderSender(Protocol):
    def send(self, purchase_order: PurchaseOrder) -> None:
        ...


class LoggingPurchaseOrderSender:
    def send(self, purchase_order: PurchaseOrder) -> None:
        logger.info(
            "purchase_order_sent po=%s vendor_id=%s total=%s",
            purchase_order.po_number, purchase_order.vendor_id, purchase_order.total_amount,
        )


class PurchaseOrderService:

    def __init__(self, db: Session, sender: Optional[PurchaseOrderSender] = None):
        self._db = db
        self._repo = PurchaseOrderRepository(db)
        self._vendor_repo = VendorRepository(db)
        self._ledger = InventoryLedgerService(db)
        self._sender = sender or LoggingPurchaseOrderSender()
        self._bus = get_event_bus()
        self._pending: List[StatusChangedEvent] = []

    def list_purchase_orders(self, vendor_id: Optional[int] = None, status: Optional[str] = None) -> List[PurchaseOrder]:
        return self._repo.list_filtered(vendor_id=vendor_id, status=status)

    def get_purchase_order(self, po_id: int) -> PurchaseOrder:
        po = self._repo.get_by_id(po_id)
        if not po:
            raise EntityNotFoundException("PurchaseOrder", po_id)
        return po

    def create_purchase_order(
        self,
        vendor_id: int,
        items: Iterable[Dict[str, Any]] = (),
        expected_date: Optional[date] = None,
        notes: Optional[str] = None,
        suggested_po_id: Optional[int] = None,
        commit: bool = True,
    ) -> PurchaseOrder:
        if not self._vendor_repo.get_by_id(vendor_id):
            raise EntityNotFoundException("Vendor", vendor_id)

        po = PurchaseOrder(
            po_number=document_number("PO"),
            vendor_id=vendor_id,
            status="draft",
            order_date=utcnow().date(),
            expected_date=expected_date,
            suggested_po_id=suggested_po_id,
            notes=notes,
            total_amount=ZERO,
        )
        po.items = [self._build_item(item) for item in items]
        po.total_amount = money(sum((to_decimal(i.total_price) for i in po.items), ZERO))
        self._db.add(po)
        self._db.flush()
        if commit:
            self._db.commit()
            self._db.refresh(po)
            self._bus.publish(EntityCreatedEvent(
                entity_type="purchase_order", entity_id=po.id, values={"po_number": po.po_number},
            ))
        return po

    def add_item(self, po_id: int, item: Dict[str, Any]) -> PurchaseOrder:
        po = self.get_purchase_order(po_id)
        if po.status != "draft":
            raise InvalidStateTransitionException("PurchaseOrder", po.status, "draft (edit)")
        po.items.append(self._build_item(item))
        po.total_amount = money(sum((to_decimal(i.total_price) for i in po.items), ZERO))
        self._db.commit()
        self._db.refresh(po)
        return po

    def update_status(self, po_id: int, status: str) -> PurchaseOrder:
        po = self.get_purchase_order(po_id)
        self._transition(po, status)
        self._db.commit()
        self._db.refresh(po)
        self._publish_pending()
        return po

    def mark_sent(self, po_id: int) -> PurchaseOrder:
        """Hand the order to the vendor; a sender failure leaves the order in draft."""
        po = self.get_purchase_order(po_id)
        if not po.items:
            raise ValidationException("Cannot send a purchase order without items")
        if "sent" not in PO_TRANSITIONS.get(po.status, set()):
            raise InvalidStateTransitionException("PurchaseOrder", po.status, "sent")
        try:
            self._sender.send(po)
        except Exception as exc:  # noqa: BLE001
            self._db.rollback()
            self._pending = []
            raise ExternalServiceUnavailableException("purchase_order_sender", str(exc)) from exc
        self._transition(po, "sent")
        self._db.commit()
        self._db.refresh(po)
        self._publish_pending()
        return po

    def receive_item(self, po_id: int, item_id: int, quantity: Any, warehouse_id: int) -> PurchaseOrder:
        po = self.get_purchase_order(po_id)
        if po.status not in RECEIVABLE_STATUSES:
            raise InvalidStateTransitionException("PurchaseOrder", po.status, "receive")
        item = self._repo.get_item(item_id)
        if item is None or item.purchase_order_id != po.id:
            raise EntityNotFoundException("PurchaseOrderItem", item_id)

        amount = qty(quantity)
        remaining = qty(item.quantity) - qty(item.received_quantity)
        if amount <= ZERO or amount > remaining:
            raise ValidationException(f"Receipt quantity must be between 0 and {remaining}")

        item.received_quantity = qty(item.received_quantity) + amount
        fully_received = all(qty(i.received_quantity) >= qty(i.quantity) for i in po.items)
        self._transition(po, "received" if fully_received else "partial", allow_same=True)

        if item.raw_material_id is not None:
            self._ledger.receive_raw_material(
                item.raw_material_id, warehouse_id, amount,
                reference_type="purchase_order", reference_id=po.po_number, commit=False,
            )
            self._db.commit()
        else:
            # Creates the lot and commits the item/status changes with it.
            self._ledger.receive(
                item.product_id, warehouse_id, amount, unit_cost=item.unit_price,
                reference_type="purchase_order", reference_id=po.po_number,
            )
        self._db.refresh(po)
        self._publish_pending()
        return po

    def _transition(self, po: PurchaseOrder, status: str, allow_same: bool = False) -> None:
        if allow_same and po.status == status:
            return
        if status not in PO_TRANSITIONS.get(po.status, set()):
            raise InvalidStateTransitionException("PurchaseOrder", po.status, status)
        self._pending.append(StatusChangedEvent(
            entity_type="purchase_order", entity_id=po.id, old_status=po.status, new_status=status,
        ))
        po.status = status

    def _publish_pending(self) -> None:
        events, self._pending = self._pending, []
        for event in events:
            self._bus.publish(event)

    @staticmethod
    def _build_item(item: Dict[str, Any]) -> PurchaseOrderItem:
        quantity = qty(item["quantity"])
        if quantity <= ZERO:
            raise ValidationException("Purchase order item quantity must be greater than zero")
        if item.get("raw_material_id") is None and item.get("product_id") is None:
            raise ValidationException("Purchase order item needs a raw_material_id or product_id")
        unit_price = to_decimal(item.get("unit_price") or 0)
        return PurchaseOrderItem(
            raw_material_id=item.get("raw_material_id"),
            product_id=item.get("product_id"),
            description=item.get("description") or "Item",
            quantity=quantity,
            received_quantity=ZERO,
            unit_price=unit_price,
            total_price=money(quantity * unit_price),
        )
