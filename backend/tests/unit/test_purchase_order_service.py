from decimal import Decimal

import pytest

from opsplan.core.exceptions import (
    ExternalServiceUnavailableException,
    InvalidStateTransitionException,
    ValidationException,
)
from opsplan.services.purchase_order_service import PurchaseOrderService


class FailingSender:
    def send(self, purchase_order):
        raise ConnectionError("SMTP relay refused")


def test_create_totals_items(db, vendor, raw_material):
    po = PurchaseOrderService(db).create_purchase_order(
        vendor.id,
        items=[
            {"raw_material_id": raw_material.id, "quantity": 10, "unit_price": "2.50"},
            {"raw_material_id": raw_material.id, "quantity": 3, "unit_price": "1.25"},
        ],
    )

    assert po.status == "draft"
    assert po.po_number.startswith("PO-")
    assert po.total_amount == Decimal("28.75")


def test_sender_failure_keeps_order_in_draft(db, vendor, raw_material):
    service = PurchaseOrderService(db, sender=FailingSender())
    po = service.create_purchase_order(vendor.id, items=[{"raw_material_id": raw_material.id, "quantity": 1}])

    with pytest.raises(ExternalServiceUnavailableException):
        service.mark_sent(po.id)

    assert service.get_purchase_order(po.id).status == "draft"


def test_cannot_send_empty_order(db, vendor):
    service = PurchaseOrderService(db)
    po = service.create_purchase_order(vendor.id)

    with pytest.raises(ValidationException):
        service.mark_sent(po.id)


def test_receiving_raw_material_updates_stock_and_status(db, ledger, vendor, raw_material, warehouse):
    service = PurchaseOrderService(db)
    po = service.create_purchase_order(vendor.id, items=[{"raw_material_id": raw_material.id, "quantity": 40}])
    service.mark_sent(po.id)
    item_id = po.items[0].id

    po = service.receive_item(po.id, item_id, 15, warehouse.id)
    assert po.status == "partial"
    assert ledger.raw_material_on_hand(raw_material.id) == Decimal("15")

    po = service.receive_item(po.id, item_id, 25, warehouse.id)
    assert po.status == "received"
    assert ledger.raw_material_on_hand(raw_material.id) == Decimal("40")

    with pytest.raises(InvalidStateTransitionException):
        service.receive_item(po.id, item_id, 1, warehouse.id)


def test_receiving_finished_goods_opens_a_lot(db, ledger, vendor, product, warehouse):
    service = PurchaseOrderService(db)
    po = service.create_purchase_order(vendor.id, items=[{"product_id": product.id, "quantity": 20, "unit_price": 3}])
    service.mark_sent(po.id)

    service.receive_item(po.id, po.items[0].id, 20, warehouse.id)

    (lot,) = ledger.list_lots(product_id=product.id)
    assert lot.source_type == "purchase_order"
    assert lot.source_id == po.po_number
    assert ledger.available_for_product(product.id) == Decimal("20")


def test_over_receipt_is_rejected(db, vendor, raw_material, warehouse):
    service = PurchaseOrderService(db)
    po = service.create_purchase_order(vendor.id, items=[{"raw_material_id": raw_material.id, "quantity": 5}])
    service.mark_sent(po.id)

    with pytest.raises(ValidationException):
        service.receive_item(po.id, po.items[0].id, 6, warehouse.id)
