from datetime import date
from decimal import Decimal

import pytest

from opsplan.core.exceptions import (
    EntityNotFoundException,
    InsufficientStockException,
    InvalidStateTransitionException,
    ValidationException,
)
from sqlalchemy.orm import sessionmaker

from opsplan.repositories.inventory_repository import InventoryReservationRepository
from opsplan.schemas.catalog import ProductCreate
from opsplan.services.inventory_service import InventoryLedgerService
from opsplan.utils.events import InventoryMovedEvent, StatusChangedEvent


def _transaction_types(ledger, lot_id):
    return [t.transaction_type for t in ledger.list_transactions(lot_id=lot_id)]


def test_receive_creates_lot_balance_and_receipt(ledger, lot, warehouse):
    balance = ledger.get_balance(lot.id, warehouse.id)

    assert lot.status == "active"
    assert lot.lot_code.startswith("LOT-")
    assert balance.available_qty == Decimal("100")
    assert _transaction_types(ledger, lot.id) == ["receipt"]


def test_receive_rejects_non_positive_quantity(ledger, product, warehouse):
    with pytest.raises(ValidationException):
        ledger.receive(product.id, warehouse.id, 0)


def test_reserve_then_release_restores_available_and_logs_both(ledger, lot, product, warehouse):
    ledger.reserve(lot.id, product.id, warehouse.id, 30, "sales_order", "SO-1")
    balance = ledger.get_balance(lot.id, warehouse.id)
    assert balance.available_qty == Decimal("70")
    assert balance.reserved_qty == Decimal("30")

    balance = ledger.release(lot.id, product.id, warehouse.id, 30, "sales_order", "SO-1")

    assert balance.available_qty == Decimal("100")
    assert balance.reserved_qty == Decimal("0")
    assert _transaction_types(ledger, lot.id) == ["receipt", "reservation", "release"]
    reservation = ledger.list_reservations(reference_id="SO-1")[0]
    assert reservation.status == "released"
    assert reservation.released_quantity == Decimal("30")


def test_reserve_more_than_available_leaves_balance_untouched(db, ledger, lot, product, warehouse):
    with pytest.raises(InsufficientStockException) as exc_info:
        ledger.reserve(lot.id, product.id, warehouse.id, 150, "sales_order", "SO-2")

    assert exc_info.value.available == Decimal("100")
    balance = ledger.get_balance(lot.id, warehouse.id)
    db.refresh(balance)
    assert balance.available_qty == Decimal("100")
    assert balance.reserved_qty == Decimal("0")
    assert ledger.list_reservations(reference_id="SO-2") == []
    assert _transaction_types(ledger, lot.id) == ["receipt"]


def test_reserve_requires_lot_of_the_same_product(ledger, lot, warehouse, catalog):
    other = catalog.create_product(ProductCreate(sku="SKU-OTHER", name="Other"))

    with pytest.raises(ValidationException):
        ledger.reserve(lot.id, other.id, warehouse.id, 1, "sales_order", "SO-3")


def test_reserve_rejects_lot_on_hold(ledger, lot, product, warehouse):
    ledger.set_lot_status(lot.id, "hold")

    with pytest.raises(ValidationException):
        ledger.reserve(lot.id, product.id, warehouse.id, 1, "sales_order", "SO-4")


def test_release_without_matching_reservation_is_not_found(ledger, lot, product, warehouse):
    with pytest.raises(EntityNotFoundException):
        ledger.release(lot.id, product.id, warehouse.id, 5, "sales_order", "UNKNOWN")


def test_partial_release_closes_oldest_reservation_first(ledger, lot, product, warehouse):
    ledger.reserve(lot.id, product.id, warehouse.id, 5, "sales_order", "SO-5")
    ledger.reserve(lot.id, product.id, warehouse.id, 5, "sales_order", "SO-5")

    ledger.release(lot.id, product.id, warehouse.id, 7, "sales_order", "SO-5")

    first, second = ledger.list_reservations(reference_id="SO-5")
    assert first.status == "released"
    assert first.released_quantity == Decimal("5")
    assert second.status == "active"
    assert second.released_quantity == Decimal("2")
    assert ledger.get_balance(lot.id, warehouse.id).reserved_qty == Decimal("3")


def test_consume_removes_reserved_stock_from_on_hand(ledger, lot, product, warehouse):
    ledger.reserve(lot.id, product.id, warehouse.id, 30, "sales_order", "SO-6")

    balance = ledger.consume(lot.id, product.id, warehouse.id, 10, "sales_order", "SO-6")

    assert balance.reserved_qty == Decimal("20")
    assert balance.on_hand_qty == Decimal("90")
    assert ledger.derive_quantity(lot.id, warehouse.id) == Decimal("90")
    assert ledger.list_reservations(reference_id="SO-6")[0].status == "active"


def test_consuming_everything_fulfils_reservation_and_depletes_lot(ledger, product, warehouse):
    small = ledger.receive(product.id, warehouse.id, 10)
    ledger.reserve(small.id, product.id, warehouse.id, 10, "sales_order", "SO-7")

    ledger.consume(small.id, product.id, warehouse.id, 10, "sales_order", "SO-7")

    assert ledger.get_lot(small.id).status == "depleted"
    assert ledger.list_reservations(reference_id="SO-7")[0].status == "fulfilled"
    assert ledger.derive_quantity(small.id, warehouse.id) == Decimal("0")


def test_derived_quantity_matches_bucket_sum_after_mixed_movements(ledger, lot, product, warehouse):
    ledger.reserve(lot.id, product.id, warehouse.id, 25, "sales_order", "SO-8")
    ledger.consume(lot.id, product.id, warehouse.id, 5, "sales_order", "SO-8")
    ledger.move_between_buckets(lot.id, warehouse.id, "available", "damaged", 4)
    ledger.adjust(product.id, warehouse.id, -6, notes="cycle count")

    balance = ledger.get_balance(lot.id, warehouse.id)
    assert ledger.derive_quantity(lot.id, warehouse.id) == balance.on_hand_qty == Decimal("89")


def test_positive_adjustment_raises_available_and_received(ledger, lot, product, warehouse):
    txn = ledger.adjust(product.id, warehouse.id, 15)

    assert txn.transaction_type == "adjustment"
    assert txn.on_hand_delta == Decimal("15")
    assert ledger.get_balance(lot.id, warehouse.id).available_qty == Decimal("115")
    assert ledger.get_lot(lot.id).received_quantity == Decimal("115")


def test_negative_adjustment_beyond_available_is_rejected(ledger, lot, product, warehouse):
    with pytest.raises(InsufficientStockException):
        ledger.adjust(product.id, warehouse.id, -101)

    assert ledger.get_balance(lot.id, warehouse.id).available_qty == Decimal("100")


def test_adjustment_without_stock_opens_a_lot(ledger, product, warehouse):
    ledger.adjust(product.id, warehouse.id, 12)

    lots = ledger.list_lots(product_id=product.id)
    assert len(lots) == 1
    assert lots[0].source_type == "adjustment"
    assert ledger.available_for_product(product.id) == Decimal("12")


def test_transfer_moves_available_between_warehouses(ledger, lot, warehouse, second_warehouse):
    target = ledger.transfer(lot.id, warehouse.id, second_warehouse.id, 30)

    assert target.warehouse_id == second_warehouse.id
    assert target.available_qty == Decimal("30")
    assert ledger.get_balance(lot.id, warehouse.id).available_qty == Decimal("70")
    assert ledger.derive_quantity(lot.id, warehouse.id) == Decimal("70")
    assert ledger.derive_quantity(lot.id, second_warehouse.id) == Decimal("30")
    transfers = ledger.list_transactions(lot_id=lot.id, transaction_type="transfer")
    assert len(transfers) == 2


def test_transfer_to_same_warehouse_is_rejected(ledger, lot, warehouse):
    with pytest.raises(ValidationException):
        ledger.transfer(lot.id, warehouse.id, warehouse.id, 1)


def test_bucket_move_keeps_on_hand_constant(ledger, lot, warehouse):
    balance = ledger.move_between_buckets(lot.id, warehouse.id, "available", "hold", 10)

    assert balance.available_qty == Decimal("90")
    assert balance.hold_qty == Decimal("10")
    assert balance.on_hand_qty == Decimal("100")
    assert ledger.derive_quantity(lot.id, warehouse.id) == Decimal("100")


def test_bucket_move_cannot_touch_reserved(ledger, lot, warehouse):
    with pytest.raises(ValidationException):
        ledger.move_between_buckets(lot.id, warehouse.id, "reserved", "available", 1)


def test_lot_status_transitions_are_enforced(ledger, lot):
    ledger.set_lot_status(lot.id, "expired")

    with pytest.raises(InvalidStateTransitionException):
        ledger.set_lot_status(lot.id, "active")


def test_expire_lots_excludes_stock_from_availability(ledger, product, warehouse):
    ledger.receive(product.id, warehouse.id, 40, expiration_date=date(2026, 1, 31))
    ledger.receive(product.id, warehouse.id, 60, expiration_date=date(2027, 1, 31))

    expired = ledger.expire_lots(as_of=date(2026, 10, 19))

    assert len(expired) == 1
    assert ledger.available_for_product(product.id) == Decimal("60")


def test_expiring_a_held_lot_reports_hold_as_previous_status(ledger, product, warehouse, events):
    held = ledger.receive(product.id, warehouse.id, 40, expiration_date=date(2026, 1, 31))
    ledger.set_lot_status(held.id, "hold")

    ledger.expire_lots(as_of=date(2026, 10, 19))

    expiry = [
        e for e in events
        if isinstance(e, StatusChangedEvent) and e.entity_id == held.id and e.new_status == "expired"
    ]
    assert [e.old_status for e in expiry] == ["hold"]


def test_movements_publish_events_after_commit(ledger, lot, product, warehouse, events):
    ledger.reserve(lot.id, product.id, warehouse.id, 2, "sales_order", "SO-9")

    moved = [e for e in events if isinstance(e, InventoryMovedEvent)]
    assert [e.transaction_type for e in moved] == ["reservation"]
    assert moved[0].reference_id == "SO-9"


def test_raw_material_adjustments_track_running_quantity(ledger, raw_material, warehouse):
    ledger.receive_raw_material(raw_material.id, warehouse.id, 100, reference_type="purchase_order")
    txn = ledger.adjust_raw_material(raw_material.id, warehouse.id, -30, notes="scrap")

    assert txn.previous_quantity == Decimal("100")
    assert txn.new_quantity == Decimal("70")
    assert ledger.raw_material_on_hand(raw_material.id) == Decimal("70")

    with pytest.raises(InsufficientStockException):
        ledger.adjust_raw_material(raw_material.id, warehouse.id, -71)


def test_stale_session_cannot_reserve_stock_taken_by_another(engine, db, ledger, lot, product, warehouse):
    other_db = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    try:
        other = InventoryLedgerService(other_db)
        stale = other.get_balance(lot.id, warehouse.id)
        assert stale.available_qty == Decimal("100")

        ledger.reserve(lot.id, product.id, warehouse.id, 100, "sales_order", "SO-A")

        with pytest.raises(InsufficientStockException):
            other.reserve(lot.id, product.id, warehouse.id, 1, "sales_order", "SO-B")
    finally:
        other_db.close()

    balance = ledger.get_balance(lot.id, warehouse.id)
    db.refresh(balance)
    assert balance.available_qty == Decimal("0")
    assert balance.reserved_qty == Decimal("100")
    assert ledger.list_reservations(reference_id="SO-B") == []


def test_open_reservations_sum_to_reserved_bucket(db, ledger, lot, product, warehouse):
    ledger.reserve(lot.id, product.id, warehouse.id, 20, "sales_order", "SO-10")
    ledger.reserve(lot.id, product.id, warehouse.id, 15, "sales_order", "SO-11")
    ledger.release(lot.id, product.id, warehouse.id, 8, "sales_order", "SO-10")
    ledger.consume(lot.id, product.id, warehouse.id, 5, "sales_order", "SO-11")

    balance = ledger.get_balance(lot.id, warehouse.id)
    assert balance.reserved_qty == Decimal("22")
    assert InventoryReservationRepository(db).sum_open_for_balance(balance.id) == balance.reserved_qty
