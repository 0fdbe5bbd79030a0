"""
Inventory Ledger Service — Service Layer (SRP / DIP)

Owns lots, per-location balances and the append-only transaction log.
Every bucket mutation is a single conditional UPDATE (``bucket >= qty``) so
concurrent reservations on one balance row cannot lose updates; the paired
transaction row is written in the same commit.
"""
import logging
from datetime import date, datetime
from decimal import Decimal
from typing import Any, List, Optional

from sqlalchemy import update
from sqlalchemy.orm import Session

from opsplan.core.exceptions import (
    EntityNotFoundException,
    InsufficientStockException,
    InvalidStateTransitionException,
    ValidationException,
)
from opsplan.models.inventory import (
    InventoryBalance,
    InventoryLot,
    InventoryReservation,
    InventoryTransaction,
    RawMaterialInventory,
    RawMaterialTransaction,
)
from opsplan.repositories.catalog_repository import (
    ProductRepository,
    RawMaterialRepository,
    WarehouseRepository,
)
from opsplan.repositories.inventory_repository import (
    InventoryBalanceRepository,
    InventoryLotRepository,
    InventoryReservationRepository,
    InventoryTransactionRepository,
    RawMaterialInventoryRepository,
)
from opsplan.utils.clock import utcnow
from opsplan.utils.events import InventoryMovedEvent, StatusChangedEvent, get_event_bus
from opsplan.utils.numbering import sequence_code
from opsplan.utils.quantities import ZERO, qty

logger = logging.getLogger(__name__)

BUCKETS = ("available", "reserved", "hold", "damaged")
MOVABLE_BUCKETS = ("available", "hold", "damaged")

LOT_TRANSITIONS = {
    "active": {"hold", "expired"},
    "hold": {"active", "expired"},
    "expired": set(),
    "depleted": set(),
}


def _bucket_column(bucket: str):
    if bucket not in BUCKETS:
        raise ValidationException(f"Unknown inventory bucket '{bucket}'")
    return getattr(InventoryBalance, f"{bucket}_qty")


class InventoryLedgerService:

    def __init__(self, db: Session):
        self._db = db
        self._lot_repo = InventoryLotRepository(db)
        self._balance_repo = InventoryBalanceRepository(db)
        self._txn_repo = InventoryTransactionRepository(db)
        self._reservation_repo = InventoryReservationRepository(db)
        self._rm_repo = RawMaterialInventoryRepository(db)
        self._product_repo = ProductRepository(db)
        self._warehouse_repo = WarehouseRepository(db)
        self._material_repo = RawMaterialRepository(db)
        self._bus = get_event_bus()

    # ── Queries ──────────────────────────────────────────────────────────────

    def get_lot(self, lot_id: int) -> InventoryLot:
        lot = self._lot_repo.get_by_id(lot_id)
        if not lot:
            raise EntityNotFoundException("InventoryLot", lot_id)
        return lot

    def list_lots(self, product_id: Optional[int] = None, status: Optional[str] = None) -> List[InventoryLot]:
        return self._lot_repo.list_filtered(product_id=product_id, status=status)

    def list_balances(self, **filters: Any) -> List[InventoryBalance]:
        return self._balance_repo.list_filtered(**filters)

    def list_transactions(self, **filters: Any) -> List[InventoryTransaction]:
        return self._txn_repo.list_filtered(**filters)

    def list_reservations(self, **filters: Any) -> List[InventoryReservation]:
        return self._reservation_repo.list_filtered(**filters)

    def get_balance(self, lot_id: int, warehouse_id: int, lock: bool = False) -> InventoryBalance:
        balance = self._balance_repo.get_for_lot(lot_id, warehouse_id, lock=lock)
        if not balance:
            raise EntityNotFoundException("InventoryBalance", f"lot={lot_id} warehouse={warehouse_id}")
        return balance

    def available_for_product(self, product_id: int, warehouse_id: Optional[int] = None) -> Decimal:
        return qty(self._balance_repo.sum_available(product_id, warehouse_id))

    def derive_quantity(self, lot_id: int, warehouse_id: int, as_of: Optional[datetime] = None) -> Decimal:
        """On-hand quantity replayed from the transaction log (receipts minus consumption, +/- adjustments)."""
        return qty(self._txn_repo.sum_on_hand_delta(lot_id, warehouse_id, as_of=as_of))

    # ── Receiving ────────────────────────────────────────────────────────────

    def receive(
        self,
        product_id: int,
        warehouse_id: int,
        quantity: Any,
        unit_cost: Any = None,
        expiration_date: Optional[date] = None,
        reference_type: Optional[str] = None,
        reference_id: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> InventoryLot:
        """The only path that creates a lot; opens its first balance with a receipt transaction."""
        amount = self._positive(quantity)
        self._require_product(product_id)
        self._require_warehouse(warehouse_id)

        lot, balance = self._open_lot(
            product_id=product_id,
            warehouse_id=warehouse_id,
            amount=amount,
            unit_cost=unit_cost,
            expiration_date=expiration_date,
            source_type=reference_type,
            source_id=reference_id,
        )
        self._record(
            "receipt", balance, "available", amount,
            previous=ZERO, new=amount, on_hand_delta=amount,
            reference_type=reference_type, reference_id=reference_id, notes=notes,
        )
        self._db.commit()
        self._db.refresh(lot)
        logger.info(
            "lot_received lot=%s product_id=%s warehouse_id=%s quantity=%s",
            lot.lot_code, product_id, warehouse_id, amount,
        )
        self._publish_move("receipt", balance, amount, reference_type, reference_id)
        return lot

    # ── Reservation Manager ──────────────────────────────────────────────────

    def reserve(
        self,
        lot_id: int,
        product_id: int,
        warehouse_id: int,
        quantity: Any,
        reference_type: str,
        reference_id: str,
    ) -> InventoryReservation:
        amount = self._positive(quantity)
        lot = self._require_lot_for_product(lot_id, product_id)
        if lot.status != "active":
            raise ValidationException(f"Lot {lot.lot_code} is '{lot.status}' and cannot be reserved")
        balance = self.get_balance(lot_id, warehouse_id, lock=True)

        if not self._shift(balance, "available", "reserved", amount):
            self._db.refresh(balance)
            logger.warning(
                "reservation_rejected lot_id=%s warehouse_id=%s requested=%s available=%s",
                lot_id, warehouse_id, amount, balance.available_qty,
            )
            raise InsufficientStockException(amount, qty(balance.available_qty))

        reservation = InventoryReservation(
            lot_id=lot_id,
            product_id=product_id,
            warehouse_id=warehouse_id,
            balance_id=balance.id,
            reference_type=reference_type,
            reference_id=str(reference_id),
            quantity=amount,
            released_quantity=ZERO,
            consumed_quantity=ZERO,
            status="active",
        )
        self._db.add(reservation)
        after = qty(balance.available_qty)
        self._record(
            "reservation", balance, "available", amount,
            previous=after + amount, new=after, on_hand_delta=ZERO,
            reference_type=reference_type, reference_id=reference_id,
        )
        self._db.commit()
        self._db.refresh(reservation)
        self._publish_move("reservation", balance, amount, reference_type, reference_id)
        return reservation

    def release(
        self,
        lot_id: int,
        product_id: int,
        warehouse_id: int,
        quantity: Any,
        reference_type: str,
        reference_id: str,
    ) -> InventoryBalance:
        """Return reserved quantity to ``available``; partial releases close reservations oldest first."""
        amount = self._positive(quantity)
        self._require_lot_for_product(lot_id, product_id)
        balance = self.get_balance(lot_id, warehouse_id, lock=True)
        reservations = self._claim_reservations(lot_id, warehouse_id, reference_type, reference_id, amount)

        if not self._shift(balance, "reserved", "available", amount):
            raise InsufficientStockException(amount, qty(balance.reserved_qty))

        self._close_reservations(reservations, amount, "released_quantity")
        after = qty(balance.available_qty)
        self._record(
            "release", balance, "available", amount,
            previous=after - amount, new=after, on_hand_delta=ZERO,
            reference_type=reference_type, reference_id=reference_id,
        )
        self._db.commit()
        self._db.refresh(balance)
        self._publish_move("release", balance, amount, reference_type, reference_id)
        return balance

    def consume(
        self,
        lot_id: int,
        product_id: int,
        warehouse_id: int,
        quantity: Any,
        reference_type: str,
        reference_id: str,
    ) -> InventoryBalance:
        """Fulfilment: reserved quantity leaves the ledger."""
        amount = self._positive(quantity)
        lot = self._require_lot_for_product(lot_id, product_id)
        balance = self.get_balance(lot_id, warehouse_id, lock=True)
        reservations = self._claim_reservations(lot_id, warehouse_id, reference_type, reference_id, amount)

        if not self._shift(balance, "reserved", None, amount):
            raise InsufficientStockException(amount, qty(balance.reserved_qty))

        self._close_reservations(reservations, amount, "consumed_quantity")
        after = qty(balance.reserved_qty)
        self._record(
            "consumption", balance, "reserved", amount,
            previous=after + amount, new=after, on_hand_delta=-amount,
            reference_type=reference_type, reference_id=reference_id,
        )
        self._sync_depletion(lot)
        self._db.commit()
        self._db.refresh(balance)
        self._publish_move("consumption", balance, amount, reference_type, reference_id)
        return balance

    # ── Corrections & movements ──────────────────────────────────────────────

    def adjust(
        self,
        product_id: int,
        warehouse_id: int,
        quantity: Any,
        notes: Optional[str] = None,
    ) -> InventoryTransaction:
        """Manual +/- correction against the default (oldest active) lot at the location."""
        delta = qty(quantity)
        if delta == ZERO:
            raise ValidationException("Adjustment quantity must be non-zero")
        self._require_product(product_id)
        self._require_warehouse(warehouse_id)

        balance = self._balance_repo.get_default_for_product(product_id, warehouse_id, lock=True)
        if balance is None:
            if delta < ZERO:
                raise InsufficientStockException(-delta, ZERO)
            _, balance = self._open_lot(product_id=product_id, warehouse_id=warehouse_id, amount=delta,
                                        source_type="adjustment")
            previous = ZERO
        elif delta > ZERO:
            previous = qty(balance.available_qty)
            self._db.execute(
                update(InventoryBalance)
                .where(InventoryBalance.id == balance.id)
                .values(available_qty=InventoryBalance.available_qty + delta)
                .execution_options(synchronize_session=False)
            )
            self._db.refresh(balance)
            balance.lot.received_quantity = qty(balance.lot.received_quantity) + delta
        else:
            previous = qty(balance.available_qty)
            if not self._shift(balance, "available", None, -delta):
                raise InsufficientStockException(-delta, qty(balance.available_qty))

        txn = self._record(
            "adjustment", balance, "available", abs(delta),
            previous=previous, new=qty(balance.available_qty), on_hand_delta=delta,
            reference_type="manual_adjustment", reference_id=None, notes=notes,
        )
        self._sync_depletion(balance.lot)
        self._db.commit()
        self._db.refresh(txn)
        self._publish_move("adjustment", balance, delta, "manual_adjustment", None)
        return txn

    def transfer(
        self,
        lot_id: int,
        from_warehouse_id: int,
        to_warehouse_id: int,
        quantity: Any,
        notes: Optional[str] = None,
    ) -> InventoryBalance:
        amount = self._positive(quantity)
        if from_warehouse_id == to_warehouse_id:
            raise ValidationException("Transfer source and destination must differ")
        lot = self.get_lot(lot_id)
        self._require_warehouse(to_warehouse_id)
        source = self.get_balance(lot_id, from_warehouse_id, lock=True)

        if not self._shift(source, "available", None, amount):
            raise InsufficientStockException(amount, qty(source.available_qty))

        target = self._balance_repo.get_for_lot(lot_id, to_warehouse_id, lock=True)
        if target is None:
            target = self._balance_repo.add(self._new_balance(lot, to_warehouse_id, ZERO))
        target_before = qty(target.available_qty)
        self._db.execute(
            update(InventoryBalance)
            .where(InventoryBalance.id == target.id)
            .values(available_qty=InventoryBalance.available_qty + amount)
            .execution_options(synchronize_session=False)
        )
        self._db.refresh(target)

        reference_id = f"{from_warehouse_id}->{to_warehouse_id}"
        source_after = qty(source.available_qty)
        self._record(
            "transfer", source, "available", amount,
            previous=source_after + amount, new=source_after, on_hand_delta=-amount,
            reference_type="transfer", reference_id=reference_id, notes=notes,
        )
        self._record(
            "transfer", target, "available", amount,
            previous=target_before, new=qty(target.available_qty), on_hand_delta=amount,
            reference_type="transfer", reference_id=reference_id, notes=notes,
        )
        self._db.commit()
        self._db.refresh(target)
        self._publish_move("transfer", target, amount, "transfer", reference_id)
        return target

    def move_between_buckets(
        self,
        lot_id: int,
        warehouse_id: int,
        from_bucket: str,
        to_bucket: str,
        quantity: Any,
        notes: Optional[str] = None,
    ) -> InventoryBalance:
        """Quality moves between available, hold and damaged."""
        amount = self._positive(quantity)
        if from_bucket not in MOVABLE_BUCKETS or to_bucket not in MOVABLE_BUCKETS or from_bucket == to_bucket:
            raise ValidationException(f"Cannot move stock from '{from_bucket}' to '{to_bucket}'")
        balance = self.get_balance(lot_id, warehouse_id, lock=True)
        if not self._shift(balance, from_bucket, to_bucket, amount):
            self._db.refresh(balance)
            raise InsufficientStockException(amount, qty(getattr(balance, f"{from_bucket}_qty")))

        after = qty(getattr(balance, f"{from_bucket}_qty"))
        self._record(
            "status_change", balance, from_bucket, amount,
            previous=after + amount, new=after, on_hand_delta=ZERO,
            reference_type="bucket_move", reference_id=f"{from_bucket}->{to_bucket}", notes=notes,
        )
        self._db.commit()
        self._db.refresh(balance)
        return balance

    # ── Lot lifecycle ────────────────────────────────────────────────────────

    def set_lot_status(self, lot_id: int, status: str) -> InventoryLot:
        lot = self.get_lot(lot_id)
        if status not in LOT_TRANSITIONS.get(lot.status, set()):
            raise InvalidStateTransitionException("InventoryLot", lot.status, status)
        old_status = lot.status
        lot.status = status
        self._db.commit()
        self._db.refresh(lot)
        self._bus.publish(StatusChangedEvent(
            entity_type="inventory_lot", entity_id=lot.id, old_status=old_status, new_status=status,
        ))
        return lot

    def expire_lots(self, as_of: Optional[date] = None) -> List[InventoryLot]:
        as_of = as_of or utcnow().date()
        expired = self._lot_repo.list_expiring(as_of)
        previous = {}
        for lot in expired:
            previous[lot.id] = lot.status
            lot.status = "expired"
        self._db.commit()
        for lot in expired:
            self._bus.publish(StatusChangedEvent(
                entity_type="inventory_lot", entity_id=lot.id, old_status=previous[lot.id], new_status="expired",
            ))
        if expired:
            logger.info("lots_expired count=%s as_of=%s", len(expired), as_of)
        return expired

    # ── Raw material inventory (no lots) ─────────────────────────────────────

    def raw_material_on_hand(self, raw_material_id: int) -> Decimal:
        return qty(self._rm_repo.total_for_material(raw_material_id))

    def adjust_raw_material(
        self,
        raw_material_id: int,
        warehouse_id: int,
        quantity: Any,
        notes: Optional[str] = None,
        transaction_type: str = "adjustment",
        reference_type: Optional[str] = None,
        reference_id: Optional[str] = None,
        commit: bool = True,
    ) -> RawMaterialTransaction:
        delta = qty(quantity)
        if delta == ZERO:
            raise ValidationException("Adjustment quantity must be non-zero")
        if not self._material_repo.get_by_id(raw_material_id):
            raise EntityNotFoundException("RawMaterial", raw_material_id)
        self._require_warehouse(warehouse_id)

        record = self._rm_repo.get_for_material(raw_material_id, warehouse_id, lock=True)
        if record is None:
            record = self._rm_repo.add(
                RawMaterialInventory(raw_material_id=raw_material_id, warehouse_id=warehouse_id, quantity=ZERO)
            )
        previous = qty(record.quantity)
        new = previous + delta
        if new < ZERO:
            raise InsufficientStockException(-delta, previous)
        record.quantity = new

        txn = RawMaterialTransaction(
            transaction_number=sequence_code("RMT"),
            transaction_type=transaction_type,
            raw_material_id=raw_material_id,
            warehouse_id=warehouse_id,
            quantity=abs(delta),
            previous_quantity=previous,
            new_quantity=new,
            reference_type=reference_type,
            reference_id=str(reference_id) if reference_id is not None else None,
            notes=notes,
        )
        self._db.add(txn)
        if commit:
            self._db.commit()
            self._db.refresh(txn)
        return txn

    def receive_raw_material(
        self,
        raw_material_id: int,
        warehouse_id: int,
        quantity: Any,
        reference_type: Optional[str] = None,
        reference_id: Optional[str] = None,
        commit: bool = True,
    ) -> RawMaterialTransaction:
        return self.adjust_raw_material(
            raw_material_id,
            warehouse_id,
            self._positive(quantity),
            transaction_type="receipt",
            reference_type=reference_type,
            reference_id=reference_id,
            commit=commit,
        )

    # ── Internals ────────────────────────────────────────────────────────────

    def _shift(self, balance: InventoryBalance, from_bucket: str, to_bucket: Optional[str], amount: Decimal) -> bool:
        """Compare-and-swap move of ``amount`` out of ``from_bucket``; False when the bucket is short."""
        source = _bucket_column(from_bucket)
        values = {source.key: source - amount}
        if to_bucket is not None:
            target = _bucket_column(to_bucket)
            values[target.key] = target + amount
        result = self._db.execute(
            update(InventoryBalance)
            .where(InventoryBalance.id == balance.id, source >= amount)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            return False
        self._db.refresh(balance)
        return True

    def _claim_reservations(
        self,
        lot_id: int,
        warehouse_id: int,
        reference_type: str,
        reference_id: str,
        amount: Decimal,
    ) -> List[InventoryReservation]:
        reservations = self._reservation_repo.list_active(
            lot_id, warehouse_id, reference_type, str(reference_id), lock=True
        )
        open_total = sum((qty(r.open_quantity) for r in reservations), ZERO)
        if not reservations or open_total < amount:
            raise EntityNotFoundException(
                "InventoryReservation",
                f"{reference_type}:{reference_id} covering {amount} (open {open_total})",
            )
        return reservations

    @staticmethod
    def _close_reservations(reservations: List[InventoryReservation], amount: Decimal, field: str) -> None:
        remaining = amount
        for reservation in reservations:
            if remaining <= ZERO:
                break
            take = min(qty(reservation.open_quantity), remaining)
            setattr(reservation, field, qty(getattr(reservation, field)) + take)
            remaining -= take
            if qty(reservation.open_quantity) == ZERO:
                reservation.status = "fulfilled" if qty(reservation.consumed_quantity) > ZERO else "released"

    def _open_lot(
        self,
        product_id: int,
        warehouse_id: int,
        amount: Decimal,
        unit_cost: Any = None,
        expiration_date: Optional[date] = None,
        source_type: Optional[str] = None,
        source_id: Optional[str] = None,
    ):
        lot = self._lot_repo.add(InventoryLot(
            product_id=product_id,
            lot_code=sequence_code("LOT"),
            status="active",
            received_quantity=amount,
            unit_cost=unit_cost,
            expiration_date=expiration_date,
            source_type=source_type,
            source_id=str(source_id) if source_id is not None else None,
        ))
        balance = self._balance_repo.add(self._new_balance(lot, warehouse_id, amount))
        return lot, balance

    @staticmethod
    def _new_balance(lot: InventoryLot, warehouse_id: int, available: Decimal) -> InventoryBalance:
        return InventoryBalance(
            lot_id=lot.id,
            product_id=lot.product_id,
            warehouse_id=warehouse_id,
            available_qty=available,
            reserved_qty=ZERO,
            hold_qty=ZERO,
            damaged_qty=ZERO,
        )

    def _record(
        self,
        transaction_type: str,
        balance: InventoryBalance,
        bucket: str,
        amount: Decimal,
        previous: Decimal,
        new: Decimal,
        on_hand_delta: Decimal,
        reference_type: Optional[str] = None,
        reference_id: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> InventoryTransaction:
        txn = InventoryTransaction(
            transaction_number=sequence_code("TXN"),
            transaction_type=transaction_type,
            product_id=balance.product_id,
            lot_id=balance.lot_id,
            warehouse_id=balance.warehouse_id,
            bucket=bucket,
            quantity=qty(amount),
            on_hand_delta=qty(on_hand_delta),
            previous_quantity=qty(previous),
            new_quantity=qty(new),
            reference_type=reference_type,
            reference_id=str(reference_id) if reference_id is not None else None,
            notes=notes,
        )
        self._db.add(txn)
        return txn

    def _sync_depletion(self, lot: InventoryLot) -> None:
        self._db.flush()
        self._db.refresh(lot)
        if lot.status == "active" and all(qty(b.on_hand_qty) == ZERO for b in lot.balances):
            lot.status = "depleted"

    def _require_lot_for_product(self, lot_id: int, product_id: int) -> InventoryLot:
        lot = self.get_lot(lot_id)
        if lot.product_id != product_id:
            raise ValidationException(f"Lot {lot_id} does not belong to product {product_id}")
        return lot

    def _require_product(self, product_id: int) -> None:
        if not self._product_repo.get_by_id(product_id):
            raise EntityNotFoundException("Product", product_id)

    def _require_warehouse(self, warehouse_id: int) -> None:
        if not self._warehouse_repo.get_by_id(warehouse_id):
            raise EntityNotFoundException("Warehouse", warehouse_id)

    @staticmethod
    def _positive(quantity: Any) -> Decimal:
        amount = qty(quantity)
        if amount <= ZERO:
            raise ValidationException("Quantity must be greater than zero")
        return amount

    def _publish_move(
        self,
        transaction_type: str,
        balance: InventoryBalance,
        amount: Decimal,
        reference_type: Optional[str],
        reference_id: Optional[str],
    ) -> None:
        self._bus.publish(InventoryMovedEvent(
            transaction_type=transaction_type,
            product_id=balance.product_id,
            lot_id=balance.lot_id,
            warehouse_id=balance.warehouse_id,
            quantity=str(amount),
            reference_type=reference_type,
            reference_id=str(reference_id) if reference_id is not None else None,
        ))
