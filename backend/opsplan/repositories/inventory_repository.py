from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from opsplan.models.inventory import (
    InventoryBalance,
    InventoryLot,
    InventoryReservation,
    InventoryTransaction,
    RawMaterialInventory,
    RawMaterialTransaction,
)
from opsplan.repositories.base import BaseRepository


class InventoryLotRepository(BaseRepository[InventoryLot]):
    def __init__(self, db: Session):
        super().__init__(InventoryLot, db)

    def list_filtered(self, product_id: Optional[int] = None, status: Optional[str] = None) -> List[InventoryLot]:
        q = self.db.query(InventoryLot)
        if product_id is not None:
            q = q.filter(InventoryLot.product_id == product_id)
        if status is not None:
            q = q.filter(InventoryLot.status == status)
        return q.order_by(InventoryLot.received_at, InventoryLot.id).all()

    def list_expiring(self, as_of: date) -> List[InventoryLot]:
        return (
            self.db.query(InventoryLot)
            .filter(
                InventoryLot.expiration_date.isnot(None),
                InventoryLot.expiration_date < as_of,
                InventoryLot.status.in_(["active", "hold"]),
            )
            .all()
        )


class InventoryBalanceRepository(BaseRepository[InventoryBalance]):
    def __init__(self, db: Session):
        super().__init__(InventoryBalance, db)

    def get_for_lot(self, lot_id: int, warehouse_id: int, lock: bool = False) -> Optional[InventoryBalance]:
        q = self.db.query(InventoryBalance).filter(
            InventoryBalance.lot_id == lot_id,
            InventoryBalance.warehouse_id == warehouse_id,
        )
        if lock:
            q = q.with_for_update()
        return q.first()

    def get_default_for_product(self, product_id: int, warehouse_id: int, lock: bool = False) -> Optional[InventoryBalance]:
        """Oldest balance of an active lot: target of ad-hoc adjustments."""
        q = (
            self.db.query(InventoryBalance)
            .join(InventoryLot, InventoryLot.id == InventoryBalance.lot_id)
            .filter(
                InventoryBalance.product_id == product_id,
                InventoryBalance.warehouse_id == warehouse_id,
                InventoryLot.status == "active",
            )
            .order_by(InventoryLot.received_at, InventoryLot.id)
        )
        if lock:
            q = q.with_for_update()
        return q.first()

    def list_filtered(
        self,
        product_id: Optional[int] = None,
        warehouse_id: Optional[int] = None,
        lot_id: Optional[int] = None,
    ) -> List[InventoryBalance]:
        q = self.db.query(InventoryBalance)
        if product_id is not None:
            q = q.filter(InventoryBalance.product_id == product_id)
        if warehouse_id is not None:
            q = q.filter(InventoryBalance.warehouse_id == warehouse_id)
        if lot_id is not None:
            q = q.filter(InventoryBalance.lot_id == lot_id)
        return q.order_by(InventoryBalance.id).all()

    def sum_available(self, product_id: int, warehouse_id: Optional[int] = None) -> Decimal:
        q = (
            self.db.query(func.coalesce(func.sum(InventoryBalance.available_qty), 0))
            .join(InventoryLot, InventoryLot.id == InventoryBalance.lot_id)
            .filter(InventoryBalance.product_id == product_id, InventoryLot.status == "active")
        )
        if warehouse_id is not None:
            q = q.filter(InventoryBalance.warehouse_id == warehouse_id)
        return Decimal(str(q.scalar() or 0))


class InventoryTransactionRepository(BaseRepository[InventoryTransaction]):
    def __init__(self, db: Session):
        super().__init__(InventoryTransaction, db)

    def list_filtered(
        self,
        product_id: Optional[int] = None,
        lot_id: Optional[int] = None,
        warehouse_id: Optional[int] = None,
        transaction_type: Optional[str] = None,
        reference_type: Optional[str] = None,
        reference_id: Optional[str] = None,
    ) -> List[InventoryTransaction]:
        q = self.db.query(InventoryTransaction)
        if product_id is not None:
            q = q.filter(InventoryTransaction.product_id == product_id)
        if lot_id is not None:
            q = q.filter(InventoryTransaction.lot_id == lot_id)
        if warehouse_id is not None:
            q = q.filter(InventoryTransaction.warehouse_id == warehouse_id)
        if transaction_type is not None:
            q = q.filter(InventoryTransaction.transaction_type == transaction_type)
        if reference_type is not None:
            q = q.filter(InventoryTransaction.reference_type == reference_type)
        if reference_id is not None:
            q = q.filter(InventoryTransaction.reference_id == reference_id)
        return q.order_by(InventoryTransaction.id).all()

    def sum_on_hand_delta(self, lot_id: int, warehouse_id: int, as_of: Optional[datetime] = None) -> Decimal:
        q = self.db.query(func.coalesce(func.sum(InventoryTransaction.on_hand_delta), 0)).filter(
            InventoryTransaction.lot_id == lot_id,
            InventoryTransaction.warehouse_id == warehouse_id,
        )
        if as_of is not None:
            q = q.filter(InventoryTransaction.created_at <= as_of)
        return Decimal(str(q.scalar() or 0))


class InventoryReservationRepository(BaseRepository[InventoryReservation]):
    def __init__(self, db: Session):
        super().__init__(InventoryReservation, db)

    def list_active(
        self,
        lot_id: int,
        warehouse_id: int,
        reference_type: str,
        reference_id: str,
        lock: bool = False,
    ) -> List[InventoryReservation]:
        q = (
            self.db.query(InventoryReservation)
            .filter(
                InventoryReservation.lot_id == lot_id,
                InventoryReservation.warehouse_id == warehouse_id,
                InventoryReservation.reference_type == reference_type,
                InventoryReservation.reference_id == reference_id,
                InventoryReservation.status == "active",
            )
            .order_by(InventoryReservation.created_at, InventoryReservation.id)
        )
        if lock:
            q = q.with_for_update()
        return q.all()

    def list_filtered(
        self,
        product_id: Optional[int] = None,
        reference_type: Optional[str] = None,
        reference_id: Optional[str] = None,
        status: Optional[str] = None,
    ) -> List[InventoryReservation]:
        q = self.db.query(InventoryReservation)
        if product_id is not None:
            q = q.filter(InventoryReservation.product_id == product_id)
        if reference_type is not None:
            q = q.filter(InventoryReservation.reference_type == reference_type)
        if reference_id is not None:
            q = q.filter(InventoryReservation.reference_id == reference_id)
        if status is not None:
            q = q.filter(InventoryReservation.status == status)
        return q.order_by(InventoryReservation.id).all()

    def sum_open_for_balance(self, balance_id: int) -> Decimal:
        value = (
            self.db.query(
                func.coalesce(
                    func.sum(
                        InventoryReservation.quantity
                        - InventoryReservation.released_quantity
                        - InventoryReservation.consumed_quantity
                    ),
                    0,
                )
            )
            .filter(InventoryReservation.balance_id == balance_id, InventoryReservation.status == "active")
            .scalar()
        )
        return Decimal(str(value or 0))


class RawMaterialInventoryRepository(BaseRepository[RawMaterialInventory]):
    def __init__(self, db: Session):
        super().__init__(RawMaterialInventory, db)

    def get_for_material(self, raw_material_id: int, warehouse_id: int, lock: bool = False) -> Optional[RawMaterialInventory]:
        q = self.db.query(RawMaterialInventory).filter(
            RawMaterialInventory.raw_material_id == raw_material_id,
            RawMaterialInventory.warehouse_id == warehouse_id,
        )
        if lock:
            q = q.with_for_update()
        return q.first()

    def total_for_material(self, raw_material_id: int) -> Decimal:
        value = (
            self.db.query(func.coalesce(func.sum(RawMaterialInventory.quantity), 0))
            .filter(RawMaterialInventory.raw_material_id == raw_material_id)
            .scalar()
        )
        return Decimal(str(value or 0))

    def list_transactions(self, raw_material_id: int) -> List[RawMaterialTransaction]:
        return (
            self.db.query(RawMaterialTransaction)
            .filter(RawMaterialTransaction.raw_material_id == raw_material_id)
            .order_by(RawMaterialTransaction.id)
            .all()
        )
