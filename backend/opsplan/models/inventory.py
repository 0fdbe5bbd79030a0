from sqlalchemy import (
    Column,
    Integer,
    String,
    Numeric,
    DateTime,
    Date,
    ForeignKey,
    Text,
    CheckConstraint,
    UniqueConstraint,
    Index,
    func,
)
from sqlalchemy.orm import relationship

from opsplan.database import Base


class InventoryLot(Base):
    __tablename__ = "inventory_lots"
    __table_args__ = (
        CheckConstraint(
            "status IN ('active', 'hold', 'expired', 'depleted')",
            name="ck_inventory_lots_status",
        ),
        CheckConstraint("received_quantity >= 0", name="ck_inventory_lots_received_non_negative"),
        Index("ix_inventory_lots_product_status", "product_id", "status"),
    )

    id = Column(Integer, primary_key=True, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, index=True)
    lot_code = Column(String(64), nullable=False, unique=True)
    status = Column(String(20), nullable=False, default="active")
    received_quantity = Column(Numeric(14, 4), nullable=False, default=0)
    unit_cost = Column(Numeric(12, 4), nullable=True)
    expiration_date = Column(Date, nullable=True)
    source_type = Column(String(50), nullable=True)
    source_id = Column(String(64), nullable=True)
    received_at = Column(DateTime, default=func.now(), nullable=False)

    balances = relationship("InventoryBalance", back_populates="lot", order_by="InventoryBalance.id")


class InventoryBalance(Base):
    __tablename__ = "inventory_balances"
    __table_args__ = (
        UniqueConstraint("lot_id", "warehouse_id", name="uq_inventory_balances_lot_warehouse"),
        CheckConstraint("available_qty >= 0", name="ck_inventory_balances_available_non_negative"),
        CheckConstraint("reserved_qty >= 0", name="ck_inventory_balances_reserved_non_negative"),
        CheckConstraint("hold_qty >= 0", name="ck_inventory_balances_hold_non_negative"),
        CheckConstraint("damaged_qty >= 0", name="ck_inventory_balances_damaged_non_negative"),
        Index("ix_inventory_balances_product_warehouse", "product_id", "warehouse_id"),
    )

    id = Column(Integer, primary_key=True, index=True)
    lot_id = Column(Integer, ForeignKey("inventory_lots.id"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, index=True)
    warehouse_id = Column(Integer, ForeignKey("warehouses.id"), nullable=False, index=True)
    available_qty = Column(Numeric(14, 4), nullable=False, default=0)
    reserved_qty = Column(Numeric(14, 4), nullable=False, default=0)
    hold_qty = Column(Numeric(14, 4), nullable=False, default=0)
    damaged_qty = Column(Numeric(14, 4), nullable=False, default=0)
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now(), nullable=False)

    lot = relationship("InventoryLot", back_populates="balances")

    @property
    def on_hand_qty(self):
        return (self.available_qty or 0) + (self.reserved_qty or 0) + (self.hold_qty or 0) + (self.damaged_qty or 0)


class InventoryTransaction(Base):
    """Append-only movement log. ``on_hand_delta`` is the signed change to the bucket sum."""

    __tablename__ = "inventory_transactions"
    __table_args__ = (
        CheckConstraint(
            "transaction_type IN ('receipt', 'reservation', 'release', 'consumption', "
            "'adjustment', 'transfer', 'status_change')",
            name="ck_inventory_transactions_type",
        ),
        Index("ix_inventory_transactions_lot_warehouse", "lot_id", "warehouse_id"),
        Index("ix_inventory_transactions_reference", "reference_type", "reference_id"),
    )

    id = Column(Integer, primary_key=True, index=True)
    transaction_number = Column(String(64), nullable=False, unique=True)
    transaction_type = Column(String(20), nullable=False)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, index=True)
    lot_id = Column(Integer, ForeignKey("inventory_lots.id"), nullable=False)
    warehouse_id = Column(Integer, ForeignKey("warehouses.id"), nullable=False)
    bucket = Column(String(20), nullable=False, default="available")
    quantity = Column(Numeric(14, 4), nullable=False)
    on_hand_delta = Column(Numeric(14, 4), nullable=False, default=0)
    previous_quantity = Column(Numeric(14, 4), nullable=False)
    new_quantity = Column(Numeric(14, 4), nullable=False)
    reference_type = Column(String(50), nullable=True)
    reference_id = Column(String(64), nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, default=func.now(), nullable=False)


class InventoryReservation(Base):
    __tablename__ = "inventory_reservations"
    __table_args__ = (
        CheckConstraint("status IN ('active', 'released', 'fulfilled')", name="ck_inventory_reservations_status"),
        CheckConstraint("quantity > 0", name="ck_inventory_reservations_quantity_positive"),
        CheckConstraint(
            "released_quantity + consumed_quantity <= quantity",
            name="ck_inventory_reservations_closed_within_quantity",
        ),
        Index(
            "ix_inventory_reservations_lookup",
            "lot_id", "warehouse_id", "reference_type", "reference_id", "status",
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    lot_id = Column(Integer, ForeignKey("inventory_lots.id"), nullable=False)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, index=True)
    warehouse_id = Column(Integer, ForeignKey("warehouses.id"), nullable=False)
    balance_id = Column(Integer, ForeignKey("inventory_balances.id"), nullable=False, index=True)
    reference_type = Column(String(50), nullable=False)
    reference_id = Column(String(64), nullable=False)
    quantity = Column(Numeric(14, 4), nullable=False)
    released_quantity = Column(Numeric(14, 4), nullable=False, default=0)
    consumed_quantity = Column(Numeric(14, 4), nullable=False, default=0)
    status = Column(String(20), nullable=False, default="active")
    created_at = Column(DateTime, default=func.now(), nullable=False)
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now(), nullable=False)

    @property
    def open_quantity(self):
        return (self.quantity or 0) - (self.released_quantity or 0) - (self.consumed_quantity or 0)


class RawMaterialInventory(Base):
    __tablename__ = "raw_material_inventory"
    __table_args__ = (
        UniqueConstraint("raw_material_id", "warehouse_id", name="uq_raw_material_inventory_material_warehouse"),
        CheckConstraint("quantity >= 0", name="ck_raw_material_inventory_quantity_non_negative"),
    )

    id = Column(Integer, primary_key=True, index=True)
    raw_material_id = Column(Integer, ForeignKey("raw_materials.id"), nullable=False, index=True)
    warehouse_id = Column(Integer, ForeignKey("warehouses.id"), nullable=False, index=True)
    quantity = Column(Numeric(14, 4), nullable=False, default=0)
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now(), nullable=False)


class RawMaterialTransaction(Base):
    __tablename__ = "raw_material_transactions"
    __table_args__ = (
        CheckConstraint(
            "transaction_type IN ('receipt', 'consumption', 'adjustment')",
            name="ck_raw_material_transactions_type",
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    transaction_number = Column(String(64), nullable=False, unique=True)
    transaction_type = Column(String(20), nullable=False)
    raw_material_id = Column(Integer, ForeignKey("raw_materials.id"), nullable=False, index=True)
    warehouse_id = Column(Integer, ForeignKey("warehouses.id"), nullable=False)
    quantity = Column(Numeric(14, 4), nullable=False)
    previous_quantity = Column(Numeric(14, 4), nullable=False)
    new_quantity = Column(Numeric(14, 4), nullable=False)
    reference_type = Column(String(50), nullable=True)
    reference_id = Column(String(64), nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, default=func.now(), nullable=False)
