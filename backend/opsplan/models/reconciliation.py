from sqlalchemy import (
    Boolean,
    Column,
    Integer,
    String,
    Numeric,
    DateTime,
    ForeignKey,
    Text,
    CheckConstraint,
    UniqueConstraint,
    Index,
    func,
)
from sqlalchemy.orm import relationship

from opsplan.database import Base


class ChannelListing(Base):
    """A product/location pair a sales channel reports stock for."""

    __tablename__ = "channel_listings"
    __table_args__ = (
        UniqueConstraint(
            "channel", "store_id", "product_id", "warehouse_id",
            name="uq_channel_listings_channel_store_product_warehouse",
        ),
        CheckConstraint(
            "channel_reported_quantity >= 0",
            name="ck_channel_listings_reported_non_negative",
        ),
        Index("ix_channel_listings_channel_store", "channel", "store_id"),
    )

    id = Column(Integer, primary_key=True, index=True)
    channel = Column(String(50), nullable=False)
    store_id = Column(String(100), nullable=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, index=True)
    warehouse_id = Column(Integer, ForeignKey("warehouses.id"), nullable=True)
    external_sku = Column(String(100), nullable=True)
    channel_reported_quantity = Column(Numeric(14, 4), nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)
    last_synced_at = Column(DateTime, nullable=True)


class ReconciliationRun(Base):
    __tablename__ = "reconciliation_runs"
    __table_args__ = (
        CheckConstraint("status IN ('running', 'completed', 'failed')", name="ck_reconciliation_runs_status"),
    )

    id = Column(Integer, primary_key=True, index=True)
    run_number = Column(String(64), nullable=False, unique=True)
    channel = Column(String(50), nullable=False)
    store_id = Column(String(100), nullable=True)
    status = Column(String(20), nullable=False, default="running")
    total_lines = Column(Integer, nullable=False, default=0)
    passed_lines = Column(Integer, nullable=False, default=0)
    warning_lines = Column(Integer, nullable=False, default=0)
    critical_lines = Column(Integer, nullable=False, default=0)
    notes = Column(Text, nullable=True)
    started_at = Column(DateTime, default=func.now(), nullable=False)
    completed_at = Column(DateTime, nullable=True)

    lines = relationship("ReconciliationLine", back_populates="run", order_by="ReconciliationLine.id")


class ReconciliationLine(Base):
    __tablename__ = "reconciliation_lines"
    __table_args__ = (
        CheckConstraint("status IN ('pass', 'warning', 'critical')", name="ck_reconciliation_lines_status"),
    )

    id = Column(Integer, primary_key=True, index=True)
    run_id = Column(Integer, ForeignKey("reconciliation_runs.id", ondelete="CASCADE"), nullable=False, index=True)
    listing_id = Column(Integer, ForeignKey("channel_listings.id"), nullable=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, index=True)
    warehouse_id = Column(Integer, ForeignKey("warehouses.id"), nullable=True)
    internal_qty = Column(Numeric(14, 4), nullable=False)
    channel_qty = Column(Numeric(14, 4), nullable=False)
    delta = Column(Numeric(14, 4), nullable=False)
    variance_percent = Column(Numeric(8, 2), nullable=False, default=0)
    status = Column(String(20), nullable=False)
    suggested_action = Column(String(50), nullable=False)
    resolution_note = Column(Text, nullable=True)
    resolved_at = Column(DateTime, nullable=True)

    run = relationship("ReconciliationRun", back_populates="lines")
