from sqlalchemy import (
    Column,
    Boolean,
    Integer,
    String,
    Numeric,
    DateTime,
    Date,
    ForeignKey,
    Text,
    CheckConstraint,
    Index,
    func,
    text,
)
from sqlalchemy.orm import relationship

from opsplan.database import Base


class PurchaseOrder(Base):
    __tablename__ = "purchase_orders"
    __table_args__ = (
        CheckConstraint(
            "status IN ('draft', 'sent', 'confirmed', 'partial', 'received', 'cancelled')",
            name="ck_purchase_orders_status",
        ),
        Index("ix_purchase_orders_vendor_status", "vendor_id", "status"),
    )

    id = Column(Integer, primary_key=True, index=True)
    po_number = Column(String(64), nullable=False, unique=True)
    vendor_id = Column(Integer, ForeignKey("vendors.id"), nullable=False, index=True)
    status = Column(String(20), nullable=False, default="draft")
    order_date = Column(Date, nullable=True)
    expected_date = Column(Date, nullable=True)
    total_amount = Column(Numeric(14, 2), nullable=False, default=0)
    suggested_po_id = Column(Integer, ForeignKey("suggested_purchase_orders.id"), nullable=True, unique=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, default=func.now(), nullable=False)
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now(), nullable=False)

    items = relationship(
        "PurchaseOrderItem",
        back_populates="purchase_order",
        cascade="all, delete-orphan",
        order_by="PurchaseOrderItem.id",
    )


class PurchaseOrderItem(Base):
    __tablename__ = "purchase_order_items"
    __table_args__ = (
        CheckConstraint("quantity > 0", name="ck_purchase_order_items_quantity_positive"),
        CheckConstraint(
            "received_quantity >= 0 AND received_quantity <= quantity",
            name="ck_purchase_order_items_received_range",
        ),
        CheckConstraint(
            "raw_material_id IS NOT NULL OR product_id IS NOT NULL",
            name="ck_purchase_order_items_target",
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    purchase_order_id = Column(
        Integer, ForeignKey("purchase_orders.id", ondelete="CASCADE"), nullable=False, index=True
    )
    raw_material_id = Column(Integer, ForeignKey("raw_materials.id"), nullable=True, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=True, index=True)
    description = Column(String(255), nullable=False)
    quantity = Column(Numeric(14, 4), nullable=False)
    received_quantity = Column(Numeric(14, 4), nullable=False, default=0)
    unit_price = Column(Numeric(12, 4), nullable=False, default=0)
    total_price = Column(Numeric(14, 2), nullable=False, default=0)

    purchase_order = relationship("PurchaseOrder", back_populates="items")


class SuggestedPurchaseOrder(Base):
    __tablename__ = "suggested_purchase_orders"
    __table_args__ = (
        CheckConstraint(
            "status IN ('pending', 'approved', 'rejected', 'converted')",
            name="ck_suggested_purchase_orders_status",
        ),
        CheckConstraint(
            "priority_score >= 0 AND priority_score <= 100",
            name="ck_suggested_purchase_orders_priority_range",
        ),
        # One live suggestion per vendor and plan; rejected ones make room for a fresh run.
        Index(
            "uq_suggested_purchase_orders_plan_vendor_live",
            "production_plan_id",
            "vendor_id",
            unique=True,
            sqlite_where=text("status != 'rejected'"),
            postgresql_where=text("status != 'rejected'"),
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    spo_number = Column(String(64), nullable=False, unique=True)
    production_plan_id = Column(Integer, ForeignKey("production_plans.id"), nullable=False, index=True)
    vendor_id = Column(Integer, ForeignKey("vendors.id"), nullable=False)
    total_amount = Column(Numeric(14, 2), nullable=False, default=0)
    suggested_order_date = Column(Date, nullable=False)
    required_by_date = Column(Date, nullable=False)
    estimated_delivery_date = Column(Date, nullable=False)
    vendor_lead_time_days = Column(Integer, nullable=False)
    days_until_required = Column(Integer, nullable=False)
    is_urgent = Column(Boolean, nullable=False, default=False)
    priority_score = Column(Integer, nullable=False, default=0)
    rationale = Column(Text, nullable=True)
    rationale_source = Column(String(20), nullable=False, default="template")
    status = Column(String(20), nullable=False, default="pending")
    rejection_reason = Column(Text, nullable=True)
    converted_po_id = Column(Integer, ForeignKey("purchase_orders.id", use_alter=True), nullable=True)
    decided_by = Column(String(100), nullable=True)
    decided_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=func.now(), nullable=False)

    items = relationship(
        "SuggestedPoItem",
        back_populates="suggested_po",
        cascade="all, delete-orphan",
        order_by="SuggestedPoItem.id",
    )


class SuggestedPoItem(Base):
    __tablename__ = "suggested_po_items"
    __table_args__ = (
        CheckConstraint("quantity > 0", name="ck_suggested_po_items_quantity_positive"),
    )

    id = Column(Integer, primary_key=True, index=True)
    suggested_po_id = Column(
        Integer, ForeignKey("suggested_purchase_orders.id", ondelete="CASCADE"), nullable=False, index=True
    )
    material_requirement_id = Column(Integer, ForeignKey("material_requirements.id"), nullable=False)
    raw_material_id = Column(Integer, ForeignKey("raw_materials.id"), nullable=False)
    description = Column(String(255), nullable=False)
    quantity = Column(Numeric(14, 4), nullable=False)
    unit = Column(String(20), nullable=False, default="ea")
    unit_price = Column(Numeric(12, 4), nullable=False, default=0)
    total_price = Column(Numeric(14, 2), nullable=False, default=0)
    shortage_ratio = Column(Numeric(6, 4), nullable=False, default=0)

    suggested_po = relationship("SuggestedPurchaseOrder", back_populates="items")
