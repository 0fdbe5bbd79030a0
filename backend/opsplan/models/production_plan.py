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
)
from sqlalchemy.orm import relationship

from opsplan.database import Base


class ProductionPlan(Base):
    __tablename__ = "production_plans"
    __table_args__ = (
        CheckConstraint("planned_quantity >= 0", name="ck_production_plans_planned_non_negative"),
        CheckConstraint(
            "status IN ('draft', 'approved', 'in_progress', 'completed', 'cancelled')",
            name="ck_production_plans_status",
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    plan_number = Column(String(64), nullable=False, unique=True)
    forecast_id = Column(Integer, ForeignKey("demand_forecasts.id"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, index=True)
    bom_id = Column(Integer, ForeignKey("bills_of_materials.id"), nullable=True)
    forecasted_quantity = Column(Numeric(14, 4), nullable=False)
    safety_stock_percent = Column(Numeric(5, 2), nullable=False)
    safety_stock = Column(Numeric(14, 4), nullable=False)
    current_inventory = Column(Numeric(14, 4), nullable=False)
    planned_quantity = Column(Numeric(14, 4), nullable=False)
    planned_start_date = Column(Date, nullable=True)
    planned_end_date = Column(Date, nullable=True)
    status = Column(String(20), nullable=False, default="draft")
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, default=func.now(), nullable=False)
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now(), nullable=False)

    requirements = relationship(
        "MaterialRequirement",
        back_populates="plan",
        cascade="all, delete-orphan",
        order_by="MaterialRequirement.id",
    )


class MaterialRequirement(Base):
    """Point-in-time snapshot: vendor, price and lead time as of plan generation."""

    __tablename__ = "material_requirements"
    __table_args__ = (
        CheckConstraint("required_quantity >= 0", name="ck_material_requirements_required_non_negative"),
        CheckConstraint("shortage_quantity >= 0", name="ck_material_requirements_shortage_non_negative"),
        CheckConstraint(
            "status IN ('pending', 'po_generated', 'ordered', 'received')",
            name="ck_material_requirements_status",
        ),
        Index("ix_material_requirements_plan_vendor", "production_plan_id", "preferred_vendor_id"),
    )

    id = Column(Integer, primary_key=True, index=True)
    production_plan_id = Column(
        Integer, ForeignKey("production_plans.id", ondelete="CASCADE"), nullable=False, index=True
    )
    raw_material_id = Column(Integer, ForeignKey("raw_materials.id"), nullable=False, index=True)
    required_quantity = Column(Numeric(14, 4), nullable=False)
    unit = Column(String(20), nullable=False, default="ea")
    current_inventory = Column(Numeric(14, 4), nullable=False, default=0)
    on_order_quantity = Column(Numeric(14, 4), nullable=False, default=0)
    shortage_quantity = Column(Numeric(14, 4), nullable=False, default=0)
    suggested_order_quantity = Column(Numeric(14, 4), nullable=False, default=0)
    preferred_vendor_id = Column(Integer, ForeignKey("vendors.id"), nullable=True)
    estimated_unit_cost = Column(Numeric(12, 4), nullable=True)
    estimated_total_cost = Column(Numeric(14, 2), nullable=True)
    lead_time_days = Column(Integer, nullable=True)
    required_by_date = Column(Date, nullable=True)
    latest_order_date = Column(Date, nullable=True)
    is_urgent = Column(Boolean, nullable=False, default=False)
    status = Column(String(20), nullable=False, default="pending")
    generated_po_id = Column(Integer, ForeignKey("purchase_orders.id"), nullable=True)
    created_at = Column(DateTime, default=func.now(), nullable=False)

    plan = relationship("ProductionPlan", back_populates="requirements")
