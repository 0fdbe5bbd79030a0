from sqlalchemy import (
    Column,
    Integer,
    String,
    Numeric,
    DateTime,
    ForeignKey,
    CheckConstraint,
    Index,
    func,
)
from sqlalchemy.orm import relationship

from opsplan.database import Base


class BillOfMaterials(Base):
    __tablename__ = "bills_of_materials"
    __table_args__ = (
        CheckConstraint("status IN ('draft', 'active', 'obsolete')", name="ck_boms_status"),
        Index("ix_boms_product_status", "product_id", "status"),
    )

    id = Column(Integer, primary_key=True, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    version = Column(String(20), nullable=False, default="1.0")
    status = Column(String(20), nullable=False, default="draft")
    created_at = Column(DateTime, default=func.now(), nullable=False)

    components = relationship(
        "BomComponent",
        back_populates="bom",
        cascade="all, delete-orphan",
        order_by="BomComponent.id",
    )


class BomComponent(Base):
    __tablename__ = "bom_components"
    __table_args__ = (
        CheckConstraint(
            "component_type IN ('raw_material', 'product', 'packaging', 'labor')",
            name="ck_bom_components_type",
        ),
        CheckConstraint("quantity > 0", name="ck_bom_components_quantity_positive"),
        CheckConstraint(
            "wastage_percent >= 0 AND wastage_percent < 100",
            name="ck_bom_components_wastage_range",
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    bom_id = Column(Integer, ForeignKey("bills_of_materials.id", ondelete="CASCADE"), nullable=False, index=True)
    component_type = Column(String(20), nullable=False, default="raw_material")
    raw_material_id = Column(Integer, ForeignKey("raw_materials.id"), nullable=True, index=True)
    name = Column(String(255), nullable=False)
    quantity = Column(Numeric(14, 4), nullable=False)
    unit = Column(String(20), nullable=False, default="ea")
    wastage_percent = Column(Numeric(5, 2), nullable=False, default=0)
    unit_cost = Column(Numeric(12, 4), nullable=True)

    bom = relationship("BillOfMaterials", back_populates="components")
    raw_material = relationship("RawMaterial")
