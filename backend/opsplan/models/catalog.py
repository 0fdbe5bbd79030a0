from sqlalchemy import (
    Boolean,
    Column,
    Integer,
    String,
    Numeric,
    DateTime,
    ForeignKey,
    CheckConstraint,
    func,
)
from sqlalchemy.orm import relationship

from opsplan.database import Base


class Product(Base):
    __tablename__ = "products"
    __table_args__ = (
        CheckConstraint("status IN ('active', 'inactive', 'discontinued')", name="ck_products_status"),
        CheckConstraint("unit_cost IS NULL OR unit_cost >= 0", name="ck_products_unit_cost_non_negative"),
    )

    id = Column(Integer, primary_key=True, index=True)
    sku = Column(String(100), nullable=False, unique=True, index=True)
    name = Column(String(255), nullable=False)
    description = Column(String(1000), nullable=True)
    category = Column(String(100), nullable=True)
    unit_cost = Column(Numeric(12, 2), nullable=True)
    selling_price = Column(Numeric(12, 2), nullable=True)
    status = Column(String(20), nullable=False, default="active")
    created_at = Column(DateTime, default=func.now(), nullable=False)


class Warehouse(Base):
    __tablename__ = "warehouses"

    id = Column(Integer, primary_key=True, index=True)
    code = Column(String(50), nullable=False, unique=True)
    name = Column(String(255), nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, default=func.now(), nullable=False)


class Vendor(Base):
    __tablename__ = "vendors"
    __table_args__ = (
        CheckConstraint("default_lead_time_days >= 0", name="ck_vendors_lead_time_non_negative"),
    )

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=True)
    default_lead_time_days = Column(Integer, nullable=False, default=14)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, default=func.now(), nullable=False)


class RawMaterial(Base):
    __tablename__ = "raw_materials"
    __table_args__ = (
        CheckConstraint("unit_cost IS NULL OR unit_cost >= 0", name="ck_raw_materials_unit_cost_non_negative"),
        CheckConstraint("lead_time_days >= 0", name="ck_raw_materials_lead_time_non_negative"),
    )

    id = Column(Integer, primary_key=True, index=True)
    sku = Column(String(100), nullable=False, unique=True, index=True)
    name = Column(String(255), nullable=False)
    unit = Column(String(20), nullable=False, default="ea")
    unit_cost = Column(Numeric(12, 4), nullable=True)
    preferred_vendor_id = Column(Integer, ForeignKey("vendors.id"), nullable=True, index=True)
    # 0 means "use the vendor's default lead time".
    lead_time_days = Column(Integer, nullable=False, default=0)
    min_order_qty = Column(Numeric(14, 4), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, default=func.now(), nullable=False)

    preferred_vendor = relationship("Vendor")
