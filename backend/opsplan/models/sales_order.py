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


class SalesOrder(Base):
    __tablename__ = "sales_orders"
    __table_args__ = (
        CheckConstraint(
            "status IN ('pending', 'confirmed', 'shipped', 'delivered', 'cancelled')",
            name="ck_sales_orders_status",
        ),
        Index("ix_sales_orders_order_date", "order_date"),
    )

    id = Column(Integer, primary_key=True, index=True)
    order_number = Column(String(64), nullable=False, unique=True)
    channel = Column(String(50), nullable=True)
    status = Column(String(20), nullable=False, default="confirmed")
    order_date = Column(DateTime, nullable=False)
    created_at = Column(DateTime, default=func.now(), nullable=False)

    lines = relationship("SalesOrderLine", back_populates="order", cascade="all, delete-orphan")


class SalesOrderLine(Base):
    __tablename__ = "sales_order_lines"
    __table_args__ = (
        CheckConstraint("quantity > 0", name="ck_sales_order_lines_quantity_positive"),
    )

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, ForeignKey("sales_orders.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, index=True)
    quantity = Column(Numeric(14, 4), nullable=False)
    unit_price = Column(Numeric(12, 2), nullable=True)

    order = relationship("SalesOrder", back_populates="lines")
