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
    Index,
    func,
)
from opsplan.database import Base


class DemandForecast(Base):
    # No uniqueness on (product_id, period): repeated runs add rows.
    __tablename__ = "demand_forecasts"
    __table_args__ = (
        CheckConstraint("forecasted_quantity >= 0", name="ck_demand_forecasts_quantity_non_negative"),
        CheckConstraint(
            "confidence_level >= 0 AND confidence_level <= 100",
            name="ck_demand_forecasts_confidence_range",
        ),
        CheckConstraint("trend_direction IN ('up', 'down', 'stable')", name="ck_demand_forecasts_trend"),
        CheckConstraint("method IN ('ai_trend', 'historical_avg')", name="ck_demand_forecasts_method"),
        CheckConstraint(
            "status IN ('draft', 'active', 'superseded', 'expired')",
            name="ck_demand_forecasts_status",
        ),
        CheckConstraint("period_end >= period_start", name="ck_demand_forecasts_period_order"),
        Index("ix_demand_forecasts_product_period", "product_id", "period_start"),
    )

    id = Column(Integer, primary_key=True, index=True)
    forecast_number = Column(String(64), nullable=False, unique=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, index=True)
    period_start = Column(Date, nullable=False)
    period_end = Column(Date, nullable=False)
    forecasted_quantity = Column(Numeric(14, 4), nullable=False)
    confidence_level = Column(Numeric(5, 2), nullable=False)
    trend_direction = Column(String(10), nullable=False, default="stable")
    method = Column(String(20), nullable=False)
    data_points_used = Column(Integer, nullable=False, default=0)
    analysis = Column(Text, nullable=True)
    monthly_breakdown = Column(Text, nullable=True)
    status = Column(String(20), nullable=False, default="active")
    created_at = Column(DateTime, default=func.now(), nullable=False)


class ForecastAccuracy(Base):
    """Forecast vs actual sales over a forecast's period; one row per evaluation."""

    __tablename__ = "forecast_accuracy"
    __table_args__ = (
        CheckConstraint("actual_quantity >= 0", name="ck_forecast_accuracy_actual_non_negative"),
        Index("ix_forecast_accuracy_product_calculated", "product_id", "calculated_at"),
    )

    id = Column(Integer, primary_key=True, index=True)
    demand_forecast_id = Column(Integer, ForeignKey("demand_forecasts.id"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False)
    forecasted_quantity = Column(Numeric(14, 4), nullable=False)
    actual_quantity = Column(Numeric(14, 4), nullable=False)
    variance_quantity = Column(Numeric(14, 4), nullable=False)
    variance_percent = Column(Numeric(8, 2), nullable=True)
    mape = Column(Numeric(8, 2), nullable=True)
    months_evaluated = Column(Integer, nullable=False, default=0)
    period_start = Column(Date, nullable=False)
    period_end = Column(Date, nullable=False)
    calculated_at = Column(DateTime, default=func.now(), nullable=False)
