"""
Demand Forecast Service — Service Layer (SRP / DIP)

AI estimate first, deterministic historical average second: a reasoning
outage lowers forecast quality but never fails a product.
"""
import json
import logging
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Dict, List, Optional, Protocol, Sequence, Tuple

from dateutil.relativedelta import relativedelta
from sqlalchemy.orm import Session

from opsplan.core.exceptions import (
    EntityNotFoundException,
    InvalidStateTransitionException,
    ValidationException,
)
from opsplan.ml.strategies import (
    AITrendStrategy,
    ForecastSnapshot,
    HistoricalAverageStrategy,
    build_monthly_frame,
    frame_to_pairs,
)
from opsplan.models.catalog import Product
from opsplan.models.forecast import DemandForecast, ForecastAccuracy
from opsplan.repositories.catalog_repository import ProductRepository
from opsplan.repositories.forecast_repository import DemandForecastRepository, ForecastAccuracyRepository
from opsplan.repositories.inventory_repository import InventoryBalanceRepository
from opsplan.repositories.sales_order_repository import SalesOrderRepository
from opsplan.services.reasoning_service import ReasoningService, get_reasoning_service
from opsplan.utils.clock import utcnow
from opsplan.utils.events import ForecastGeneratedEvent, StatusChangedEvent, get_event_bus
from opsplan.utils.numbering import document_number
from opsplan.utils.quantities import ZERO, money, qty

logger = logging.getLogger(__name__)

OrderLine = Tuple[int, object, datetime]

FORECAST_TRANSITIONS = {
    "draft": {"active", "expired"},
    "active": {"superseded", "expired"},
    "superseded": {"expired"},
    "expired": set(),
}


class OrderHistorySource(Protocol):
    def order_lines(self, since: datetime, product_ids: Optional[Sequence[int]] = None) -> List[OrderLine]:
        ...


class SqlOrderHistorySource:
    """Order lines from non-cancelled sales orders."""

    def __init__(self, db: Session):
        self._repo = SalesOrderRepository(db)

    def order_lines(self, since: datetime, product_ids: Optional[Sequence[int]] = None) -> List[OrderLine]:
        return self._repo.list_order_lines(since, product_ids)


class ForecastService:

    def __init__(
        self,
        db: Session,
        reasoning: Optional[ReasoningService] = None,
        history_source: Optional[OrderHistorySource] = None,
    ):
        self._db = db
        self._repo = DemandForecastRepository(db)
        self._accuracy_repo = ForecastAccuracyRepository(db)
        self._sales_repo = SalesOrderRepository(db)
        self._product_repo = ProductRepository(db)
        self._balance_repo = InventoryBalanceRepository(db)
        self._history = history_source or SqlOrderHistorySource(db)
        self._ai = AITrendStrategy(reasoning or get_reasoning_service())
        self._fallback = HistoricalAverageStrategy()
        self._bus = get_event_bus()

    def list_forecasts(
        self,
        product_id: Optional[int] = None,
        status: Optional[str] = None,
        method: Optional[str] = None,
    ) -> List[DemandForecast]:
        return self._repo.list_filtered(product_id=product_id, status=status, method=method)

    def get_forecast(self, forecast_id: int) -> DemandForecast:
        forecast = self._repo.get_by_id(forecast_id)
        if not forecast:
            raise EntityNotFoundException("DemandForecast", forecast_id)
        return forecast

    def update_status(self, forecast_id: int, status: str) -> DemandForecast:
        forecast = self.get_forecast(forecast_id)
        if status not in FORECAST_TRANSITIONS.get(forecast.status, set()):
            raise InvalidStateTransitionException("DemandForecast", forecast.status, status)
        old_status = forecast.status
        result = self._repo.update(forecast, {"status": status})
        self._bus.publish(StatusChangedEvent(
            entity_type="demand_forecast", entity_id=forecast_id, old_status=old_status, new_status=status,
        ))
        return result

    def generate_forecasts(
        self,
        product_ids: Optional[List[int]] = None,
        forecast_months: int = 3,
        history_months: int = 12,
        now: Optional[datetime] = None,
    ) -> List[DemandForecast]:
        if forecast_months < 1:
            raise ValidationException("forecast_months must be at least 1")
        if history_months < 1:
            raise ValidationException("history_months must be at least 1")

        now = now or utcnow()
        products = self._resolve_products(product_ids)
        since = datetime.combine(now.date().replace(day=1) - relativedelta(months=history_months), datetime.min.time())
        period_start, period_end = self.forecast_period(now.date(), forecast_months)

        lines_by_product: Dict[int, List[Tuple[object, object]]] = {p.id: [] for p in products}
        for product_id, quantity, order_date in self._history.order_lines(since, [p.id for p in products]):
            if product_id in lines_by_product:
                lines_by_product[product_id].append((order_date, quantity))

        created: List[DemandForecast] = []
        for product in products:
            df = build_monthly_frame(lines_by_product[product.id])
            snapshot = ForecastSnapshot(
                product_id=product.id,
                sku=product.sku,
                name=product.name,
                category=product.category,
                current_inventory=float(self._balance_repo.sum_available(product.id)),
                monthly_sales=frame_to_pairs(df),
                forecast_months=forecast_months,
                history_months=history_months,
                as_of=now.date(),
            )

            estimate = self._ai.forecast(df, forecast_months, period_start, snapshot=snapshot)
            if estimate is None:
                estimate = self._fallback.forecast(df, forecast_months, period_start)

            forecast = self._repo.create(DemandForecast(
                forecast_number=document_number("FC", now),
                product_id=product.id,
                period_start=period_start,
                period_end=period_end,
                forecasted_quantity=qty(estimate.forecasted_quantity),
                confidence_level=estimate.confidence_level,
                trend_direction=estimate.trend_direction,
                method=estimate.method,
                data_points_used=len(df),
                analysis=estimate.analysis,
                monthly_breakdown=estimate.breakdown_json(),
                status="active",
            ))
            created.append(forecast)
            logger.info(
                "forecast_generated product_id=%s method=%s quantity=%s data_points=%s",
                product.id, forecast.method, forecast.forecasted_quantity, forecast.data_points_used,
            )
            self._bus.publish(ForecastGeneratedEvent(
                product_id=product.id,
                forecast_id=forecast.id,
                method=forecast.method,
                forecasted_quantity=str(forecast.forecasted_quantity),
            ))
        return created

    # ── Accuracy ─────────────────────────────────────────────────────────────

    def record_accuracy(self, forecast_id: int, now: Optional[datetime] = None) -> ForecastAccuracy:
        """Score a forecast against non-cancelled sales booked inside its period up to today.

        ``mape`` averages |actual - forecast| / actual over breakdown months that have
        started and have sales; it stays empty when no month qualifies.
        """
        forecast = self.get_forecast(forecast_id)
        now = now or utcnow()
        today = now.date()
        if forecast.period_start > today:
            raise ValidationException(
                f"Forecast {forecast.forecast_number} period starts {forecast.period_start}; nothing to compare yet"
            )

        window_end = min(forecast.period_end, today) + timedelta(days=1)
        actual_by_month: Dict[str, Decimal] = {}
        for _, quantity, order_date in self._sales_repo.list_order_lines(
            datetime.combine(forecast.period_start, datetime.min.time()),
            [forecast.product_id],
            until=datetime.combine(window_end, datetime.min.time()),
        ):
            month = order_date.strftime("%Y-%m")
            actual_by_month[month] = actual_by_month.get(month, ZERO) + qty(quantity)

        forecasted = qty(forecast.forecasted_quantity)
        actual = qty(sum(actual_by_month.values(), ZERO))
        variance = actual - forecasted
        errors = [
            abs(actual_by_month[month] - planned) / actual_by_month[month]
            for month, planned in self._breakdown(forecast)
            if month <= today.strftime("%Y-%m") and actual_by_month.get(month, ZERO) > ZERO
        ]

        record = self._accuracy_repo.create(ForecastAccuracy(
            demand_forecast_id=forecast.id,
            product_id=forecast.product_id,
            forecasted_quantity=forecasted,
            actual_quantity=actual,
            variance_quantity=variance,
            variance_percent=money(variance / forecasted * 100) if forecasted > ZERO else None,
            mape=money(sum(errors, ZERO) / len(errors) * 100) if errors else None,
            months_evaluated=len(errors),
            period_start=forecast.period_start,
            period_end=forecast.period_end,
            calculated_at=now,
        ))
        logger.info(
            "forecast_accuracy_recorded forecast_id=%s actual=%s forecasted=%s mape=%s",
            forecast.id, record.actual_quantity, record.forecasted_quantity, record.mape,
        )
        return record

    def list_accuracy(self, product_id: Optional[int] = None, limit: int = 50) -> List[ForecastAccuracy]:
        return self._accuracy_repo.list_history(product_id=product_id, limit=limit)

    @staticmethod
    def _breakdown(forecast: DemandForecast) -> List[Tuple[str, Decimal]]:
        if not forecast.monthly_breakdown:
            return []
        try:
            entries = json.loads(forecast.monthly_breakdown)
        except ValueError:
            logger.warning("forecast_breakdown_unreadable forecast_id=%s", forecast.id)
            return []
        return [(str(e["month"]), qty(e["quantity"])) for e in entries if "month" in e and "quantity" in e]

    @staticmethod
    def forecast_period(today: date, forecast_months: int) -> Tuple[date, date]:
        """First day of next month through the last day of the final forecast month."""
        start = today.replace(day=1) + relativedelta(months=1)
        end = start + relativedelta(months=forecast_months) - timedelta(days=1)
        return start, end

    def _resolve_products(self, product_ids: Optional[List[int]]) -> List[Product]:
        if not product_ids:
            return sorted(self._product_repo.get_by_ids(self._product_repo.list_active_ids()), key=lambda p: p.id)
        products = []
        for product_id in dict.fromkeys(product_ids):
            product = self._product_repo.get_by_id(product_id)
            if not product:
                raise EntityNotFoundException("Product", product_id)
            products.append(product)
        return products
