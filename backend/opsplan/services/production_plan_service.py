"""
Production Plan Service — Service Layer (SRP / DIP)

Forecast -> planned quantity (net of stock, plus safety stock) -> BOM
expansion into material requirements. Vendor, price and lead time are
copied onto each requirement at generation time.
"""
import logging
import math
from datetime import date, datetime
from decimal import Decimal
from typing import Any, List, Optional

from dateutil.relativedelta import relativedelta
from sqlalchemy.orm import Session

from opsplan.config import settings
from opsplan.core.exceptions import (
    EntityNotFoundException,
    InvalidStateTransitionException,
    ValidationException,
)
from opsplan.models.catalog import RawMaterial, Vendor
from opsplan.models.production_plan import MaterialRequirement, ProductionPlan
from opsplan.repositories.catalog_repository import BomRepository, RawMaterialRepository, VendorRepository
from opsplan.repositories.forecast_repository import DemandForecastRepository
from opsplan.repositories.inventory_repository import (
    InventoryBalanceRepository,
    RawMaterialInventoryRepository,
)
from opsplan.repositories.production_plan_repository import (
    MaterialRequirementRepository,
    ProductionPlanRepository,
)
from opsplan.repositories.purchasing_repository import PurchaseOrderRepository
from opsplan.utils.clock import utcnow
from opsplan.utils.events import EntityCreatedEvent, StatusChangedEvent, get_event_bus
from opsplan.utils.numbering import document_number
from opsplan.utils.quantities import ZERO, money, qty, to_decimal

logger = logging.getLogger(__name__)

PLAN_TRANSITIONS = {
    "draft": {"approved", "cancelled"},
    "approved": {"in_progress", "cancelled"},
    "in_progress": {"completed"},
    "completed": set(),
    "cancelled": set(),
}


def compute_planned_quantity(forecasted: Any, safety_stock_percent: Any, current_inventory: Any) -> Decimal:
    """max(0, forecast + forecast * safety% - current inventory)."""
    forecast_qty = qty(forecasted)
    safety = qty(forecast_qty * to_decimal(safety_stock_percent) / Decimal("100"))
    return max(ZERO, qty(forecast_qty + safety - qty(current_inventory)))


def compute_shortage(required: Any, current: Any, on_order: Any) -> Decimal:
    return max(ZERO, qty(qty(required) - qty(current) - qty(on_order)))


def effective_lead_time_days(material: Optional[RawMaterial], vendor: Optional[Vendor]) -> int:
    """Material override when non-zero, else the vendor default, else the global default."""
    if material is not None and material.lead_time_days:
        return int(material.lead_time_days)
    if vendor is not None and vendor.default_lead_time_days:
        return int(vendor.default_lead_time_days)
    return settings.DEFAULT_VENDOR_LEAD_TIME_DAYS


def days_until(target: date, now: datetime) -> int:
    """Whole days from ``now`` until midnight of ``target``, rounded up."""
    seconds = (datetime.combine(target, datetime.min.time()) - now).total_seconds()
    return math.ceil(seconds / 86400)


class ProductionPlanService:

    def __init__(self, db: Session):
        self._db = db
        self._repo = ProductionPlanRepository(db)
        self._requirement_repo = MaterialRequirementRepository(db)
        self._forecast_repo = DemandForecastRepository(db)
        self._bom_repo = BomRepository(db)
        self._material_repo = RawMaterialRepository(db)
        self._vendor_repo = VendorRepository(db)
        self._balance_repo = InventoryBalanceRepository(db)
        self._rm_inventory_repo = RawMaterialInventoryRepository(db)
        self._po_repo = PurchaseOrderRepository(db)
        self._bus = get_event_bus()

    def list_plans(
        self,
        product_id: Optional[int] = None,
        forecast_id: Optional[int] = None,
        status: Optional[str] = None,
    ) -> List[ProductionPlan]:
        return self._repo.list_filtered(product_id=product_id, forecast_id=forecast_id, status=status)

    def get_plan(self, plan_id: int) -> ProductionPlan:
        plan = self._repo.get_by_id(plan_id)
        if not plan:
            raise EntityNotFoundException("ProductionPlan", plan_id)
        return plan

    def list_requirements(self, plan_id: int, shortage_only: bool = False) -> List[MaterialRequirement]:
        self.get_plan(plan_id)
        return self._requirement_repo.list_for_plan(plan_id, shortage_only=shortage_only)

    def update_plan_status(self, plan_id: int, status: str) -> ProductionPlan:
        plan = self.get_plan(plan_id)
        if status not in PLAN_TRANSITIONS.get(plan.status, set()):
            raise InvalidStateTransitionException("ProductionPlan", plan.status, status)
        old_status = plan.status
        result = self._repo.update(plan, {"status": status})
        self._bus.publish(StatusChangedEvent(
            entity_type="production_plan", entity_id=plan_id, old_status=old_status, new_status=status,
        ))
        return result

    def generate_production_plan(
        self,
        forecast_id: int,
        safety_stock_percent: Optional[float] = None,
        now: Optional[datetime] = None,
    ) -> ProductionPlan:
        """Re-running for the same forecast creates another plan; nothing is de-duplicated."""
        forecast = self._forecast_repo.get_by_id(forecast_id)
        if not forecast:
            raise EntityNotFoundException("DemandForecast", forecast_id)

        pct = settings.DEFAULT_SAFETY_STOCK_PERCENT if safety_stock_percent is None else safety_stock_percent
        if pct < 0:
            raise ValidationException("safety_stock_percent cannot be negative")
        now = now or utcnow()

        forecasted = qty(forecast.forecasted_quantity)
        current_inventory = qty(self._balance_repo.sum_available(forecast.product_id))
        safety_stock = qty(forecasted * to_decimal(pct) / Decimal("100"))
        planned = compute_planned_quantity(forecasted, pct, current_inventory)

        start_date = forecast.period_start or (now.date() + relativedelta(days=settings.DEFAULT_PLAN_HORIZON_DAYS))
        bom = self._bom_repo.get_active_for_product(forecast.product_id)

        # Every row is computed before anything is written.
        requirements = self._expand_bom(bom.id, planned, start_date, now) if bom else []

        plan = ProductionPlan(
            plan_number=document_number("PP", now),
            forecast_id=forecast.id,
            product_id=forecast.product_id,
            bom_id=bom.id if bom else None,
            forecasted_quantity=forecasted,
            safety_stock_percent=to_decimal(pct),
            safety_stock=safety_stock,
            current_inventory=current_inventory,
            planned_quantity=planned,
            planned_start_date=start_date,
            planned_end_date=forecast.period_end,
            status="draft",
            notes=None if bom else "No active bill of materials; no material requirements generated.",
        )
        plan.requirements = requirements
        self._db.add(plan)
        self._db.commit()
        self._db.refresh(plan)

        logger.info(
            "production_plan_generated plan=%s forecast_id=%s planned=%s requirements=%s",
            plan.plan_number, forecast.id, planned, len(requirements),
        )
        self._bus.publish(EntityCreatedEvent(
            entity_type="production_plan",
            entity_id=plan.id,
            values={"planned_quantity": str(planned), "requirements": len(requirements)},
        ))
        return plan

    def _expand_bom(
        self,
        bom_id: int,
        planned: Decimal,
        required_by: date,
        now: datetime,
    ) -> List[MaterialRequirement]:
        buffer = to_decimal(settings.SUGGESTED_ORDER_BUFFER)
        rows: List[MaterialRequirement] = []
        for component in self._bom_repo.list_components(bom_id):
            if component.component_type != "raw_material" or component.raw_material_id is None:
                continue
            material = self._material_repo.get_by_id(component.raw_material_id)
            if material is None:
                raise EntityNotFoundException("RawMaterial", component.raw_material_id)

            wastage = to_decimal(component.wastage_percent or 0) / Decimal("100")
            required = qty(to_decimal(component.quantity) * planned * (Decimal("1") + wastage))
            current = qty(self._rm_inventory_repo.total_for_material(material.id))
            on_order = qty(self._po_repo.on_order_quantity(material.id))
            shortage = compute_shortage(required, current, on_order)
            suggested = qty(shortage * buffer)

            vendor = self._vendor_repo.get_by_id(material.preferred_vendor_id) if material.preferred_vendor_id else None
            lead_time = effective_lead_time_days(material, vendor)
            unit_cost = to_decimal(material.unit_cost if material.unit_cost is not None else component.unit_cost)

            rows.append(MaterialRequirement(
                raw_material_id=material.id,
                required_quantity=required,
                unit=component.unit or material.unit,
                current_inventory=current,
                on_order_quantity=on_order,
                shortage_quantity=shortage,
                suggested_order_quantity=suggested,
                preferred_vendor_id=vendor.id if vendor else None,
                estimated_unit_cost=unit_cost,
                estimated_total_cost=money(suggested * unit_cost),
                lead_time_days=lead_time,
                required_by_date=required_by,
                latest_order_date=required_by - relativedelta(days=lead_time),
                is_urgent=shortage > ZERO and lead_time > days_until(required_by, now),
                status="pending",
            ))
        return rows
