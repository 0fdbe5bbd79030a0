"""
Suggested Purchase Order Service — Service Layer (SRP / DIP)

Groups a plan's material shortages by preferred vendor into draft purchase
proposals with lead-time aware urgency and a 0-100 priority score.

State machine::

    pending --approve--> converted (real PO created, terminal)
    pending --reject---> rejected  (terminal)

Both decisions are a compare-and-swap on ``status = 'pending'`` so a
double submission can never produce a second purchase order.
"""
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from decimal import Decimal, ROUND_HALF_UP
import json
import logging
from typing import Dict, List, Optional

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from opsplan.config import settings
from opsplan.core.exceptions import (
    AlreadyConvertedException,
    EntityNotFoundException,
    InvalidStateTransitionException,
    ValidationException,
)
from opsplan.models.catalog import Vendor
from opsplan.models.production_plan import MaterialRequirement
from opsplan.models.purchasing import PurchaseOrder, SuggestedPoItem, SuggestedPurchaseOrder
from opsplan.repositories.catalog_repository import RawMaterialRepository, VendorRepository
from opsplan.repositories.production_plan_repository import (
    MaterialRequirementRepository,
    ProductionPlanRepository,
)
from opsplan.repositories.purchasing_repository import SuggestedPurchaseOrderRepository
from opsplan.services.production_plan_service import days_until
from opsplan.services.purchase_order_service import PurchaseOrderService
from opsplan.services.reasoning_service import ReasoningService, get_reasoning_service
from opsplan.utils.clock import utcnow
from opsplan.utils.events import EntityCreatedEvent, StatusChangedEvent, get_event_bus
from opsplan.utils.numbering import document_number
from opsplan.utils.quantities import ZERO, money, qty, to_decimal

logger = logging.getLogger(__name__)

URGENT_BOOST = 30
NEAR_URGENT_BOOST = 15
NEAR_URGENT_SLACK_DAYS = 7
# A rejected suggestion frees its vendor group for the next run.
LIVE_SUGGESTION_STATUSES = ("pending", "converted")


def compute_priority_score(avg_shortage_ratio: float, is_urgent: bool, days_until_required: int, lead_time_days: int) -> int:
    base = int(Decimal(str(avg_shortage_ratio * 70)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
    if is_urgent:
        base += URGENT_BOOST
    elif days_until_required - lead_time_days < NEAR_URGENT_SLACK_DAYS:
        base += NEAR_URGENT_BOOST
    return max(0, min(100, base))


@dataclass(frozen=True)
class SuggestionSnapshot:
    """Read-only prompt context for one vendor group."""

    vendor_name: str
    lead_time_days: int
    days_until_required: int
    is_urgent: bool
    priority_score: int
    total_amount: str
    items: tuple

    def to_prompt_dict(self) -> Dict[str, object]:
        return {
            "vendor": self.vendor_name,
            "lead_time_days": self.lead_time_days,
            "days_until_required": self.days_until_required,
            "is_urgent": self.is_urgent,
            "priority_score": self.priority_score,
            "total_amount": self.total_amount,
            "items": [{"material": n, "shortage": s, "order_quantity": q} for n, s, q in self.items],
        }


def template_rationale(snapshot: SuggestionSnapshot) -> str:
    timing = (
        f"URGENT: {snapshot.vendor_name} needs {snapshot.lead_time_days} days but material is required in "
        f"{snapshot.days_until_required} days."
        if snapshot.is_urgent
        else f"{snapshot.vendor_name} lead time is {snapshot.lead_time_days} days; material is required in "
        f"{snapshot.days_until_required} days."
    )
    return (
        f"Order {len(snapshot.items)} material(s) totalling {snapshot.total_amount} to cover production "
        f"shortages. {timing} Priority {snapshot.priority_score}/100."
    )


@dataclass
class SuggestedPOGenerationResult:
    suggested: List[SuggestedPurchaseOrder] = field(default_factory=list)
    skipped_requirements: List[MaterialRequirement] = field(default_factory=list)


class SuggestedPOService:

    def __init__(self, db: Session, reasoning: Optional[ReasoningService] = None):
        self._db = db
        self._repo = SuggestedPurchaseOrderRepository(db)
        self._plan_repo = ProductionPlanRepository(db)
        self._requirement_repo = MaterialRequirementRepository(db)
        self._vendor_repo = VendorRepository(db)
        self._material_repo = RawMaterialRepository(db)
        self._po_service = PurchaseOrderService(db)
        self._reasoning = reasoning or get_reasoning_service()
        self._bus = get_event_bus()

    def list_suggested(
        self,
        status: Optional[str] = None,
        production_plan_id: Optional[int] = None,
        vendor_id: Optional[int] = None,
    ) -> List[SuggestedPurchaseOrder]:
        return self._repo.list_filtered(status=status, production_plan_id=production_plan_id, vendor_id=vendor_id)

    def get_suggested(self, spo_id: int) -> SuggestedPurchaseOrder:
        spo = self._repo.get_by_id(spo_id)
        if not spo:
            raise EntityNotFoundException("SuggestedPurchaseOrder", spo_id)
        return spo

    # ── Generation ───────────────────────────────────────────────────────────

    def generate(self, production_plan_id: int, now: Optional[datetime] = None) -> SuggestedPOGenerationResult:
        plan = self._plan_repo.get_by_id(production_plan_id)
        if not plan:
            raise EntityNotFoundException("ProductionPlan", production_plan_id)
        now = now or utcnow()
        today = now.date()

        result = SuggestedPOGenerationResult()
        groups: Dict[int, List[MaterialRequirement]] = {}
        for requirement in self._requirement_repo.list_for_plan(plan.id, shortage_only=True, status="pending"):
            if requirement.preferred_vendor_id is None:
                result.skipped_requirements.append(requirement)
                continue
            groups.setdefault(requirement.preferred_vendor_id, []).append(requirement)

        fallback_required_by = plan.planned_start_date or today + timedelta(days=settings.DEFAULT_PLAN_HORIZON_DAYS)
        live_vendor_ids = {
            spo.vendor_id
            for spo in self._repo.list_filtered(production_plan_id=plan.id)
            if spo.status in LIVE_SUGGESTION_STATUSES
        }
        for vendor_id, requirements in groups.items():
            if vendor_id in live_vendor_ids:
                logger.info("suggested_po_already_live plan_id=%s vendor_id=%s", plan.id, vendor_id)
                continue
            vendor = self._vendor_repo.get_by_id(vendor_id)
            if vendor is None:
                raise EntityNotFoundException("Vendor", vendor_id)
            spo = self._build_suggestion(plan.id, vendor, requirements, fallback_required_by, now)
            self._db.add(spo)
            result.suggested.append(spo)

        # One commit for every vendor group and requirement back-fill.
        try:
            self._db.commit()
        except IntegrityError:
            # A concurrent run stored a live suggestion for one of these vendors first.
            self._db.rollback()
            raise InvalidStateTransitionException("SuggestedPurchaseOrder", "pending", "pending")
        for spo in result.suggested:
            self._db.refresh(spo)
            self._bus.publish(EntityCreatedEvent(
                entity_type="suggested_purchase_order",
                entity_id=spo.id,
                values={"vendor_id": spo.vendor_id, "priority_score": spo.priority_score},
            ))

        if result.skipped_requirements:
            logger.warning(
                "suggested_po_requirements_without_vendor plan_id=%s requirement_ids=%s",
                plan.id, [r.id for r in result.skipped_requirements],
            )
        logger.info("suggested_pos_generated plan_id=%s count=%s", plan.id, len(result.suggested))
        return result

    def _build_suggestion(
        self,
        plan_id: int,
        vendor: Vendor,
        requirements: List[MaterialRequirement],
        fallback_required_by: date,
        now: datetime,
    ) -> SuggestedPurchaseOrder:
        today = now.date()
        lead_time = int(vendor.default_lead_time_days or settings.DEFAULT_VENDOR_LEAD_TIME_DAYS)
        required_by = min((r.required_by_date for r in requirements if r.required_by_date), default=fallback_required_by)
        remaining_days = days_until(required_by, now)
        is_urgent = lead_time > remaining_days
        latest_order_date = max(required_by - timedelta(days=lead_time), today)

        ratios = [
            float(qty(r.shortage_quantity) / qty(r.required_quantity)) if qty(r.required_quantity) > ZERO else 1.0
            for r in requirements
        ]
        avg_ratio = sum(ratios) / len(ratios)
        priority = compute_priority_score(avg_ratio, is_urgent, remaining_days, lead_time)

        items: List[SuggestedPoItem] = []
        for requirement, ratio in zip(requirements, ratios):
            material = self._material_repo.get_by_id(requirement.raw_material_id)
            quantity = qty(requirement.suggested_order_quantity) or qty(requirement.shortage_quantity)
            unit_price = to_decimal(requirement.estimated_unit_cost or 0)
            items.append(SuggestedPoItem(
                material_requirement_id=requirement.id,
                raw_material_id=requirement.raw_material_id,
                description=material.name if material else f"Raw material {requirement.raw_material_id}",
                quantity=quantity,
                unit=requirement.unit,
                unit_price=unit_price,
                total_price=money(quantity * unit_price),
                shortage_ratio=Decimal(str(round(ratio, 4))),
            ))
            requirement.lead_time_days = lead_time
            requirement.is_urgent = is_urgent
            requirement.latest_order_date = latest_order_date

        total_amount = money(sum((to_decimal(i.total_price) for i in items), ZERO))
        snapshot = SuggestionSnapshot(
            vendor_name=vendor.name,
            lead_time_days=lead_time,
            days_until_required=remaining_days,
            is_urgent=is_urgent,
            priority_score=priority,
            total_amount=str(total_amount),
            items=tuple(
                (i.description, str(qty(r.shortage_quantity)), str(i.quantity)) for i, r in zip(items, requirements)
            ),
        )
        rationale, source = self._rationale(snapshot)

        spo = SuggestedPurchaseOrder(
            spo_number=document_number("SPO", now),
            production_plan_id=plan_id,
            vendor_id=vendor.id,
            total_amount=total_amount,
            suggested_order_date=latest_order_date,
            required_by_date=required_by,
            estimated_delivery_date=today + timedelta(days=lead_time),
            vendor_lead_time_days=lead_time,
            days_until_required=remaining_days,
            is_urgent=is_urgent,
            priority_score=priority,
            rationale=rationale,
            rationale_source=source,
            status="pending",
        )
        spo.items = items
        return spo

    def _rationale(self, snapshot: SuggestionSnapshot):
        messages = [
            {
                "role": "system",
                "content": "You are a procurement analyst. Explain in two sentences why this purchase order is needed.",
            },
            {"role": "user", "content": json.dumps(snapshot.to_prompt_dict())},
        ]
        result = self._reasoning.invoke(messages)
        if result.ok and result.content and result.content.strip():
            return result.content.strip()[:2000], "ai"
        logger.info("suggested_po_rationale_fallback vendor=%s error=%s", snapshot.vendor_name, result.error)
        return template_rationale(snapshot), "template"

    # ── Decisions ────────────────────────────────────────────────────────────

    def approve(self, spo_id: int, decided_by: Optional[str] = None) -> PurchaseOrder:
        spo = self.get_suggested(spo_id)
        self._claim(spo, "converted", decided_by)

        po = self._po_service.create_purchase_order(
            vendor_id=spo.vendor_id,
            items=[
                {
                    "raw_material_id": item.raw_material_id,
                    "description": item.description,
                    "quantity": item.quantity,
                    "unit_price": item.unit_price,
                }
                for item in spo.items
            ],
            expected_date=spo.estimated_delivery_date,
            notes=f"Converted from suggested PO {spo.spo_number}",
            suggested_po_id=spo.id,
            commit=False,
        )
        spo.converted_po_id = po.id
        requirement_ids = [item.material_requirement_id for item in spo.items]
        for requirement in self._requirement_repo.get_by_ids(requirement_ids):
            requirement.status = "po_generated"
            requirement.generated_po_id = po.id
        self._db.commit()
        self._db.refresh(po)

        logger.info("suggested_po_approved spo=%s po=%s", spo.spo_number, po.po_number)
        self._bus.publish(StatusChangedEvent(
            entity_type="suggested_purchase_order", entity_id=spo.id, old_status="pending", new_status="converted",
        ))
        self._bus.publish(EntityCreatedEvent(
            entity_type="purchase_order", entity_id=po.id, values={"po_number": po.po_number},
        ))
        return po

    def reject(self, spo_id: int, reason: str, decided_by: Optional[str] = None) -> SuggestedPurchaseOrder:
        if not reason or not reason.strip():
            raise ValidationException("A rejection reason is required")
        spo = self.get_suggested(spo_id)
        self._claim(spo, "rejected", decided_by, rejection_reason=reason.strip())
        self._db.commit()
        self._db.refresh(spo)
        self._bus.publish(StatusChangedEvent(
            entity_type="suggested_purchase_order", entity_id=spo.id, old_status="pending", new_status="rejected",
        ))
        return spo

    def _claim(self, spo: SuggestedPurchaseOrder, target: str, decided_by: Optional[str], **values) -> None:
        """Atomically move ``pending -> target``; raises when another decision got there first."""
        result = self._db.execute(
            update(SuggestedPurchaseOrder)
            .where(SuggestedPurchaseOrder.id == spo.id, SuggestedPurchaseOrder.status == "pending")
            .values(status=target, decided_by=decided_by, decided_at=utcnow(), **values)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 1:
            self._db.refresh(spo)
            return

        self._db.rollback()
        self._db.refresh(spo)
        if spo.status in ("converted", "approved"):
            raise AlreadyConvertedException("SuggestedPurchaseOrder", spo.id)
        raise InvalidStateTransitionException("SuggestedPurchaseOrder", spo.status, target)
