"""
Reconciliation Service — Service Layer (SRP / DIP)

Compares ledger ``available`` stock with what a sales channel reports.
Observational only: lines carry a suggested action, nothing is corrected.
"""
import logging
from decimal import Decimal
from typing import List, Optional, Protocol, Tuple

from sqlalchemy.orm import Session

from opsplan.config import settings
from opsplan.core.exceptions import (
    EntityNotFoundException,
    ExternalServiceUnavailableException,
    InvalidStateTransitionException,
    ValidationException,
)
from opsplan.models.reconciliation import ChannelListing, ReconciliationLine, ReconciliationRun
from opsplan.repositories.inventory_repository import InventoryBalanceRepository
from opsplan.repositories.reconciliation_repository import (
    ChannelListingRepository,
    ReconciliationLineRepository,
    ReconciliationRunRepository,
)
from opsplan.utils.clock import utcnow
from opsplan.utils.events import StatusChangedEvent, get_event_bus
from opsplan.utils.numbering import sequence_code
from opsplan.utils.quantities import ZERO, qty

logger = logging.getLogger(__name__)


class ChannelQuantitySource(Protocol):
    def reported_quantity(self, listing: ChannelListing) -> Decimal:
        ...


class StoredChannelQuantitySource:
    """Uses the quantity last synced onto the listing row."""

    def reported_quantity(self, listing: ChannelListing) -> Decimal:
        return qty(listing.channel_reported_quantity)


def variance_percent(internal_qty: Decimal, channel_qty: Decimal) -> Decimal:
    if internal_qty == ZERO:
        return Decimal("100") if channel_qty > ZERO else ZERO
    return abs((channel_qty - internal_qty) / internal_qty * Decimal("100")).quantize(Decimal("0.01"))


def classify_line(internal_qty: Decimal, channel_qty: Decimal) -> Tuple[str, str, Decimal]:
    """(status, suggested_action, variance%) for one product/location pair."""
    delta = channel_qty - internal_qty
    variance = variance_percent(internal_qty, channel_qty)

    if abs(delta) <= Decimal(str(settings.RECONCILIATION_PASS_UNITS)) or variance <= Decimal(
        str(settings.RECONCILIATION_PASS_PERCENT)
    ):
        return "pass", "none", variance
    if variance > Decimal(str(settings.RECONCILIATION_CRITICAL_PERCENT)):
        return "critical", "investigate", variance
    if delta > ZERO:
        return "warning", "push_internal_to_channel", variance
    return "warning", "investigate_internal_shortfall", variance


class ReconciliationService:

    def __init__(self, db: Session, source: Optional[ChannelQuantitySource] = None):
        self._db = db
        self._run_repo = ReconciliationRunRepository(db)
        self._line_repo = ReconciliationLineRepository(db)
        self._listing_repo = ChannelListingRepository(db)
        self._balance_repo = InventoryBalanceRepository(db)
        self._source = source or StoredChannelQuantitySource()
        self._bus = get_event_bus()

    def list_runs(self, channel: Optional[str] = None, status: Optional[str] = None) -> List[ReconciliationRun]:
        return self._run_repo.list_filtered(channel=channel, status=status)

    def get_run(self, run_id: int) -> ReconciliationRun:
        run = self._run_repo.get_by_id(run_id)
        if not run:
            raise EntityNotFoundException("ReconciliationRun", run_id)
        return run

    def list_lines(self, run_id: int, status: Optional[str] = None) -> List[ReconciliationLine]:
        self.get_run(run_id)
        return self._line_repo.list_for_run(run_id, status=status)

    def run(self, channel: str, store_id: Optional[str] = None) -> ReconciliationRun:
        if not channel or not channel.strip():
            raise ValidationException("channel is required")

        run = self._run_repo.create(ReconciliationRun(
            run_number=sequence_code("REC"),
            channel=channel,
            store_id=store_id,
            status="running",
        ))

        try:
            lines = [self._compare(run.id, listing) for listing in self._listing_repo.list_tracked(channel, store_id)]
        except Exception as exc:
            self._db.rollback()
            run.status = "failed"
            run.notes = f"Channel quantity fetch failed: {exc}"
            run.completed_at = utcnow()
            self._db.commit()
            logger.error("reconciliation_failed run=%s channel=%s error=%s", run.run_number, channel, exc)
            self._bus.publish(StatusChangedEvent(
                entity_type="reconciliation_run", entity_id=run.id, old_status="running", new_status="failed",
            ))
            if isinstance(exc, ExternalServiceUnavailableException):
                raise
            raise ExternalServiceUnavailableException(f"channel:{channel}", str(exc)) from exc

        for line in lines:
            self._db.add(line)
        run.total_lines = len(lines)
        run.passed_lines = sum(1 for l in lines if l.status == "pass")
        run.warning_lines = sum(1 for l in lines if l.status == "warning")
        run.critical_lines = sum(1 for l in lines if l.status == "critical")
        run.status = "completed"
        run.completed_at = utcnow()
        self._db.commit()
        self._db.refresh(run)

        logger.info(
            "reconciliation_completed run=%s channel=%s total=%s warning=%s critical=%s",
            run.run_number, channel, run.total_lines, run.warning_lines, run.critical_lines,
        )
        self._bus.publish(StatusChangedEvent(
            entity_type="reconciliation_run", entity_id=run.id, old_status="running", new_status="completed",
        ))
        return run

    def resolve_line(self, line_id: int, note: str) -> ReconciliationLine:
        if not note or not note.strip():
            raise ValidationException("A resolution note is required")
        line = self._line_repo.get_by_id(line_id)
        if not line:
            raise EntityNotFoundException("ReconciliationLine", line_id)
        if line.run.status != "completed":
            raise InvalidStateTransitionException("ReconciliationRun", line.run.status, "resolve line")
        if line.resolved_at is not None:
            raise InvalidStateTransitionException("ReconciliationLine", "resolved", "resolved")
        return self._line_repo.update(line, {"resolution_note": note.strip(), "resolved_at": utcnow()})

    def _compare(self, run_id: int, listing: ChannelListing) -> ReconciliationLine:
        internal_qty = qty(self._balance_repo.sum_available(listing.product_id, listing.warehouse_id))
        channel_qty = qty(self._source.reported_quantity(listing))
        status, action, variance = classify_line(internal_qty, channel_qty)
        return ReconciliationLine(
            run_id=run_id,
            listing_id=listing.id,
            product_id=listing.product_id,
            warehouse_id=listing.warehouse_id,
            internal_qty=internal_qty,
            channel_qty=channel_qty,
            delta=channel_qty - internal_qty,
            variance_percent=variance,
            status=status,
            suggested_action=action,
        )
