from typing import List, Optional

from sqlalchemy.orm import Session

from opsplan.models.reconciliation import ChannelListing, ReconciliationLine, ReconciliationRun
from opsplan.repositories.base import BaseRepository


class ChannelListingRepository(BaseRepository[ChannelListing]):
    def __init__(self, db: Session):
        super().__init__(ChannelListing, db)

    def list_tracked(self, channel: str, store_id: Optional[str] = None) -> List[ChannelListing]:
        q = self.db.query(ChannelListing).filter(
            ChannelListing.channel == channel,
            ChannelListing.is_active.is_(True),
        )
        if store_id is not None:
            q = q.filter(ChannelListing.store_id == store_id)
        return q.order_by(ChannelListing.product_id, ChannelListing.id).all()


class ReconciliationRunRepository(BaseRepository[ReconciliationRun]):
    def __init__(self, db: Session):
        super().__init__(ReconciliationRun, db)

    def list_filtered(self, channel: Optional[str] = None, status: Optional[str] = None) -> List[ReconciliationRun]:
        q = self.db.query(ReconciliationRun)
        if channel is not None:
            q = q.filter(ReconciliationRun.channel == channel)
        if status is not None:
            q = q.filter(ReconciliationRun.status == status)
        return q.order_by(ReconciliationRun.id.desc()).all()


class ReconciliationLineRepository(BaseRepository[ReconciliationLine]):
    def __init__(self, db: Session):
        super().__init__(ReconciliationLine, db)

    def list_for_run(self, run_id: int, status: Optional[str] = None) -> List[ReconciliationLine]:
        q = self.db.query(ReconciliationLine).filter(ReconciliationLine.run_id == run_id)
        if status is not None:
            q = q.filter(ReconciliationLine.status == status)
        return q.order_by(ReconciliationLine.id).all()
