from typing import List, Optional

from sqlalchemy.orm import Session

from opsplan.models.forecast import DemandForecast, ForecastAccuracy
from opsplan.repositories.base import BaseRepository


class DemandForecastRepository(BaseRepository[DemandForecast]):
    def __init__(self, db: Session):
        super().__init__(DemandForecast, db)

    def list_filtered(
        self,
        product_id: Optional[int] = None,
        status: Optional[str] = None,
        method: Optional[str] = None,
    ) -> List[DemandForecast]:
        q = self.db.query(DemandForecast)
        if product_id is not None:
            q = q.filter(DemandForecast.product_id == product_id)
        if status is not None:
            q = q.filter(DemandForecast.status == status)
        if method is not None:
            q = q.filter(DemandForecast.method == method)
        return q.order_by(DemandForecast.period_start.desc(), DemandForecast.id.desc()).all()


class ForecastAccuracyRepository(BaseRepository[ForecastAccuracy]):
    def __init__(self, db: Session):
        super().__init__(ForecastAccuracy, db)

    def list_history(self, product_id: Optional[int] = None, limit: int = 50) -> List[ForecastAccuracy]:
        q = self.db.query(ForecastAccuracy)
        if product_id is not None:
            q = q.filter(ForecastAccuracy.product_id == product_id)
        return q.order_by(ForecastAccuracy.calculated_at.desc(), ForecastAccuracy.id.desc()).limit(limit).all()
