from typing import List, Optional

from sqlalchemy.orm import Session

from opsplan.models.production_plan import MaterialRequirement, ProductionPlan
from opsplan.repositories.base import BaseRepository


class ProductionPlanRepository(BaseRepository[ProductionPlan]):
    def __init__(self, db: Session):
        super().__init__(ProductionPlan, db)

    def list_filtered(
        self,
        product_id: Optional[int] = None,
        forecast_id: Optional[int] = None,
        status: Optional[str] = None,
    ) -> List[ProductionPlan]:
        q = self.db.query(ProductionPlan)
        if product_id is not None:
            q = q.filter(ProductionPlan.product_id == product_id)
        if forecast_id is not None:
            q = q.filter(ProductionPlan.forecast_id == forecast_id)
        if status is not None:
            q = q.filter(ProductionPlan.status == status)
        return q.order_by(ProductionPlan.id.desc()).all()


class MaterialRequirementRepository(BaseRepository[MaterialRequirement]):
    def __init__(self, db: Session):
        super().__init__(MaterialRequirement, db)

    def list_for_plan(
        self, plan_id: int, shortage_only: bool = False, status: Optional[str] = None
    ) -> List[MaterialRequirement]:
        q = self.db.query(MaterialRequirement).filter(MaterialRequirement.production_plan_id == plan_id)
        if shortage_only:
            q = q.filter(MaterialRequirement.shortage_quantity > 0)
        if status is not None:
            q = q.filter(MaterialRequirement.status == status)
        return q.order_by(MaterialRequirement.id).all()
