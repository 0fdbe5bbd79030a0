from datetime import datetime
from typing import List, Optional, Sequence, Tuple

from sqlalchemy.orm import Session

from opsplan.models.sales_order import SalesOrder, SalesOrderLine
from opsplan.repositories.base import BaseRepository


class SalesOrderRepository(BaseRepository[SalesOrder]):
    def __init__(self, db: Session):
        super().__init__(SalesOrder, db)

    def list_order_lines(
        self,
        since: datetime,
        product_ids: Optional[Sequence[int]] = None,
        until: Optional[datetime] = None,
    ) -> List[Tuple[int, object, datetime]]:
        """(product_id, quantity, order_date) for non-cancelled orders placed on or after ``since``.

        ``until`` is exclusive.
        """
        q = (
            self.db.query(SalesOrderLine.product_id, SalesOrderLine.quantity, SalesOrder.order_date)
            .join(SalesOrder, SalesOrder.id == SalesOrderLine.order_id)
            .filter(SalesOrder.order_date >= since, SalesOrder.status != "cancelled")
        )
        if until is not None:
            q = q.filter(SalesOrder.order_date < until)
        if product_ids:
            q = q.filter(SalesOrderLine.product_id.in_(list(product_ids)))
        return [(r[0], r[1], r[2]) for r in q.order_by(SalesOrder.order_date).all()]
