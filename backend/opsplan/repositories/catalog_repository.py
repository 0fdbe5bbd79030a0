from typing import List, Optional

from sqlalchemy.orm import Session

from opsplan.models.bom import BillOfMaterials, BomComponent
from opsplan.models.catalog import Product, RawMaterial, Vendor, Warehouse
from opsplan.repositories.base import BaseRepository


class ProductRepository(BaseRepository[Product]):
    def __init__(self, db: Session):
        super().__init__(Product, db)

    def get_by_sku(self, sku: str) -> Optional[Product]:
        return self.db.query(Product).filter(Product.sku == sku).first()

    def list_active_ids(self) -> List[int]:
        rows = self.db.query(Product.id).filter(Product.status == "active").order_by(Product.id).all()
        return [r[0] for r in rows]


class WarehouseRepository(BaseRepository[Warehouse]):
    def __init__(self, db: Session):
        super().__init__(Warehouse, db)


class VendorRepository(BaseRepository[Vendor]):
    def __init__(self, db: Session):
        super().__init__(Vendor, db)


class RawMaterialRepository(BaseRepository[RawMaterial]):
    def __init__(self, db: Session):
        super().__init__(RawMaterial, db)


class BomRepository(BaseRepository[BillOfMaterials]):
    def __init__(self, db: Session):
        super().__init__(BillOfMaterials, db)

    def get_active_for_product(self, product_id: int) -> Optional[BillOfMaterials]:
        return (
            self.db.query(BillOfMaterials)
            .filter(BillOfMaterials.product_id == product_id, BillOfMaterials.status == "active")
            .order_by(BillOfMaterials.id.desc())
            .first()
        )

    def list_components(self, bom_id: int) -> List[BomComponent]:
        return (
            self.db.query(BomComponent)
            .filter(BomComponent.bom_id == bom_id)
            .order_by(BomComponent.id)
            .all()
        )

    def list_filtered(self, product_id: Optional[int] = None, status: Optional[str] = None) -> List[BillOfMaterials]:
        q = self.db.query(BillOfMaterials)
        if product_id is not None:
            q = q.filter(BillOfMaterials.product_id == product_id)
        if status is not None:
            q = q.filter(BillOfMaterials.status == status)
        return q.order_by(BillOfMaterials.id).all()
