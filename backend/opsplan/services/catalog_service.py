"""
Catalog Service — reference data the planning pipeline reads.

Products, warehouses, vendors, raw materials, bills of materials, channel
listings and the sales-order history used by the forecaster.
"""
from typing import List, Optional

from sqlalchemy.orm import Session

from opsplan.core.exceptions import EntityNotFoundException, ValidationException
from opsplan.models.bom import BillOfMaterials, BomComponent
from opsplan.models.catalog import Product, RawMaterial, Vendor, Warehouse
from opsplan.models.reconciliation import ChannelListing
from opsplan.models.sales_order import SalesOrder, SalesOrderLine
from opsplan.repositories.catalog_repository import (
    BomRepository,
    ProductRepository,
    RawMaterialRepository,
    VendorRepository,
    WarehouseRepository,
)
from opsplan.repositories.reconciliation_repository import ChannelListingRepository
from opsplan.repositories.sales_order_repository import SalesOrderRepository
from opsplan.schemas.catalog import (
    BomCreate,
    ChannelListingCreate,
    ProductCreate,
    RawMaterialCreate,
    SalesOrderCreate,
    VendorCreate,
    WarehouseCreate,
)
from opsplan.utils.events import EntityCreatedEvent, StatusChangedEvent, get_event_bus
from opsplan.utils.numbering import document_number


class CatalogService:

    def __init__(self, db: Session):
        self._db = db
        self._product_repo = ProductRepository(db)
        self._warehouse_repo = WarehouseRepository(db)
        self._vendor_repo = VendorRepository(db)
        self._material_repo = RawMaterialRepository(db)
        self._bom_repo = BomRepository(db)
        self._listing_repo = ChannelListingRepository(db)
        self._order_repo = SalesOrderRepository(db)
        self._bus = get_event_bus()

    # ── Products / warehouses / vendors ──────────────────────────────────────

    def create_product(self, data: ProductCreate) -> Product:
        if self._product_repo.get_by_sku(data.sku):
            raise ValidationException(f"Product SKU '{data.sku}' already exists")
        product = self._product_repo.create(Product(**data.model_dump()))
        self._bus.publish(EntityCreatedEvent(entity_type="product", entity_id=product.id, values={"sku": product.sku}))
        return product

    def get_product(self, product_id: int) -> Product:
        return self._get(self._product_repo, "Product", product_id)

    def list_products(self) -> List[Product]:
        return self._product_repo.get_all()

    def create_warehouse(self, data: WarehouseCreate) -> Warehouse:
        return self._warehouse_repo.create(Warehouse(**data.model_dump()))

    def list_warehouses(self) -> List[Warehouse]:
        return self._warehouse_repo.get_all()

    def create_vendor(self, data: VendorCreate) -> Vendor:
        return self._vendor_repo.create(Vendor(**data.model_dump()))

    def get_vendor(self, vendor_id: int) -> Vendor:
        return self._get(self._vendor_repo, "Vendor", vendor_id)

    def list_vendors(self) -> List[Vendor]:
        return self._vendor_repo.get_all()

    def create_raw_material(self, data: RawMaterialCreate) -> RawMaterial:
        if data.preferred_vendor_id is not None:
            self.get_vendor(data.preferred_vendor_id)
        return self._material_repo.create(RawMaterial(**data.model_dump()))

    def list_raw_materials(self) -> List[RawMaterial]:
        return self._material_repo.get_all()

    # ── Bills of materials ───────────────────────────────────────────────────

    def create_bom(self, data: BomCreate) -> BillOfMaterials:
        self.get_product(data.product_id)
        bom = BillOfMaterials(product_id=data.product_id, name=data.name, version=data.version, status="draft")
        for component in data.components:
            if component.component_type == "raw_material":
                if component.raw_material_id is None:
                    raise ValidationException("raw_material components need a raw_material_id")
                self._get(self._material_repo, "RawMaterial", component.raw_material_id)
            bom.components.append(BomComponent(**component.model_dump()))
        bom = self._bom_repo.create(bom)
        if data.activate:
            bom = self.activate_bom(bom.id)
        return bom

    def get_bom(self, bom_id: int) -> BillOfMaterials:
        return self._get(self._bom_repo, "BillOfMaterials", bom_id)

    def list_boms(self, product_id: Optional[int] = None, status: Optional[str] = None) -> List[BillOfMaterials]:
        return self._bom_repo.list_filtered(product_id=product_id, status=status)

    def get_active_bom(self, product_id: int) -> Optional[BillOfMaterials]:
        return self._bom_repo.get_active_for_product(product_id)

    def activate_bom(self, bom_id: int) -> BillOfMaterials:
        """One active BOM per product: the previous active one becomes obsolete."""
        bom = self.get_bom(bom_id)
        for other in self._bom_repo.list_filtered(product_id=bom.product_id, status="active"):
            if other.id != bom.id:
                other.status = "obsolete"
        old_status = bom.status
        bom.status = "active"
        self._db.commit()
        self._db.refresh(bom)
        self._bus.publish(StatusChangedEvent(
            entity_type="bill_of_materials", entity_id=bom.id, old_status=old_status, new_status="active",
        ))
        return bom

    # ── Channels & order history ─────────────────────────────────────────────

    def create_channel_listing(self, data: ChannelListingCreate) -> ChannelListing:
        self.get_product(data.product_id)
        return self._listing_repo.create(ChannelListing(**data.model_dump()))

    def list_channel_listings(self, channel: str, store_id: Optional[str] = None) -> List[ChannelListing]:
        return self._listing_repo.list_tracked(channel, store_id)

    def create_sales_order(self, data: SalesOrderCreate) -> SalesOrder:
        order = SalesOrder(
            order_number=data.order_number or document_number("SO", data.order_date),
            channel=data.channel,
            status=data.status,
            order_date=data.order_date,
        )
        for line in data.lines:
            self.get_product(line.product_id)
            order.lines.append(SalesOrderLine(**line.model_dump()))
        return self._order_repo.create(order)

    @staticmethod
    def _get(repo, entity: str, entity_id: int):
        row = repo.get_by_id(entity_id)
        if not row:
            raise EntityNotFoundException(entity, entity_id)
        return row
