"""
Catalog Router — Thin Controller (SRP / DIP)
Reference data: products, warehouses, vendors, raw materials, BOMs, channel listings, order history.
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import Optional, List

from opsplan.core.exceptions import EntityNotFoundException
from opsplan.database import get_db
from opsplan.schemas.catalog import (
    BomCreate,
    BomResponse,
    ChannelListingCreate,
    ChannelListingResponse,
    ProductCreate,
    ProductResponse,
    RawMaterialCreate,
    RawMaterialResponse,
    SalesOrderCreate,
    SalesOrderResponse,
    VendorCreate,
    VendorResponse,
    WarehouseCreate,
    WarehouseResponse,
)
from opsplan.services.catalog_service import CatalogService

router = APIRouter(prefix="/catalog", tags=["Catalog"])


def get_catalog_service(db: Session = Depends(get_db)) -> CatalogService:
    return CatalogService(db)


@router.get("/products", response_model=List[ProductResponse])
def list_products(service: CatalogService = Depends(get_catalog_service)):
    return service.list_products()


@router.post("/products", response_model=ProductResponse, status_code=201)
def create_product(payload: ProductCreate, service: CatalogService = Depends(get_catalog_service)):
    return service.create_product(payload)


@router.get("/products/{product_id}", response_model=ProductResponse)
def get_product(product_id: int, service: CatalogService = Depends(get_catalog_service)):
    return service.get_product(product_id)


@router.get("/products/{product_id}/active-bom", response_model=BomResponse)
def get_active_bom(product_id: int, service: CatalogService = Depends(get_catalog_service)):
    service.get_product(product_id)
    bom = service.get_active_bom(product_id)
    if bom is None:
        raise EntityNotFoundException("Active BillOfMaterials for product", product_id)
    return bom


@router.get("/warehouses", response_model=List[WarehouseResponse])
def list_warehouses(service: CatalogService = Depends(get_catalog_service)):
    return service.list_warehouses()


@router.post("/warehouses", response_model=WarehouseResponse, status_code=201)
def create_warehouse(payload: WarehouseCreate, service: CatalogService = Depends(get_catalog_service)):
    return service.create_warehouse(payload)


@router.get("/vendors", response_model=List[VendorResponse])
def list_vendors(service: CatalogService = Depends(get_catalog_service)):
    return service.list_vendors()


@router.post("/vendors", response_model=VendorResponse, status_code=201)
def create_vendor(payload: VendorCreate, service: CatalogService = Depends(get_catalog_service)):
    return service.create_vendor(payload)


@router.get("/raw-materials", response_model=List[RawMaterialResponse])
def list_raw_materials(service: CatalogService = Depends(get_catalog_service)):
    return service.list_raw_materials()


@router.post("/raw-materials", response_model=RawMaterialResponse, status_code=201)
def create_raw_material(payload: RawMaterialCreate, service: CatalogService = Depends(get_catalog_service)):
    return service.create_raw_material(payload)


@router.get("/boms", response_model=List[BomResponse])
def list_boms(
    product_id: Optional[int] = None,
    status: Optional[str] = None,
    service: CatalogService = Depends(get_catalog_service),
):
    return service.list_boms(product_id=product_id, status=status)


@router.post("/boms", response_model=BomResponse, status_code=201)
def create_bom(payload: BomCreate, service: CatalogService = Depends(get_catalog_service)):
    return service.create_bom(payload)


@router.get("/boms/{bom_id}", response_model=BomResponse)
def get_bom(bom_id: int, service: CatalogService = Depends(get_catalog_service)):
    return service.get_bom(bom_id)


@router.post("/boms/{bom_id}/activate", response_model=BomResponse)
def activate_bom(bom_id: int, service: CatalogService = Depends(get_catalog_service)):
    return service.activate_bom(bom_id)


@router.get("/channel-listings", response_model=List[ChannelListingResponse])
def list_channel_listings(
    channel: str,
    store_id: Optional[str] = None,
    service: CatalogService = Depends(get_catalog_service),
):
    return service.list_channel_listings(channel, store_id)


@router.post("/channel-listings", response_model=ChannelListingResponse, status_code=201)
def create_channel_listing(payload: ChannelListingCreate, service: CatalogService = Depends(get_catalog_service)):
    return service.create_channel_listing(payload)


@router.post("/sales-orders", response_model=SalesOrderResponse, status_code=201)
def create_sales_order(payload: SalesOrderCreate, service: CatalogService = Depends(get_catalog_service)):
    return service.create_sales_order(payload)
