from datetime import datetime
from decimal import Decimal
from typing import List, Literal, Optional

from pydantic import BaseModel, Field


class ProductCreate(BaseModel):
    sku: str = Field(min_length=1, max_length=100)
    name: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None
    category: Optional[str] = None
    unit_cost: Optional[Decimal] = Field(None, ge=0)
    selling_price: Optional[Decimal] = Field(None, ge=0)
    status: Literal["active", "inactive", "discontinued"] = "active"


class ProductResponse(ProductCreate):
    id: int
    created_at: datetime

    class Config:
        from_attributes = True


class WarehouseCreate(BaseModel):
    code: str = Field(min_length=1, max_length=50)
    name: str
    is_active: bool = True


class WarehouseResponse(WarehouseCreate):
    id: int

    class Config:
        from_attributes = True


class VendorCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    email: Optional[str] = None
    default_lead_time_days: int = Field(default=14, ge=0, le=365)
    is_active: bool = True


class VendorResponse(VendorCreate):
    id: int

    class Config:
        from_attributes = True


class RawMaterialCreate(BaseModel):
    sku: str = Field(min_length=1, max_length=100)
    name: str
    unit: str = "ea"
    unit_cost: Optional[Decimal] = Field(None, ge=0)
    preferred_vendor_id: Optional[int] = None
    lead_time_days: int = Field(default=0, ge=0, le=365)
    min_order_qty: Optional[Decimal] = Field(None, ge=0)


class RawMaterialResponse(RawMaterialCreate):
    id: int

    class Config:
        from_attributes = True


class BomComponentCreate(BaseModel):
    component_type: Literal["raw_material", "product", "packaging", "labor"] = "raw_material"
    raw_material_id: Optional[int] = None
    name: str
    quantity: Decimal = Field(gt=0)
    unit: str = "ea"
    wastage_percent: Decimal = Field(default=Decimal("0"), ge=0, lt=100)
    unit_cost: Optional[Decimal] = Field(None, ge=0)


class BomComponentResponse(BomComponentCreate):
    id: int

    class Config:
        from_attributes = True


class BomCreate(BaseModel):
    product_id: int
    name: str
    version: str = "1.0"
    activate: bool = False
    components: List[BomComponentCreate] = Field(default_factory=list)


class BomResponse(BaseModel):
    id: int
    product_id: int
    name: str
    version: str
    status: str
    components: List[BomComponentResponse] = []

    class Config:
        from_attributes = True


class ChannelListingCreate(BaseModel):
    channel: str = Field(min_length=1, max_length=50)
    store_id: Optional[str] = None
    product_id: int
    warehouse_id: Optional[int] = None
    external_sku: Optional[str] = None
    channel_reported_quantity: Decimal = Field(default=Decimal("0"), ge=0)
    is_active: bool = True


class ChannelListingResponse(ChannelListingCreate):
    id: int
    last_synced_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class SalesOrderLineCreate(BaseModel):
    product_id: int
    quantity: Decimal = Field(gt=0)
    unit_price: Optional[Decimal] = Field(None, ge=0)


class SalesOrderCreate(BaseModel):
    order_number: Optional[str] = None
    channel: Optional[str] = None
    status: Literal["pending", "confirmed", "shipped", "delivered", "cancelled"] = "confirmed"
    order_date: datetime
    lines: List[SalesOrderLineCreate] = Field(min_length=1)


class SalesOrderResponse(BaseModel):
    id: int
    order_number: str
    channel: Optional[str] = None
    status: str
    order_date: datetime

    class Config:
        from_attributes = True
