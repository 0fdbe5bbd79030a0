from pydantic import BaseModel, Field, field_validator
from typing import Optional, Literal
from datetime import datetime, date
from decimal import Decimal


class LotReceiveRequest(BaseModel):
    product_id: int
    warehouse_id: int
    quantity: Decimal = Field(gt=0)
    unit_cost: Optional[Decimal] = Field(None, ge=0)
    expiration_date: Optional[date] = None
    reference_type: Optional[str] = None
    reference_id: Optional[str] = None
    notes: Optional[str] = None


class ReservationRequest(BaseModel):
    lot_id: int
    product_id: int
    warehouse_id: int
    quantity: Decimal = Field(gt=0)
    reference_type: str = Field(..., min_length=1, max_length=50)
    reference_id: str = Field(..., min_length=1, max_length=64)


class ReleaseRequest(ReservationRequest):
    pass


class ConsumeRequest(ReservationRequest):
    pass


class AdjustmentRequest(BaseModel):
    product_id: int
    warehouse_id: int
    quantity: Decimal
    notes: Optional[str] = None

    @field_validator("quantity")
    @classmethod
    def non_zero(cls, value: Decimal) -> Decimal:
        if value == 0:
            raise ValueError("Adjustment quantity must be non-zero")
        return value


class TransferRequest(BaseModel):
    lot_id: int
    from_warehouse_id: int
    to_warehouse_id: int
    quantity: Decimal = Field(gt=0)
    notes: Optional[str] = None


class BucketMoveRequest(BaseModel):
    lot_id: int
    warehouse_id: int
    from_bucket: Literal["available", "hold", "damaged"]
    to_bucket: Literal["available", "hold", "damaged"]
    quantity: Decimal = Field(gt=0)
    notes: Optional[str] = None


class LotStatusUpdateRequest(BaseModel):
    status: Literal["active", "hold", "expired", "depleted"]


class RawMaterialAdjustmentRequest(BaseModel):
    raw_material_id: int
    warehouse_id: int
    quantity: Decimal
    notes: Optional[str] = None


class InventoryLotResponse(BaseModel):
    id: int
    lot_code: str
    product_id: int
    status: str
    received_quantity: Decimal
    unit_cost: Optional[Decimal] = None
    expiration_date: Optional[date] = None
    source_type: Optional[str] = None
    source_id: Optional[str] = None
    received_at: datetime

    class Config:
        from_attributes = True


class InventoryBalanceResponse(BaseModel):
    id: int
    lot_id: int
    product_id: int
    warehouse_id: int
    available_qty: Decimal
    reserved_qty: Decimal
    hold_qty: Decimal
    damaged_qty: Decimal
    on_hand_qty: Decimal
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class InventoryTransactionResponse(BaseModel):
    id: int
    transaction_number: str
    transaction_type: str
    product_id: int
    lot_id: int
    warehouse_id: int
    bucket: str
    quantity: Decimal
    on_hand_delta: Decimal
    previous_quantity: Decimal
    new_quantity: Decimal
    reference_type: Optional[str] = None
    reference_id: Optional[str] = None
    notes: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class InventoryReservationResponse(BaseModel):
    id: int
    lot_id: int
    product_id: int
    warehouse_id: int
    reference_type: str
    reference_id: str
    quantity: Decimal
    released_quantity: Decimal
    consumed_quantity: Decimal
    status: str
    created_at: datetime

    class Config:
        from_attributes = True


class RawMaterialTransactionResponse(BaseModel):
    id: int
    transaction_number: str
    transaction_type: str
    raw_material_id: int
    warehouse_id: int
    quantity: Decimal
    previous_quantity: Decimal
    new_quantity: Decimal
    reference_type: Optional[str] = None
    reference_id: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class AvailabilityResponse(BaseModel):
    product_id: int
    warehouse_id: Optional[int] = None
    available_qty: Decimal


class DerivedQuantityResponse(BaseModel):
    lot_id: int
    warehouse_id: int
    as_of: Optional[datetime] = None
    derived_on_hand_qty: Decimal
    balance_on_hand_qty: Decimal
