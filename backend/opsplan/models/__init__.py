from opsplan.models.catalog import Product, Warehouse, Vendor, RawMaterial
from opsplan.models.bom import BillOfMaterials, BomComponent
from opsplan.models.inventory import (
    InventoryLot,
    InventoryBalance,
    InventoryTransaction,
    InventoryReservation,
    RawMaterialInventory,
    RawMaterialTransaction,
)
from opsplan.models.reconciliation import ChannelListing, ReconciliationRun, ReconciliationLine
from opsplan.models.sales_order import SalesOrder, SalesOrderLine
from opsplan.models.forecast import DemandForecast, ForecastAccuracy
from opsplan.models.production_plan import ProductionPlan, MaterialRequirement
from opsplan.models.purchasing import (
    PurchaseOrder,
    PurchaseOrderItem,
    SuggestedPurchaseOrder,
    SuggestedPoItem,
)

__all__ = [
    "Product",
    "Warehouse",
    "Vendor",
    "RawMaterial",
    "BillOfMaterials",
    "BomComponent",
    "InventoryLot",
    "InventoryBalance",
    "InventoryTransaction",
    "InventoryReservation",
    "RawMaterialInventory",
    "RawMaterialTransaction",
    "ChannelListing",
    "ReconciliationRun",
    "ReconciliationLine",
    "SalesOrder",
    "SalesOrderLine",
    "DemandForecast",
    "ForecastAccuracy",
    "ProductionPlan",
    "MaterialRequirement",
    "PurchaseOrder",
    "PurchaseOrderItem",
    "SuggestedPurchaseOrder",
    "SuggestedPoItem",
]
