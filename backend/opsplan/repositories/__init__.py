# Repository Layer — Data Access (Repository Pattern, GoF)
from opsplan.repositories.base import BaseRepository
from opsplan.repositories.catalog_repository import (
    ProductRepository,
    WarehouseRepository,
    VendorRepository,
    RawMaterialRepository,
    BomRepository,
)
from opsplan.repositories.inventory_repository import (
    InventoryLotRepository,
    InventoryBalanceRepository,
    InventoryTransactionRepository,
    InventoryReservationRepository,
    RawMaterialInventoryRepository,
)
from opsplan.repositories.reconciliation_repository import (
    ChannelListingRepository,
    ReconciliationRunRepository,
    ReconciliationLineRepository,
)
from opsplan.repositories.sales_order_repository import SalesOrderRepository
from opsplan.repositories.forecast_repository import DemandForecastRepository, ForecastAccuracyRepository
from opsplan.repositories.production_plan_repository import (
    ProductionPlanRepository,
    MaterialRequirementRepository,
)
from opsplan.repositories.purchasing_repository import (
    PurchaseOrderRepository,
    SuggestedPurchaseOrderRepository,
)

__all__ = [
    "BaseRepository",
    "ProductRepository",
    "WarehouseRepository",
    "VendorRepository",
    "RawMaterialRepository",
    "BomRepository",
    "InventoryLotRepository",
    "InventoryBalanceRepository",
    "InventoryTransactionRepository",
    "InventoryReservationRepository",
    "RawMaterialInventoryRepository",
    "ChannelListingRepository",
    "ReconciliationRunRepository",
    "ReconciliationLineRepository",
    "SalesOrderRepository",
    "DemandForecastRepository",
    "ForecastAccuracyRepository",
    "ProductionPlanRepository",
    "MaterialRequirementRepository",
    "PurchaseOrderRepository",
    "SuggestedPurchaseOrderRepository",
]
