from opsplan.schemas.catalog import (
    ProductCreate,
    ProductResponse,
    WarehouseCreate,
    WarehouseResponse,
    VendorCreate,
    VendorResponse,
    RawMaterialCreate,
    RawMaterialResponse,
    BomCreate,
    BomResponse,
    ChannelListingCreate,
    ChannelListingResponse,
    SalesOrderCreate,
    SalesOrderResponse,
)
from opsplan.schemas.inventory import (
    LotReceiveRequest,
    ReservationRequest,
    ReleaseRequest,
    ConsumeRequest,
    AdjustmentRequest,
    TransferRequest,
    BucketMoveRequest,
    InventoryLotResponse,
    InventoryBalanceResponse,
    InventoryTransactionResponse,
    InventoryReservationResponse,
)
from opsplan.schemas.reconciliation import (
    ReconciliationRunRequest,
    ReconciliationRunResponse,
    ReconciliationRunDetailResponse,
    ReconciliationLineResponse,
    ResolveLineRequest,
)
from opsplan.schemas.forecast import (
    AIForecastPayload,
    ForecastGenerateRequest,
    DemandForecastResponse,
    ForecastStatusUpdateRequest,
    ForecastAccuracyResponse,
)
from opsplan.schemas.production_plan import (
    ProductionPlanGenerateRequest,
    ProductionPlanResponse,
    ProductionPlanDetailResponse,
    MaterialRequirementResponse,
)
from opsplan.schemas.purchasing import (
    PurchaseOrderCreate,
    PurchaseOrderResponse,
    SuggestedPurchaseOrderResponse,
    SuggestedPOGenerationResponse,
)
from opsplan.schemas.planning_task import (
    ForecastTask,
    ProductionPlanTask,
    SuggestedPOTask,
    ReconciliationTask,
    PlanningTask,
    PlanningTaskRequest,
    PlanningTaskResult,
)
