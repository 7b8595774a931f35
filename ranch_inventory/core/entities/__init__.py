"""Core domain entities."""

from ranch_inventory.core.entities.alert import (
    AUTO_RESOLVABLE_TYPES,
    OPEN_ALERT_STATES,
    Alert,
    AlertPriority,
    AlertState,
    AlertType,
)
from ranch_inventory.core.entities.analysis import (
    AbcClass,
    AbcClassification,
    CategoryValuation,
    CostAnalysis,
    CostVariance,
    ExpirationAnalysis,
    InventoryAnalysis,
    InventoryRecommendation,
    InventoryValuation,
    ItemValue,
    MonthlyExpiration,
    MovementSummary,
    RecommendationType,
    RotationAnalysis,
    RotationClass,
    ValuationMethod,
)
from ranch_inventory.core.entities.inventory import (
    CONSUMPTION_MOVEMENT_TYPES,
    INBOUND_MOVEMENT_TYPES,
    LOSS_MOVEMENT_TYPES,
    InventoryCategory,
    InventoryItem,
    MovementRequest,
    MovementType,
    StockMovement,
    StockStatus,
    SupplierInfo,
    UnitOfMeasure,
    category_label,
    status_label,
    unit_label,
)
from ranch_inventory.core.entities.purchase_order import (
    OPEN_ORDER_STATUSES,
    PurchaseOrder,
    PurchaseOrderLine,
    PurchaseOrderStatus,
)

__all__ = [
    # Inventory entities
    "InventoryItem",
    "InventoryCategory",
    "UnitOfMeasure",
    "StockStatus",
    "StockMovement",
    "MovementType",
    "MovementRequest",
    "SupplierInfo",
    "INBOUND_MOVEMENT_TYPES",
    "CONSUMPTION_MOVEMENT_TYPES",
    "LOSS_MOVEMENT_TYPES",
    "category_label",
    "status_label",
    "unit_label",
    # Alert entities
    "Alert",
    "AlertType",
    "AlertPriority",
    "AlertState",
    "OPEN_ALERT_STATES",
    "AUTO_RESOLVABLE_TYPES",
    # Purchase order entities
    "PurchaseOrder",
    "PurchaseOrderLine",
    "PurchaseOrderStatus",
    "OPEN_ORDER_STATUSES",
    # Analysis entities
    "ValuationMethod",
    "InventoryValuation",
    "CategoryValuation",
    "ItemValue",
    "MovementSummary",
    "InventoryAnalysis",
    "AbcClass",
    "AbcClassification",
    "RotationClass",
    "RotationAnalysis",
    "ExpirationAnalysis",
    "MonthlyExpiration",
    "CostAnalysis",
    "CostVariance",
    "InventoryRecommendation",
    "RecommendationType",
]
