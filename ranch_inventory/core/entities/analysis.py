"""Valuation and analysis report entities.

Pure Pydantic models, not persisted. Generated on demand by
InventoryAnalysisService.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, Field

from ranch_inventory.core.entities.alert import AlertPriority
from ranch_inventory.core.entities.inventory import InventoryCategory, utcnow


class ValuationMethod(str, Enum):
    """Costing method used to value on-hand stock."""

    WEIGHTED_AVERAGE = "WEIGHTED_AVERAGE"
    FIFO = "FIFO"
    LIFO = "LIFO"


class AbcClass(str, Enum):
    A = "A"
    B = "B"
    C = "C"


class RotationClass(str, Enum):
    FAST_MOVING = "fast_moving"
    MEDIUM_MOVING = "medium_moving"
    SLOW_MOVING = "slow_moving"
    OBSOLETE = "obsolete"


class CategoryValuation(BaseModel):
    category: InventoryCategory
    item_count: int
    total_value: Decimal
    percentage: float


class ItemValue(BaseModel):
    inventory_item_id: int
    item_name: str
    value: Decimal
    percentage: float


class MovementSummary(BaseModel):
    """Signed value of movements in the reporting period, by kind."""

    purchases: Decimal = Decimal("0")
    usage: Decimal = Decimal("0")
    adjustments: Decimal = Decimal("0")
    disposals: Decimal = Decimal("0")


class InventoryValuation(BaseModel):
    total_items: int
    total_value: Decimal
    total_cost: Decimal  # always at weighted-average cost
    total_quantity: Decimal
    average_value_per_item: Decimal
    valuation_method: ValuationMethod
    categories: list[CategoryValuation] = Field(default_factory=list)
    movements_summary: MovementSummary = Field(default_factory=MovementSummary)
    top_items: list[ItemValue] = Field(default_factory=list)
    skipped_item_ids: list[int] = Field(default_factory=list)
    calculated_at: datetime = Field(default_factory=utcnow)


class AbcClassification(BaseModel):
    inventory_item_id: int
    item_name: str
    period_usage: Decimal
    period_value: Decimal
    percentage: float
    cumulative_percentage: float
    classification: AbcClass
    recommended_management: str


class RotationAnalysis(BaseModel):
    inventory_item_id: int
    item_name: str
    average_stock: Decimal
    annual_usage: Decimal
    turnover_rate: float
    days_of_supply: float | None
    classification: RotationClass
    recommendation: str


class MonthlyExpiration(BaseModel):
    month: str  # YYYY-MM
    count: int
    value: Decimal


class ExpirationAnalysis(BaseModel):
    total_expired_value: Decimal = Decimal("0")
    items_expired: int = 0
    items_expiring_soon: int = 0
    expirations_by_month: list[MonthlyExpiration] = Field(default_factory=list)
    waste_percentage: float = 0.0


class CostVariance(BaseModel):
    inventory_item_id: int
    item_name: str
    last_purchase_cost: Decimal
    weighted_average_cost: Decimal
    variance_percentage: float


class CostAnalysis(BaseModel):
    total_purchase_value: Decimal = Decimal("0")
    total_purchase_quantity: Decimal = Decimal("0")
    average_unit_cost: Decimal = Decimal("0")
    cost_variances: list[CostVariance] = Field(default_factory=list)


class RecommendationType(str, Enum):
    REORDER = "reorder"
    REDUCE_STOCK = "reduce_stock"
    DISCONTINUE = "discontinue"


class InventoryRecommendation(BaseModel):
    type: RecommendationType
    inventory_item_id: int
    item_name: str
    description: str
    priority: AlertPriority
    deadline: datetime | None = None


class InventoryAnalysis(BaseModel):
    period_days: int
    abc_analysis: list[AbcClassification] = Field(default_factory=list)
    rotation_analysis: list[RotationAnalysis] = Field(default_factory=list)
    expiration_analysis: ExpirationAnalysis = Field(default_factory=ExpirationAnalysis)
    cost_analysis: CostAnalysis = Field(default_factory=CostAnalysis)
    recommendations: list[InventoryRecommendation] = Field(default_factory=list)
    skipped_item_ids: list[int] = Field(default_factory=list)
    generated_at: datetime = Field(default_factory=utcnow)
