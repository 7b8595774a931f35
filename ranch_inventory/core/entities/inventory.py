"""Inventory domain entities."""

from datetime import UTC, datetime
from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, Field


def utcnow() -> datetime:
    return datetime.now(UTC)


class InventoryCategory(str, Enum):
    """Kinds of stocked ranch goods."""

    FEED = "FEED"
    MEDICATION = "MEDICATION"
    VACCINES = "VACCINES"
    EQUIPMENT = "EQUIPMENT"
    TOOLS = "TOOLS"
    SUPPLIES = "SUPPLIES"
    BREEDING_MATERIALS = "BREEDING_MATERIALS"
    CLEANING_PRODUCTS = "CLEANING_PRODUCTS"
    SAFETY_EQUIPMENT = "SAFETY_EQUIPMENT"
    OFFICE_SUPPLIES = "OFFICE_SUPPLIES"
    FUEL = "FUEL"
    SEEDS = "SEEDS"
    FERTILIZERS = "FERTILIZERS"
    PESTICIDES = "PESTICIDES"
    SPARE_PARTS = "SPARE_PARTS"
    OTHER = "OTHER"


class UnitOfMeasure(str, Enum):
    """Units stock quantities are counted in."""

    KG = "KG"
    G = "G"
    LB = "LB"
    TON = "TON"
    L = "L"
    ML = "ML"
    GAL = "GAL"
    M = "M"
    UNIT = "UNIT"
    DOZEN = "DOZEN"
    BOX = "BOX"
    PACK = "PACK"
    BOTTLE = "BOTTLE"
    BAG = "BAG"
    DOSE = "DOSE"


class StockStatus(str, Enum):
    """Stock level state derived by the status classifier."""

    IN_STOCK = "IN_STOCK"
    LOW_STOCK = "LOW_STOCK"
    OUT_OF_STOCK = "OUT_OF_STOCK"
    OVERSTOCKED = "OVERSTOCKED"
    BACKORDERED = "BACKORDERED"  # supplier backorder, never an overstock signal
    EXPIRED = "EXPIRED"
    DAMAGED = "DAMAGED"
    DISCONTINUED = "DISCONTINUED"
    RESERVED = "RESERVED"


class MovementType(str, Enum):
    """Types of stock movements."""

    PURCHASE = "PURCHASE"
    SALE = "SALE"
    USE = "USE"
    TRANSFER = "TRANSFER"
    ADJUSTMENT = "ADJUSTMENT"
    RETURN = "RETURN"
    WASTE = "WASTE"
    DONATION = "DONATION"
    THEFT = "THEFT"
    LOSS = "LOSS"
    DISPOSAL = "DISPOSAL"
    FOUND = "FOUND"
    EXPIRATION = "EXPIRATION"
    DAMAGE = "DAMAGE"
    RESERVATION = "RESERVATION"
    RELEASE = "RELEASE"

    @property
    def is_inbound(self) -> bool:
        """True when the movement adds to stock."""
        return self in INBOUND_MOVEMENT_TYPES

    @property
    def is_reservation(self) -> bool:
        return self in (MovementType.RESERVATION, MovementType.RELEASE)


INBOUND_MOVEMENT_TYPES = frozenset(
    {
        MovementType.PURCHASE,
        MovementType.RETURN,
        MovementType.FOUND,
        MovementType.RELEASE,
    }
)

# Outbound movements that represent consumption (used by ABC and rotation analysis)
CONSUMPTION_MOVEMENT_TYPES = frozenset(
    {
        MovementType.SALE,
        MovementType.USE,
        MovementType.TRANSFER,
        MovementType.DONATION,
    }
)

# Outbound movements that represent shrinkage
LOSS_MOVEMENT_TYPES = frozenset(
    {
        MovementType.WASTE,
        MovementType.THEFT,
        MovementType.LOSS,
        MovementType.DISPOSAL,
        MovementType.EXPIRATION,
        MovementType.DAMAGE,
    }
)


class SupplierInfo(BaseModel):
    """Preferred supplier used for automatic reorders."""

    supplier_id: str
    supplier_name: str
    minimum_order_quantity: Decimal | None = None
    lead_time_days: int | None = None


class InventoryItem(BaseModel):
    """
    One stocked SKU with its quantity, cost and lifecycle state.

    available_stock and total_value are derived, never stored independently.
    status is only assigned from the status classifier.
    """

    id: int | None = None
    item_code: str = Field(..., min_length=3, max_length=50)
    item_name: str = Field(..., min_length=1, max_length=200)
    category: InventoryCategory
    unit_of_measure: UnitOfMeasure = UnitOfMeasure.UNIT
    farm_id: str | None = None

    current_stock: Decimal = Decimal("0")
    reserved_stock: Decimal = Decimal("0")
    minimum_stock: Decimal = Decimal("0")
    maximum_stock: Decimal | None = None
    reorder_point: Decimal = Decimal("0")
    reorder_quantity: Decimal = Decimal("0")

    unit_cost: Decimal = Decimal("0")  # Weighted Average Cost
    currency: str = "MXN"

    expiration_date: datetime | None = None
    manufacturing_date: datetime | None = None
    last_movement_date: datetime | None = None

    status: StockStatus = StockStatus.OUT_OF_STOCK

    track_expiration: bool = False
    track_batch: bool = False
    allow_negative_stock: bool = False
    is_critical: bool = False

    supplier: SupplierInfo | None = None

    version: int = 0
    created_by: str | None = None
    updated_by: str | None = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    @property
    def available_stock(self) -> Decimal:
        """Physical stock minus reserved stock."""
        return self.current_stock - self.reserved_stock

    @property
    def total_value(self) -> Decimal:
        """Total inventory value = current_stock * unit_cost."""
        return self.current_stock * self.unit_cost

    @property
    def needs_reorder(self) -> bool:
        return self.current_stock <= self.reorder_point


class StockMovement(BaseModel):
    """Append-only record of a single stock change."""

    id: int | None = None
    inventory_item_id: int
    movement_type: MovementType
    quantity: Decimal  # signed: +inbound, -outbound
    unit_cost: Decimal | None = None
    total_cost: Decimal | None = None
    balance_after: Decimal
    performed_by: str
    reason: str = ""
    reference: str | None = None
    notes: str | None = None
    movement_date: datetime = Field(default_factory=utcnow)
    created_at: datetime = Field(default_factory=utcnow)


class MovementRequest(BaseModel):
    """Stock change requested against the ledger."""

    movement_type: MovementType
    quantity: Decimal = Field(..., gt=0, description="Unsigned quantity")
    unit_cost: Decimal | None = Field(default=None, ge=0)
    reason: str = ""
    reference: str | None = None
    notes: str | None = None


CATEGORY_LABELS: dict[InventoryCategory, str] = {
    InventoryCategory.FEED: "Feed",
    InventoryCategory.MEDICATION: "Medication",
    InventoryCategory.VACCINES: "Vaccines",
    InventoryCategory.EQUIPMENT: "Equipment",
    InventoryCategory.TOOLS: "Tools",
    InventoryCategory.SUPPLIES: "Supplies",
    InventoryCategory.BREEDING_MATERIALS: "Breeding Materials",
    InventoryCategory.CLEANING_PRODUCTS: "Cleaning Products",
    InventoryCategory.SAFETY_EQUIPMENT: "Safety Equipment",
    InventoryCategory.OFFICE_SUPPLIES: "Office Supplies",
    InventoryCategory.FUEL: "Fuel",
    InventoryCategory.SEEDS: "Seeds",
    InventoryCategory.FERTILIZERS: "Fertilizers",
    InventoryCategory.PESTICIDES: "Pesticides",
    InventoryCategory.SPARE_PARTS: "Spare Parts",
    InventoryCategory.OTHER: "Other",
}

STATUS_LABELS: dict[StockStatus, str] = {
    StockStatus.IN_STOCK: "In Stock",
    StockStatus.LOW_STOCK: "Low Stock",
    StockStatus.OUT_OF_STOCK: "Out of Stock",
    StockStatus.OVERSTOCKED: "Overstocked",
    StockStatus.BACKORDERED: "Backordered",
    StockStatus.EXPIRED: "Expired",
    StockStatus.DAMAGED: "Damaged",
    StockStatus.DISCONTINUED: "Discontinued",
    StockStatus.RESERVED: "Reserved",
}

UNIT_LABELS: dict[UnitOfMeasure, str] = {
    UnitOfMeasure.KG: "Kilograms",
    UnitOfMeasure.G: "Grams",
    UnitOfMeasure.LB: "Pounds",
    UnitOfMeasure.TON: "Tons",
    UnitOfMeasure.L: "Liters",
    UnitOfMeasure.ML: "Milliliters",
    UnitOfMeasure.GAL: "Gallons",
    UnitOfMeasure.M: "Meters",
    UnitOfMeasure.UNIT: "Units",
    UnitOfMeasure.DOZEN: "Dozens",
    UnitOfMeasure.BOX: "Boxes",
    UnitOfMeasure.PACK: "Packs",
    UnitOfMeasure.BOTTLE: "Bottles",
    UnitOfMeasure.BAG: "Bags",
    UnitOfMeasure.DOSE: "Doses",
}


def category_label(category: InventoryCategory) -> str:
    return CATEGORY_LABELS[category]


def status_label(status: StockStatus) -> str:
    return STATUS_LABELS[status]


def unit_label(unit: UnitOfMeasure) -> str:
    return UNIT_LABELS[unit]
