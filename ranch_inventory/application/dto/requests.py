"""Request DTOs for ledger operations.

Pydantic v2 models validated at the application boundary (CLI or any
future API) before reaching the ledger.
"""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field, field_validator, model_validator

from ranch_inventory.core.entities.inventory import (
    InventoryCategory,
    InventoryItem,
    MovementRequest,
    MovementType,
    StockStatus,
    SupplierInfo,
    UnitOfMeasure,
)
from ranch_inventory.core.interfaces.inventory_store import ItemFilter


class RecordMovementRequest(BaseModel):
    """Request to apply a stock movement to an item."""

    item_id: int = Field(..., gt=0)
    movement_type: MovementType = Field(
        ...,
        description="Any type except RESERVATION and RELEASE",
        examples=["PURCHASE", "USE", "ADJUSTMENT"],
    )
    quantity: Decimal = Field(..., gt=0, description="Unsigned quantity")
    unit_cost: Decimal | None = Field(
        default=None,
        ge=0,
        description="Purchase unit cost, blended into the weighted average",
    )
    reason: str = Field(default="", max_length=500)
    reference: str | None = Field(default=None, max_length=100)
    notes: str | None = None

    @field_validator("movement_type")
    @classmethod
    def reject_reservation_types(cls, v: MovementType) -> MovementType:
        if v.is_reservation:
            raise ValueError("use the reserve and release operations for holds")
        return v

    def to_movement(self) -> MovementRequest:
        return MovementRequest(
            movement_type=self.movement_type,
            quantity=self.quantity,
            unit_cost=self.unit_cost,
            reason=self.reason,
            reference=self.reference,
            notes=self.notes,
        )


class ReservationRequest(BaseModel):
    """Request to hold or release stock for a pending order."""

    item_id: int = Field(..., gt=0)
    quantity: Decimal = Field(..., gt=0)
    reference: str | None = Field(
        default=None,
        max_length=100,
        description="Order or work reference the hold belongs to",
    )


class RegisterItemRequest(BaseModel):
    """Request to register a new inventory item with zero stock."""

    item_code: str = Field(..., min_length=3, max_length=50)
    item_name: str = Field(..., min_length=1, max_length=200)
    category: InventoryCategory
    unit_of_measure: UnitOfMeasure = UnitOfMeasure.UNIT
    farm_id: str | None = None

    minimum_stock: Decimal = Field(default=Decimal("0"), ge=0)
    maximum_stock: Decimal | None = Field(default=None, gt=0)
    reorder_point: Decimal = Field(default=Decimal("0"), ge=0)
    reorder_quantity: Decimal = Field(default=Decimal("0"), ge=0)
    unit_cost: Decimal = Field(default=Decimal("0"), ge=0)
    currency: str = Field(default="MXN", min_length=3, max_length=3)

    expiration_date: datetime | None = None
    manufacturing_date: datetime | None = None
    track_expiration: bool = False
    allow_negative_stock: bool = False
    is_critical: bool = False

    supplier_id: str | None = None
    supplier_name: str | None = None
    supplier_minimum_order_quantity: Decimal | None = Field(default=None, gt=0)
    supplier_lead_time_days: int | None = Field(default=None, ge=0)

    @model_validator(mode="after")
    def check_consistency(self) -> "RegisterItemRequest":
        if self.supplier_name and not self.supplier_id:
            raise ValueError("supplier_name requires supplier_id")
        if self.maximum_stock is not None and self.maximum_stock <= self.minimum_stock:
            raise ValueError("maximum_stock must be greater than minimum_stock")
        return self

    def to_item(self) -> InventoryItem:
        supplier = None
        if self.supplier_id:
            supplier = SupplierInfo(
                supplier_id=self.supplier_id,
                supplier_name=self.supplier_name or self.supplier_id,
                minimum_order_quantity=self.supplier_minimum_order_quantity,
                lead_time_days=self.supplier_lead_time_days,
            )
        return InventoryItem(
            item_code=self.item_code,
            item_name=self.item_name,
            category=self.category,
            unit_of_measure=self.unit_of_measure,
            farm_id=self.farm_id,
            minimum_stock=self.minimum_stock,
            maximum_stock=self.maximum_stock,
            reorder_point=self.reorder_point,
            reorder_quantity=self.reorder_quantity,
            unit_cost=self.unit_cost,
            currency=self.currency,
            expiration_date=self.expiration_date,
            manufacturing_date=self.manufacturing_date,
            track_expiration=self.track_expiration,
            allow_negative_stock=self.allow_negative_stock,
            is_critical=self.is_critical,
            supplier=supplier,
        )


class ListItemsRequest(BaseModel):
    """Filters and page for an inventory listing."""

    farm_id: str | None = None
    category: InventoryCategory | None = None
    status: StockStatus | None = None
    search: str | None = Field(
        default=None,
        max_length=100,
        description="Substring of the item name or code",
    )
    low_stock: bool = False
    expired: bool = False
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=50, ge=1, le=500)

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit

    def to_filter(self, now: datetime) -> ItemFilter:
        return ItemFilter(
            farm_id=self.farm_id,
            category=self.category,
            status=self.status,
            search=self.search or None,
            low_stock=self.low_stock,
            expired_before=now if self.expired else None,
        )
