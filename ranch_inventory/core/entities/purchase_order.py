"""Purchase order entities created by the auto-reorder trigger."""

from datetime import datetime
from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, Field

from ranch_inventory.core.entities.inventory import utcnow


class PurchaseOrderStatus(str, Enum):
    """Purchase order workflow state."""

    DRAFT = "DRAFT"
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    ORDERED = "ORDERED"
    PARTIAL = "PARTIAL"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


OPEN_ORDER_STATUSES = frozenset(
    {
        PurchaseOrderStatus.DRAFT,
        PurchaseOrderStatus.PENDING,
        PurchaseOrderStatus.APPROVED,
        PurchaseOrderStatus.ORDERED,
        PurchaseOrderStatus.PARTIAL,
    }
)


class PurchaseOrderLine(BaseModel):
    """Single ordered inventory item."""

    inventory_item_id: int
    item_name: str
    quantity_ordered: Decimal
    quantity_received: Decimal = Decimal("0")
    unit_cost: Decimal
    total_cost: Decimal


class PurchaseOrder(BaseModel):
    """Replenishment order for one supplier."""

    id: int | None = None
    order_number: str
    supplier_id: str
    supplier_name: str
    farm_id: str | None = None
    status: PurchaseOrderStatus = PurchaseOrderStatus.DRAFT
    order_date: datetime = Field(default_factory=utcnow)
    expected_delivery_date: datetime | None = None
    lines: list[PurchaseOrderLine] = Field(default_factory=list)
    subtotal: Decimal = Decimal("0")
    total: Decimal = Decimal("0")
    currency: str = "MXN"
    created_by: str = "system"
    notes: str | None = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    @property
    def is_open(self) -> bool:
        return self.status in OPEN_ORDER_STATUSES
