"""Inventory alert entity."""

from datetime import datetime
from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, Field

from ranch_inventory.core.entities.inventory import utcnow


class AlertType(str, Enum):
    """Condition that raised the alert."""

    LOW_STOCK = "LOW_STOCK"
    EXPIRING_SOON = "EXPIRING_SOON"
    EXPIRED = "EXPIRED"
    OVERSTOCKED = "OVERSTOCKED"
    NEGATIVE_STOCK = "NEGATIVE_STOCK"


class AlertPriority(str, Enum):
    """Alert priority, ordered LOW < MEDIUM < HIGH < CRITICAL."""

    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"

    @property
    def rank(self) -> int:
        return _PRIORITY_RANK[self]


_PRIORITY_RANK = {
    AlertPriority.LOW: 0,
    AlertPriority.MEDIUM: 1,
    AlertPriority.HIGH: 2,
    AlertPriority.CRITICAL: 3,
}


class AlertState(str, Enum):
    """Lifecycle of a persisted alert."""

    ACTIVE = "ACTIVE"
    ACKNOWLEDGED = "ACKNOWLEDGED"
    RESOLVED = "RESOLVED"


OPEN_ALERT_STATES = frozenset({AlertState.ACTIVE, AlertState.ACKNOWLEDGED})

# Conditions that clear on their own once stock moves back into range
AUTO_RESOLVABLE_TYPES = frozenset(
    {AlertType.LOW_STOCK, AlertType.OVERSTOCKED, AlertType.NEGATIVE_STOCK}
)


class Alert(BaseModel):
    """
    A stock condition detected on one inventory item.

    Persisted with a resolution state so that a condition is notified
    once, and again only when its priority escalates.
    """

    id: int | None = None
    inventory_item_id: int
    farm_id: str | None = None
    item_name: str = ""
    alert_type: AlertType
    priority: AlertPriority
    message: str = ""
    current_value: Decimal
    threshold_value: Decimal
    triggered_at: datetime = Field(default_factory=utcnow)
    auto_resolvable: bool = False

    state: AlertState = AlertState.ACTIVE
    notification_sent: bool = False
    notified_priority: AlertPriority | None = None
    acknowledged_by: str | None = None
    acknowledged_at: datetime | None = None
    resolved_by: str | None = None
    resolved_at: datetime | None = None
    updated_at: datetime = Field(default_factory=utcnow)

    @property
    def is_open(self) -> bool:
        return self.state in OPEN_ALERT_STATES
