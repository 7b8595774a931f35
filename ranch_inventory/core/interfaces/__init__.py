"""Core interfaces (ports) for dependency injection."""

from ranch_inventory.core.interfaces.alert_store import IAlertStore
from ranch_inventory.core.interfaces.inventory_store import (
    IInventoryStore,
    ItemFilter,
    MovementFilter,
)
from ranch_inventory.core.interfaces.notification import IClock, INotificationSink
from ranch_inventory.core.interfaces.purchase_order_store import IPurchaseOrderStore

__all__ = [
    # Storage interfaces
    "IInventoryStore",
    "IAlertStore",
    "IPurchaseOrderStore",
    "ItemFilter",
    "MovementFilter",
    # Collaborators
    "INotificationSink",
    "IClock",
]
