"""SQLite storage implementations."""

from ranch_inventory.infrastructure.storage.sqlite.alert_store import SQLiteAlertStore
from ranch_inventory.infrastructure.storage.sqlite.connection import (
    ConnectionPool,
    close_pool,
    get_connection,
    get_pool,
    get_transaction,
)
from ranch_inventory.infrastructure.storage.sqlite.inventory_store import SQLiteInventoryStore
from ranch_inventory.infrastructure.storage.sqlite.purchase_order_store import (
    SQLitePurchaseOrderStore,
)

# Singleton instances
_inventory_store: SQLiteInventoryStore | None = None
_alert_store: SQLiteAlertStore | None = None
_purchase_order_store: SQLitePurchaseOrderStore | None = None


async def get_inventory_store() -> SQLiteInventoryStore:
    """Get singleton inventory store instance."""
    global _inventory_store
    if _inventory_store is None:
        _inventory_store = SQLiteInventoryStore()
    return _inventory_store


async def get_alert_store() -> SQLiteAlertStore:
    """Get singleton alert store instance."""
    global _alert_store
    if _alert_store is None:
        _alert_store = SQLiteAlertStore()
    return _alert_store


async def get_purchase_order_store() -> SQLitePurchaseOrderStore:
    """Get singleton purchase order store instance."""
    global _purchase_order_store
    if _purchase_order_store is None:
        _purchase_order_store = SQLitePurchaseOrderStore()
    return _purchase_order_store


__all__ = [
    # Connection
    "ConnectionPool",
    "get_pool",
    "close_pool",
    "get_connection",
    "get_transaction",
    # Store classes
    "SQLiteInventoryStore",
    "SQLiteAlertStore",
    "SQLitePurchaseOrderStore",
    # Factory functions
    "get_inventory_store",
    "get_alert_store",
    "get_purchase_order_store",
]
