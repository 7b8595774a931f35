"""
Service factory functions for dependency injection.

This module wires the SQLite stores and notification sink to the core
services. Use cases should import from here.

The ledger must be shared: its per-item locks only serialize writers
that go through the same StockLedgerService instance.
"""

from typing import TYPE_CHECKING

from ranch_inventory.core.services import (
    AlertEngineService,
    AutoReorderService,
    InventoryAnalysisService,
    StockLedgerService,
)

if TYPE_CHECKING:
    from ranch_inventory.core.interfaces import (
        IAlertStore,
        IClock,
        IInventoryStore,
        INotificationSink,
        IPurchaseOrderStore,
    )


# Singleton service instances
_alert_engine: AlertEngineService | None = None
_auto_reorder_service: AutoReorderService | None = None
_stock_ledger: StockLedgerService | None = None
_analysis_service: InventoryAnalysisService | None = None


async def get_inventory_store() -> "IInventoryStore":
    """Shared SQLite inventory store; also used directly by read-only use cases."""
    # Lazy import infrastructure to avoid circular imports
    from ranch_inventory.infrastructure.storage import sqlite

    return await sqlite.get_inventory_store()


def _default_sink() -> "INotificationSink":
    from ranch_inventory.infrastructure.notifications import get_notification_sink

    return get_notification_sink()


def _default_clock() -> "IClock":
    from ranch_inventory.infrastructure.clock import SystemClock

    return SystemClock()


async def get_alert_engine(
    inventory_store: "IInventoryStore | None" = None,
    alert_store: "IAlertStore | None" = None,
    notification_sink: "INotificationSink | None" = None,
    clock: "IClock | None" = None,
) -> AlertEngineService:
    """
    Get or create the AlertEngineService.

    Overrides build a fresh, uncached instance.
    """
    global _alert_engine

    overrides = (inventory_store, alert_store, notification_sink, clock)
    if _alert_engine is not None and all(o is None for o in overrides):
        return _alert_engine

    from ranch_inventory.infrastructure.storage.sqlite import get_alert_store

    service = AlertEngineService(
        inventory_store=inventory_store or await get_inventory_store(),
        alert_store=alert_store or await get_alert_store(),
        notification_sink=notification_sink or _default_sink(),
        clock=clock or _default_clock(),
    )
    if all(o is None for o in overrides):
        _alert_engine = service
    return service


async def get_auto_reorder_service(
    purchase_order_store: "IPurchaseOrderStore | None" = None,
    notification_sink: "INotificationSink | None" = None,
    clock: "IClock | None" = None,
) -> AutoReorderService:
    """Get or create the AutoReorderService."""
    global _auto_reorder_service

    overrides = (purchase_order_store, notification_sink, clock)
    if _auto_reorder_service is not None and all(o is None for o in overrides):
        return _auto_reorder_service

    from ranch_inventory.infrastructure.storage.sqlite import get_purchase_order_store

    service = AutoReorderService(
        purchase_order_store=purchase_order_store or await get_purchase_order_store(),
        notification_sink=notification_sink or _default_sink(),
        clock=clock or _default_clock(),
    )
    if all(o is None for o in overrides):
        _auto_reorder_service = service
    return service


async def get_stock_ledger(
    inventory_store: "IInventoryStore | None" = None,
    alert_engine: AlertEngineService | None = None,
    auto_reorder: AutoReorderService | None = None,
    clock: "IClock | None" = None,
) -> StockLedgerService:
    """
    Get or create the StockLedgerService.

    The cached ledger is wired with the cached alert engine and reorder
    trigger.
    """
    global _stock_ledger

    overrides = (inventory_store, alert_engine, auto_reorder, clock)
    if _stock_ledger is not None and all(o is None for o in overrides):
        return _stock_ledger

    service = StockLedgerService(
        inventory_store=inventory_store or await get_inventory_store(),
        alert_engine=alert_engine or await get_alert_engine(),
        auto_reorder=auto_reorder or await get_auto_reorder_service(),
        clock=clock or _default_clock(),
    )
    if all(o is None for o in overrides):
        _stock_ledger = service
    return service


async def get_analysis_service(
    inventory_store: "IInventoryStore | None" = None,
    clock: "IClock | None" = None,
) -> InventoryAnalysisService:
    """Get or create the InventoryAnalysisService."""
    global _analysis_service

    if _analysis_service is not None and inventory_store is None and clock is None:
        return _analysis_service

    service = InventoryAnalysisService(
        inventory_store=inventory_store or await get_inventory_store(),
        clock=clock or _default_clock(),
    )
    if inventory_store is None and clock is None:
        _analysis_service = service
    return service


def reset_services() -> None:
    """
    Reset all singleton service instances.

    Useful for testing or reconfiguration.
    """
    global _alert_engine
    global _auto_reorder_service
    global _stock_ledger
    global _analysis_service

    _alert_engine = None
    _auto_reorder_service = None
    _stock_ledger = None
    _analysis_service = None


__all__ = [
    "get_inventory_store",
    "get_alert_engine",
    "get_auto_reorder_service",
    "get_stock_ledger",
    "get_analysis_service",
    "reset_services",
]
