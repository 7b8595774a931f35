"""
Core business logic services.

Layer-pure services that depend only on:
- ranch_inventory/core/entities/*
- ranch_inventory/core/interfaces/*
- ranch_inventory/core/exceptions.py

NO infrastructure imports. All dependencies injected via constructor.
"""

from ranch_inventory.core.services.alert_engine import (
    AlertCheckResult,
    AlertEngineService,
    SweepResult,
)
from ranch_inventory.core.services.auto_reorder import AutoReorderService
from ranch_inventory.core.services.inventory_analysis import (
    InventoryAnalysisService,
    layered_value,
)
from ranch_inventory.core.services.status_classifier import (
    classify,
    classify_item,
    days_to_expiry,
    is_expired,
)
from ranch_inventory.core.services.stock_ledger import (
    StockLedgerService,
    ensure_invariants,
    weighted_average_cost,
)

__all__ = [
    # Stock Ledger
    "StockLedgerService",
    "ensure_invariants",
    "weighted_average_cost",
    # Status Classifier
    "classify",
    "classify_item",
    "days_to_expiry",
    "is_expired",
    # Alert Engine
    "AlertEngineService",
    "AlertCheckResult",
    "SweepResult",
    # Auto Reorder
    "AutoReorderService",
    # Analysis
    "InventoryAnalysisService",
    "layered_value",
]
