"""Configuration module."""

from ranch_inventory.config.logging import configure_logging, get_logger, log_context
from ranch_inventory.config.settings import (
    AnalysisSettings,
    InventorySettings,
    NotificationSettings,
    Settings,
    StorageSettings,
    get_settings,
    reset_settings,
)

__all__ = [
    "Settings",
    "InventorySettings",
    "NotificationSettings",
    "StorageSettings",
    "AnalysisSettings",
    "get_settings",
    "reset_settings",
    "configure_logging",
    "get_logger",
    "log_context",
]
