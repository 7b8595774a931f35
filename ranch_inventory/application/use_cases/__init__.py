"""Application use cases."""

from ranch_inventory.application.use_cases.generate_inventory_report import (
    GenerateInventoryReportUseCase,
    InventoryReport,
)
from ranch_inventory.application.use_cases.list_inventory import (
    InventoryPage,
    ListInventoryUseCase,
)
from ranch_inventory.application.use_cases.manage_reservation import (
    ReleaseStockUseCase,
    ReserveStockUseCase,
)
from ranch_inventory.application.use_cases.record_movement import (
    RecordMovementResult,
    RecordMovementUseCase,
)
from ranch_inventory.application.use_cases.register_item import RegisterItemUseCase
from ranch_inventory.application.use_cases.run_alert_sweep import RunAlertSweepUseCase

__all__ = [
    "RegisterItemUseCase",
    "RecordMovementUseCase",
    "RecordMovementResult",
    "ReserveStockUseCase",
    "ReleaseStockUseCase",
    "RunAlertSweepUseCase",
    "GenerateInventoryReportUseCase",
    "InventoryReport",
    "ListInventoryUseCase",
    "InventoryPage",
]
