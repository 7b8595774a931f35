"""
Application layer - Use cases, DTOs, and service factories.

This layer orchestrates business logic by:
1. Defining request DTOs validated at the boundary
2. Implementing use cases that coordinate core services
3. Providing factory functions for dependency injection
"""

from ranch_inventory.application.dto.requests import (
    ListItemsRequest,
    RecordMovementRequest,
    RegisterItemRequest,
    ReservationRequest,
)
from ranch_inventory.application.services import (
    get_alert_engine,
    get_analysis_service,
    get_auto_reorder_service,
    get_inventory_store,
    get_stock_ledger,
    reset_services,
)
from ranch_inventory.application.use_cases import (
    GenerateInventoryReportUseCase,
    ListInventoryUseCase,
    RecordMovementUseCase,
    RegisterItemUseCase,
    ReleaseStockUseCase,
    ReserveStockUseCase,
    RunAlertSweepUseCase,
)

__all__ = [
    # Request DTOs
    "RecordMovementRequest",
    "ReservationRequest",
    "RegisterItemRequest",
    "ListItemsRequest",
    # Service factories
    "get_alert_engine",
    "get_auto_reorder_service",
    "get_inventory_store",
    "get_stock_ledger",
    "get_analysis_service",
    "reset_services",
    # Use cases
    "RegisterItemUseCase",
    "RecordMovementUseCase",
    "ReserveStockUseCase",
    "ReleaseStockUseCase",
    "RunAlertSweepUseCase",
    "GenerateInventoryReportUseCase",
    "ListInventoryUseCase",
]
