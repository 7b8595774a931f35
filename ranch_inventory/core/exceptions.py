"""
Domain exceptions for the ranch inventory ledger.

Provides specific exception types for different error scenarios.
"""

from decimal import Decimal
from typing import Any


class InventoryError(Exception):
    """Base exception for all inventory errors."""

    def __init__(
        self,
        message: str,
        code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}

    def to_dict(self) -> dict:
        """Convert to dictionary for API responses."""
        return {
            "error": self.code,
            "message": self.message,
            "details": self.details,
        }


# Lookup Exceptions
class NotFoundError(InventoryError):
    """Base exception for missing records."""

    pass


class InventoryItemNotFoundError(NotFoundError):
    """Inventory item does not exist."""

    def __init__(self, item_id: int):
        super().__init__(
            f"Inventory item not found: {item_id}",
            code="INVENTORY_ITEM_NOT_FOUND",
            details={"item_id": item_id},
        )


class AlertNotFoundError(NotFoundError):
    """Alert does not exist."""

    def __init__(self, alert_id: int):
        super().__init__(
            f"Alert not found: {alert_id}",
            code="ALERT_NOT_FOUND",
            details={"alert_id": alert_id},
        )


# Stock Exceptions
class StockError(InventoryError):
    """Base exception for stock sufficiency failures."""

    pass


class InsufficientStockError(StockError):
    """Movement would drive stock below what the item allows."""

    def __init__(self, item_id: int, requested: Decimal, available: Decimal):
        super().__init__(
            f"Insufficient stock for item {item_id}: "
            f"requested {requested}, available {available}",
            code="INSUFFICIENT_STOCK",
            details={
                "item_id": item_id,
                "requested": str(requested),
                "available": str(available),
            },
        )


class InsufficientAvailableStockError(StockError):
    """Reservation exceeds unreserved stock."""

    def __init__(self, item_id: int, requested: Decimal, available: Decimal):
        super().__init__(
            f"Insufficient available stock to reserve on item {item_id}: "
            f"requested {requested}, available {available}",
            code="INSUFFICIENT_AVAILABLE_STOCK",
            details={
                "item_id": item_id,
                "requested": str(requested),
                "available": str(available),
            },
        )


class OverReleaseError(StockError):
    """Release exceeds the reserved amount."""

    def __init__(self, item_id: int, requested: Decimal, reserved: Decimal):
        super().__init__(
            f"Cannot release {requested} on item {item_id}: only {reserved} reserved",
            code="OVER_RELEASE",
            details={
                "item_id": item_id,
                "requested": str(requested),
                "reserved": str(reserved),
            },
        )


class InvariantViolationError(InventoryError):
    """A write would persist an inconsistent inventory record."""

    def __init__(self, rule: str, message: str, item_id: int | None = None):
        super().__init__(
            f"Invariant '{rule}' violated: {message}",
            code="INVARIANT_VIOLATION",
            details={"rule": rule, "item_id": item_id},
        )


# Reorder Exceptions
class ReorderCreationError(InventoryError):
    """Automatic purchase order could not be created.

    The stock mutation that triggered the reorder is already committed;
    ``item`` carries the committed record when available.
    """

    def __init__(self, item_id: int, reason: str, item: Any = None):
        super().__init__(
            f"Failed to create reorder for item {item_id}: {reason}",
            code="REORDER_CREATION_FAILED",
            details={"item_id": item_id, "reason": reason},
        )
        self.item = item


# Storage Exceptions
class StorageError(InventoryError):
    """Base exception for storage operations."""

    pass


class DuplicateItemCodeError(StorageError):
    """Item code already in use."""

    def __init__(self, item_code: str):
        super().__init__(
            f"Inventory item code already exists: {item_code}",
            code="DUPLICATE_ITEM_CODE",
            details={"item_code": item_code},
        )


class ConcurrencyConflictError(StorageError):
    """Row version changed between read and write."""

    def __init__(self, item_id: int, expected_version: int):
        super().__init__(
            f"Inventory item {item_id} was modified concurrently "
            f"(expected version {expected_version})",
            code="CONCURRENCY_CONFLICT",
            details={"item_id": item_id, "expected_version": expected_version},
        )


class DatabaseError(StorageError):
    """Database operation failed."""

    def __init__(self, operation: str, error: str):
        super().__init__(
            f"Database error during {operation}: {error}",
            code="DATABASE_ERROR",
            details={"operation": operation, "error": error},
        )


# Notification Exceptions
class NotificationError(InventoryError):
    """Base exception for notification delivery."""

    pass


class NotificationDeliveryError(NotificationError):
    """Notification could not be delivered."""

    def __init__(self, channel: str, reason: str):
        super().__init__(
            f"Notification delivery via {channel} failed: {reason}",
            code="NOTIFICATION_DELIVERY_FAILED",
            details={"channel": channel, "reason": reason},
        )


# Validation Exceptions
class ValidationError(InventoryError):
    """Input validation failed."""

    def __init__(self, field: str, message: str, value: Any = None):
        super().__init__(
            f"Validation error for '{field}': {message}",
            code="VALIDATION_ERROR",
            details={
                "field": field,
                "message": message,
                "value": str(value)[:100] if value is not None else None,
            },
        )


class ConfigurationError(InventoryError):
    """Configuration error."""

    pass
