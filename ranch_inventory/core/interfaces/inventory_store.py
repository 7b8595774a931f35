"""Abstract interface for inventory storage."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime

from ranch_inventory.core.entities.inventory import (
    InventoryCategory,
    InventoryItem,
    MovementType,
    StockMovement,
    StockStatus,
)


@dataclass
class ItemFilter:
    """Criteria for listing inventory items."""

    farm_id: str | None = None
    category: InventoryCategory | None = None
    status: StockStatus | None = None
    search: str | None = None  # matches item_name or item_code
    low_stock: bool = False  # current_stock <= minimum_stock
    expired_before: datetime | None = None


@dataclass
class MovementFilter:
    """Criteria for listing stock movements."""

    inventory_item_id: int | None = None
    movement_types: list[MovementType] | None = None
    since: datetime | None = None
    until: datetime | None = None


class IInventoryStore(ABC):
    """
    Interface for inventory item and stock movement persistence.

    save_item and commit_movement use the item's version as an optimistic
    concurrency token: a stale version raises ConcurrencyConflictError and
    the stored version is bumped on success.
    """

    @abstractmethod
    async def create_item(self, item: InventoryItem) -> InventoryItem:
        """Create a new inventory item."""
        pass

    @abstractmethod
    async def get_item(self, item_id: int) -> InventoryItem | None:
        """Get inventory item by ID."""
        pass

    @abstractmethod
    async def get_item_by_code(self, item_code: str) -> InventoryItem | None:
        """Get inventory item by its unique code."""
        pass

    @abstractmethod
    async def save_item(self, item: InventoryItem) -> InventoryItem:
        """Persist item changes with an optimistic version check."""
        pass

    @abstractmethod
    async def commit_movement(
        self, item: InventoryItem, movement: StockMovement
    ) -> tuple[InventoryItem, StockMovement]:
        """Atomically persist item changes and append the movement."""
        pass

    @abstractmethod
    async def query_items(
        self,
        item_filter: ItemFilter | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[InventoryItem]:
        """List inventory items matching the filter with pagination."""
        pass

    @abstractmethod
    async def count_items(self, item_filter: ItemFilter | None = None) -> int:
        """Count inventory items matching the filter."""
        pass

    @abstractmethod
    async def append_movement(self, movement: StockMovement) -> StockMovement:
        """Record a stock movement."""
        pass

    @abstractmethod
    async def query_movements(
        self,
        movement_filter: MovementFilter | None = None,
        limit: int = 1000,
        offset: int = 0,
    ) -> list[StockMovement]:
        """List movements, ordered by date ASC."""
        pass
