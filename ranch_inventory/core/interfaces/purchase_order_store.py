"""Abstract interface for purchase order storage."""

from abc import ABC, abstractmethod

from ranch_inventory.core.entities.purchase_order import PurchaseOrder


class IPurchaseOrderStore(ABC):
    """Interface for purchase order persistence."""

    @abstractmethod
    async def create(self, order: PurchaseOrder) -> PurchaseOrder:
        """Create a purchase order with its lines."""
        pass

    @abstractmethod
    async def get(self, order_id: int) -> PurchaseOrder | None:
        """Get purchase order by ID."""
        pass

    @abstractmethod
    async def find_open_for_item(self, item_id: int) -> PurchaseOrder | None:
        """Get a not yet completed or cancelled order containing the item."""
        pass
