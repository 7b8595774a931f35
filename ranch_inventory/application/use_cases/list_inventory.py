"""List Inventory Use Case: filtered, paginated item listing."""

import math
from dataclasses import dataclass

from ranch_inventory.application.dto.requests import ListItemsRequest
from ranch_inventory.config import get_logger
from ranch_inventory.core.entities.inventory import InventoryItem
from ranch_inventory.core.interfaces import IClock, IInventoryStore

logger = get_logger(__name__)


@dataclass
class InventoryPage:
    """One page of items plus the metadata needed to walk the rest."""

    items: list[InventoryItem]
    total: int
    page: int
    limit: int

    @property
    def pages(self) -> int:
        return math.ceil(self.total / self.limit)

    @property
    def has_next(self) -> bool:
        return self.page < self.pages

    @property
    def has_prev(self) -> bool:
        return self.page > 1

    def to_dict(self) -> dict:
        items = []
        for item in self.items:
            data = item.model_dump(mode="json")
            data["available_stock"] = str(item.available_stock)
            data["total_value"] = str(item.total_value)
            items.append(data)
        return {
            "items": items,
            "total": self.total,
            "page": self.page,
            "limit": self.limit,
            "pages": self.pages,
            "has_next": self.has_next,
            "has_prev": self.has_prev,
        }


class ListInventoryUseCase:
    """
    List inventory items matching the request filters.

    The expired filter compares expiration dates against the clock, so it
    agrees with the status classifier for the same instant.
    """

    def __init__(
        self,
        inventory_store: IInventoryStore | None = None,
        clock: IClock | None = None,
    ):
        self._inventory_store = inventory_store
        self._clock = clock

    async def _get_inventory_store(self) -> IInventoryStore:
        if self._inventory_store is None:
            from ranch_inventory.application.services import get_inventory_store

            self._inventory_store = await get_inventory_store()
        return self._inventory_store

    def _get_clock(self) -> IClock:
        if self._clock is None:
            from ranch_inventory.infrastructure.clock import SystemClock

            self._clock = SystemClock()
        return self._clock

    async def execute(self, request: ListItemsRequest) -> InventoryPage:
        store = await self._get_inventory_store()
        item_filter = request.to_filter(self._get_clock().now())

        total = await store.count_items(item_filter)
        items = await store.query_items(item_filter, limit=request.limit, offset=request.offset)

        logger.info(
            "inventory_listed",
            farm_id=request.farm_id,
            page=request.page,
            returned=len(items),
            total=total,
        )
        return InventoryPage(items=items, total=total, page=request.page, limit=request.limit)
