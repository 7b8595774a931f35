"""Register Item Use Case."""

from ranch_inventory.application.dto.requests import RegisterItemRequest
from ranch_inventory.config import get_logger
from ranch_inventory.core.entities.inventory import InventoryItem
from ranch_inventory.core.services import StockLedgerService

logger = get_logger(__name__)


class RegisterItemUseCase:
    """Create a new inventory item through the ledger."""

    def __init__(self, ledger: StockLedgerService | None = None):
        self._ledger = ledger

    async def _get_ledger(self) -> StockLedgerService:
        if self._ledger is None:
            from ranch_inventory.application.services import get_stock_ledger

            self._ledger = await get_stock_ledger()
        return self._ledger

    async def execute(self, request: RegisterItemRequest, user_id: str) -> InventoryItem:
        logger.info("register_item_started", item_code=request.item_code, user_id=user_id)
        ledger = await self._get_ledger()
        return await ledger.register_item(request.to_item(), user_id)
