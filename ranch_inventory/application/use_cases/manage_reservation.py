"""Reserve and release stock use cases."""

from ranch_inventory.application.dto.requests import ReservationRequest
from ranch_inventory.core.entities.inventory import InventoryItem
from ranch_inventory.core.services import StockLedgerService


class _ReservationUseCase:
    def __init__(self, ledger: StockLedgerService | None = None):
        self._ledger = ledger

    async def _get_ledger(self) -> StockLedgerService:
        if self._ledger is None:
            from ranch_inventory.application.services import get_stock_ledger

            self._ledger = await get_stock_ledger()
        return self._ledger


class ReserveStockUseCase(_ReservationUseCase):
    """Hold available stock for a pending order."""

    async def execute(self, request: ReservationRequest, user_id: str) -> InventoryItem:
        ledger = await self._get_ledger()
        return await ledger.reserve(request.item_id, request.quantity, request.reference, user_id)


class ReleaseStockUseCase(_ReservationUseCase):
    """Return reserved stock to availability."""

    async def execute(self, request: ReservationRequest, user_id: str) -> InventoryItem:
        ledger = await self._get_ledger()
        return await ledger.release(request.item_id, request.quantity, request.reference, user_id)
