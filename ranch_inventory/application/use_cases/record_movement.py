"""Record Movement Use Case: apply one stock movement through the ledger."""

from dataclasses import dataclass

from ranch_inventory.application.dto.requests import RecordMovementRequest
from ranch_inventory.config import get_logger
from ranch_inventory.core.entities.inventory import InventoryItem
from ranch_inventory.core.exceptions import ReorderCreationError
from ranch_inventory.core.services import StockLedgerService

logger = get_logger(__name__)


@dataclass
class RecordMovementResult:
    """Result of recording a movement."""

    item: InventoryItem
    reorder_error: str | None = None  # movement committed, reorder failed


class RecordMovementUseCase:
    """
    Apply a stock movement.

    A failed automatic reorder does not undo the movement; it is reported
    in the result instead of raised.
    """

    def __init__(self, ledger: StockLedgerService | None = None):
        self._ledger = ledger

    async def _get_ledger(self) -> StockLedgerService:
        if self._ledger is None:
            from ranch_inventory.application.services import get_stock_ledger

            self._ledger = await get_stock_ledger()
        return self._ledger

    async def execute(self, request: RecordMovementRequest, user_id: str) -> RecordMovementResult:
        """Execute record movement use case."""
        ledger = await self._get_ledger()
        try:
            item = await ledger.apply_movement(request.item_id, request.to_movement(), user_id)
        except ReorderCreationError as e:
            logger.warning(
                "record_movement_reorder_failed",
                item_id=request.item_id,
                error=e.message,
            )
            return RecordMovementResult(item=e.item, reorder_error=e.message)

        return RecordMovementResult(item=item)
