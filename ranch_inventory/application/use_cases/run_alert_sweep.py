"""
Run Alert Sweep Use Case.

Periodic job: re-evaluates every item so that date-driven conditions
(expiring, expired) are raised even when no stock moves.
"""

from ranch_inventory.config import get_logger
from ranch_inventory.core.services import AlertEngineService, SweepResult

logger = get_logger(__name__)


class RunAlertSweepUseCase:
    """Sweep all items, optionally for one farm, and report counts."""

    def __init__(self, alert_engine: AlertEngineService | None = None):
        self._alert_engine = alert_engine

    async def _get_alert_engine(self) -> AlertEngineService:
        if self._alert_engine is None:
            from ranch_inventory.application.services import get_alert_engine

            self._alert_engine = await get_alert_engine()
        return self._alert_engine

    async def execute(self, farm_id: str | None = None) -> SweepResult:
        """
        Run the sweep.

        Args:
            farm_id: Limit to one farm; all farms when None.

        Returns:
            SweepResult with counts and the ids of items that failed.
        """
        engine = await self._get_alert_engine()
        result = await engine.sweep(farm_id=farm_id)

        if result.failed_item_ids:
            logger.warning(
                "alert_sweep_partial",
                farm_id=farm_id,
                failed=len(result.failed_item_ids),
            )
        return result
