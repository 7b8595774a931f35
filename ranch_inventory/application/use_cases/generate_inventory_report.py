"""Generate Inventory Report Use Case: valuation plus analysis."""

from dataclasses import dataclass
from datetime import datetime

from ranch_inventory.config import get_logger
from ranch_inventory.core.entities.analysis import (
    InventoryAnalysis,
    InventoryValuation,
    ValuationMethod,
)
from ranch_inventory.core.exceptions import ValidationError
from ranch_inventory.core.services import InventoryAnalysisService

logger = get_logger(__name__)


@dataclass
class InventoryReport:
    """Combined valuation and analysis for one farm."""

    farm_id: str | None
    valuation: InventoryValuation
    analysis: InventoryAnalysis

    def to_dict(self) -> dict:
        return {
            "farm_id": self.farm_id,
            "valuation": self.valuation.model_dump(mode="json"),
            "analysis": self.analysis.model_dump(mode="json"),
        }


class GenerateInventoryReportUseCase:
    """
    Build an inventory report.

    With as_of, the report is computed against a fixed clock so movement
    windows and expiration checks are evaluated at that instant.
    """

    def __init__(self, analysis_service: InventoryAnalysisService | None = None):
        self._analysis_service = analysis_service

    async def _get_analysis_service(self, as_of: datetime | None) -> InventoryAnalysisService:
        if as_of is not None:
            from ranch_inventory.application.services import get_analysis_service
            from ranch_inventory.infrastructure.clock import FixedClock

            return await get_analysis_service(clock=FixedClock(as_of))

        if self._analysis_service is None:
            from ranch_inventory.application.services import get_analysis_service

            self._analysis_service = await get_analysis_service()
        return self._analysis_service

    async def execute(
        self,
        farm_id: str | None = None,
        period_days: int = 365,
        method: ValuationMethod = ValuationMethod.WEIGHTED_AVERAGE,
        as_of: datetime | None = None,
    ) -> InventoryReport:
        """
        Execute the report.

        Raises:
            ValidationError: period_days is below one day
        """
        if period_days < 1:
            raise ValidationError("period_days", "Period must be at least one day", period_days)

        logger.info(
            "inventory_report_started",
            farm_id=farm_id,
            period_days=period_days,
            method=method.value,
            as_of=as_of.isoformat() if as_of else None,
        )

        service = await self._get_analysis_service(as_of)
        valuation = await service.calculate_valuation(farm_id=farm_id, method=method)
        analysis = await service.perform_analysis(farm_id=farm_id, period_days=period_days)

        return InventoryReport(farm_id=farm_id, valuation=valuation, analysis=analysis)
