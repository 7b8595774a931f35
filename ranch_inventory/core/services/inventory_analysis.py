"""
Inventory valuation and analysis.

Read-only reporting over items and their movement history: valuation by
weighted average, FIFO or LIFO, ABC classification, stock rotation,
expiration exposure, purchase cost variance and recommendations.
"""

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal

from ranch_inventory.config import get_logger, get_settings
from ranch_inventory.config.settings import Settings
from ranch_inventory.core.entities.alert import AlertPriority
from ranch_inventory.core.entities.analysis import (
    AbcClass,
    AbcClassification,
    CategoryValuation,
    CostAnalysis,
    CostVariance,
    ExpirationAnalysis,
    InventoryAnalysis,
    InventoryRecommendation,
    InventoryValuation,
    ItemValue,
    MonthlyExpiration,
    MovementSummary,
    RecommendationType,
    RotationAnalysis,
    RotationClass,
    ValuationMethod,
)
from ranch_inventory.core.entities.inventory import (
    CONSUMPTION_MOVEMENT_TYPES,
    LOSS_MOVEMENT_TYPES,
    InventoryItem,
    MovementType,
    StockMovement,
    utcnow,
)
from ranch_inventory.core.exceptions import ValidationError
from ranch_inventory.core.interfaces.inventory_store import (
    IInventoryStore,
    ItemFilter,
    MovementFilter,
)
from ranch_inventory.core.interfaces.notification import IClock
from ranch_inventory.core.services.status_classifier import days_to_expiry, is_expired

logger = get_logger(__name__)

MONEY = Decimal("0.01")
DAYS_PER_YEAR = 365
# Turnover at or below this is obsolete stock
OBSOLETE_TURNOVER = 1.0

ABC_MANAGEMENT = {
    AbcClass.A: "Tight control: frequent counts and close supplier follow-up",
    AbcClass.B: "Regular control: periodic counts",
    AbcClass.C: "Basic control: simple reorder rules",
}


def _money(value: Decimal) -> Decimal:
    return value.quantize(MONEY, rounding=ROUND_HALF_UP)


def _percent(part: Decimal, whole: Decimal) -> float:
    if whole == 0:
        return 0.0
    return round(float(part / whole * 100), 2)


def layered_value(
    quantity: Decimal,
    layers: list[tuple[Decimal, Decimal]],
    fallback_cost: Decimal,
) -> Decimal:
    """
    Value a quantity by consuming cost layers in the given order.

    Args:
        quantity: On-hand quantity to value
        layers: (quantity, unit_cost) pairs, in the order stock is assumed on hand
        fallback_cost: Unit cost for stock no layer covers
    """
    remaining = quantity
    value = Decimal("0")
    for layer_quantity, layer_cost in layers:
        if remaining <= 0:
            break
        take = min(remaining, layer_quantity)
        value += take * layer_cost
        remaining -= take
    if remaining > 0:
        value += remaining * fallback_cost
    return value


@dataclass
class _ItemStats:
    """Per-item figures collected for the reporting period."""

    item: InventoryItem
    usage_quantity: Decimal = Decimal("0")
    usage_value: Decimal = Decimal("0")
    balances: list[Decimal] = field(default_factory=list)
    purchases: list[StockMovement] = field(default_factory=list)


class InventoryAnalysisService:
    """
    Valuation and analysis reports.

    Never writes and never takes ledger locks. Items that fail to process
    are skipped and listed in the report.
    """

    def __init__(
        self,
        inventory_store: IInventoryStore,
        clock: IClock | None = None,
        settings: Settings | None = None,
    ):
        self._store = inventory_store
        self._clock = clock
        self._settings = settings or get_settings()

    def _now(self) -> datetime:
        return self._clock.now() if self._clock else utcnow()

    async def _load_items(self, farm_id: str | None) -> list[InventoryItem]:
        page_size = self._settings.inventory.sweep_page_size
        item_filter = ItemFilter(farm_id=farm_id)
        items: list[InventoryItem] = []
        offset = 0
        while True:
            page = await self._store.query_items(item_filter, limit=page_size, offset=offset)
            items.extend(page)
            if len(page) < page_size:
                return items
            offset += page_size

    async def _load_movements(
        self,
        item_ids: set[int],
        since: datetime | None = None,
        movement_types: list[MovementType] | None = None,
    ) -> list[StockMovement]:
        page_size = 1000
        movement_filter = MovementFilter(
            movement_types=movement_types, since=since, until=self._now()
        )
        movements: list[StockMovement] = []
        offset = 0
        while True:
            page = await self._store.query_movements(
                movement_filter, limit=page_size, offset=offset
            )
            movements.extend(m for m in page if m.inventory_item_id in item_ids)
            if len(page) < page_size:
                return movements
            offset += page_size

    def item_value(
        self,
        item: InventoryItem,
        method: ValuationMethod,
        purchases: list[StockMovement] | None = None,
    ) -> Decimal:
        """
        Value of an item's on-hand stock under a costing method.

        FIFO keeps the newest purchase layers on hand, LIFO the oldest.
        Purchases must be ordered oldest first.
        """
        if method == ValuationMethod.WEIGHTED_AVERAGE or item.current_stock <= 0:
            return item.total_value

        layers = [
            (m.quantity, m.unit_cost)
            for m in purchases or []
            if m.quantity > 0 and m.unit_cost is not None
        ]
        if method == ValuationMethod.FIFO:
            layers.reverse()
        return layered_value(item.current_stock, layers, item.unit_cost)

    async def calculate_valuation(
        self,
        farm_id: str | None = None,
        method: ValuationMethod = ValuationMethod.WEIGHTED_AVERAGE,
        period_days: int = 30,
    ) -> InventoryValuation:
        """
        Value on-hand inventory.

        Args:
            farm_id: Limit to one farm (all farms when None)
            method: Costing method for total_value
            period_days: Window for the movement summary

        Returns:
            InventoryValuation with category breakdown and top items
        """
        now = self._now()
        items = await self._load_items(farm_id)
        item_ids = {item.id for item in items}

        purchases_by_item: dict[int, list[StockMovement]] = defaultdict(list)
        if method != ValuationMethod.WEIGHTED_AVERAGE:
            for movement in await self._load_movements(
                item_ids, movement_types=[MovementType.PURCHASE]
            ):
                purchases_by_item[movement.inventory_item_id].append(movement)

        total_value = Decimal("0")
        total_cost = Decimal("0")
        total_quantity = Decimal("0")
        values: list[tuple[InventoryItem, Decimal]] = []
        by_category: dict = defaultdict(lambda: [0, Decimal("0")])
        skipped: list[int] = []

        for item in items:
            try:
                value = self.item_value(item, method, purchases_by_item.get(item.id))
            except Exception:
                logger.warning("valuation_item_failed", item_id=item.id, exc_info=True)
                skipped.append(item.id)
                continue
            values.append((item, value))
            total_value += value
            total_cost += item.total_value
            total_quantity += item.current_stock
            by_category[item.category][0] += 1
            by_category[item.category][1] += value

        categories = sorted(
            (
                CategoryValuation(
                    category=category,
                    item_count=count,
                    total_value=_money(value),
                    percentage=_percent(value, total_value),
                )
                for category, (count, value) in by_category.items()
            ),
            key=lambda c: c.total_value,
            reverse=True,
        )

        values.sort(key=lambda pair: pair[1], reverse=True)
        top_items = [
            ItemValue(
                inventory_item_id=item.id,
                item_name=item.item_name,
                value=_money(value),
                percentage=_percent(value, total_value),
            )
            for item, value in values[: self._settings.analysis.top_items]
        ]

        summary = MovementSummary()
        since = now - timedelta(days=period_days)
        for movement in await self._load_movements(item_ids, since=since):
            amount = movement.quantity * (movement.unit_cost or Decimal("0"))
            if movement.movement_type == MovementType.PURCHASE:
                summary.purchases += amount
            elif movement.movement_type in CONSUMPTION_MOVEMENT_TYPES:
                summary.usage += amount
            elif movement.movement_type == MovementType.ADJUSTMENT:
                summary.adjustments += amount
            elif movement.movement_type in LOSS_MOVEMENT_TYPES:
                summary.disposals += amount

        counted = len(values)
        valuation = InventoryValuation(
            total_items=counted,
            total_value=_money(total_value),
            total_cost=_money(total_cost),
            total_quantity=total_quantity,
            average_value_per_item=_money(total_value / counted) if counted else Decimal("0"),
            valuation_method=method,
            categories=categories,
            movements_summary=MovementSummary(
                purchases=_money(summary.purchases),
                usage=_money(summary.usage),
                adjustments=_money(summary.adjustments),
                disposals=_money(summary.disposals),
            ),
            top_items=top_items,
            skipped_item_ids=skipped,
            calculated_at=now,
        )

        logger.info(
            "inventory_valuation_calculated",
            farm_id=farm_id,
            method=method.value,
            total_items=counted,
            total_value=str(valuation.total_value),
            skipped=len(skipped),
        )
        return valuation

    async def perform_analysis(
        self,
        farm_id: str | None = None,
        period_days: int = 365,
    ) -> InventoryAnalysis:
        """
        Run ABC, rotation, expiration and cost analysis over a period.

        Raises:
            ValidationError: period_days is below one day
        """
        if period_days < 1:
            raise ValidationError("period_days", "Period must be at least one day", period_days)

        now = self._now()
        items = await self._load_items(farm_id)
        since = now - timedelta(days=period_days)
        movements = await self._load_movements({item.id for item in items}, since=since)

        movements_by_item: dict[int, list[StockMovement]] = defaultdict(list)
        for movement in movements:
            movements_by_item[movement.inventory_item_id].append(movement)

        stats: list[_ItemStats] = []
        rotation: list[RotationAnalysis] = []
        skipped: list[int] = []
        for item in items:
            try:
                item_stats = self._collect(item, movements_by_item.get(item.id, []))
                item_rotation = self._rotation(item_stats, period_days)
            except Exception:
                logger.warning("analysis_item_failed", item_id=item.id, exc_info=True)
                skipped.append(item.id)
                continue
            stats.append(item_stats)
            rotation.append(item_rotation)

        analysis = InventoryAnalysis(
            period_days=period_days,
            abc_analysis=self._abc(stats),
            rotation_analysis=rotation,
            expiration_analysis=self._expiration([s.item for s in stats], now),
            cost_analysis=self._cost(stats),
            recommendations=self._recommendations(stats, rotation, now),
            skipped_item_ids=skipped,
            generated_at=now,
        )

        logger.info(
            "inventory_analysis_completed",
            farm_id=farm_id,
            period_days=period_days,
            items=len(stats),
            recommendations=len(analysis.recommendations),
            skipped=len(skipped),
        )
        return analysis

    @staticmethod
    def _collect(item: InventoryItem, movements: list[StockMovement]) -> _ItemStats:
        stats = _ItemStats(item=item)
        for movement in movements:
            if movement.movement_type.is_reservation:
                continue
            stats.balances.append(movement.balance_after)
            if movement.movement_type in CONSUMPTION_MOVEMENT_TYPES:
                used = -movement.quantity
                stats.usage_quantity += used
                stats.usage_value += used * (
                    movement.unit_cost if movement.unit_cost is not None else item.unit_cost
                )
            elif movement.movement_type == MovementType.PURCHASE:
                stats.purchases.append(movement)
        return stats

    def _abc(self, stats: list[_ItemStats]) -> list[AbcClassification]:
        config = self._settings.analysis
        ranked = sorted(stats, key=lambda s: s.usage_value, reverse=True)
        total = sum((s.usage_value for s in ranked), Decimal("0"))

        results = []
        cumulative = 0.0
        for s in ranked:
            percentage = _percent(s.usage_value, total)
            cumulative = round(cumulative + percentage, 2)
            if total == 0:
                classification = AbcClass.C
            elif cumulative <= config.abc_a_threshold:
                classification = AbcClass.A
            elif cumulative <= config.abc_b_threshold:
                classification = AbcClass.B
            else:
                classification = AbcClass.C

            results.append(
                AbcClassification(
                    inventory_item_id=s.item.id,
                    item_name=s.item.item_name,
                    period_usage=s.usage_quantity,
                    period_value=_money(s.usage_value),
                    percentage=percentage,
                    cumulative_percentage=cumulative,
                    classification=classification,
                    recommended_management=ABC_MANAGEMENT[classification],
                )
            )
        return results

    def _rotation(self, s: _ItemStats, period_days: int) -> RotationAnalysis:
        config = self._settings.analysis
        item = s.item

        balances = s.balances + [item.current_stock]
        average_stock = sum(balances, Decimal("0")) / len(balances)
        annual_usage = s.usage_quantity * DAYS_PER_YEAR / period_days

        turnover = float(annual_usage / average_stock) if average_stock > 0 else 0.0
        days_of_supply = None
        if annual_usage > 0:
            days_of_supply = round(float(item.current_stock / (annual_usage / DAYS_PER_YEAR)), 1)

        if turnover > config.fast_moving_threshold:
            classification = RotationClass.FAST_MOVING
        elif turnover > config.medium_moving_threshold:
            classification = RotationClass.MEDIUM_MOVING
        elif turnover > OBSOLETE_TURNOVER:
            classification = RotationClass.SLOW_MOVING
        else:
            classification = RotationClass.OBSOLETE

        if turnover > config.fast_moving_threshold:
            recommendation = "Increase stock"
        elif turnover < config.slow_moving_threshold:
            recommendation = "Reduce stock"
        else:
            recommendation = "Keep current level"

        return RotationAnalysis(
            inventory_item_id=item.id,
            item_name=item.item_name,
            average_stock=_money(average_stock),
            annual_usage=_money(annual_usage),
            turnover_rate=round(turnover, 2),
            days_of_supply=days_of_supply,
            classification=classification,
            recommendation=recommendation,
        )

    def _expiration(self, items: list[InventoryItem], now: datetime) -> ExpirationAnalysis:
        warning_days = self._settings.inventory.expiration_warning_days
        analysis = ExpirationAnalysis()
        total_value = Decimal("0")
        by_month: dict[str, list] = defaultdict(lambda: [0, Decimal("0")])

        for item in items:
            total_value += item.total_value
            if item.expiration_date is None:
                continue
            if is_expired(item.expiration_date, now):
                analysis.items_expired += 1
                analysis.total_expired_value += item.total_value
            elif 0 < days_to_expiry(item.expiration_date, now) <= warning_days:
                analysis.items_expiring_soon += 1
            else:
                continue
            month = by_month[item.expiration_date.strftime("%Y-%m")]
            month[0] += 1
            month[1] += item.total_value

        analysis.total_expired_value = _money(analysis.total_expired_value)
        analysis.waste_percentage = _percent(analysis.total_expired_value, total_value)
        analysis.expirations_by_month = [
            MonthlyExpiration(month=month, count=count, value=_money(value))
            for month, (count, value) in sorted(by_month.items())
        ]
        return analysis

    def _cost(self, stats: list[_ItemStats]) -> CostAnalysis:
        threshold = self._settings.analysis.cost_variance_threshold
        analysis = CostAnalysis()

        for s in stats:
            for purchase in s.purchases:
                cost = purchase.total_cost
                if cost is None:
                    cost = purchase.quantity * (purchase.unit_cost or Decimal("0"))
                analysis.total_purchase_value += cost
                analysis.total_purchase_quantity += purchase.quantity

            if not s.purchases or s.purchases[-1].unit_cost is None:
                continue
            last_cost = s.purchases[-1].unit_cost
            average = s.item.unit_cost
            if average <= 0:
                continue
            variance = round(float((last_cost - average) / average * 100), 2)
            if abs(variance) > threshold:
                analysis.cost_variances.append(
                    CostVariance(
                        inventory_item_id=s.item.id,
                        item_name=s.item.item_name,
                        last_purchase_cost=last_cost,
                        weighted_average_cost=average,
                        variance_percentage=variance,
                    )
                )

        if analysis.total_purchase_quantity > 0:
            analysis.average_unit_cost = _money(
                analysis.total_purchase_value / analysis.total_purchase_quantity
            )
        analysis.total_purchase_value = _money(analysis.total_purchase_value)
        analysis.cost_variances.sort(key=lambda v: abs(v.variance_percentage), reverse=True)
        return analysis

    def _recommendations(
        self,
        stats: list[_ItemStats],
        rotation: list[RotationAnalysis],
        now: datetime,
    ) -> list[InventoryRecommendation]:
        config = self._settings.analysis
        lead_time = timedelta(days=self._settings.inventory.default_lead_time_days)
        limit = config.max_recommendations

        reorder = [
            InventoryRecommendation(
                type=RecommendationType.REORDER,
                inventory_item_id=s.item.id,
                item_name=s.item.item_name,
                description=(
                    f"Stock {s.item.current_stock} is at or below the reorder point "
                    f"{s.item.reorder_point}"
                ),
                priority=AlertPriority.CRITICAL if s.item.current_stock <= 0 else AlertPriority.HIGH,
                deadline=now + lead_time,
            )
            for s in stats
            if s.item.needs_reorder
        ]

        reduce_stock = []
        discontinue = []
        for s, r in zip(stats, rotation, strict=True):
            if s.item.current_stock <= 0 or s.item.needs_reorder:
                continue
            if r.classification == RotationClass.OBSOLETE and s.usage_quantity == 0:
                discontinue.append(
                    InventoryRecommendation(
                        type=RecommendationType.DISCONTINUE,
                        inventory_item_id=s.item.id,
                        item_name=s.item.item_name,
                        description="No consumption recorded in the period",
                        priority=AlertPriority.LOW,
                    )
                )
            elif r.turnover_rate < config.slow_moving_threshold:
                reduce_stock.append(
                    InventoryRecommendation(
                        type=RecommendationType.REDUCE_STOCK,
                        inventory_item_id=s.item.id,
                        item_name=s.item.item_name,
                        description=f"Turnover {r.turnover_rate} per year is below target",
                        priority=AlertPriority.MEDIUM,
                    )
                )

        return reorder[:limit] + reduce_stock[:limit] + discontinue[:limit]
