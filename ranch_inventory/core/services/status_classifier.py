"""
Stock status classification.

Pure functions with no side effects. The ledger calls classify() after
every mutation; nothing else assigns InventoryItem.status.
"""

import math
from datetime import UTC, datetime
from decimal import Decimal

from ranch_inventory.core.entities.inventory import InventoryItem, StockStatus

DEFAULT_OVERSTOCK_FACTOR = Decimal("1.2")
_SECONDS_PER_DAY = 86400


def _aware(value: datetime) -> datetime:
    """Treat naive datetimes as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


def days_to_expiry(expiration_date: datetime, now: datetime) -> int:
    """Whole days until expiration, rounded up; negative once expired."""
    delta = _aware(expiration_date) - _aware(now)
    return math.ceil(delta.total_seconds() / _SECONDS_PER_DAY)


def is_expired(expiration_date: datetime | None, now: datetime) -> bool:
    if expiration_date is None:
        return False
    return _aware(expiration_date) < _aware(now)


def overstock_limit(maximum_stock: Decimal, factor: Decimal | float) -> Decimal:
    return maximum_stock * Decimal(str(factor))


def classify(
    current_stock: Decimal,
    minimum_stock: Decimal,
    maximum_stock: Decimal | None,
    expiration_date: datetime | None,
    now: datetime,
    overstock_factor: Decimal | float = DEFAULT_OVERSTOCK_FACTOR,
) -> StockStatus:
    """
    Map quantity and date state to a stock status.

    Precedence is fixed: expiration, then zero stock, then low stock,
    then overstock. Stock equal to the minimum counts as LOW_STOCK.
    """
    if is_expired(expiration_date, now):
        return StockStatus.EXPIRED

    if current_stock <= 0:
        return StockStatus.OUT_OF_STOCK

    if current_stock <= minimum_stock:
        return StockStatus.LOW_STOCK

    if (
        maximum_stock is not None
        and maximum_stock > 0
        and current_stock > overstock_limit(maximum_stock, overstock_factor)
    ):
        return StockStatus.OVERSTOCKED

    return StockStatus.IN_STOCK


def classify_item(
    item: InventoryItem,
    now: datetime,
    overstock_factor: Decimal | float = DEFAULT_OVERSTOCK_FACTOR,
) -> StockStatus:
    """Classify an item from its current field values."""
    return classify(
        current_stock=item.current_stock,
        minimum_stock=item.minimum_stock,
        maximum_stock=item.maximum_stock,
        expiration_date=item.expiration_date,
        now=now,
        overstock_factor=overstock_factor,
    )
