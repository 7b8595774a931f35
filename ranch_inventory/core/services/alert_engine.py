"""
Inventory alert engine.

Evaluates items against stock and expiration thresholds, keeps at most one
open alert per item and condition, and notifies on first trigger or
priority escalation.
"""

import asyncio
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal

from ranch_inventory.config import get_logger, get_settings
from ranch_inventory.config.settings import Settings
from ranch_inventory.core.entities.alert import (
    AUTO_RESOLVABLE_TYPES,
    Alert,
    AlertPriority,
    AlertState,
    AlertType,
)
from ranch_inventory.core.entities.inventory import InventoryItem, utcnow
from ranch_inventory.core.exceptions import AlertNotFoundError, ValidationError
from ranch_inventory.core.interfaces.alert_store import IAlertStore
from ranch_inventory.core.interfaces.inventory_store import IInventoryStore, ItemFilter
from ranch_inventory.core.interfaces.notification import IClock, INotificationSink
from ranch_inventory.core.services.status_classifier import (
    days_to_expiry,
    is_expired,
    overstock_limit,
)

logger = get_logger(__name__)

# An open alert of the key type is closed once the value type is raised
SUPERSEDED_BY = {AlertType.EXPIRING_SOON: AlertType.EXPIRED}


@dataclass
class AlertCheckResult:
    """Outcome of evaluating one item."""

    item_id: int
    open_alerts: list[Alert] = field(default_factory=list)
    raised: int = 0
    resolved: int = 0
    notifications_sent: int = 0


@dataclass
class SweepResult:
    """Outcome of a full alert sweep."""

    items_scanned: int = 0
    alerts_open: int = 0
    alerts_raised: int = 0
    alerts_resolved: int = 0
    notifications_sent: int = 0
    failed_item_ids: list[int] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "items_scanned": self.items_scanned,
            "alerts_open": self.alerts_open,
            "alerts_raised": self.alerts_raised,
            "alerts_resolved": self.alerts_resolved,
            "notifications_sent": self.notifications_sent,
            "failed_item_ids": self.failed_item_ids,
        }


class AlertEngineService:
    """
    Raises, deduplicates, notifies and resolves inventory alerts.

    Usage:
        engine = AlertEngineService(inventory_store, alert_store, sink)
        result = await engine.sweep(farm_id="farm-1")
    """

    def __init__(
        self,
        inventory_store: IInventoryStore,
        alert_store: IAlertStore,
        notification_sink: INotificationSink | None = None,
        clock: IClock | None = None,
        settings: Settings | None = None,
    ):
        self._inventory_store = inventory_store
        self._alert_store = alert_store
        self._sink = notification_sink
        self._clock = clock
        self._settings = settings or get_settings()

    def _now(self) -> datetime:
        return self._clock.now() if self._clock else utcnow()

    def evaluate(self, item: InventoryItem, now: datetime | None = None) -> list[Alert]:
        """
        Compute the alert conditions an item currently meets.

        Pure: nothing is persisted or sent.
        """
        now = now or self._now()
        config = self._settings.inventory
        alerts: list[Alert] = []

        def build(alert_type, priority, message, current_value, threshold_value) -> Alert:
            return Alert(
                inventory_item_id=item.id,
                farm_id=item.farm_id,
                item_name=item.item_name,
                alert_type=alert_type,
                priority=priority,
                message=message,
                current_value=current_value,
                threshold_value=threshold_value,
                triggered_at=now,
                auto_resolvable=alert_type in AUTO_RESOLVABLE_TYPES,
                updated_at=now,
            )

        if item.current_stock < 0:
            alerts.append(
                build(
                    AlertType.NEGATIVE_STOCK,
                    AlertPriority.CRITICAL,
                    f"Negative stock: {item.item_name} is at {item.current_stock}",
                    item.current_stock,
                    Decimal("0"),
                )
            )

        if item.current_stock <= item.minimum_stock:
            alerts.append(
                build(
                    AlertType.LOW_STOCK,
                    AlertPriority.CRITICAL if item.current_stock <= 0 else AlertPriority.HIGH,
                    f"Low stock: {item.item_name} ({item.current_stock} remaining, "
                    f"minimum {item.minimum_stock})",
                    item.current_stock,
                    item.minimum_stock,
                )
            )

        if item.expiration_date is not None:
            days = days_to_expiry(item.expiration_date, now)
            if days < 0 or is_expired(item.expiration_date, now):
                alerts.append(
                    build(
                        AlertType.EXPIRED,
                        AlertPriority.CRITICAL,
                        f"Expired: {item.item_name} expired "
                        f"{item.expiration_date.date().isoformat()}",
                        Decimal(days),
                        Decimal("0"),
                    )
                )
            elif 0 < days <= config.expiration_warning_days:
                priority = (
                    AlertPriority.HIGH
                    if days <= config.expiration_urgent_days
                    else AlertPriority.MEDIUM
                )
                alerts.append(
                    build(
                        AlertType.EXPIRING_SOON,
                        priority,
                        f"Expiring soon: {item.item_name} expires in {days} days",
                        Decimal(days),
                        Decimal(config.expiration_warning_days),
                    )
                )

        if item.maximum_stock is not None:
            limit = overstock_limit(item.maximum_stock, config.overstock_factor)
            if item.current_stock > limit:
                alerts.append(
                    build(
                        AlertType.OVERSTOCKED,
                        AlertPriority.MEDIUM,
                        f"Overstock: {item.item_name} at {item.current_stock}, "
                        f"maximum {item.maximum_stock}",
                        item.current_stock,
                        item.maximum_stock,
                    )
                )

        return alerts

    async def check_item(self, item: InventoryItem) -> list[Alert]:
        """Reconcile persisted alerts with the item's current conditions."""
        result = await self._check(item)
        return result.open_alerts

    async def _check(self, item: InventoryItem) -> AlertCheckResult:
        now = self._now()
        result = AlertCheckResult(item_id=item.id)
        raised_types: set[AlertType] = set()

        for candidate in self.evaluate(item, now):
            raised_types.add(candidate.alert_type)
            existing = await self._alert_store.find_open(item.id, candidate.alert_type)

            if existing is None:
                alert = await self._alert_store.create(candidate)
                result.raised += 1
                logger.info(
                    "alert_raised",
                    alert_id=alert.id,
                    item_id=item.id,
                    alert_type=alert.alert_type.value,
                    priority=alert.priority.value,
                )
            else:
                if candidate.priority.rank > existing.priority.rank:
                    logger.info(
                        "alert_escalated",
                        alert_id=existing.id,
                        item_id=item.id,
                        alert_type=existing.alert_type.value,
                        from_priority=existing.priority.value,
                        to_priority=candidate.priority.value,
                    )
                alert = existing.model_copy(
                    update={
                        "priority": candidate.priority,
                        "message": candidate.message,
                        "current_value": candidate.current_value,
                        "threshold_value": candidate.threshold_value,
                        "updated_at": now,
                    }
                )

            if self._should_notify(alert) and await self._dispatch(alert):
                alert.notification_sent = True
                alert.notified_priority = alert.priority
                result.notifications_sent += 1

            if existing is not None or alert.notification_sent:
                alert = await self._alert_store.update(alert)
            result.open_alerts.append(alert)

        for open_alert in await self._alert_store.list_open(item_id=item.id):
            if open_alert.alert_type in raised_types:
                continue
            superseded = SUPERSEDED_BY.get(open_alert.alert_type) in raised_types
            if open_alert.auto_resolvable or superseded:
                await self._close(open_alert, "system", now)
                result.resolved += 1

        return result

    @staticmethod
    def _should_notify(alert: Alert) -> bool:
        if alert.priority.rank <= AlertPriority.LOW.rank:
            return False
        if alert.notified_priority is None:
            return True
        return alert.priority.rank > alert.notified_priority.rank

    async def _dispatch(self, alert: Alert) -> bool:
        """Send an alert notification; failures are logged and reported as False."""
        if self._sink is None:
            return False
        try:
            await asyncio.wait_for(
                self._sink.send_alert(alert),
                timeout=self._settings.notifications.timeout,
            )
        except Exception:
            logger.warning(
                "alert_notification_failed",
                alert_id=alert.id,
                item_id=alert.inventory_item_id,
                exc_info=True,
            )
            return False
        return True

    async def sweep(self, farm_id: str | None = None) -> SweepResult:
        """
        Check every item, optionally limited to one farm.

        Items are read page by page without locks; a failing item is
        logged and skipped.
        """
        result = SweepResult()
        page_size = self._settings.inventory.sweep_page_size
        item_filter = ItemFilter(farm_id=farm_id)
        offset = 0

        logger.info("alert_sweep_started", farm_id=farm_id)

        while True:
            items = await self._inventory_store.query_items(
                item_filter, limit=page_size, offset=offset
            )
            for item in items:
                result.items_scanned += 1
                try:
                    checked = await self._check(item)
                except Exception:
                    logger.warning("alert_sweep_item_failed", item_id=item.id, exc_info=True)
                    result.failed_item_ids.append(item.id)
                    continue
                result.alerts_open += len(checked.open_alerts)
                result.alerts_raised += checked.raised
                result.alerts_resolved += checked.resolved
                result.notifications_sent += checked.notifications_sent

            if len(items) < page_size:
                break
            offset += page_size

        logger.info("alert_sweep_completed", farm_id=farm_id, **result.to_dict())
        return result

    async def list_open(self, item_id: int | None = None, farm_id: str | None = None) -> list[Alert]:
        return await self._alert_store.list_open(item_id=item_id, farm_id=farm_id)

    async def acknowledge(self, alert_id: int, user_id: str) -> Alert:
        """Mark an open alert as seen. It stays open until resolved."""
        alert = await self._get_open(alert_id)
        now = self._now()
        alert.state = AlertState.ACKNOWLEDGED
        alert.acknowledged_by = user_id
        alert.acknowledged_at = now
        alert.updated_at = now
        updated = await self._alert_store.update(alert)
        logger.info("alert_acknowledged", alert_id=alert_id, user_id=user_id)
        return updated

    async def resolve(self, alert_id: int, user_id: str) -> Alert:
        """Close an alert manually."""
        alert = await self._get_open(alert_id)
        return await self._close(alert, user_id, self._now())

    async def _get_open(self, alert_id: int) -> Alert:
        alert = await self._alert_store.get(alert_id)
        if alert is None:
            raise AlertNotFoundError(alert_id)
        if not alert.is_open:
            raise ValidationError("alert_id", "Alert is already resolved", alert_id)
        return alert

    async def _close(self, alert: Alert, user_id: str, now: datetime) -> Alert:
        alert.state = AlertState.RESOLVED
        alert.resolved_by = user_id
        alert.resolved_at = now
        alert.updated_at = now
        updated = await self._alert_store.update(alert)
        logger.info(
            "alert_resolved",
            alert_id=alert.id,
            item_id=alert.inventory_item_id,
            alert_type=alert.alert_type.value,
            resolved_by=user_id,
        )
        return updated
