"""Tests for the alert engine."""

import asyncio
from datetime import timedelta
from decimal import Decimal

import pytest

from ranch_inventory.core.entities import Alert, AlertPriority, AlertState, AlertType
from ranch_inventory.core.exceptions import AlertNotFoundError, ValidationError
from ranch_inventory.core.services.alert_engine import AlertEngineService


@pytest.fixture
def engine(inventory_store, alert_store, sink, clock, settings):
    return AlertEngineService(inventory_store, alert_store, sink, clock, settings)


def _types(alerts) -> dict[AlertType, AlertPriority]:
    return {a.alert_type: a.priority for a in alerts}


class FailingSink:
    def __init__(self):
        self.calls = 0

    async def send_alert(self, alert):
        self.calls += 1
        raise ConnectionError("webhook unreachable")

    async def send_purchase_order(self, order):
        raise ConnectionError("webhook unreachable")


class SlowSink:
    async def send_alert(self, alert):
        await asyncio.sleep(5)

    async def send_purchase_order(self, order):
        await asyncio.sleep(5)


class TestEvaluate:
    """Tests for the pure condition evaluation."""

    async def test_empty_and_expiring_raises_both(self, engine, inventory_store, make_item, now):
        """Zero stock expiring in 3 days yields LOW_STOCK and EXPIRING_SOON together."""
        item = await inventory_store.create_item(
            make_item(current_stock=0, expiration_date=now + timedelta(days=3))
        )

        alerts = engine.evaluate(item)

        assert _types(alerts) == {
            AlertType.LOW_STOCK: AlertPriority.CRITICAL,
            AlertType.EXPIRING_SOON: AlertPriority.HIGH,
        }

    def test_low_stock_high_when_positive(self, engine, make_item):
        alerts = engine.evaluate(make_item(id=1, current_stock=5, minimum_stock=10))
        assert _types(alerts) == {AlertType.LOW_STOCK: AlertPriority.HIGH}

    def test_expiring_medium_beyond_urgent_window(self, engine, make_item, now):
        item = make_item(id=1, current_stock=50, expiration_date=now + timedelta(days=20))
        assert _types(engine.evaluate(item)) == {AlertType.EXPIRING_SOON: AlertPriority.MEDIUM}

    def test_nothing_beyond_warning_window(self, engine, make_item, now):
        item = make_item(id=1, current_stock=50, expiration_date=now + timedelta(days=31))
        assert engine.evaluate(item) == []

    def test_expired(self, engine, make_item, now):
        item = make_item(id=1, current_stock=50, expiration_date=now - timedelta(days=2))
        assert _types(engine.evaluate(item)) == {AlertType.EXPIRED: AlertPriority.CRITICAL}

    def test_expired_within_the_last_day(self, engine, make_item, now):
        item = make_item(id=1, current_stock=50, expiration_date=now - timedelta(hours=3))
        assert _types(engine.evaluate(item)) == {AlertType.EXPIRED: AlertPriority.CRITICAL}

    def test_overstock(self, engine, make_item):
        item = make_item(id=1, current_stock=130, maximum_stock=100)
        alerts = engine.evaluate(item)
        assert _types(alerts) == {AlertType.OVERSTOCKED: AlertPriority.MEDIUM}
        assert alerts[0].threshold_value == Decimal("100")
        assert alerts[0].auto_resolvable

    def test_negative_stock(self, engine, make_item):
        item = make_item(id=1, current_stock=-2, allow_negative_stock=True)
        assert _types(engine.evaluate(item)) == {
            AlertType.NEGATIVE_STOCK: AlertPriority.CRITICAL,
            AlertType.LOW_STOCK: AlertPriority.CRITICAL,
        }

    def test_healthy_item(self, engine, make_item):
        assert engine.evaluate(make_item(id=1, current_stock=50, minimum_stock=10)) == []


class TestCheckItem:
    """Tests for persistence, deduplication and notification."""

    async def test_raises_and_notifies(self, engine, inventory_store, alert_store, sink, make_item, now):
        item = await inventory_store.create_item(
            make_item(current_stock=0, expiration_date=now + timedelta(days=3))
        )

        open_alerts = await engine.check_item(item)

        assert len(open_alerts) == 2
        assert len(alert_store.alerts) == 2
        assert len(sink.alerts) == 2
        assert all(a.notification_sent for a in alert_store.alerts.values())

    async def test_repeat_check_does_not_duplicate(self, engine, inventory_store, alert_store, sink, make_item):
        item = await inventory_store.create_item(make_item(current_stock=5, minimum_stock=10))

        first = await engine.check_item(item)
        second = await engine.check_item(item)

        assert len(alert_store.alerts) == 1
        assert first[0].id == second[0].id
        assert len(sink.alerts) == 1

    async def test_escalation_notifies_again(self, engine, inventory_store, alert_store, sink, make_item):
        item = await inventory_store.create_item(make_item(current_stock=5, minimum_stock=10))
        await engine.check_item(item)

        item.current_stock = Decimal("0")
        [alert] = await engine.check_item(item)

        assert len(alert_store.alerts) == 1
        assert alert.priority == AlertPriority.CRITICAL
        assert alert.notified_priority == AlertPriority.CRITICAL
        assert [a.priority for a in sink.alerts] == [AlertPriority.HIGH, AlertPriority.CRITICAL]

    async def test_acknowledged_alert_is_reused(self, engine, inventory_store, alert_store, make_item):
        item = await inventory_store.create_item(make_item(current_stock=5, minimum_stock=10))
        [alert] = await engine.check_item(item)
        await engine.acknowledge(alert.id, "u1")

        [again] = await engine.check_item(item)

        assert again.id == alert.id
        assert again.state == AlertState.ACKNOWLEDGED

    async def test_notification_failure_is_contained(
        self, inventory_store, alert_store, clock, settings, make_item
    ):
        failing = FailingSink()
        engine = AlertEngineService(inventory_store, alert_store, failing, clock, settings)
        item = await inventory_store.create_item(make_item(current_stock=5, minimum_stock=10))

        [alert] = await engine.check_item(item)
        assert not alert.notification_sent

        await engine.check_item(item)
        assert failing.calls == 2

    async def test_notification_timeout_is_contained(
        self, inventory_store, alert_store, clock, settings, make_item
    ):
        settings.notifications.timeout = 0.01
        engine = AlertEngineService(inventory_store, alert_store, SlowSink(), clock, settings)
        item = await inventory_store.create_item(make_item(current_stock=5, minimum_stock=10))

        [alert] = await engine.check_item(item)

        assert alert.id is not None
        assert not alert.notification_sent

    async def test_auto_resolves_cleared_condition(self, engine, inventory_store, alert_store, make_item):
        item = await inventory_store.create_item(make_item(current_stock=5, minimum_stock=10))
        [alert] = await engine.check_item(item)

        item.current_stock = Decimal("50")
        assert await engine.check_item(item) == []

        stored = alert_store.alerts[alert.id]
        assert stored.state == AlertState.RESOLVED
        assert stored.resolved_by == "system"

    async def test_expired_supersedes_expiring(self, engine, inventory_store, alert_store, clock, make_item, now):
        item = await inventory_store.create_item(
            make_item(current_stock=50, expiration_date=now + timedelta(days=2))
        )
        [expiring] = await engine.check_item(item)

        clock.instant = now + timedelta(days=3)
        [expired] = await engine.check_item(item)

        assert expired.alert_type == AlertType.EXPIRED
        assert alert_store.alerts[expiring.id].state == AlertState.RESOLVED

    async def test_expired_alert_stays_open(self, engine, inventory_store, alert_store, make_item, now):
        item = await inventory_store.create_item(
            make_item(current_stock=50, expiration_date=now - timedelta(days=1))
        )
        [expired] = await engine.check_item(item)

        item.expiration_date = now + timedelta(days=90)
        await engine.check_item(item)

        assert alert_store.alerts[expired.id].is_open

    def test_low_priority_never_notified(self):
        alert = Alert(
            inventory_item_id=1,
            alert_type=AlertType.LOW_STOCK,
            priority=AlertPriority.LOW,
            current_value=Decimal("1"),
            threshold_value=Decimal("2"),
        )
        assert not AlertEngineService._should_notify(alert)


class TestSweep:
    async def test_sweeps_all_pages(self, engine, inventory_store, settings, make_item):
        settings.inventory.sweep_page_size = 2
        for n in range(5):
            await inventory_store.create_item(
                make_item(item_code=f"FEED-{n:03d}", current_stock=n, minimum_stock=2)
            )

        result = await engine.sweep()

        assert result.items_scanned == 5
        assert result.alerts_raised == 3
        assert result.alerts_open == 3
        assert result.failed_item_ids == []

    async def test_farm_filter(self, engine, inventory_store, make_item):
        await inventory_store.create_item(make_item(item_code="A-001", farm_id="farm-1"))
        await inventory_store.create_item(make_item(item_code="B-001", farm_id="farm-2"))

        result = await engine.sweep(farm_id="farm-2")

        assert result.items_scanned == 1

    async def test_failing_item_is_skipped(self, inventory_store, alert_store, sink, clock, settings, make_item):
        broken = await inventory_store.create_item(make_item(item_code="BROKEN-1"))
        healthy = await inventory_store.create_item(make_item(item_code="FINE-001"))
        original = alert_store.find_open

        async def find_open(item_id, alert_type):
            if item_id == broken.id:
                raise RuntimeError("corrupt row")
            return await original(item_id, alert_type)

        alert_store.find_open = find_open
        engine = AlertEngineService(inventory_store, alert_store, sink, clock, settings)

        result = await engine.sweep()

        assert result.items_scanned == 2
        assert result.failed_item_ids == [broken.id]
        assert [a.inventory_item_id for a in alert_store.alerts.values()] == [healthy.id]

    async def test_result_to_dict(self, engine):
        result = await engine.sweep()
        assert result.to_dict()["items_scanned"] == 0


class TestAlertLifecycle:
    async def _raise_alert(self, engine, inventory_store, make_item) -> Alert:
        item = await inventory_store.create_item(make_item(current_stock=5, minimum_stock=10))
        [alert] = await engine.check_item(item)
        return alert

    async def test_acknowledge(self, engine, inventory_store, make_item, now):
        alert = await self._raise_alert(engine, inventory_store, make_item)

        acked = await engine.acknowledge(alert.id, "u1")

        assert acked.state == AlertState.ACKNOWLEDGED
        assert acked.acknowledged_by == "u1"
        assert acked.acknowledged_at == now
        assert [a.id for a in await engine.list_open()] == [alert.id]

    async def test_resolve(self, engine, inventory_store, make_item):
        alert = await self._raise_alert(engine, inventory_store, make_item)

        resolved = await engine.resolve(alert.id, "u1")

        assert resolved.state == AlertState.RESOLVED
        assert resolved.resolved_by == "u1"
        assert await engine.list_open() == []

    async def test_resolve_twice(self, engine, inventory_store, make_item):
        alert = await self._raise_alert(engine, inventory_store, make_item)
        await engine.resolve(alert.id, "u1")

        with pytest.raises(ValidationError):
            await engine.resolve(alert.id, "u1")

    async def test_unknown_alert(self, engine):
        with pytest.raises(AlertNotFoundError):
            await engine.acknowledge(404, "u1")
