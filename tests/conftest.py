"""Pytest configuration and fixtures."""

import asyncio
from datetime import UTC, datetime
from decimal import Decimal
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from ranch_inventory.config.settings import Settings, StorageSettings
from ranch_inventory.core.entities import (
    Alert,
    AlertState,
    AlertType,
    InventoryCategory,
    InventoryItem,
    PurchaseOrder,
    StockMovement,
)
from ranch_inventory.core.exceptions import ConcurrencyConflictError
from ranch_inventory.core.interfaces import (
    IAlertStore,
    IInventoryStore,
    INotificationSink,
    IPurchaseOrderStore,
    ItemFilter,
    MovementFilter,
)
from ranch_inventory.infrastructure.clock import FixedClock

NOW = datetime(2026, 6, 1, 12, 0, tzinfo=UTC)


class FakeInventoryStore(IInventoryStore):
    """
    In-memory inventory store with the same version semantics as SQLite.

    Yields to the event loop between read and write so that unserialized
    callers would interleave.
    """

    def __init__(self):
        self.items: dict[int, InventoryItem] = {}
        self.movements: list[StockMovement] = []
        self._next_id = 1

    async def create_item(self, item):
        item = item.model_copy(deep=True)
        item.id = self._next_id
        self._next_id += 1
        self.items[item.id] = item
        return item.model_copy(deep=True)

    async def get_item(self, item_id):
        await asyncio.sleep(0)
        item = self.items.get(item_id)
        return item.model_copy(deep=True) if item else None

    async def get_item_by_code(self, item_code):
        for item in self.items.values():
            if item.item_code == item_code:
                return item.model_copy(deep=True)
        return None

    async def save_item(self, item):
        await asyncio.sleep(0)
        stored = self.items[item.id]
        if stored.version != item.version:
            raise ConcurrencyConflictError(item.id, item.version)
        item.version += 1
        self.items[item.id] = item.model_copy(deep=True)
        return item

    async def commit_movement(self, item, movement):
        item = await self.save_item(item)
        movement = await self.append_movement(movement)
        return item, movement

    @staticmethod
    def _matches(item, f):
        search = (f.search or "").lower()
        return (
            (f.farm_id is None or item.farm_id == f.farm_id)
            and (f.category is None or item.category == f.category)
            and (f.status is None or item.status == f.status)
            and (not search or search in item.item_name.lower() or search in item.item_code.lower())
            and (not f.low_stock or item.current_stock <= item.minimum_stock)
            and (
                f.expired_before is None
                or (item.expiration_date is not None and item.expiration_date < f.expired_before)
            )
        )

    async def query_items(self, item_filter=None, limit=100, offset=0):
        item_filter = item_filter or ItemFilter()
        items = [
            i.model_copy(deep=True)
            for i in sorted(self.items.values(), key=lambda i: i.id)
            if self._matches(i, item_filter)
        ]
        return items[offset : offset + limit]

    async def count_items(self, item_filter=None):
        return len(await self.query_items(item_filter, limit=10_000))

    async def append_movement(self, movement):
        movement = movement.model_copy(deep=True)
        movement.id = len(self.movements) + 1
        self.movements.append(movement)
        return movement

    async def query_movements(self, movement_filter=None, limit=1000, offset=0):
        f = movement_filter or MovementFilter()
        result = [
            m
            for m in sorted(self.movements, key=lambda m: (m.movement_date, m.id))
            if (f.inventory_item_id is None or m.inventory_item_id == f.inventory_item_id)
            and (not f.movement_types or m.movement_type in f.movement_types)
            and (f.since is None or m.movement_date >= f.since)
            and (f.until is None or m.movement_date <= f.until)
        ]
        return result[offset : offset + limit]


class FakeAlertStore(IAlertStore):
    def __init__(self):
        self.alerts: dict[int, Alert] = {}

    async def create(self, alert):
        alert = alert.model_copy(deep=True)
        alert.id = len(self.alerts) + 1
        self.alerts[alert.id] = alert
        return alert.model_copy(deep=True)

    async def update(self, alert):
        self.alerts[alert.id] = alert.model_copy(deep=True)
        return alert

    async def get(self, alert_id):
        alert = self.alerts.get(alert_id)
        return alert.model_copy(deep=True) if alert else None

    async def find_open(self, item_id, alert_type: AlertType):
        for alert in self.alerts.values():
            if (
                alert.inventory_item_id == item_id
                and alert.alert_type == alert_type
                and alert.state != AlertState.RESOLVED
            ):
                return alert.model_copy(deep=True)
        return None

    async def list_open(self, item_id=None, farm_id=None, limit=500):
        return [
            a.model_copy(deep=True)
            for a in self.alerts.values()
            if a.is_open
            and (item_id is None or a.inventory_item_id == item_id)
            and (farm_id is None or a.farm_id == farm_id)
        ][:limit]


class FakePurchaseOrderStore(IPurchaseOrderStore):
    def __init__(self):
        self.orders: dict[int, PurchaseOrder] = {}

    async def create(self, order):
        order = order.model_copy(deep=True)
        order.id = len(self.orders) + 1
        self.orders[order.id] = order
        return order

    async def get(self, order_id):
        return self.orders.get(order_id)

    async def find_open_for_item(self, item_id):
        for order in self.orders.values():
            if order.is_open and any(l.inventory_item_id == item_id for l in order.lines):
                return order
        return None


class RecordingSink(INotificationSink):
    def __init__(self):
        self.alerts: list[Alert] = []
        self.orders: list[PurchaseOrder] = []

    async def send_alert(self, alert):
        self.alerts.append(alert)

    async def send_purchase_order(self, order):
        self.orders.append(order)


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    """Default settings with a throwaway data directory."""
    return Settings(storage=StorageSettings(data_dir=tmp_path / "data"))


@pytest.fixture
def now() -> datetime:
    """The instant every FixedClock in the suite reports."""
    return NOW


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(NOW)


@pytest.fixture
def make_item():
    """Factory for inventory items with sensible defaults."""

    def _make(**overrides) -> InventoryItem:
        data = {
            "item_code": "FEED-001",
            "item_name": "Cattle Feed",
            "category": InventoryCategory.FEED,
            "farm_id": "farm-1",
            "current_stock": Decimal("0"),
            "minimum_stock": Decimal("0"),
            "unit_cost": Decimal("0"),
        }
        data.update(overrides)
        for key in (
            "current_stock",
            "reserved_stock",
            "minimum_stock",
            "maximum_stock",
            "reorder_point",
            "reorder_quantity",
            "unit_cost",
        ):
            if isinstance(data.get(key), int | float | str):
                data[key] = Decimal(str(data[key]))
        return InventoryItem(**data)

    return _make


@pytest.fixture
def inventory_store() -> FakeInventoryStore:
    return FakeInventoryStore()


@pytest.fixture
def alert_store() -> FakeAlertStore:
    return FakeAlertStore()


@pytest.fixture
def order_store() -> FakePurchaseOrderStore:
    return FakePurchaseOrderStore()


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
async def sqlite_db(tmp_path: Path):
    """
    Migrated temporary database wired into the global connection pool.

    Yields the database path while get_settings() in the connection
    module points at it.
    """
    import ranch_inventory.infrastructure.storage.sqlite.connection as conn_module
    from ranch_inventory.infrastructure.storage.sqlite.migrations import initialize_database

    db_path = tmp_path / "test_inventory.db"
    await initialize_database(db_path, create_backup_before=False)

    conn_module._pool = None
    mock_settings = MagicMock()
    mock_settings.storage.db_path = db_path
    mock_settings.storage.pool_size = 2
    mock_settings.storage.busy_timeout = 5000

    with patch.object(conn_module, "get_settings", return_value=mock_settings):
        try:
            yield db_path
        finally:
            await conn_module.close_pool()
