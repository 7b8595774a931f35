"""Integration tests: ledger, alerts, reorders and reports over SQLite."""

import asyncio
from datetime import timedelta
from decimal import Decimal

import pytest

from ranch_inventory.application.dto.requests import (
    ListItemsRequest,
    RecordMovementRequest,
    RegisterItemRequest,
    ReservationRequest,
)
from ranch_inventory.application.use_cases import (
    GenerateInventoryReportUseCase,
    ListInventoryUseCase,
    RecordMovementUseCase,
    RegisterItemUseCase,
    ReserveStockUseCase,
    RunAlertSweepUseCase,
)
from ranch_inventory.core.entities import (
    AlertPriority,
    AlertType,
    InventoryCategory,
    MovementType,
    PurchaseOrderStatus,
    StockStatus,
    ValuationMethod,
)
from ranch_inventory.core.exceptions import InsufficientAvailableStockError
from ranch_inventory.core.interfaces import MovementFilter
from ranch_inventory.core.services import (
    AlertEngineService,
    AutoReorderService,
    InventoryAnalysisService,
    StockLedgerService,
)
from ranch_inventory.infrastructure.storage.sqlite import (
    SQLiteAlertStore,
    SQLiteInventoryStore,
    SQLitePurchaseOrderStore,
)


@pytest.fixture
def stack(sqlite_db, sink, clock, settings):
    """Services wired to SQLite stores and a recording sink."""
    inventory_store = SQLiteInventoryStore()
    alert_store = SQLiteAlertStore()
    order_store = SQLitePurchaseOrderStore()
    alert_engine = AlertEngineService(inventory_store, alert_store, sink, clock, settings)
    auto_reorder = AutoReorderService(order_store, sink, clock, settings)
    ledger = StockLedgerService(inventory_store, alert_engine, auto_reorder, clock, settings)

    class Stack:
        pass

    s = Stack()
    s.inventory_store = inventory_store
    s.alert_store = alert_store
    s.order_store = order_store
    s.alert_engine = alert_engine
    s.ledger = ledger
    s.analysis = InventoryAnalysisService(inventory_store, clock, settings)
    return s


async def _register_feed(stack, **overrides):
    data = {
        "item_code": "FEED-001",
        "item_name": "Cattle Feed",
        "category": InventoryCategory.FEED,
        "farm_id": "farm-1",
        "minimum_stock": Decimal("20"),
        "maximum_stock": Decimal("200"),
        "reorder_point": Decimal("20"),
        "reorder_quantity": Decimal("50"),
    }
    data.update(overrides)
    return await RegisterItemUseCase(stack.ledger).execute(RegisterItemRequest(**data), "admin")


async def _move(stack, item_id, movement_type, quantity, unit_cost=None):
    request = RecordMovementRequest(
        item_id=item_id,
        movement_type=movement_type,
        quantity=Decimal(str(quantity)),
        unit_cost=Decimal(str(unit_cost)) if unit_cost is not None else None,
    )
    return await RecordMovementUseCase(stack.ledger).execute(request, "u1")


class TestStockFlow:
    """Purchase, sell, reserve: stock, alerts and reorders stay consistent."""

    async def test_purchase_sell_alert_and_reorder(self, stack, sink):
        item = await _register_feed(stack)

        await _move(stack, item.id, MovementType.PURCHASE, 100, 10)
        result = await _move(stack, item.id, MovementType.SALE, 85)

        assert result.reorder_error is None
        assert result.item.current_stock == Decimal("15")
        assert result.item.status == StockStatus.LOW_STOCK

        stored = await stack.inventory_store.get_item(item.id)
        assert stored.current_stock == Decimal("15")
        assert stored.version == result.item.version

        [alert] = await stack.alert_store.list_open(item_id=item.id)
        assert alert.alert_type == AlertType.LOW_STOCK
        assert alert.priority == AlertPriority.HIGH
        assert alert.notification_sent

        order = await stack.order_store.find_open_for_item(item.id)
        assert order.status == PurchaseOrderStatus.DRAFT
        assert order.lines[0].quantity_ordered == Decimal("185")
        assert [o.id for o in sink.orders] == [order.id]

    async def test_one_reorder_while_order_open(self, stack, sink):
        item = await _register_feed(stack)
        await _move(stack, item.id, MovementType.PURCHASE, 100, 10)

        await _move(stack, item.id, MovementType.SALE, 85)
        await _move(stack, item.id, MovementType.SALE, 5)

        assert len(sink.orders) == 1

    async def test_restock_resolves_low_stock(self, stack):
        item = await _register_feed(stack)
        await _move(stack, item.id, MovementType.PURCHASE, 10, 10)
        assert await stack.alert_store.find_open(item.id, AlertType.LOW_STOCK) is not None

        await _move(stack, item.id, MovementType.PURCHASE, 100, 10)

        assert await stack.alert_store.find_open(item.id, AlertType.LOW_STOCK) is None

    async def test_movement_history(self, stack):
        item = await _register_feed(stack)
        await _move(stack, item.id, MovementType.PURCHASE, 10, 10)
        await _move(stack, item.id, MovementType.PURCHASE, 50, 8)

        movements = await stack.inventory_store.query_movements(
            MovementFilter(inventory_item_id=item.id)
        )
        stored = await stack.inventory_store.get_item(item.id)

        assert [m.balance_after for m in movements] == [Decimal("10"), Decimal("60")]
        assert stored.unit_cost.quantize(Decimal("0.01")) == Decimal("8.33")


class TestReservationsAndReorders:
    async def test_hold_below_reorder_point_creates_no_order(self, stack, settings):
        item = await _register_feed(stack)
        settings.inventory.auto_reorder_enabled = False
        await _move(stack, item.id, MovementType.PURCHASE, 10, 1)
        settings.inventory.auto_reorder_enabled = True

        held = await ReserveStockUseCase(stack.ledger).execute(
            ReservationRequest(item_id=item.id, quantity=Decimal("1")), "u1"
        )

        assert held.reserved_stock == Decimal("1")
        assert await stack.order_store.find_open_for_item(item.id) is None

        await _move(stack, item.id, MovementType.USE, 1)
        assert await stack.order_store.find_open_for_item(item.id) is not None


class TestListing:
    async def test_low_stock_page(self, stack, clock):
        feed = await _register_feed(stack)
        starter = await _register_feed(stack, item_code="FEED-002", item_name="Calf Starter")
        await _move(stack, feed.id, MovementType.PURCHASE, 100, 1)
        await _move(stack, starter.id, MovementType.PURCHASE, 5, 1)
        use_case = ListInventoryUseCase(stack.inventory_store, clock)

        low = await use_case.execute(ListItemsRequest(farm_id="farm-1", low_stock=True))
        everything = await use_case.execute(ListItemsRequest(farm_id="farm-1", limit=1))

        assert [i.item_code for i in low.items] == ["FEED-002"]
        assert low.total == 1
        assert everything.total == 2
        assert everything.pages == 2
        assert everything.has_next is True


class TestConcurrentReservations:
    async def test_shared_ledger(self, stack):
        item = await _register_feed(stack, minimum_stock=Decimal("0"), reorder_point=Decimal("0"))
        await _move(stack, item.id, MovementType.PURCHASE, 10, 1)
        use_case = ReserveStockUseCase(stack.ledger)

        results = await asyncio.gather(
            use_case.execute(ReservationRequest(item_id=item.id, quantity=Decimal("8")), "a"),
            use_case.execute(ReservationRequest(item_id=item.id, quantity=Decimal("8")), "b"),
            return_exceptions=True,
        )

        assert sum(isinstance(r, InsufficientAvailableStockError) for r in results) == 1
        stored = await stack.inventory_store.get_item(item.id)
        assert stored.reserved_stock == Decimal("8")
        assert stored.available_stock == Decimal("2")

    async def test_independent_ledgers(self, stack, clock, settings):
        item = await _register_feed(stack, minimum_stock=Decimal("0"), reorder_point=Decimal("0"))
        await _move(stack, item.id, MovementType.PURCHASE, 10, 1)
        other = StockLedgerService(stack.inventory_store, clock=clock, settings=settings)

        results = await asyncio.gather(
            stack.ledger.reserve(item.id, Decimal("8"), "A", "a"),
            other.reserve(item.id, Decimal("8"), "B", "b"),
            return_exceptions=True,
        )

        assert sum(isinstance(r, InsufficientAvailableStockError) for r in results) == 1
        stored = await stack.inventory_store.get_item(item.id)
        assert stored.reserved_stock == Decimal("8")
        reservations = await stack.inventory_store.query_movements(
            MovementFilter(inventory_item_id=item.id, movement_types=[MovementType.RESERVATION])
        )
        assert len(reservations) == 1


class TestSweepAndReport:
    async def test_sweep_raises_date_driven_alerts(self, stack, clock, now):
        item = await _register_feed(
            stack,
            minimum_stock=Decimal("0"),
            maximum_stock=None,
            reorder_point=Decimal("0"),
            expiration_date=now + timedelta(days=3),
        )

        result = await RunAlertSweepUseCase(stack.alert_engine).execute(farm_id="farm-1")

        assert result.items_scanned == 1
        types = {a.alert_type: a.priority for a in await stack.alert_store.list_open(item_id=item.id)}
        assert types == {
            AlertType.LOW_STOCK: AlertPriority.CRITICAL,
            AlertType.EXPIRING_SOON: AlertPriority.HIGH,
        }

        clock.instant = now + timedelta(days=4)
        await RunAlertSweepUseCase(stack.alert_engine).execute()

        open_types = {a.alert_type for a in await stack.alert_store.list_open(item_id=item.id)}
        assert open_types == {AlertType.LOW_STOCK, AlertType.EXPIRED}

    async def test_report(self, stack):
        item = await _register_feed(stack)
        await _move(stack, item.id, MovementType.PURCHASE, 10, 10)
        await _move(stack, item.id, MovementType.PURCHASE, 50, 8)
        await _move(stack, item.id, MovementType.USE, 30)

        report = await GenerateInventoryReportUseCase(stack.analysis).execute(
            farm_id="farm-1", method=ValuationMethod.FIFO
        )

        assert report.valuation.total_items == 1
        assert report.valuation.total_value == Decimal("240.00")
        [abc] = report.analysis.abc_analysis
        assert abc.period_usage == Decimal("30")
        assert report.to_dict()["valuation"]["valuation_method"] == "FIFO"
