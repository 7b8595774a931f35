"""Tests for SQLiteInventoryStore."""

from datetime import timedelta
from decimal import Decimal

import pytest

from ranch_inventory.core.entities import (
    InventoryCategory,
    MovementType,
    StockMovement,
    StockStatus,
    SupplierInfo,
)
from ranch_inventory.core.exceptions import ConcurrencyConflictError, DuplicateItemCodeError
from ranch_inventory.core.interfaces import ItemFilter, MovementFilter


def _movement(item_id, movement_type, quantity, balance_after, when, unit_cost=None):
    return StockMovement(
        inventory_item_id=item_id,
        movement_type=movement_type,
        quantity=Decimal(str(quantity)),
        unit_cost=Decimal(str(unit_cost)) if unit_cost is not None else None,
        balance_after=Decimal(str(balance_after)),
        performed_by="u1",
        movement_date=when,
        created_at=when,
    )


class TestItems:
    """Tests for item persistence."""

    async def test_create_and_get_round_trip(self, sqlite_inventory_store, make_item, now):
        item = make_item(
            current_stock="12.5",
            reserved_stock="2.5",
            minimum_stock=5,
            maximum_stock=100,
            unit_cost="8.333333",
            expiration_date=now + timedelta(days=30),
            status=StockStatus.IN_STOCK,
            supplier=SupplierInfo(
                supplier_id="s1",
                supplier_name="Feed Co",
                minimum_order_quantity=Decimal("25"),
                lead_time_days=4,
            ),
        )

        created = await sqlite_inventory_store.create_item(item)
        loaded = await sqlite_inventory_store.get_item(created.id)

        assert loaded.item_code == "FEED-001"
        assert loaded.current_stock == Decimal("12.5")
        assert loaded.available_stock == Decimal("10.0")
        assert loaded.unit_cost == Decimal("8.333333")
        assert loaded.maximum_stock == Decimal("100")
        assert loaded.expiration_date == now + timedelta(days=30)
        assert loaded.status == StockStatus.IN_STOCK
        assert loaded.supplier.minimum_order_quantity == Decimal("25")
        assert loaded.supplier.lead_time_days == 4
        assert loaded.version == 0

    async def test_get_missing(self, sqlite_inventory_store):
        assert await sqlite_inventory_store.get_item(404) is None
        assert await sqlite_inventory_store.get_item_by_code("NOPE-1") is None

    async def test_duplicate_code(self, sqlite_inventory_store, make_item):
        await sqlite_inventory_store.create_item(make_item())
        with pytest.raises(DuplicateItemCodeError):
            await sqlite_inventory_store.create_item(make_item())

    async def test_get_by_code(self, sqlite_inventory_store, make_item):
        created = await sqlite_inventory_store.create_item(make_item(item_code="VAC-042"))
        found = await sqlite_inventory_store.get_item_by_code("VAC-042")
        assert found.id == created.id

    async def test_save_bumps_version(self, sqlite_inventory_store, make_item):
        created = await sqlite_inventory_store.create_item(make_item(current_stock=10))
        created.current_stock = Decimal("7")

        saved = await sqlite_inventory_store.save_item(created)
        loaded = await sqlite_inventory_store.get_item(created.id)

        assert saved.version == 1
        assert loaded.version == 1
        assert loaded.current_stock == Decimal("7")

    async def test_stale_version_conflicts(self, sqlite_inventory_store, make_item):
        created = await sqlite_inventory_store.create_item(make_item(current_stock=10))
        first = await sqlite_inventory_store.get_item(created.id)
        second = await sqlite_inventory_store.get_item(created.id)

        first.current_stock = Decimal("5")
        await sqlite_inventory_store.save_item(first)

        second.current_stock = Decimal("3")
        with pytest.raises(ConcurrencyConflictError):
            await sqlite_inventory_store.save_item(second)
        assert (await sqlite_inventory_store.get_item(created.id)).current_stock == Decimal("5")

    async def test_query_filters(self, sqlite_inventory_store, make_item, now):
        await sqlite_inventory_store.create_item(
            make_item(item_code="FEED-001", farm_id="farm-1", current_stock=5, minimum_stock=10)
        )
        await sqlite_inventory_store.create_item(
            make_item(
                item_code="MED-001",
                item_name="Penicillin",
                category=InventoryCategory.MEDICATION,
                farm_id="farm-1",
                current_stock=50,
                expiration_date=now - timedelta(days=1),
            )
        )
        await sqlite_inventory_store.create_item(make_item(item_code="FEED-002", farm_id="farm-2"))

        store = sqlite_inventory_store
        assert len(await store.query_items(ItemFilter(farm_id="farm-1"))) == 2
        assert await store.count_items() == 3
        assert await store.count_items(ItemFilter(category=InventoryCategory.MEDICATION)) == 1
        assert [i.item_code for i in await store.query_items(ItemFilter(search="penic"))] == ["MED-001"]
        low = await store.query_items(ItemFilter(low_stock=True))
        assert "FEED-001" in [i.item_code for i in low]
        expired = await store.query_items(ItemFilter(expired_before=now))
        assert [i.item_code for i in expired] == ["MED-001"]

    async def test_query_pagination(self, sqlite_inventory_store, make_item):
        for n in range(5):
            await sqlite_inventory_store.create_item(make_item(item_code=f"ITEM-{n:03d}"))

        page = await sqlite_inventory_store.query_items(limit=2, offset=2)

        assert [i.item_code for i in page] == ["ITEM-002", "ITEM-003"]


class TestMovements:
    async def test_commit_movement_is_atomic(self, sqlite_inventory_store, make_item, now):
        created = await sqlite_inventory_store.create_item(make_item(current_stock=10))
        stale = await sqlite_inventory_store.get_item(created.id)

        created.current_stock = Decimal("4")
        item, movement = await sqlite_inventory_store.commit_movement(
            created, _movement(created.id, MovementType.USE, -6, 4, now)
        )
        assert item.version == 1
        assert movement.id is not None

        stale.current_stock = Decimal("0")
        with pytest.raises(ConcurrencyConflictError):
            await sqlite_inventory_store.commit_movement(
                stale, _movement(created.id, MovementType.USE, -10, 0, now)
            )

        movements = await sqlite_inventory_store.query_movements(
            MovementFilter(inventory_item_id=created.id)
        )
        assert [m.quantity for m in movements] == [Decimal("-6")]

    async def test_query_movements_by_window_and_type(self, sqlite_inventory_store, make_item, now):
        created = await sqlite_inventory_store.create_item(make_item(current_stock=10))
        store = sqlite_inventory_store
        await store.append_movement(_movement(created.id, MovementType.PURCHASE, 10, 10, now - timedelta(days=40), 5))
        await store.append_movement(_movement(created.id, MovementType.USE, -2, 8, now - timedelta(days=3)))
        await store.append_movement(_movement(created.id, MovementType.PURCHASE, 4, 12, now - timedelta(days=1), 6))

        recent = await store.query_movements(MovementFilter(since=now - timedelta(days=30)))
        purchases = await store.query_movements(
            MovementFilter(movement_types=[MovementType.PURCHASE])
        )

        assert [m.movement_type for m in recent] == [MovementType.USE, MovementType.PURCHASE]
        assert [m.unit_cost for m in purchases] == [Decimal("5"), Decimal("6")]
        assert purchases[0].movement_date == now - timedelta(days=40)
