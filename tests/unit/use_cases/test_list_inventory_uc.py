"""Unit tests for ListInventoryUseCase."""

from datetime import timedelta

import pytest
from pydantic import ValidationError

from ranch_inventory.application.dto.requests import ListItemsRequest
from ranch_inventory.application.use_cases.list_inventory import (
    InventoryPage,
    ListInventoryUseCase,
)
from ranch_inventory.core.entities import InventoryCategory, StockStatus


@pytest.fixture
async def stocked_items(inventory_store, make_item, now):
    """Five items across two farms: one low, one expired."""
    specs = [
        ("FEED-001", "Cattle Feed", InventoryCategory.FEED, "farm-1", 100, 20, None),
        ("FEED-002", "Calf Starter", InventoryCategory.FEED, "farm-1", 10, 20, None),
        ("MED-001", "Penicillin", InventoryCategory.MEDICATION, "farm-1", 5, 2, now - timedelta(days=1)),
        ("MED-002", "Ivermectin", InventoryCategory.MEDICATION, "farm-1", 50, 10, now + timedelta(days=90)),
        ("SUP-001", "Ear Tags", InventoryCategory.SUPPLIES, "farm-2", 300, 50, None),
    ]
    created = []
    for code, name, category, farm, stock, minimum, expires in specs:
        status = StockStatus.LOW_STOCK if stock <= minimum else StockStatus.IN_STOCK
        created.append(
            await inventory_store.create_item(
                make_item(
                    item_code=code,
                    item_name=name,
                    category=category,
                    farm_id=farm,
                    current_stock=stock,
                    minimum_stock=minimum,
                    expiration_date=expires,
                    status=status,
                )
            )
        )
    return created


@pytest.fixture
def use_case(inventory_store, clock):
    return ListInventoryUseCase(inventory_store, clock)


class TestListInventoryUseCase:
    async def test_first_page_metadata(self, use_case, stocked_items):
        page = await use_case.execute(ListItemsRequest(page=1, limit=2))

        assert [i.item_code for i in page.items] == ["FEED-001", "FEED-002"]
        assert page.total == 5
        assert page.pages == 3
        assert page.has_next is True
        assert page.has_prev is False

    async def test_last_page(self, use_case, stocked_items):
        page = await use_case.execute(ListItemsRequest(page=3, limit=2))

        assert [i.item_code for i in page.items] == ["SUP-001"]
        assert page.has_next is False
        assert page.has_prev is True

    async def test_page_past_the_end(self, use_case, stocked_items):
        page = await use_case.execute(ListItemsRequest(page=9, limit=2))

        assert page.items == []
        assert page.total == 5
        assert page.has_next is False

    async def test_farm_and_category(self, use_case, stocked_items):
        page = await use_case.execute(
            ListItemsRequest(farm_id="farm-1", category=InventoryCategory.MEDICATION)
        )
        assert [i.item_code for i in page.items] == ["MED-001", "MED-002"]
        assert page.total == 2

    async def test_low_stock(self, use_case, stocked_items):
        page = await use_case.execute(ListItemsRequest(low_stock=True))
        assert [i.item_code for i in page.items] == ["FEED-002"]

    async def test_status(self, use_case, stocked_items):
        page = await use_case.execute(ListItemsRequest(status=StockStatus.LOW_STOCK))
        assert [i.item_code for i in page.items] == ["FEED-002"]

    async def test_expired_uses_clock(self, use_case, stocked_items):
        page = await use_case.execute(ListItemsRequest(expired=True))
        assert [i.item_code for i in page.items] == ["MED-001"]

    async def test_search_matches_name_or_code(self, use_case, stocked_items):
        by_name = await use_case.execute(ListItemsRequest(search="penic"))
        by_code = await use_case.execute(ListItemsRequest(search="sup-"))

        assert [i.item_code for i in by_name.items] == ["MED-001"]
        assert [i.item_code for i in by_code.items] == ["SUP-001"]

    async def test_empty_inventory(self, use_case):
        page = await use_case.execute(ListItemsRequest())

        assert page.total == 0
        assert page.pages == 0
        assert page.has_next is False


class TestInventoryPage:
    def test_to_dict(self, make_item):
        item = make_item(id=1, current_stock=10, reserved_stock=4, unit_cost=2)
        data = InventoryPage(items=[item], total=51, page=2, limit=50).to_dict()

        assert data["items"][0]["available_stock"] == "6"
        assert data["items"][0]["total_value"] == "20"
        assert data["pages"] == 2
        assert data["has_next"] is False
        assert data["has_prev"] is True


class TestListItemsRequest:
    def test_defaults(self, now):
        request = ListItemsRequest()

        assert request.page == 1
        assert request.limit == 50
        assert request.offset == 0
        assert request.to_filter(now).expired_before is None

    def test_offset(self):
        assert ListItemsRequest(page=3, limit=20).offset == 40

    @pytest.mark.parametrize("field,value", [("page", 0), ("limit", 0), ("limit", 501)])
    def test_bounds(self, field, value):
        with pytest.raises(ValidationError):
            ListItemsRequest(**{field: value})
