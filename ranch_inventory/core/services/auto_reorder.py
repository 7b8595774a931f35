"""
Automatic reorder trigger.

Creates a draft purchase order when an item falls to its reorder point,
unless an order for the item is already open.
"""

import asyncio
import uuid
from datetime import datetime, timedelta
from decimal import Decimal

from ranch_inventory.config import get_logger, get_settings
from ranch_inventory.config.settings import Settings
from ranch_inventory.core.entities.inventory import InventoryItem, utcnow
from ranch_inventory.core.entities.purchase_order import (
    PurchaseOrder,
    PurchaseOrderLine,
    PurchaseOrderStatus,
)
from ranch_inventory.core.exceptions import ReorderCreationError
from ranch_inventory.core.interfaces.notification import IClock, INotificationSink
from ranch_inventory.core.interfaces.purchase_order_store import IPurchaseOrderStore

logger = get_logger(__name__)


class AutoReorderService:
    """Turns reorder-point crossings into draft purchase orders."""

    def __init__(
        self,
        purchase_order_store: IPurchaseOrderStore,
        notification_sink: INotificationSink | None = None,
        clock: IClock | None = None,
        settings: Settings | None = None,
    ):
        self._order_store = purchase_order_store
        self._sink = notification_sink
        self._clock = clock
        self._settings = settings or get_settings()

    def _now(self) -> datetime:
        return self._clock.now() if self._clock else utcnow()

    def calculate_order_quantity(self, item: InventoryItem) -> Decimal:
        """
        Quantity to order for an item.

        The largest of the configured reorder quantity, the gap up to the
        maximum stock (or a multiple of the minimum when no maximum is set),
        and the supplier's minimum order quantity.
        """
        config = self._settings.inventory
        target = item.maximum_stock or item.minimum_stock * config.reorder_fallback_multiplier
        supplier_minimum = Decimal("1")
        if item.supplier and item.supplier.minimum_order_quantity:
            supplier_minimum = item.supplier.minimum_order_quantity
        return max(item.reorder_quantity, target - item.current_stock, supplier_minimum)

    async def check_item(self, item: InventoryItem, user_id: str = "system") -> PurchaseOrder | None:
        """
        Create a reorder if the item needs one.

        Returns:
            The created order, or None when no order was needed

        Raises:
            ReorderCreationError: the order could not be created
        """
        if not self._settings.inventory.auto_reorder_enabled:
            return None
        if not item.needs_reorder:
            return None

        try:
            open_order = await self._order_store.find_open_for_item(item.id)
        except Exception as e:
            raise ReorderCreationError(item.id, f"Open order lookup failed: {e}") from e

        if open_order is not None:
            logger.info(
                "auto_reorder_skipped_open_order",
                item_id=item.id,
                order_id=open_order.id,
                order_number=open_order.order_number,
            )
            return None

        return await self.create_reorder(item, user_id)

    async def create_reorder(self, item: InventoryItem, user_id: str = "system") -> PurchaseOrder:
        """Create a draft purchase order for one item."""
        config = self._settings.inventory
        now = self._now()

        supplier_id = config.default_supplier_id
        supplier_name = config.default_supplier_name
        lead_time_days = config.default_lead_time_days
        if item.supplier is not None:
            supplier_id = item.supplier.supplier_id
            supplier_name = item.supplier.supplier_name
            if item.supplier.lead_time_days is not None:
                lead_time_days = item.supplier.lead_time_days

        quantity = self.calculate_order_quantity(item)
        line_total = quantity * item.unit_cost

        order = PurchaseOrder(
            order_number=f"PO{now:%y%m%d}-{uuid.uuid4().hex[:6].upper()}",
            supplier_id=supplier_id,
            supplier_name=supplier_name,
            farm_id=item.farm_id,
            status=PurchaseOrderStatus.DRAFT,
            order_date=now,
            expected_delivery_date=now + timedelta(days=lead_time_days),
            lines=[
                PurchaseOrderLine(
                    inventory_item_id=item.id,
                    item_name=item.item_name,
                    quantity_ordered=quantity,
                    unit_cost=item.unit_cost,
                    total_cost=line_total,
                )
            ],
            subtotal=line_total,
            total=line_total,
            currency=item.currency or config.default_currency,
            created_by=user_id,
            notes=(
                f"Automatic reorder: stock {item.current_stock} at or below "
                f"reorder point {item.reorder_point}"
            ),
            created_at=now,
            updated_at=now,
        )

        try:
            created = await self._order_store.create(order)
        except Exception as e:
            logger.error("auto_reorder_failed", item_id=item.id, error=str(e))
            raise ReorderCreationError(item.id, str(e)) from e

        logger.info(
            "auto_reorder_created",
            item_id=item.id,
            order_id=created.id,
            order_number=created.order_number,
            quantity=str(quantity),
            supplier_id=supplier_id,
        )

        await self._notify(created)
        return created

    async def _notify(self, order: PurchaseOrder) -> None:
        if self._sink is None:
            return
        try:
            await asyncio.wait_for(
                self._sink.send_purchase_order(order),
                timeout=self._settings.notifications.timeout,
            )
        except Exception:
            logger.warning(
                "purchase_order_notification_failed",
                order_id=order.id,
                exc_info=True,
            )
