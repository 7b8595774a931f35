"""SQLite implementation of purchase order storage."""

from decimal import Decimal

import aiosqlite

from ranch_inventory.config import get_logger
from ranch_inventory.core.entities.purchase_order import (
    OPEN_ORDER_STATUSES,
    PurchaseOrder,
    PurchaseOrderLine,
    PurchaseOrderStatus,
)
from ranch_inventory.core.interfaces.purchase_order_store import IPurchaseOrderStore
from ranch_inventory.infrastructure.storage.sqlite.columns import dt_from_db, dt_to_db
from ranch_inventory.infrastructure.storage.sqlite.connection import (
    get_connection,
    get_transaction,
)

logger = get_logger(__name__)


class SQLitePurchaseOrderStore(IPurchaseOrderStore):
    """Purchase orders and their lines."""

    async def create(self, order: PurchaseOrder) -> PurchaseOrder:
        """Create a purchase order with its lines."""
        async with get_transaction() as conn:
            cursor = await conn.execute(
                """
                INSERT INTO purchase_orders (
                    order_number, supplier_id, supplier_name, farm_id, status,
                    order_date, expected_delivery_date, subtotal, total, currency,
                    created_by, notes, created_at, updated_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    order.order_number,
                    order.supplier_id,
                    order.supplier_name,
                    order.farm_id,
                    order.status.value,
                    dt_to_db(order.order_date),
                    dt_to_db(order.expected_delivery_date),
                    str(order.subtotal),
                    str(order.total),
                    order.currency,
                    order.created_by,
                    order.notes,
                    dt_to_db(order.created_at),
                    dt_to_db(order.updated_at),
                ),
            )
            order.id = cursor.lastrowid

            await conn.executemany(
                """
                INSERT INTO purchase_order_lines (
                    purchase_order_id, inventory_item_id, item_name,
                    quantity_ordered, quantity_received, unit_cost, total_cost
                ) VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                [
                    (
                        order.id,
                        line.inventory_item_id,
                        line.item_name,
                        str(line.quantity_ordered),
                        str(line.quantity_received),
                        str(line.unit_cost),
                        str(line.total_cost),
                    )
                    for line in order.lines
                ],
            )

        logger.info(
            "purchase_order_created",
            order_id=order.id,
            order_number=order.order_number,
            lines=len(order.lines),
        )
        return order

    async def get(self, order_id: int) -> PurchaseOrder | None:
        """Get purchase order by ID."""
        async with get_connection() as conn:
            cursor = await conn.execute(
                "SELECT * FROM purchase_orders WHERE id = ?", (order_id,)
            )
            row = await cursor.fetchone()
            if row is None:
                return None
            return await self._load(conn, row)

    async def find_open_for_item(self, item_id: int) -> PurchaseOrder | None:
        """Get a not yet completed or cancelled order containing the item."""
        statuses = sorted(s.value for s in OPEN_ORDER_STATUSES)
        marks = ", ".join("?" for _ in statuses)
        async with get_connection() as conn:
            cursor = await conn.execute(
                f"""
                SELECT po.* FROM purchase_orders po
                JOIN purchase_order_lines pol ON pol.purchase_order_id = po.id
                WHERE pol.inventory_item_id = ? AND po.status IN ({marks})
                ORDER BY po.id DESC
                LIMIT 1
                """,
                (item_id, *statuses),
            )
            row = await cursor.fetchone()
            if row is None:
                return None
            return await self._load(conn, row)

    async def _load(self, conn: aiosqlite.Connection, row: aiosqlite.Row) -> PurchaseOrder:
        cursor = await conn.execute(
            "SELECT * FROM purchase_order_lines WHERE purchase_order_id = ? ORDER BY id",
            (row["id"],),
        )
        lines = [self._row_to_line(line) for line in await cursor.fetchall()]
        return self._row_to_order(row, lines)

    @staticmethod
    def _row_to_line(row: aiosqlite.Row) -> PurchaseOrderLine:
        return PurchaseOrderLine(
            inventory_item_id=row["inventory_item_id"],
            item_name=row["item_name"],
            quantity_ordered=Decimal(row["quantity_ordered"]),
            quantity_received=Decimal(row["quantity_received"]),
            unit_cost=Decimal(row["unit_cost"]),
            total_cost=Decimal(row["total_cost"]),
        )

    @staticmethod
    def _row_to_order(row: aiosqlite.Row, lines: list[PurchaseOrderLine]) -> PurchaseOrder:
        return PurchaseOrder(
            id=row["id"],
            order_number=row["order_number"],
            supplier_id=row["supplier_id"],
            supplier_name=row["supplier_name"],
            farm_id=row["farm_id"],
            status=PurchaseOrderStatus(row["status"]),
            order_date=dt_from_db(row["order_date"]),
            expected_delivery_date=dt_from_db(row["expected_delivery_date"]),
            lines=lines,
            subtotal=Decimal(row["subtotal"]),
            total=Decimal(row["total"]),
            currency=row["currency"],
            created_by=row["created_by"],
            notes=row["notes"],
            created_at=dt_from_db(row["created_at"]),
            updated_at=dt_from_db(row["updated_at"]),
        )
