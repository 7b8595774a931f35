"""SQLite implementation of inventory storage."""

from decimal import Decimal
from typing import Any

import aiosqlite

from ranch_inventory.config import get_logger
from ranch_inventory.core.entities.inventory import (
    InventoryCategory,
    InventoryItem,
    MovementType,
    StockMovement,
    StockStatus,
    SupplierInfo,
    UnitOfMeasure,
)
from ranch_inventory.core.exceptions import (
    ConcurrencyConflictError,
    DatabaseError,
    DuplicateItemCodeError,
)
from ranch_inventory.core.interfaces.inventory_store import (
    IInventoryStore,
    ItemFilter,
    MovementFilter,
)
from ranch_inventory.infrastructure.storage.sqlite.columns import (
    dec_from_db,
    dec_to_db,
    dt_from_db,
    dt_to_db,
)
from ranch_inventory.infrastructure.storage.sqlite.connection import (
    get_connection,
    get_transaction,
)

logger = get_logger(__name__)

_ITEM_COLUMNS = (
    "item_code",
    "item_name",
    "category",
    "unit_of_measure",
    "farm_id",
    "current_stock",
    "reserved_stock",
    "minimum_stock",
    "maximum_stock",
    "reorder_point",
    "reorder_quantity",
    "unit_cost",
    "currency",
    "expiration_date",
    "manufacturing_date",
    "last_movement_date",
    "status",
    "track_expiration",
    "track_batch",
    "allow_negative_stock",
    "is_critical",
    "supplier_id",
    "supplier_name",
    "supplier_minimum_order_quantity",
    "supplier_lead_time_days",
    "version",
    "created_by",
    "updated_by",
    "created_at",
    "updated_at",
)


class SQLiteInventoryStore(IInventoryStore):
    """SQLite implementation of inventory item and stock movement storage."""

    async def create_item(self, item: InventoryItem) -> InventoryItem:
        """Create a new inventory item."""
        values = self._item_values(item)
        placeholders = ", ".join("?" for _ in _ITEM_COLUMNS)
        try:
            async with get_transaction() as conn:
                cursor = await conn.execute(
                    f"INSERT INTO inventory_items ({', '.join(_ITEM_COLUMNS)}) "
                    f"VALUES ({placeholders})",
                    values,
                )
                item.id = cursor.lastrowid
        except aiosqlite.IntegrityError as e:
            raise DuplicateItemCodeError(item.item_code) from e

        logger.info("inventory_item_created", item_id=item.id, item_code=item.item_code)
        return item

    async def get_item(self, item_id: int) -> InventoryItem | None:
        """Get inventory item by ID."""
        async with get_connection() as conn:
            cursor = await conn.execute(
                "SELECT * FROM inventory_items WHERE id = ?", (item_id,)
            )
            row = await cursor.fetchone()
            if row is None:
                return None
            return self._row_to_inventory_item(row)

    async def get_item_by_code(self, item_code: str) -> InventoryItem | None:
        """Get inventory item by its unique code."""
        async with get_connection() as conn:
            cursor = await conn.execute(
                "SELECT * FROM inventory_items WHERE item_code = ?", (item_code,)
            )
            row = await cursor.fetchone()
            if row is None:
                return None
            return self._row_to_inventory_item(row)

    async def save_item(self, item: InventoryItem) -> InventoryItem:
        """Persist item changes with an optimistic version check."""
        try:
            async with get_transaction() as conn:
                await self._update_versioned(conn, item)
        except aiosqlite.Error as e:
            raise DatabaseError("save_item", str(e)) from e

        item.version += 1
        logger.debug("inventory_item_saved", item_id=item.id, version=item.version)
        return item

    async def commit_movement(
        self, item: InventoryItem, movement: StockMovement
    ) -> tuple[InventoryItem, StockMovement]:
        """Update the item and append its movement in one transaction."""
        try:
            async with get_transaction() as conn:
                await self._update_versioned(conn, item)
                movement.id = await self._insert_movement(conn, movement)
        except aiosqlite.Error as e:
            raise DatabaseError("commit_movement", str(e)) from e

        item.version += 1
        logger.debug(
            "stock_movement_committed",
            item_id=item.id,
            movement_id=movement.id,
            movement_type=movement.movement_type.value,
            version=item.version,
        )
        return item, movement

    async def query_items(
        self,
        item_filter: ItemFilter | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[InventoryItem]:
        """List inventory items matching the filter with pagination."""
        where, params = self._item_where(item_filter)
        async with get_connection() as conn:
            cursor = await conn.execute(
                f"SELECT * FROM inventory_items {where} ORDER BY id LIMIT ? OFFSET ?",
                (*params, limit, offset),
            )
            rows = await cursor.fetchall()
            return [self._row_to_inventory_item(row) for row in rows]

    async def count_items(self, item_filter: ItemFilter | None = None) -> int:
        """Count inventory items matching the filter."""
        where, params = self._item_where(item_filter)
        async with get_connection() as conn:
            cursor = await conn.execute(
                f"SELECT COUNT(*) FROM inventory_items {where}", params
            )
            row = await cursor.fetchone()
            return row[0]

    async def append_movement(self, movement: StockMovement) -> StockMovement:
        """Record a stock movement without touching the item."""
        async with get_transaction() as conn:
            movement.id = await self._insert_movement(conn, movement)
        logger.info(
            "stock_movement_recorded",
            movement_id=movement.id,
            type=movement.movement_type.value,
            qty=str(movement.quantity),
        )
        return movement

    async def query_movements(
        self,
        movement_filter: MovementFilter | None = None,
        limit: int = 1000,
        offset: int = 0,
    ) -> list[StockMovement]:
        """List movements, ordered by date ASC."""
        clauses: list[str] = []
        params: list[Any] = []
        if movement_filter is not None:
            if movement_filter.inventory_item_id is not None:
                clauses.append("inventory_item_id = ?")
                params.append(movement_filter.inventory_item_id)
            if movement_filter.movement_types:
                marks = ", ".join("?" for _ in movement_filter.movement_types)
                clauses.append(f"movement_type IN ({marks})")
                params.extend(t.value for t in movement_filter.movement_types)
            if movement_filter.since is not None:
                clauses.append("movement_date >= ?")
                params.append(dt_to_db(movement_filter.since))
            if movement_filter.until is not None:
                clauses.append("movement_date <= ?")
                params.append(dt_to_db(movement_filter.until))

        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        async with get_connection() as conn:
            cursor = await conn.execute(
                f"""
                SELECT * FROM stock_movements {where}
                ORDER BY movement_date ASC, id ASC
                LIMIT ? OFFSET ?
                """,
                (*params, limit, offset),
            )
            rows = await cursor.fetchall()
            return [self._row_to_movement(row) for row in rows]

    async def _update_versioned(self, conn: aiosqlite.Connection, item: InventoryItem) -> None:
        columns = [c for c in _ITEM_COLUMNS if c not in ("created_at", "created_by")]
        values = dict(zip(_ITEM_COLUMNS, self._item_values(item), strict=True))
        values["version"] = item.version + 1

        assignments = ", ".join(f"{c} = ?" for c in columns)
        cursor = await conn.execute(
            f"UPDATE inventory_items SET {assignments} WHERE id = ? AND version = ?",
            (*(values[c] for c in columns), item.id, item.version),
        )
        if cursor.rowcount == 0:
            raise ConcurrencyConflictError(item.id, item.version)

    @staticmethod
    async def _insert_movement(conn: aiosqlite.Connection, movement: StockMovement) -> int:
        cursor = await conn.execute(
            """
            INSERT INTO stock_movements (
                inventory_item_id, movement_type, quantity, unit_cost, total_cost,
                balance_after, performed_by, reason, reference, notes,
                movement_date, created_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                movement.inventory_item_id,
                movement.movement_type.value,
                dec_to_db(movement.quantity),
                dec_to_db(movement.unit_cost),
                dec_to_db(movement.total_cost),
                dec_to_db(movement.balance_after),
                movement.performed_by,
                movement.reason,
                movement.reference,
                movement.notes,
                dt_to_db(movement.movement_date),
                dt_to_db(movement.created_at),
            ),
        )
        return cursor.lastrowid

    @staticmethod
    def _item_where(item_filter: ItemFilter | None) -> tuple[str, list[Any]]:
        if item_filter is None:
            return "", []

        clauses: list[str] = []
        params: list[Any] = []
        if item_filter.farm_id is not None:
            clauses.append("farm_id = ?")
            params.append(item_filter.farm_id)
        if item_filter.category is not None:
            clauses.append("category = ?")
            params.append(item_filter.category.value)
        if item_filter.status is not None:
            clauses.append("status = ?")
            params.append(item_filter.status.value)
        if item_filter.search:
            clauses.append("(item_name LIKE ? OR item_code LIKE ?)")
            pattern = f"%{item_filter.search}%"
            params.extend([pattern, pattern])
        if item_filter.low_stock:
            clauses.append("CAST(current_stock AS REAL) <= CAST(minimum_stock AS REAL)")
        if item_filter.expired_before is not None:
            clauses.append("expiration_date IS NOT NULL AND expiration_date < ?")
            params.append(dt_to_db(item_filter.expired_before))

        if not clauses:
            return "", []
        return f"WHERE {' AND '.join(clauses)}", params

    @staticmethod
    def _item_values(item: InventoryItem) -> tuple:
        supplier = item.supplier
        return (
            item.item_code,
            item.item_name,
            item.category.value,
            item.unit_of_measure.value,
            item.farm_id,
            dec_to_db(item.current_stock),
            dec_to_db(item.reserved_stock),
            dec_to_db(item.minimum_stock),
            dec_to_db(item.maximum_stock),
            dec_to_db(item.reorder_point),
            dec_to_db(item.reorder_quantity),
            dec_to_db(item.unit_cost),
            item.currency,
            dt_to_db(item.expiration_date),
            dt_to_db(item.manufacturing_date),
            dt_to_db(item.last_movement_date),
            item.status.value,
            int(item.track_expiration),
            int(item.track_batch),
            int(item.allow_negative_stock),
            int(item.is_critical),
            supplier.supplier_id if supplier else None,
            supplier.supplier_name if supplier else None,
            dec_to_db(supplier.minimum_order_quantity) if supplier else None,
            supplier.lead_time_days if supplier else None,
            item.version,
            item.created_by,
            item.updated_by,
            dt_to_db(item.created_at),
            dt_to_db(item.updated_at),
        )

    @staticmethod
    def _row_to_inventory_item(row: aiosqlite.Row) -> InventoryItem:
        """Convert a database row to an InventoryItem entity."""
        supplier = None
        if row["supplier_id"]:
            supplier = SupplierInfo(
                supplier_id=row["supplier_id"],
                supplier_name=row["supplier_name"] or row["supplier_id"],
                minimum_order_quantity=dec_from_db(row["supplier_minimum_order_quantity"]),
                lead_time_days=row["supplier_lead_time_days"],
            )

        return InventoryItem(
            id=row["id"],
            item_code=row["item_code"],
            item_name=row["item_name"],
            category=InventoryCategory(row["category"]),
            unit_of_measure=UnitOfMeasure(row["unit_of_measure"]),
            farm_id=row["farm_id"],
            current_stock=Decimal(row["current_stock"]),
            reserved_stock=Decimal(row["reserved_stock"]),
            minimum_stock=Decimal(row["minimum_stock"]),
            maximum_stock=dec_from_db(row["maximum_stock"]),
            reorder_point=Decimal(row["reorder_point"]),
            reorder_quantity=Decimal(row["reorder_quantity"]),
            unit_cost=Decimal(row["unit_cost"]),
            currency=row["currency"],
            expiration_date=dt_from_db(row["expiration_date"]),
            manufacturing_date=dt_from_db(row["manufacturing_date"]),
            last_movement_date=dt_from_db(row["last_movement_date"]),
            status=StockStatus(row["status"]),
            track_expiration=bool(row["track_expiration"]),
            track_batch=bool(row["track_batch"]),
            allow_negative_stock=bool(row["allow_negative_stock"]),
            is_critical=bool(row["is_critical"]),
            supplier=supplier,
            version=row["version"],
            created_by=row["created_by"],
            updated_by=row["updated_by"],
            created_at=dt_from_db(row["created_at"]),
            updated_at=dt_from_db(row["updated_at"]),
        )

    @staticmethod
    def _row_to_movement(row: aiosqlite.Row) -> StockMovement:
        """Convert a database row to a StockMovement entity."""
        return StockMovement(
            id=row["id"],
            inventory_item_id=row["inventory_item_id"],
            movement_type=MovementType(row["movement_type"]),
            quantity=Decimal(row["quantity"]),
            unit_cost=dec_from_db(row["unit_cost"]),
            total_cost=dec_from_db(row["total_cost"]),
            balance_after=Decimal(row["balance_after"]),
            performed_by=row["performed_by"],
            reason=row["reason"],
            reference=row["reference"],
            notes=row["notes"],
            movement_date=dt_from_db(row["movement_date"]),
            created_at=dt_from_db(row["created_at"]),
        )
