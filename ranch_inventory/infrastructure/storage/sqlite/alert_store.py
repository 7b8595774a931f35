"""SQLite implementation of alert storage."""

from decimal import Decimal

import aiosqlite

from ranch_inventory.config import get_logger
from ranch_inventory.core.entities.alert import Alert, AlertPriority, AlertState, AlertType
from ranch_inventory.core.exceptions import AlertNotFoundError
from ranch_inventory.core.interfaces.alert_store import IAlertStore
from ranch_inventory.infrastructure.storage.sqlite.columns import dt_from_db, dt_to_db
from ranch_inventory.infrastructure.storage.sqlite.connection import (
    get_connection,
    get_transaction,
)

logger = get_logger(__name__)

# Most severe first, then oldest
_PRIORITY_ORDER = """
    CASE priority
        WHEN 'CRITICAL' THEN 0
        WHEN 'HIGH' THEN 1
        WHEN 'MEDIUM' THEN 2
        ELSE 3
    END, triggered_at ASC
"""


class SQLiteAlertStore(IAlertStore):
    """SQLite implementation of persisted inventory alerts."""

    async def create(self, alert: Alert) -> Alert:
        """Create a new alert."""
        async with get_transaction() as conn:
            cursor = await conn.execute(
                """
                INSERT INTO inventory_alerts (
                    inventory_item_id, farm_id, item_name, alert_type, priority,
                    message, current_value, threshold_value, triggered_at,
                    auto_resolvable, state, notification_sent, notified_priority,
                    acknowledged_by, acknowledged_at, resolved_by, resolved_at,
                    updated_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    alert.inventory_item_id,
                    alert.farm_id,
                    alert.item_name,
                    alert.alert_type.value,
                    *self._mutable_values(alert),
                ),
            )
            alert.id = cursor.lastrowid
        return alert

    async def update(self, alert: Alert) -> Alert:
        """Update an existing alert."""
        async with get_transaction() as conn:
            cursor = await conn.execute(
                """
                UPDATE inventory_alerts SET
                    priority = ?,
                    message = ?,
                    current_value = ?,
                    threshold_value = ?,
                    triggered_at = ?,
                    auto_resolvable = ?,
                    state = ?,
                    notification_sent = ?,
                    notified_priority = ?,
                    acknowledged_by = ?,
                    acknowledged_at = ?,
                    resolved_by = ?,
                    resolved_at = ?,
                    updated_at = ?
                WHERE id = ?
                """,
                (*self._mutable_values(alert), alert.id),
            )
            if cursor.rowcount == 0:
                raise AlertNotFoundError(alert.id)
        return alert

    async def get(self, alert_id: int) -> Alert | None:
        """Get alert by ID."""
        async with get_connection() as conn:
            cursor = await conn.execute(
                "SELECT * FROM inventory_alerts WHERE id = ?", (alert_id,)
            )
            row = await cursor.fetchone()
            if row is None:
                return None
            return self._row_to_alert(row)

    async def find_open(self, item_id: int, alert_type: AlertType) -> Alert | None:
        """Get the unresolved alert of a type for an item, if any."""
        async with get_connection() as conn:
            cursor = await conn.execute(
                """
                SELECT * FROM inventory_alerts
                WHERE inventory_item_id = ? AND alert_type = ? AND state != ?
                ORDER BY id DESC
                LIMIT 1
                """,
                (item_id, alert_type.value, AlertState.RESOLVED.value),
            )
            row = await cursor.fetchone()
            if row is None:
                return None
            return self._row_to_alert(row)

    async def list_open(
        self,
        item_id: int | None = None,
        farm_id: str | None = None,
        limit: int = 500,
    ) -> list[Alert]:
        """List unresolved alerts, most severe first."""
        clauses = ["state != ?"]
        params: list = [AlertState.RESOLVED.value]
        if item_id is not None:
            clauses.append("inventory_item_id = ?")
            params.append(item_id)
        if farm_id is not None:
            clauses.append("farm_id = ?")
            params.append(farm_id)

        async with get_connection() as conn:
            cursor = await conn.execute(
                f"""
                SELECT * FROM inventory_alerts
                WHERE {' AND '.join(clauses)}
                ORDER BY {_PRIORITY_ORDER}
                LIMIT ?
                """,
                (*params, limit),
            )
            rows = await cursor.fetchall()
            return [self._row_to_alert(row) for row in rows]

    @staticmethod
    def _mutable_values(alert: Alert) -> tuple:
        return (
            alert.priority.value,
            alert.message,
            str(alert.current_value),
            str(alert.threshold_value),
            dt_to_db(alert.triggered_at),
            int(alert.auto_resolvable),
            alert.state.value,
            int(alert.notification_sent),
            alert.notified_priority.value if alert.notified_priority else None,
            alert.acknowledged_by,
            dt_to_db(alert.acknowledged_at),
            alert.resolved_by,
            dt_to_db(alert.resolved_at),
            dt_to_db(alert.updated_at),
        )

    @staticmethod
    def _row_to_alert(row: aiosqlite.Row) -> Alert:
        """Convert a database row to an Alert entity."""
        notified = row["notified_priority"]
        return Alert(
            id=row["id"],
            inventory_item_id=row["inventory_item_id"],
            farm_id=row["farm_id"],
            item_name=row["item_name"],
            alert_type=AlertType(row["alert_type"]),
            priority=AlertPriority(row["priority"]),
            message=row["message"],
            current_value=Decimal(row["current_value"]),
            threshold_value=Decimal(row["threshold_value"]),
            triggered_at=dt_from_db(row["triggered_at"]),
            auto_resolvable=bool(row["auto_resolvable"]),
            state=AlertState(row["state"]),
            notification_sent=bool(row["notification_sent"]),
            notified_priority=AlertPriority(notified) if notified else None,
            acknowledged_by=row["acknowledged_by"],
            acknowledged_at=dt_from_db(row["acknowledged_at"]),
            resolved_by=row["resolved_by"],
            resolved_at=dt_from_db(row["resolved_at"]),
            updated_at=dt_from_db(row["updated_at"]),
        )
