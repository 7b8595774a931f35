"""
Schema migrations for the inventory database.

Migrations are numbered SQL scripts in this package (v001_inventory.sql,
v002_..., and so on). Each one runs inside a single transaction together
with its schema_migrations row, so a failing script leaves no partial
schema behind. An applied script whose checksum no longer matches the file
stops the run.

Backups use SQLite's online backup API; a plain file copy would miss pages
still sitting in the WAL file.
"""

import hashlib
import re
import time
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path

import aiosqlite

from ranch_inventory.config import get_logger, get_settings
from ranch_inventory.core.exceptions import DatabaseError

logger = get_logger(__name__)

MIGRATIONS_DIR = Path(__file__).parent

SCRIPT_NAME = re.compile(r"^v(\d+)_(\w+)\.sql$")

REQUIRED_TABLES = [
    "inventory_items",
    "stock_movements",
    "inventory_alerts",
    "purchase_orders",
    "purchase_order_lines",
    "schema_migrations",
]

# Latest quantity-changing movement per item; reservation rows carry the
# available balance rather than the on-hand one
_LEDGER_DRIFT_QUERY = """
    SELECT i.id, i.current_stock, m.balance_after
    FROM inventory_items i
    JOIN stock_movements m ON m.id = (
        SELECT id FROM stock_movements
        WHERE inventory_item_id = i.id
          AND movement_type NOT IN ('RESERVATION', 'RELEASE')
        ORDER BY movement_date DESC, id DESC
        LIMIT 1
    )
    WHERE CAST(m.balance_after AS REAL) != CAST(i.current_stock AS REAL)
"""


@dataclass(frozen=True)
class MigrationInfo:
    """A migration script on disk."""

    version: str
    name: str
    path: Path
    checksum: str

    @classmethod
    def from_file(cls, path: Path) -> "MigrationInfo":
        match = SCRIPT_NAME.match(path.name)
        if not match:
            raise ValueError(f"Invalid migration filename: {path.name}")

        checksum = hashlib.sha256(path.read_bytes()).hexdigest()[:16]
        return cls(version=match.group(1), name=match.group(2), path=path, checksum=checksum)


@dataclass
class MigrationResult:
    """Outcome of applying one script."""

    version: str
    name: str
    success: bool
    execution_time_ms: int
    error: str | None = None

    def to_dict(self) -> dict:
        return {
            "version": self.version,
            "name": self.name,
            "success": self.success,
            "execution_time_ms": self.execution_time_ms,
            "error": self.error,
        }


def discover_migrations() -> list[MigrationInfo]:
    """Migration scripts in version order; misnamed files are skipped."""
    migrations = []
    for path in sorted(MIGRATIONS_DIR.glob("v*.sql")):
        try:
            migrations.append(MigrationInfo.from_file(path))
        except ValueError as e:
            logger.warning("skipping_invalid_migration", path=str(path), error=str(e))
    return sorted(migrations, key=lambda m: int(m.version))


async def get_applied_migrations(conn: aiosqlite.Connection) -> dict[str, str]:
    """Applied versions mapped to their recorded checksums."""
    try:
        cursor = await conn.execute(
            "SELECT version, checksum FROM schema_migrations ORDER BY version"
        )
    except aiosqlite.OperationalError:
        # Fresh database
        return {}
    return {row[0]: row[1] for row in await cursor.fetchall()}


async def get_current_version(conn: aiosqlite.Connection) -> str | None:
    applied = await get_applied_migrations(conn)
    return max(applied, key=int) if applied else None


async def apply_migration(conn: aiosqlite.Connection, migration: MigrationInfo) -> MigrationResult:
    """Run one script and record it, atomically."""
    logger.info("applying_migration", version=migration.version, name=migration.name)
    started = time.monotonic()

    def elapsed_ms() -> int:
        return int((time.monotonic() - started) * 1000)

    sql = migration.path.read_text(encoding="utf-8")
    # version, name and checksum are constrained to digits, word chars and hex
    record = (
        "INSERT OR REPLACE INTO schema_migrations (version, name, checksum) "
        f"VALUES ('{migration.version}', '{migration.name}', '{migration.checksum}');"
    )
    try:
        await conn.executescript(f"BEGIN;\n{sql}\n{record}\nCOMMIT;")
    except aiosqlite.Error as e:
        if conn.in_transaction:
            await conn.rollback()
        logger.error(
            "migration_failed",
            version=migration.version,
            name=migration.name,
            error=str(e),
        )
        return MigrationResult(
            version=migration.version,
            name=migration.name,
            success=False,
            execution_time_ms=elapsed_ms(),
            error=str(e),
        )

    duration = elapsed_ms()
    await conn.execute(
        "UPDATE schema_migrations SET execution_time_ms = ? WHERE version = ?",
        (duration, migration.version),
    )
    await conn.commit()

    logger.info(
        "migration_applied",
        version=migration.version,
        name=migration.name,
        execution_time_ms=duration,
    )
    return MigrationResult(
        version=migration.version,
        name=migration.name,
        success=True,
        execution_time_ms=duration,
    )


async def create_backup(db_path: Path) -> Path:
    """Copy the live database next to itself and return the copy's path."""
    stamp = datetime.now(UTC).strftime("%Y%m%d_%H%M%S")
    backup_path = db_path.with_suffix(f".backup_{stamp}.db")
    async with aiosqlite.connect(db_path) as source, aiosqlite.connect(backup_path) as target:
        await source.backup(target)
    logger.info("database_backup_created", backup_path=str(backup_path))
    return backup_path


async def restore_backup(db_path: Path, backup_path: Path) -> None:
    """Overwrite the database with a backup's contents."""
    async with aiosqlite.connect(backup_path) as source, aiosqlite.connect(db_path) as target:
        await source.backup(target)
    logger.warning("database_restored_from_backup", backup_path=str(backup_path))


async def initialize_database(
    db_path: Path | None = None,
    create_backup_before: bool = True,
) -> list[MigrationResult]:
    """
    Apply every pending migration.

    Args:
        db_path: Database file (default from settings)
        create_backup_before: Back up an existing database first; the
            backup is restored if a migration fails and deleted otherwise

    Returns:
        Results for the scripts that were run, in order

    Raises:
        DatabaseError: an applied script was edited after it ran
    """
    db_path = db_path or get_settings().storage.db_path
    db_path.parent.mkdir(parents=True, exist_ok=True)
    logger.info("initializing_database", db_path=str(db_path))

    backup_path = None
    if create_backup_before and db_path.exists():
        backup_path = await create_backup(db_path)

    results: list[MigrationResult] = []
    async with aiosqlite.connect(db_path) as conn:
        await conn.execute("PRAGMA journal_mode=WAL")
        await conn.execute("PRAGMA foreign_keys=ON")

        applied = await get_applied_migrations(conn)
        for migration in discover_migrations():
            recorded = applied.get(migration.version)
            if recorded is not None:
                if recorded != migration.checksum:
                    raise DatabaseError(
                        "migrate",
                        f"migration v{migration.version} changed after it was applied",
                    )
                continue

            result = await apply_migration(conn, migration)
            results.append(result)
            if not result.success:
                break

    failed = any(not r.success for r in results)
    if backup_path is not None:
        if failed:
            await restore_backup(db_path, backup_path)
        else:
            backup_path.unlink()

    logger.info(
        "database_initialized",
        applied=[r.version for r in results if r.success],
        failed=failed,
    )
    return results


async def get_migration_status(db_path: Path | None = None) -> dict:
    """Current version plus applied and pending scripts."""
    db_path = db_path or get_settings().storage.db_path
    discovered = discover_migrations()

    if not db_path.exists():
        return {
            "exists": False,
            "current_version": None,
            "applied_migrations": [],
            "pending_migrations": [m.version for m in discovered],
            "total_migrations": len(discovered),
        }

    async with aiosqlite.connect(db_path) as conn:
        applied = await get_applied_migrations(conn)

    return {
        "exists": True,
        "current_version": max(applied, key=int) if applied else None,
        "applied_migrations": sorted(applied, key=int),
        "pending_migrations": [m.version for m in discovered if m.version not in applied],
        "total_migrations": len(discovered),
    }


async def verify_schema_integrity(db_path: Path | None = None) -> list[dict]:
    """
    Check the database file, foreign keys, required tables and that every
    item's on-hand stock matches the balance of its latest movement.
    """
    db_path = db_path or get_settings().storage.db_path
    checks = []

    async with aiosqlite.connect(db_path) as conn:
        cursor = await conn.execute("PRAGMA integrity_check")
        integrity = (await cursor.fetchone())[0]
        checks.append({
            "check": "integrity",
            "status": "PASS" if integrity == "ok" else "FAIL",
            "result": integrity,
        })

        cursor = await conn.execute("PRAGMA foreign_key_check")
        fk_violations = await cursor.fetchall()
        checks.append({
            "check": "foreign_keys",
            "status": "PASS" if not fk_violations else "FAIL",
            "violations": len(fk_violations),
        })

        cursor = await conn.execute("SELECT name FROM sqlite_master WHERE type='table'")
        existing = {row[0] for row in await cursor.fetchall()}
        missing = [t for t in REQUIRED_TABLES if t not in existing]
        checks.append({
            "check": "required_tables",
            "status": "PASS" if not missing else "FAIL",
            "missing": missing,
        })

        drifted: list[int] = []
        if not missing:
            cursor = await conn.execute(_LEDGER_DRIFT_QUERY)
            drifted = [row[0] for row in await cursor.fetchall()]
        checks.append({
            "check": "ledger_balances",
            "status": "PASS" if not drifted else "FAIL",
            "item_ids": drifted,
        })

    return checks
