"""Versioned SQL migrations."""

from ranch_inventory.infrastructure.storage.sqlite.migrations.migrator import (
    MigrationResult,
    get_migration_status,
    initialize_database,
    verify_schema_integrity,
)

__all__ = [
    "MigrationResult",
    "initialize_database",
    "get_migration_status",
    "verify_schema_integrity",
]
