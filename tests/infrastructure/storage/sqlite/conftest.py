"""Pytest fixtures for SQLite storage tests."""

from pathlib import Path

import pytest

from ranch_inventory.infrastructure.storage.sqlite import (
    SQLiteAlertStore,
    SQLiteInventoryStore,
    SQLitePurchaseOrderStore,
)


@pytest.fixture
def temp_db_path(tmp_path: Path) -> Path:
    """Create a temporary database path."""
    return tmp_path / "test.db"


@pytest.fixture
def sqlite_inventory_store(sqlite_db) -> SQLiteInventoryStore:
    return SQLiteInventoryStore()


@pytest.fixture
def sqlite_alert_store(sqlite_db) -> SQLiteAlertStore:
    return SQLiteAlertStore()


@pytest.fixture
def sqlite_order_store(sqlite_db) -> SQLitePurchaseOrderStore:
    return SQLitePurchaseOrderStore()
