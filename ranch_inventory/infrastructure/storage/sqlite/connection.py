"""
SQLite access for the ledger stores.

Lookups, alert sweeps and reports read through a small queue of reader
connections. Every write goes through one writer connection held under a
lock, so ledger transactions from this process line up in order instead of
contending for SQLite's database lock. Writers in other processes are held
off by busy_timeout; stale reads are caught by the item version check.
"""

import asyncio
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

import aiosqlite

from ranch_inventory.config import get_logger, get_settings
from ranch_inventory.config.settings import StorageSettings

logger = get_logger(__name__)

# Writes held longer than this are logged; they block every other writer
SLOW_WRITE_SECONDS = 1.0


class ConnectionPool:
    """
    Reader pool plus a single serialized writer.

    pool_size counts reader connections; the writer is opened in addition.
    """

    def __init__(
        self,
        db_path: Path,
        pool_size: int = 5,
        busy_timeout: int = 30000,
    ):
        self.db_path = db_path
        self.pool_size = max(1, pool_size)
        self.busy_timeout = busy_timeout

        self._readers: asyncio.Queue[aiosqlite.Connection] = asyncio.Queue()
        self._writer: aiosqlite.Connection | None = None
        self._connections: list[aiosqlite.Connection] = []
        self._write_lock = asyncio.Lock()
        self._setup_lock = asyncio.Lock()
        self._initialized = False

    @classmethod
    def from_settings(cls, storage: StorageSettings) -> "ConnectionPool":
        return cls(
            db_path=storage.db_path,
            pool_size=storage.pool_size,
            busy_timeout=storage.busy_timeout,
        )

    async def initialize(self) -> None:
        """Open the writer and reader connections."""
        async with self._setup_lock:
            if self._initialized:
                return

            self.db_path.parent.mkdir(parents=True, exist_ok=True)

            # Writer first so WAL mode is set before readers attach
            self._writer = await self._open()
            self._connections.append(self._writer)
            for _ in range(self.pool_size):
                reader = await self._open()
                self._connections.append(reader)
                self._readers.put_nowait(reader)

            self._initialized = True
            logger.info(
                "connection_pool_initialized",
                db_path=str(self.db_path),
                readers=self.pool_size,
            )

    async def _open(self) -> aiosqlite.Connection:
        conn = await aiosqlite.connect(self.db_path)
        await conn.execute("PRAGMA journal_mode=WAL")
        await conn.execute("PRAGMA synchronous=NORMAL")
        await conn.execute(f"PRAGMA busy_timeout={self.busy_timeout}")
        await conn.execute("PRAGMA foreign_keys=ON")
        conn.row_factory = aiosqlite.Row
        return conn

    @asynccontextmanager
    async def acquire(self) -> AsyncIterator[aiosqlite.Connection]:
        """
        Borrow a reader connection.

        Usage:
            async with pool.acquire() as conn:
                cursor = await conn.execute("SELECT ...")
        """
        if not self._initialized:
            await self.initialize()

        conn = await self._readers.get()
        try:
            yield conn
        finally:
            self._readers.put_nowait(conn)

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[aiosqlite.Connection]:
        """
        Run a write transaction on the writer connection.

        BEGIN IMMEDIATE takes the database write lock up front, so the
        version check and the update inside one transaction cannot
        interleave with another process. Commits on success, rolls back on
        any exception. Not reentrant.
        """
        if not self._initialized:
            await self.initialize()

        async with self._write_lock:
            conn = self._writer
            started = time.monotonic()
            await conn.execute("BEGIN IMMEDIATE")
            try:
                yield conn
                await conn.commit()
            except BaseException:
                await conn.rollback()
                raise
            finally:
                held = time.monotonic() - started
                if held > SLOW_WRITE_SECONDS:
                    logger.warning("slow_write_transaction", seconds=round(held, 3))

    async def close(self) -> None:
        """Close every connection; the pool can be initialized again."""
        async with self._setup_lock:
            for conn in self._connections:
                await conn.close()
            self._connections.clear()
            self._readers = asyncio.Queue()
            self._writer = None
            self._initialized = False
            logger.info("connection_pool_closed", db_path=str(self.db_path))


_pool: ConnectionPool | None = None


async def get_pool() -> ConnectionPool:
    """Get or create the process-wide pool for the configured database."""
    global _pool
    if _pool is None:
        _pool = ConnectionPool.from_settings(get_settings().storage)
        await _pool.initialize()
    return _pool


async def close_pool() -> None:
    global _pool
    if _pool is not None:
        await _pool.close()
        _pool = None


@asynccontextmanager
async def get_connection() -> AsyncIterator[aiosqlite.Connection]:
    """Reader connection from the global pool."""
    pool = await get_pool()
    async with pool.acquire() as conn:
        yield conn


@asynccontextmanager
async def get_transaction() -> AsyncIterator[aiosqlite.Connection]:
    """Write transaction on the global pool's writer."""
    pool = await get_pool()
    async with pool.transaction() as conn:
        yield conn
