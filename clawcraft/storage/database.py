"""SQLite connection management for ClawCraft storage.

Async access via aiosqlite with a single connection, dict-like rows and
explicit transactions.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, AsyncIterator, Sequence

import aiosqlite

logger = logging.getLogger(__name__)

Row = aiosqlite.Row


class Database:
    """Async SQLite database connection manager.

    Usage:
        async with Database(Path("data/memory.db")) as db:
            rows = await db.fetch_all("SELECT * FROM conversation_memory")
    """

    def __init__(self, path: Path | str):
        """Initialize database with path.

        Args:
            path: Path to SQLite database file. Use ":memory:" for in-memory DB.
        """
        self.path = path if str(path) == ":memory:" else Path(path)
        self._conn: aiosqlite.Connection | None = None
        self._in_transaction = False

    async def connect(self) -> None:
        """Open the connection (WAL mode, row factory)."""
        if self._conn is not None:
            return

        if isinstance(self.path, Path):
            self.path.parent.mkdir(parents=True, exist_ok=True)

        self._conn = await aiosqlite.connect(self.path)
        self._conn.row_factory = aiosqlite.Row
        await self._conn.execute("PRAGMA journal_mode=WAL")

        logger.debug(f"Connected to database: {self.path}")

    async def close(self) -> None:
        if self._conn is not None:
            await self._conn.close()
            self._conn = None
            logger.debug(f"Closed database: {self.path}")

    async def __aenter__(self) -> Database:
        await self.connect()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    @property
    def connection(self) -> aiosqlite.Connection:
        """Get the underlying connection, raising if not connected."""
        if self._conn is None:
            raise RuntimeError("Database not connected. Call connect() first.")
        return self._conn

    async def execute(self, sql: str, params: Sequence[Any] = ()) -> aiosqlite.Cursor:
        return await self.connection.execute(sql, params)

    async def apply_schema(self, script: str) -> None:
        """Run idempotent DDL (CREATE ... IF NOT EXISTS) and commit it."""
        if self._in_transaction:
            raise RuntimeError("Cannot apply a schema inside a transaction")
        await self.connection.executescript(script)
        await self.connection.commit()
        logger.debug(f"Schema applied to {self.path}")

    async def fetch_all(self, sql: str, params: Sequence[Any] = ()) -> list[Row]:
        cursor = await self.execute(sql, params)
        return list(await cursor.fetchall())

    async def commit(self) -> None:
        """Commit, unless inside a transaction() block (which commits itself)."""
        if not self._in_transaction:
            await self.connection.commit()

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[None]:
        """All statements in the block commit together or roll back together.

        Raises:
            RuntimeError: If transactions are nested (not supported)
        """
        if self._in_transaction:
            raise RuntimeError("Nested transactions are not supported")

        self._in_transaction = True
        await self.execute("BEGIN TRANSACTION")
        try:
            yield
            await self.execute("COMMIT")
        except Exception:
            await self.execute("ROLLBACK")
            raise
        finally:
            self._in_transaction = False
