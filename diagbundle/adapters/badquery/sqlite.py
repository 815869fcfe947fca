"""SQLite bad-query store adapter.

Implements BadQueryStorePort using SQLite with aiosqlite for async access.
Entries are keyed by (project, query_id); re-recording a query replaces it.
"""

import asyncio
import logging
from pathlib import Path
from typing import Any

import aiosqlite

from diagbundle.core.models import BadQueryEntry, BadQueryHistory
from diagbundle.core.ports import BadQueryStorePort

logger = logging.getLogger(__name__)


class SQLiteBadQueryStore(BadQueryStorePort):
    """SQLite-backed bad-query history with connection pooling and async access."""

    def __init__(self, db_path: str, pool_size: int = 5):
        """Initialize SQLite store with connection pooling.

        Args:
            db_path: Path to SQLite database file.
            pool_size: Number of connections to maintain in the pool.
        """
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._pool: list[aiosqlite.Connection] = []
        self._pool_lock = asyncio.Lock()
        self._schema_lock = asyncio.Lock()
        self._pool_size = pool_size
        self._schema_initialized = False

    async def _get_connection(self) -> aiosqlite.Connection:
        """Get a connection from the pool or create a new one."""
        async with self._pool_lock:
            if self._pool:
                return self._pool.pop()
        return await aiosqlite.connect(str(self.db_path))

    async def _return_connection(self, conn: aiosqlite.Connection) -> None:
        """Return a connection to the pool."""
        async with self._pool_lock:
            if len(self._pool) < self._pool_size:
                self._pool.append(conn)
                return
        await conn.close()

    async def close(self) -> None:
        """Close all pooled connections."""
        async with self._pool_lock:
            for conn in self._pool:
                await conn.close()
            self._pool.clear()

    async def _init_schema(self) -> None:
        """Initialize database schema on first use.

        Only runs once per instance. Subsequent calls are no-ops.
        """
        if self._schema_initialized:
            return

        async with self._schema_lock:
            # Check again after acquiring lock to prevent race
            if self._schema_initialized:
                return

            conn = await self._get_connection()
            try:
                await conn.execute(
                    """
                    CREATE TABLE IF NOT EXISTS bad_queries (
                        project TEXT NOT NULL,
                        query_id TEXT NOT NULL,
                        sql TEXT NOT NULL,
                        adj TEXT NOT NULL,
                        server TEXT NOT NULL DEFAULT '',
                        thread TEXT NOT NULL DEFAULT '',
                        user TEXT NOT NULL DEFAULT '',
                        start_time INTEGER NOT NULL,
                        running_seconds REAL NOT NULL DEFAULT 0,
                        PRIMARY KEY (project, query_id)
                    )
                    """
                )
                await conn.execute(
                    "CREATE INDEX IF NOT EXISTS idx_bad_queries_project "
                    "ON bad_queries(project, start_time)"
                )
                await conn.commit()
                self._schema_initialized = True
            finally:
                await self._return_connection(conn)

    async def get_bad_queries_for_project(self, project: str) -> BadQueryHistory:
        """Return all recorded bad queries of a project."""
        await self._init_schema()

        conn = await self._get_connection()
        try:
            cursor = await conn.execute(
                """
                SELECT query_id, sql, adj, server, thread, user,
                       start_time, running_seconds
                FROM bad_queries
                WHERE project = ?
                ORDER BY start_time ASC
                """,
                (project,),
            )
            rows = await cursor.fetchall()
            entries = tuple(self._row_to_entry(row) for row in rows)
            return BadQueryHistory(project=project, entries=entries)
        finally:
            await self._return_connection(conn)

    async def add_entry(self, project: str, entry: BadQueryEntry) -> None:
        """Record a bad query, replacing any entry with the same query_id."""
        await self._init_schema()

        conn = await self._get_connection()
        try:
            await conn.execute(
                """
                INSERT OR REPLACE INTO bad_queries
                (project, query_id, sql, adj, server, thread, user,
                 start_time, running_seconds)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    project,
                    entry.query_id,
                    entry.sql,
                    entry.adj,
                    entry.server,
                    entry.thread,
                    entry.user,
                    entry.start_time,
                    entry.running_seconds,
                ),
            )
            await conn.commit()
        finally:
            await self._return_connection(conn)

    def _row_to_entry(self, row: tuple[Any, ...]) -> BadQueryEntry:
        """Convert a database row to a BadQueryEntry.

        Raises:
            ValueError: If row is malformed.
        """
        if not row or len(row) != 8:
            raise ValueError(f"Invalid row length: expected 8, got {len(row) if row else 0}")

        query_id, sql, adj, server, thread, user, start_time, running_seconds = row
        return BadQueryEntry(
            query_id=query_id,
            sql=sql,
            adj=adj,
            server=server,
            thread=thread,
            user=user,
            start_time=int(start_time),
            running_seconds=float(running_seconds),
        )
