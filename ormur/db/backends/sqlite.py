"""
Ormur Store Backend — SQLite store via aiosqlite.

Builds parameterized SQL for the four store operations and reads written
rows back so callers always receive the row as stored. Column values are
adapted on the way in (dates as ISO strings, UUIDs as text) and converted
back on the way out using the table's declared column types.
"""

from __future__ import annotations

import asyncio
import datetime
import logging
import uuid
from typing import Any, Dict, List, Mapping, Optional, Sequence

import aiosqlite

from .base import Store, check_identifier

logger = logging.getLogger("ormur.db.backends.sqlite")

__all__ = ["SQLiteStore"]


def _adapt(value: Any) -> Any:
    if isinstance(value, (datetime.datetime, datetime.date)):
        return value.isoformat()
    if isinstance(value, uuid.UUID):
        return str(value)
    return value


def _convert(declared: str, value: Any) -> Any:
    if value is None:
        return None
    declared = declared.upper()
    if declared in ("BOOLEAN", "BOOL"):
        return bool(value)
    if declared in ("TIMESTAMP", "DATETIME") and isinstance(value, str):
        return datetime.datetime.fromisoformat(value)
    if declared == "DATE" and isinstance(value, str):
        # a datetime written to a DATE column keeps its time part
        if len(value) > 10:
            return datetime.datetime.fromisoformat(value)
        return datetime.date.fromisoformat(value)
    return value


class SQLiteStore(Store):
    """
    SQLite store using aiosqlite.

    Features:
    - Lazy connection on first use
    - Quoted, validated identifiers and ``?`` parameters only
    - Inserted rows are re-read by ``rowid`` (works for any key type)
    - BOOLEAN / TIMESTAMP / DATE columns are converted back to Python values
    """

    name = "sqlite"

    def __init__(self, path: str = ":memory:", **options: Any):
        self._path = path
        self._options = options
        self._connection: Optional[aiosqlite.Connection] = None
        self._lock = asyncio.Lock()
        self._column_types: Dict[str, Dict[str, str]] = {}

    @property
    def path(self) -> str:
        return self._path

    @property
    def is_connected(self) -> bool:
        return self._connection is not None

    async def connect(self) -> None:
        if self._connection is not None:
            return
        async with self._lock:
            if self._connection is not None:
                return
            self._connection = await aiosqlite.connect(self._path, **self._options)
            self._connection.row_factory = aiosqlite.Row
            logger.info(f"SQLite connected: {self._path}")

    async def disconnect(self) -> None:
        if self._connection is None:
            return
        async with self._lock:
            if self._connection is not None:
                await self._connection.close()
                self._connection = None
                self._column_types.clear()
                logger.info("SQLite disconnected")

    # ── Raw access ───────────────────────────────────────────────────

    async def execute(self, sql: str, params: Optional[Sequence[Any]] = None) -> Any:
        """
        Execute a SQL statement and commit. Returns the cursor.

        Cached column types are dropped, since the statement may be DDL.
        """
        cursor = await self._write(sql, params)
        self._column_types.clear()
        return cursor

    async def _write(self, sql: str, params: Optional[Sequence[Any]] = None) -> Any:
        await self.connect()
        cursor = await self._connection.execute(sql, [_adapt(p) for p in params or []])
        await self._connection.commit()
        return cursor

    async def fetch_all(self, sql: str, params: Optional[Sequence[Any]] = None) -> List[Dict[str, Any]]:
        """Execute a query and return all rows as plain dicts."""
        await self.connect()
        cursor = await self._connection.execute(sql, [_adapt(p) for p in params or []])
        rows = await cursor.fetchall()
        return [dict(row) for row in rows]

    async def _declared_types(self, table: str) -> Dict[str, str]:
        if table not in self._column_types:
            info = await self.fetch_all(f'PRAGMA table_info("{table}")')
            self._column_types[table] = {col["name"]: col["type"] or "" for col in info}
        return self._column_types[table]

    async def _rows(self, table: str, sql: str, params: Sequence[Any]) -> List[Dict[str, Any]]:
        declared = await self._declared_types(table)
        return [
            {key: _convert(declared.get(key, ""), value) for key, value in row.items()}
            for row in await self.fetch_all(sql, params)
        ]

    # ── Store operations ─────────────────────────────────────────────

    async def insert(
        self,
        table: str,
        row: Mapping[str, Any],
        returning: Optional[str] = None,
    ) -> Dict[str, Any]:
        check_identifier(table)
        if row:
            cols = ", ".join(f'"{check_identifier(col)}"' for col in row)
            placeholders = ", ".join("?" for _ in row)
            sql = f'INSERT INTO "{table}" ({cols}) VALUES ({placeholders})'
        else:
            sql = f'INSERT INTO "{table}" DEFAULT VALUES'
        cursor = await self._write(sql, list(row.values()))
        rows = await self._rows(table, f'SELECT * FROM "{table}" WHERE rowid = ?', [cursor.lastrowid])
        logger.debug(f"Inserted into {table}: rowid={cursor.lastrowid}")
        return rows[0] if rows else dict(row)

    async def update(
        self,
        table: str,
        column: str,
        value: Any,
        row: Mapping[str, Any],
    ) -> List[Dict[str, Any]]:
        check_identifier(table)
        check_identifier(column)
        if row:
            assignments = ", ".join(f'"{check_identifier(col)}" = ?' for col in row)
            await self._write(
                f'UPDATE "{table}" SET {assignments} WHERE "{column}" = ?',
                [*row.values(), value],
            )
        return await self.select(table, {column: row.get(column, value)})

    async def delete(self, table: str, column: str, value: Any) -> int:
        check_identifier(table)
        check_identifier(column)
        cursor = await self._write(f'DELETE FROM "{table}" WHERE "{column}" = ?', [value])
        return cursor.rowcount

    async def select(
        self,
        table: str,
        filters: Optional[Mapping[str, Any]] = None,
    ) -> List[Dict[str, Any]]:
        check_identifier(table)
        sql = f'SELECT * FROM "{table}"'
        params: List[Any] = []
        wheres = []
        for key, val in (filters or {}).items():
            if val is None:
                wheres.append(f'"{check_identifier(key)}" IS NULL')
            else:
                wheres.append(f'"{check_identifier(key)}" = ?')
                params.append(val)
        if wheres:
            sql += " WHERE " + " AND ".join(wheres)
        sql += " ORDER BY rowid"
        return await self._rows(table, sql, params)

    def __repr__(self) -> str:
        return f"<SQLiteStore {self._path}>"
