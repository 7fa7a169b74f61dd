"""
Ormur Store Backend — in-process memory store.

Keeps each table as an ordered list of row dicts. Useful for tests and
for prototyping models before a database exists.
"""

from __future__ import annotations

import copy
import logging
from typing import Any, Dict, List, Mapping, Optional

from .base import Store

logger = logging.getLogger("ormur.db.backends.memory")

__all__ = ["MemoryStore"]


class MemoryStore(Store):
    """
    Memory store.

    Features:
    - Tables are created on first insert
    - Integer keys are assigned to the ``returning`` column when the row
      does not carry one
    - Rows are copied in and out, so callers never share state with the store
    """

    name = "memory"

    def __init__(self):
        self._tables: Dict[str, List[Dict[str, Any]]] = {}
        self._sequences: Dict[str, int] = {}

    def table(self, table: str) -> List[Dict[str, Any]]:
        """Copy of every row currently stored in ``table``."""
        return copy.deepcopy(self._tables.get(table, []))

    def clear(self) -> None:
        self._tables.clear()
        self._sequences.clear()

    async def insert(
        self,
        table: str,
        row: Mapping[str, Any],
        returning: Optional[str] = None,
    ) -> Dict[str, Any]:
        stored = copy.deepcopy(dict(row))
        if returning and stored.get(returning) is None:
            self._sequences[table] = self._sequences.get(table, 0) + 1
            stored[returning] = self._sequences[table]
        elif returning and isinstance(stored[returning], int):
            self._sequences[table] = max(self._sequences.get(table, 0), stored[returning])
        self._tables.setdefault(table, []).append(stored)
        logger.debug(f"Inserted into {table}: {returning}={stored.get(returning)!r}")
        return copy.deepcopy(stored)

    async def update(
        self,
        table: str,
        column: str,
        value: Any,
        row: Mapping[str, Any],
    ) -> List[Dict[str, Any]]:
        updated = []
        for stored in self._tables.get(table, []):
            if stored.get(column) == value:
                stored.update(copy.deepcopy(dict(row)))
                updated.append(copy.deepcopy(stored))
        return updated

    async def delete(self, table: str, column: str, value: Any) -> int:
        rows = self._tables.get(table, [])
        kept = [stored for stored in rows if stored.get(column) != value]
        self._tables[table] = kept
        return len(rows) - len(kept)

    async def select(
        self,
        table: str,
        filters: Optional[Mapping[str, Any]] = None,
    ) -> List[Dict[str, Any]]:
        filters = filters or {}
        return [
            copy.deepcopy(stored)
            for stored in self._tables.get(table, [])
            if all(stored.get(key) == val for key, val in filters.items())
        ]
