"""
Ormur Store Backend — Base Interface.

All stores must implement this interface. Models talk to their store only
through these four data operations, always with storage-cased (underscore)
keys and an explicit table name:

- insert:  write one row, return it as stored (generated keys included)
- update:  set columns on rows matching ``column = value``, return them
- delete:  remove rows matching ``column = value``, return the count
- select:  return rows matching an equality filter, in store order
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Mapping, Optional

from ...faults import ConfigurationFault

__all__ = ["Store", "check_identifier"]

_IDENTIFIER_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def check_identifier(name: str) -> str:
    """Validate table/column names: only alphanumeric + underscore allowed."""
    if not isinstance(name, str) or not _IDENTIFIER_RE.match(name):
        raise ConfigurationFault(
            f"Invalid identifier: {name!r}. Use alphanumeric + underscore only.",
            code="IDENTIFIER_INVALID",
        )
    return name


class Store(ABC):
    """
    Abstract store interface.

    Implementations own their connection state. ``connect`` must be safe to
    call more than once; data operations connect lazily when needed.
    """

    name: str = "base"

    async def connect(self) -> None:
        """Open the underlying connection (no-op by default)."""

    async def disconnect(self) -> None:
        """Close the underlying connection (no-op by default)."""

    @property
    def is_connected(self) -> bool:
        return True

    @abstractmethod
    async def insert(
        self,
        table: str,
        row: Mapping[str, Any],
        returning: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Insert ``row`` and return the stored row."""
        ...

    @abstractmethod
    async def update(
        self,
        table: str,
        column: str,
        value: Any,
        row: Mapping[str, Any],
    ) -> List[Dict[str, Any]]:
        """Set ``row`` on every row where ``column = value``; return those rows."""
        ...

    @abstractmethod
    async def delete(self, table: str, column: str, value: Any) -> int:
        """Delete rows where ``column = value``; return how many were deleted."""
        ...

    @abstractmethod
    async def select(
        self,
        table: str,
        filters: Optional[Mapping[str, Any]] = None,
    ) -> List[Dict[str, Any]]:
        """Return rows matching every ``key = value`` pair in ``filters``."""
        ...

    async def __aenter__(self) -> Store:
        await self.connect()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.disconnect()

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}>"
