"""
Ormur store backends.

- Store: abstract store interface consumed by models
- MemoryStore: in-process tables
- SQLiteStore: aiosqlite-backed tables
"""

from .base import Store, check_identifier
from .memory import MemoryStore
from .sqlite import SQLiteStore

__all__ = [
    "Store",
    "check_identifier",
    "MemoryStore",
    "SQLiteStore",
]
