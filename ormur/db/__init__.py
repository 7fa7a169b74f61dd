"""
Ormur stores — the persistence boundary for models.

Provides:
- Store: the interface models call (insert / update / delete / select)
- MemoryStore and SQLiteStore backends
- Module-level registry for the default store
"""

from .engine import (
    configure_store,
    create_store,
    get_all_stores,
    get_store,
    reset_stores,
    set_store,
)

from .backends import (
    MemoryStore,
    SQLiteStore,
    Store,
)

__all__ = [
    "Store",
    "MemoryStore",
    "SQLiteStore",
    "create_store",
    "configure_store",
    "set_store",
    "get_store",
    "get_all_stores",
    "reset_stores",
]
