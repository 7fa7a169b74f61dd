"""
Ormur store engine — store factory and module-level registry.

Provides:
- create_store: build a store from a URL (``memory://``, ``sqlite:///path``)
- configure_store / set_store / get_store: named store registry used as the
  fallback when a model does not carry its own store
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from ..faults import StoreUrlInvalidFault
from .backends.base import Store

logger = logging.getLogger("ormur.db")

__all__ = [
    "create_store",
    "configure_store",
    "set_store",
    "get_store",
    "get_all_stores",
    "reset_stores",
]


def _detect_driver(url: str) -> str:
    """Detect store driver from URL scheme."""
    if url.startswith("sqlite"):
        return "sqlite"
    elif url.startswith("memory"):
        return "memory"
    else:
        raise StoreUrlInvalidFault(url=url, reason="Unsupported URL scheme")


def _sqlite_path(url: str) -> str:
    """``sqlite:///app.db`` -> ``app.db``; ``sqlite:///:memory:`` -> ``:memory:``."""
    for prefix in ("sqlite:///", "sqlite://"):
        if url.startswith(prefix):
            path = url[len(prefix):]
            return path or ":memory:"
    raise StoreUrlInvalidFault(url=url, reason="Expected sqlite:///<path>")


def create_store(url: str = "memory://", **options: Any) -> Store:
    """
    Instantiate the store matching ``url``.

    Args:
        url: Store URL. Supported schemes:
             - memory://
             - sqlite:///path/to/db.sqlite3
             - sqlite:///:memory:
        **options: Driver-specific options passed to the store.
    """
    driver = _detect_driver(url)
    if driver == "sqlite":
        from .backends.sqlite import SQLiteStore
        return SQLiteStore(_sqlite_path(url), **options)
    from .backends.memory import MemoryStore
    return MemoryStore()


# ── Module-level registry ────────────────────────────────────────────────────

_default_store: Optional[Store] = None
_store_registry: Dict[str, Store] = {}


def get_store(alias: Optional[str] = None) -> Optional[Store]:
    """
    Get a store by alias, or the default store.

    Returns None when nothing is registered; models report that as a
    configuration fault.
    """
    if alias and alias != "default":
        return _store_registry.get(alias)
    return _default_store


def configure_store(
    url: str = "memory://",
    *,
    alias: str = "default",
    **options: Any,
) -> Store:
    """
    Create a store from ``url`` and register it.

    Returns:
        The new store
    """
    store = create_store(url, **options)
    set_store(store, alias=alias)
    logger.info(f"Store configured ({alias}): {store!r}")
    return store


def set_store(store: Store, *, alias: str = "default") -> None:
    """Register an externally-created store as the default or by alias."""
    global _default_store
    _store_registry[alias] = store
    if alias == "default":
        _default_store = store


def get_all_stores() -> Dict[str, Store]:
    """Return all registered stores."""
    return dict(_store_registry)


def reset_stores() -> None:
    """Clear the registry (for testing)."""
    global _default_store
    _store_registry.clear()
    _default_store = None
