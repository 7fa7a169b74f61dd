"""
Ormur — a small async active-record layer.

Declare a column schema on a model class and get attribute accessors,
validation, defaults, value transforms, key-casing translation and CRUD
against a store.

Usage:
    from ormur import Column, Model, configure_store

    configure_store("sqlite:///app.db")

    class User(Model):
        id = Column("integer", primary_key=True)
        name = Column("string", not_null=True)

    user = await User.create(name="Ormur")

Public API:
    - Model, ModelMeta: model base class and metaclass
    - Column, ColumnType, compose_schema: schema declaration
    - Store, MemoryStore, SQLiteStore: store interface and backends
    - configure_store, set_store, get_store: default store registry
    - ConfigurationError, ValidationError: the two fault kinds
"""

from .base import Model, ModelMeta, dualmethod
from .schema import UNSET, Column, ColumnType, compose_schema
from .db import (
    MemoryStore,
    SQLiteStore,
    Store,
    configure_store,
    create_store,
    get_store,
    reset_stores,
    set_store,
)
from .faults import (
    ConfigurationError,
    ConfigurationFault,
    Fault,
    ValidationError,
    ValidationFault,
)

__version__ = "0.3.0"

__all__ = [
    # Models
    "Model",
    "ModelMeta",
    "dualmethod",
    # Schema
    "Column",
    "ColumnType",
    "compose_schema",
    "UNSET",
    # Stores
    "Store",
    "MemoryStore",
    "SQLiteStore",
    "create_store",
    "configure_store",
    "set_store",
    "get_store",
    "reset_stores",
    # Faults
    "Fault",
    "ConfigurationFault",
    "ConfigurationError",
    "ValidationFault",
    "ValidationError",
]
