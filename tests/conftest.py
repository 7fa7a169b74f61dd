"""
Shared test fixtures and helpers for the Ormur test suite.
"""

import datetime
import uuid

import pytest

from ormur import Column, Model
from ormur.db import MemoryStore, SQLiteStore, reset_stores
from ormur.naming import is_uuid


USERS_DDL = """
CREATE TABLE users (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL,
    password TEXT,
    foreign_table_id TEXT,
    is_cool BOOLEAN,
    created_at TIMESTAMP
)
"""


async def new_uuid(value):
    """Async transform that ignores its input."""
    return str(uuid.uuid4())


def build_user_model(backing):
    """
    Build a ``User`` model bound to ``backing``.

    Covers every rule kind: primary key, required column, hidden column with
    a transform, async transform plus custom predicate, and a callable default.
    """

    class User(Model):
        store = backing

        id = Column("integer", primary_key=True)
        name = Column("string", not_null=True)
        password = Column(
            "string",
            hidden=True,
            transform=lambda value: f"!!!{value}!!!",
        )
        foreign_table_id = Column(
            "uuid",
            transform=new_uuid,
            validate=is_uuid,
        )
        is_cool = Column("boolean")
        created_at = Column("date", default=datetime.datetime.now)

    return User


# ============================================================================
# Fixtures
# ============================================================================


@pytest.fixture(autouse=True)
def reset_store_registry():
    """Reset the default store registry between tests."""
    reset_stores()
    yield
    reset_stores()


@pytest.fixture
def memory_store():
    return MemoryStore()


@pytest.fixture
async def sqlite_store():
    store = SQLiteStore(":memory:")
    await store.execute(USERS_DDL)
    yield store
    await store.disconnect()


@pytest.fixture(params=["memory", "sqlite"])
async def store(request):
    """Each persistence test runs against both backends."""
    if request.param == "memory":
        yield MemoryStore()
    else:
        backing = SQLiteStore(":memory:")
        await backing.execute(USERS_DDL)
        yield backing
        await backing.disconnect()


@pytest.fixture
def User(memory_store):
    return build_user_model(memory_store)
