"""
Stores: URL factory, default-store registry, memory and SQLite backends.
"""

import datetime

import pytest

from ormur import ConfigurationFault
from ormur.db import (
    MemoryStore,
    SQLiteStore,
    Store,
    configure_store,
    create_store,
    get_all_stores,
    get_store,
    reset_stores,
    set_store,
)
from ormur.db.backends.base import check_identifier
from ormur.faults import StoreUrlInvalidFault


# ============================================================================
# Engine
# ============================================================================


class TestCreateStore:

    def test_memory(self):
        assert isinstance(create_store("memory://"), MemoryStore)

    def test_default_is_memory(self):
        assert isinstance(create_store(), MemoryStore)

    def test_sqlite_file(self):
        store = create_store("sqlite:///app.db")
        assert isinstance(store, SQLiteStore)
        assert store.path == "app.db"
        assert store.is_connected is False

    def test_sqlite_memory(self):
        assert create_store("sqlite:///:memory:").path == ":memory:"
        assert create_store("sqlite://").path == ":memory:"

    def test_unknown_scheme(self):
        with pytest.raises(StoreUrlInvalidFault) as exc:
            create_store("redis://localhost")
        assert isinstance(exc.value, ConfigurationFault)
        assert exc.value.code == "STORE_URL_INVALID"


class TestRegistry:

    def test_empty(self):
        assert get_store() is None
        assert get_all_stores() == {}

    def test_configure_default(self):
        store = configure_store("memory://")
        assert get_store() is store
        assert get_store("default") is store

    def test_alias(self):
        primary = configure_store("memory://")
        replica = configure_store("memory://", alias="replica")
        assert get_store() is primary
        assert get_store("replica") is replica
        assert get_all_stores() == {"default": primary, "replica": replica}

    def test_unknown_alias(self):
        configure_store("memory://")
        assert get_store("missing") is None

    def test_set_store(self):
        store = MemoryStore()
        set_store(store)
        assert get_store() is store

    def test_reset(self):
        configure_store("memory://")
        reset_stores()
        assert get_store() is None


# ============================================================================
# Store interface
# ============================================================================


class TestStoreInterface:

    def test_abstract(self):
        with pytest.raises(TypeError):
            Store()

    @pytest.mark.parametrize("name", ["users", "_private", "Table1"])
    def test_valid_identifiers(self, name):
        assert check_identifier(name) == name

    @pytest.mark.parametrize("name", ['users"; DROP TABLE users; --', "1abc", "a b", "", None])
    def test_invalid_identifiers(self, name):
        with pytest.raises(ConfigurationFault) as exc:
            check_identifier(name)
        assert exc.value.code == "IDENTIFIER_INVALID"


# ============================================================================
# MemoryStore
# ============================================================================


class TestMemoryStore:

    @pytest.mark.asyncio
    async def test_assigns_sequential_keys(self, memory_store):
        first = await memory_store.insert("t", {"name": "a"}, "id")
        second = await memory_store.insert("t", {"name": "b"}, "id")
        assert (first["id"], second["id"]) == (1, 2)

    @pytest.mark.asyncio
    async def test_explicit_key_advances_sequence(self, memory_store):
        await memory_store.insert("t", {"id": 10}, "id")
        row = await memory_store.insert("t", {}, "id")
        assert row["id"] == 11

    @pytest.mark.asyncio
    async def test_sequences_per_table(self, memory_store):
        await memory_store.insert("a", {}, "id")
        assert (await memory_store.insert("b", {}, "id"))["id"] == 1

    @pytest.mark.asyncio
    async def test_rows_are_copied(self, memory_store):
        row = {"tags": ["a"]}
        stored = await memory_store.insert("t", row, "id")
        row["tags"].append("b")
        stored["tags"].append("c")
        [selected] = await memory_store.select("t")
        assert selected["tags"] == ["a"]

    @pytest.mark.asyncio
    async def test_update_and_delete(self, memory_store):
        await memory_store.insert("t", {"name": "a"}, "id")
        await memory_store.insert("t", {"name": "b"}, "id")
        updated = await memory_store.update("t", "id", 1, {"name": "z"})
        assert updated == [{"id": 1, "name": "z"}]
        assert await memory_store.delete("t", "id", 1) == 1
        assert await memory_store.delete("t", "id", 1) == 0
        assert memory_store.table("t") == [{"id": 2, "name": "b"}]

    @pytest.mark.asyncio
    async def test_select_filters(self, memory_store):
        await memory_store.insert("t", {"name": "a", "ok": True}, "id")
        await memory_store.insert("t", {"name": "b", "ok": True}, "id")
        await memory_store.insert("t", {"name": "a", "ok": False}, "id")
        assert len(await memory_store.select("t", {"name": "a"})) == 2
        assert len(await memory_store.select("t", {"name": "a", "ok": True})) == 1
        assert await memory_store.select("missing") == []

    @pytest.mark.asyncio
    async def test_clear(self, memory_store):
        await memory_store.insert("t", {}, "id")
        memory_store.clear()
        assert memory_store.table("t") == []
        assert (await memory_store.insert("t", {}, "id"))["id"] == 1


# ============================================================================
# SQLiteStore
# ============================================================================


class TestSQLiteStore:

    @pytest.mark.asyncio
    async def test_lazy_connect(self):
        store = SQLiteStore()
        assert store.is_connected is False
        await store.execute("CREATE TABLE t (id INTEGER PRIMARY KEY)")
        assert store.is_connected is True
        await store.disconnect()
        assert store.is_connected is False

    @pytest.mark.asyncio
    async def test_context_manager(self):
        async with SQLiteStore() as store:
            assert store.is_connected
        assert not store.is_connected

    @pytest.mark.asyncio
    async def test_insert_returns_stored_row(self, sqlite_store):
        row = await sqlite_store.insert("users", {"name": "a", "is_cool": True}, "id")
        assert row["id"] == 1
        assert row["name"] == "a"
        assert row["is_cool"] is True
        assert row["password"] is None

    @pytest.mark.asyncio
    async def test_text_primary_key(self, sqlite_store):
        await sqlite_store.execute("CREATE TABLE tokens (key TEXT PRIMARY KEY, value TEXT)")
        row = await sqlite_store.insert("tokens", {"key": "abc", "value": "v"}, "key")
        assert row == {"key": "abc", "value": "v"}

    @pytest.mark.asyncio
    async def test_converts_declared_types(self, sqlite_store):
        now = datetime.datetime(2020, 1, 2, 3, 4, 5)
        await sqlite_store.insert("users", {"name": "a", "is_cool": False, "created_at": now}, "id")
        [row] = await sqlite_store.select("users")
        assert row["is_cool"] is False
        assert row["created_at"] == now

    @pytest.mark.asyncio
    async def test_date_column(self, sqlite_store):
        await sqlite_store.execute("CREATE TABLE events (id INTEGER PRIMARY KEY, day DATE)")
        await sqlite_store.insert("events", {"day": datetime.date(2021, 5, 6)}, "id")
        [row] = await sqlite_store.select("events")
        assert row["day"] == datetime.date(2021, 5, 6)

    @pytest.mark.asyncio
    async def test_null_filter(self, sqlite_store):
        await sqlite_store.insert("users", {"name": "a"}, "id")
        await sqlite_store.insert("users", {"name": "b", "password": "x"}, "id")
        rows = await sqlite_store.select("users", {"password": None})
        assert [r["name"] for r in rows] == ["a"]

    @pytest.mark.asyncio
    async def test_update_returns_rows(self, sqlite_store):
        await sqlite_store.insert("users", {"name": "a"}, "id")
        rows = await sqlite_store.update("users", "id", 1, {"name": "z"})
        assert [r["name"] for r in rows] == ["z"]

    @pytest.mark.asyncio
    async def test_update_can_change_key(self, sqlite_store):
        await sqlite_store.insert("users", {"name": "a"}, "id")
        rows = await sqlite_store.update("users", "id", 1, {"id": 5, "name": "a"})
        assert rows[0]["id"] == 5

    @pytest.mark.asyncio
    async def test_delete_count(self, sqlite_store):
        await sqlite_store.insert("users", {"name": "a"}, "id")
        await sqlite_store.insert("users", {"name": "a"}, "id")
        assert await sqlite_store.delete("users", "name", "a") == 2
        assert await sqlite_store.select("users") == []

    @pytest.mark.asyncio
    async def test_rejects_injected_identifiers(self, sqlite_store):
        with pytest.raises(ConfigurationFault):
            await sqlite_store.select("users", {"name = name; --": "x"})
        with pytest.raises(ConfigurationFault):
            await sqlite_store.insert('users"', {"name": "a"}, "id")

    @pytest.mark.asyncio
    async def test_schema_change_seen_after_execute(self, sqlite_store):
        await sqlite_store.select("users")
        await sqlite_store.execute("ALTER TABLE users ADD COLUMN joined DATE")
        await sqlite_store.insert("users", {"name": "a", "joined": datetime.date(2020, 1, 1)}, "id")
        [row] = await sqlite_store.select("users")
        assert row["joined"] == datetime.date(2020, 1, 1)
