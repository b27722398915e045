"""Tests for the aiosqlite-backed stores."""

from __future__ import annotations

import datetime as dt

import pytest
import pytest_asyncio

from livepush.cache import SnapshotCache
from livepush.exceptions import StoreError
from livepush.stores.base import CacheEntry
from livepush.stores.sqlite import SqliteCacheStore, SqliteDatabase, SqliteSubscriptionStore
from tests.conftest import T0, make_subscription

HOUR = dt.timedelta(hours=1)


@pytest_asyncio.fixture
async def db(tmp_path):
    database = SqliteDatabase(str(tmp_path / "livepush.db"))
    await database.connect()
    yield database
    await database.close()


class TestSqliteCacheStore:
    @pytest.mark.asyncio
    async def test_write_and_read(self, db) -> None:
        store = SqliteCacheStore(db)
        payload = {"className": "H21", "results": [{"name": "Anton Mörkfors"}]}
        await store.write(CacheEntry(key="k", token="h1", payload=payload, written_at=T0))

        entry = await store.read("k")

        assert entry is not None
        assert entry.token == "h1"
        assert entry.payload == payload
        assert entry.written_at == T0

    @pytest.mark.asyncio
    async def test_upsert(self, db) -> None:
        store = SqliteCacheStore(db)
        await store.write(CacheEntry(key="k", token="h1", payload={}, written_at=T0))
        await store.write(CacheEntry(key="k", token="h2", payload={"n": 2}, written_at=T0 + HOUR))

        entry = await store.read("k")
        assert entry.token == "h2"
        assert entry.payload == {"n": 2}

    @pytest.mark.asyncio
    async def test_missing_key(self, db) -> None:
        assert await SqliteCacheStore(db).read("nope") is None

    @pytest.mark.asyncio
    async def test_delete_older_than(self, db) -> None:
        store = SqliteCacheStore(db)
        await store.write(CacheEntry(key="old", token="h1", payload={}, written_at=T0))
        await store.write(CacheEntry(key="new", token="h2", payload={}, written_at=T0 + 48 * HOUR))

        assert await store.delete_older_than(T0 + HOUR) == 1
        assert await store.read("old") is None
        assert await store.read("new") is not None

    @pytest.mark.asyncio
    async def test_behind_snapshot_cache(self, db, clock) -> None:
        cache = SnapshotCache(SqliteCacheStore(db), clock=clock)
        await cache.set("getclasses_comp_10278", "h1", {"classes": []})
        clock.advance(60)
        assert (await cache.get("getclasses_comp_10278", max_age=900)).token == "h1"


class TestSqliteSubscriptionStore:
    @pytest.mark.asyncio
    async def test_add_and_query(self, db) -> None:
        store = SqliteSubscriptionStore(db)
        await store.add(make_subscription(token="a"))
        await store.add(make_subscription(token="b", user_id="user-2", class_name="D21"))

        h21 = await store.for_class(10278, "H21")
        assert [s.token for s in h21] == ["a"]
        assert h21[0].created_at == T0
        assert len(await store.for_competition(10278)) == 2

    @pytest.mark.asyncio
    async def test_add_replaces_token(self, db) -> None:
        store = SqliteSubscriptionStore(db)
        await store.add(make_subscription(token="old"))
        await store.add(make_subscription(token="new"))
        subs = await store.for_class(10278, "H21")
        assert [s.token for s in subs] == ["new"]

    @pytest.mark.asyncio
    async def test_remove(self, db) -> None:
        store = SqliteSubscriptionStore(db)
        await store.add(make_subscription())
        assert await store.remove("user-1", 10278, "H21", "Anton Mörkfors")
        assert not await store.remove("user-1", 10278, "H21", "Anton Mörkfors")

    @pytest.mark.asyncio
    async def test_active(self, db) -> None:
        store = SqliteSubscriptionStore(db)
        await store.add(make_subscription(user_id="recent", created_at=T0))
        await store.add(make_subscription(user_id="stale", created_at=T0 - 48 * HOUR))
        await store.add(make_subscription(
            user_id="starting", created_at=T0 - 48 * HOUR, start_time=T0 + HOUR,
        ))
        await store.add(make_subscription(
            user_id="later", created_at=T0, start_time=T0 + 10 * HOUR,
        ))

        active = await store.active(
            created_after=T0 - 24 * HOUR, start_from=T0 - 3 * HOUR, start_until=T0 + 2 * HOUR,
        )
        assert sorted(s.user_id for s in active) == ["recent", "starting"]

    @pytest.mark.asyncio
    async def test_delete_older_than(self, db) -> None:
        store = SqliteSubscriptionStore(db)
        await store.add(make_subscription(user_id="old", created_at=T0 - 40 * 24 * HOUR))
        await store.add(make_subscription(user_id="new"))
        assert await store.delete_older_than(T0 - 30 * 24 * HOUR) == 1
        assert [s.user_id for s in await store.for_competition(10278)] == ["new"]


class TestSqliteDatabase:
    @pytest.mark.asyncio
    async def test_closed_database_raises_store_error(self, tmp_path) -> None:
        database = SqliteDatabase(str(tmp_path / "closed.db"))
        with pytest.raises(StoreError):
            await SqliteCacheStore(database).read("k")

    @pytest.mark.asyncio
    async def test_context_manager(self, tmp_path) -> None:
        async with SqliteDatabase(str(tmp_path / "ctx.db")) as database:
            assert database.conn is not None
        assert database.conn is None
