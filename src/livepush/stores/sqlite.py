"""SQLite-backed stores using aiosqlite."""

from __future__ import annotations

import datetime as dt
import json
import logging
from typing import Any

import aiosqlite

from livepush.exceptions import StoreError
from livepush.models.subscription import Subscription
from livepush.stores.base import CacheEntry, CacheStore, SubscriptionStore

logger = logging.getLogger(__name__)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS api_cache (
    key         TEXT PRIMARY KEY,
    token       TEXT NOT NULL,
    payload     TEXT NOT NULL,
    written_at  REAL NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_api_cache_written_at ON api_cache (written_at);

CREATE TABLE IF NOT EXISTS subscriptions (
    user_id         TEXT NOT NULL,
    competition_id  INTEGER NOT NULL,
    class_name      TEXT NOT NULL,
    runner_name     TEXT NOT NULL,
    token           TEXT,
    created_at      REAL NOT NULL,
    start_time      REAL,
    PRIMARY KEY (user_id, competition_id, class_name, runner_name)
);
CREATE INDEX IF NOT EXISTS idx_subscriptions_target ON subscriptions (competition_id, class_name);
CREATE INDEX IF NOT EXISTS idx_subscriptions_start ON subscriptions (start_time);
"""


def _to_epoch(value: dt.datetime) -> float:
    return value.timestamp()


def _from_epoch(value: float | None) -> dt.datetime | None:
    if value is None:
        return None
    return dt.datetime.fromtimestamp(value, tz=dt.timezone.utc)


class SqliteDatabase:
    """One aiosqlite connection shared by the cache and subscription stores."""

    def __init__(self, path: str) -> None:
        self.path = path
        self.conn: aiosqlite.Connection | None = None

    async def connect(self) -> None:
        self.conn = await aiosqlite.connect(self.path)
        self.conn.row_factory = aiosqlite.Row
        await self.conn.executescript(_SCHEMA)
        await self.conn.commit()
        logger.info("Database ready at %s", self.path)

    async def close(self) -> None:
        if self.conn is not None:
            await self.conn.close()
            self.conn = None

    async def __aenter__(self) -> SqliteDatabase:
        await self.connect()
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.close()

    async def execute(self, query: str, args: tuple[Any, ...] = (), fetch: str | None = None) -> Any:
        """Run one statement. ``fetch`` is 'one', 'all' or None (commit and return rowcount)."""
        if self.conn is None:
            raise StoreError("Database is not connected")
        try:
            async with self.conn.cursor() as cursor:
                await cursor.execute(query, args)
                if fetch == "one":
                    return await cursor.fetchone()
                if fetch == "all":
                    return await cursor.fetchall()
                await self.conn.commit()
                return cursor.rowcount
        except aiosqlite.Error as exc:
            raise StoreError(f"SQLite error: {exc}") from exc


class SqliteCacheStore(CacheStore):
    def __init__(self, db: SqliteDatabase) -> None:
        self.db = db

    async def read(self, key: str) -> CacheEntry | None:
        row = await self.db.execute(
            "SELECT key, token, payload, written_at FROM api_cache WHERE key = ?", (key,), fetch="one",
        )
        if row is None:
            return None
        return CacheEntry(
            key=row["key"],
            token=row["token"],
            payload=json.loads(row["payload"]),
            written_at=_from_epoch(row["written_at"]),
        )

    async def write(self, entry: CacheEntry) -> None:
        await self.db.execute(
            """
            INSERT INTO api_cache (key, token, payload, written_at) VALUES (?, ?, ?, ?)
            ON CONFLICT(key) DO UPDATE SET
                token = excluded.token,
                payload = excluded.payload,
                written_at = excluded.written_at
            """,
            (entry.key, entry.token, json.dumps(entry.payload, ensure_ascii=False), _to_epoch(entry.written_at)),
        )

    async def delete_older_than(self, cutoff: dt.datetime) -> int:
        return await self.db.execute("DELETE FROM api_cache WHERE written_at < ?", (_to_epoch(cutoff),))


def _row_to_subscription(row: aiosqlite.Row) -> Subscription:
    return Subscription(
        user_id=row["user_id"],
        competition_id=row["competition_id"],
        class_name=row["class_name"],
        runner_name=row["runner_name"],
        token=row["token"],
        created_at=_from_epoch(row["created_at"]),
        start_time=_from_epoch(row["start_time"]),
    )


class SqliteSubscriptionStore(SubscriptionStore):
    def __init__(self, db: SqliteDatabase) -> None:
        self.db = db

    async def _select(self, where: str, args: tuple[Any, ...]) -> list[Subscription]:
        rows = await self.db.execute(f"SELECT * FROM subscriptions WHERE {where}", args, fetch="all")
        return [_row_to_subscription(row) for row in rows]

    async def add(self, subscription: Subscription) -> None:
        await self.db.execute(
            """
            INSERT INTO subscriptions
                (user_id, competition_id, class_name, runner_name, token, created_at, start_time)
            VALUES (?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(user_id, competition_id, class_name, runner_name) DO UPDATE SET
                token = excluded.token,
                created_at = excluded.created_at,
                start_time = excluded.start_time
            """,
            (
                subscription.user_id,
                subscription.competition_id,
                subscription.class_name,
                subscription.runner_name,
                subscription.token,
                _to_epoch(subscription.created_at),
                _to_epoch(subscription.start_time) if subscription.start_time else None,
            ),
        )

    async def remove(
        self, user_id: str, competition_id: int, class_name: str, runner_name: str,
    ) -> bool:
        count = await self.db.execute(
            """
            DELETE FROM subscriptions
            WHERE user_id = ? AND competition_id = ? AND class_name = ? AND runner_name = ?
            """,
            (user_id, competition_id, class_name, runner_name),
        )
        return count > 0

    async def for_class(self, competition_id: int, class_name: str) -> list[Subscription]:
        return await self._select("competition_id = ? AND class_name = ?", (competition_id, class_name))

    async def for_competition(self, competition_id: int) -> list[Subscription]:
        return await self._select("competition_id = ?", (competition_id,))

    async def active(
        self,
        created_after: dt.datetime,
        start_from: dt.datetime,
        start_until: dt.datetime,
    ) -> list[Subscription]:
        return await self._select(
            "(start_time BETWEEN ? AND ?) OR (start_time IS NULL AND created_at >= ?)",
            (_to_epoch(start_from), _to_epoch(start_until), _to_epoch(created_after)),
        )

    async def delete_older_than(self, cutoff: dt.datetime) -> int:
        return await self.db.execute("DELETE FROM subscriptions WHERE created_at < ?", (_to_epoch(cutoff),))
