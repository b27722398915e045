"""Hash-aware snapshot cache shared by every poll of the same query."""

from __future__ import annotations

import datetime as dt
import logging
from collections.abc import Callable, Mapping
from typing import Any

from livepush.stores.base import CacheEntry, CacheStore

logger = logging.getLogger(__name__)

Clock = Callable[[], dt.datetime]


def utc_now() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


class SnapshotCache:
    """Keyed store of {change token, payload, write time} per upstream query.

    Storage failures never escape: a failed read is a miss, a failed write
    is a no-op. Serving fresh upstream data always wins over consistency of
    the cache.
    """

    def __init__(self, store: CacheStore, clock: Clock = utc_now) -> None:
        self.store = store
        self.clock = clock

    @staticmethod
    def key(kind: str, params: Mapping[str, Any] | None = None) -> str:
        """Canonical key for a query: kind, then params sorted by name."""
        kind = getattr(kind, "value", kind)
        parts = [str(kind)]
        for name in sorted(params or {}):
            value = params[name]
            if value is None:
                continue
            parts.append(f"{name}_{value}")
        return "_".join(parts)

    def age(self, entry: CacheEntry) -> float:
        """Seconds since *entry* was written."""
        return (self.clock() - entry.written_at).total_seconds()

    async def peek(self, key: str) -> CacheEntry | None:
        """Return the entry for *key* regardless of its age."""
        try:
            return await self.store.read(key)
        except Exception as exc:
            logger.error("Cache read failed for %s: %s", key, exc)
            return None

    async def get(self, key: str, max_age: float) -> CacheEntry | None:
        """Return the entry for *key* if it is younger than *max_age* seconds.

        A zero max age is always a miss.
        """
        entry = await self.peek(key)
        if entry is None:
            return None
        if self.age(entry) >= max_age:
            logger.debug("Cache expired for key: %s", key)
            return None
        logger.debug("Cache hit for key: %s", key)
        return entry

    async def set(self, key: str, token: str, payload: Any) -> None:
        entry = CacheEntry(key=key, token=token, payload=payload, written_at=self.clock())
        try:
            await self.store.write(entry)
        except Exception as exc:
            logger.error("Cache write failed for %s: %s", key, exc)
            return
        logger.debug("Cache updated for key: %s", key)

    async def confirm(self, entry: CacheEntry | None, token: str | None) -> bool:
        """Rewrite *entry* with a fresh timestamp if upstream confirmed its token."""
        if entry is None or token != entry.token:
            return False
        await self.set(entry.key, entry.token, entry.payload)
        return True

    async def evict_older_than(self, retention: float) -> int:
        """Delete entries written more than *retention* seconds ago."""
        cutoff = self.clock() - dt.timedelta(seconds=retention)
        try:
            count = await self.store.delete_older_than(cutoff)
        except Exception as exc:
            logger.error("Cache eviction failed: %s", exc)
            return 0
        if count:
            logger.info("Evicted %d old cache entries", count)
        else:
            logger.info("No old cache entries to evict")
        return count
