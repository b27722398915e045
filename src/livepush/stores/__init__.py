"""Storage backends for the snapshot cache and subscriptions."""

from livepush.stores.base import CacheEntry, CacheStore, SubscriptionStore
from livepush.stores.memory import MemoryCacheStore, MemorySubscriptionStore
from livepush.stores.sqlite import SqliteCacheStore, SqliteDatabase, SqliteSubscriptionStore

__all__ = [
    "CacheEntry",
    "CacheStore",
    "MemoryCacheStore",
    "MemorySubscriptionStore",
    "SqliteCacheStore",
    "SqliteDatabase",
    "SqliteSubscriptionStore",
    "SubscriptionStore",
]
