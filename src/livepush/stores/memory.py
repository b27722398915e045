"""In-process store implementations."""

from __future__ import annotations

import datetime as dt

from livepush.models.subscription import Subscription
from livepush.stores.base import CacheEntry, CacheStore, SubscriptionStore


class MemoryCacheStore(CacheStore):
    def __init__(self) -> None:
        self._entries: dict[str, CacheEntry] = {}

    def __len__(self) -> int:
        return len(self._entries)

    async def read(self, key: str) -> CacheEntry | None:
        return self._entries.get(key)

    async def write(self, entry: CacheEntry) -> None:
        self._entries[entry.key] = entry

    async def delete_older_than(self, cutoff: dt.datetime) -> int:
        stale = [key for key, entry in self._entries.items() if entry.written_at < cutoff]
        for key in stale:
            del self._entries[key]
        return len(stale)


def _identity(sub: Subscription) -> tuple[str, int, str, str]:
    return sub.user_id, sub.competition_id, sub.class_name, sub.runner_name


class MemorySubscriptionStore(SubscriptionStore):
    def __init__(self, subscriptions: list[Subscription] | None = None) -> None:
        self._subs: dict[tuple[str, int, str, str], Subscription] = {}
        for sub in subscriptions or []:
            self._subs[_identity(sub)] = sub

    def __len__(self) -> int:
        return len(self._subs)

    async def add(self, subscription: Subscription) -> None:
        self._subs[_identity(subscription)] = subscription

    async def remove(
        self, user_id: str, competition_id: int, class_name: str, runner_name: str,
    ) -> bool:
        return self._subs.pop((user_id, competition_id, class_name, runner_name), None) is not None

    async def for_class(self, competition_id: int, class_name: str) -> list[Subscription]:
        return [
            sub for sub in self._subs.values()
            if sub.competition_id == competition_id and sub.class_name == class_name
        ]

    async def for_competition(self, competition_id: int) -> list[Subscription]:
        return [sub for sub in self._subs.values() if sub.competition_id == competition_id]

    async def active(
        self,
        created_after: dt.datetime,
        start_from: dt.datetime,
        start_until: dt.datetime,
    ) -> list[Subscription]:
        active: list[Subscription] = []
        for sub in self._subs.values():
            if sub.start_time is not None:
                if start_from <= sub.start_time <= start_until:
                    active.append(sub)
            elif sub.created_at >= created_after:
                active.append(sub)
        return active

    async def delete_older_than(self, cutoff: dt.datetime) -> int:
        stale = [key for key, sub in self._subs.items() if sub.created_at < cutoff]
        for key in stale:
            del self._subs[key]
        return len(stale)
