"""Abstract storage interfaces for the snapshot cache and subscriptions."""

from __future__ import annotations

import datetime as dt
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

from livepush.models.subscription import Subscription


@dataclass(frozen=True)
class CacheEntry:
    key: str
    token: str
    payload: Any
    written_at: dt.datetime


class CacheStore(ABC):
    """Key-value storage behind the snapshot cache.

    Implementations may raise any exception when storage is unavailable;
    the cache turns failures into misses.
    """

    @abstractmethod
    async def read(self, key: str) -> CacheEntry | None: ...

    @abstractmethod
    async def write(self, entry: CacheEntry) -> None: ...

    @abstractmethod
    async def delete_older_than(self, cutoff: dt.datetime) -> int: ...


class SubscriptionStore(ABC):
    """Storage for who follows which runner."""

    @abstractmethod
    async def add(self, subscription: Subscription) -> None: ...

    @abstractmethod
    async def remove(
        self, user_id: str, competition_id: int, class_name: str, runner_name: str,
    ) -> bool: ...

    @abstractmethod
    async def for_class(self, competition_id: int, class_name: str) -> list[Subscription]: ...

    @abstractmethod
    async def for_competition(self, competition_id: int) -> list[Subscription]: ...

    @abstractmethod
    async def active(
        self,
        created_after: dt.datetime,
        start_from: dt.datetime,
        start_until: dt.datetime,
    ) -> list[Subscription]:
        """Subscriptions whose start time falls in [start_from, start_until],
        or that have no start time and were created after *created_after*."""

    @abstractmethod
    async def delete_older_than(self, cutoff: dt.datetime) -> int: ...
