"""Poll coordinators: the on-demand query path and the scheduled sweep.

Both drive the same pipeline: fetch upstream, diff against the cached
snapshot, notify followers, store the new snapshot.
"""

from __future__ import annotations

import asyncio
import datetime as dt
import hashlib
import json
import logging
from collections import Counter
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from pydantic import ValidationError

from livepush.cache import Clock, SnapshotCache, utc_now
from livepush.call_logging import log_service_call
from livepush.client import LiveResultsClient
from livepush.config import Settings
from livepush.diff import diff_results
from livepush.exceptions import InvalidQueryError
from livepush.fetch import Changed, FetchFailed, FetchResult, Unchanged
from livepush.followers import FollowerIndex
from livepush.models.payloads import ClassList, ClassResults
from livepush.notifications import DispatchReport, NotificationDispatcher
from livepush.queries import QueryKind, parse_kind, require_params
from livepush.stores.base import CacheEntry, SubscriptionStore

logger = logging.getLogger(__name__)


class ResponseStatus(str, Enum):
    OK = "ok"
    UNCHANGED = "unchanged"
    ERROR = "error"


@dataclass(frozen=True)
class QueryResponse:
    """Answer to one inbound query: status, change token and JSON data."""

    status: ResponseStatus
    hash: str | None = None
    data: Any = None
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {"status": self.status.value, "hash": self.hash}
        if self.status is ResponseStatus.OK:
            body["data"] = self.data
        if self.error:
            body["error"] = self.error
        return body


def competition_id(value: Any) -> int:
    try:
        return int(str(value).strip())
    except (TypeError, ValueError) as exc:
        raise InvalidQueryError(f"Invalid competition id: {value!r}") from exc


def results_key(competition: int, class_name: str) -> str:
    return SnapshotCache.key(QueryKind.CLASS_RESULTS, {"comp": competition, "class": class_name})


def data_token(data: Any) -> str:
    """Change token for data we compute ourselves."""
    encoded = json.dumps(data, sort_keys=True, ensure_ascii=False).encode("utf-8")
    return hashlib.sha1(encoded).hexdigest()


def load_class_results(payload: Any) -> ClassResults | None:
    """Revalidate a cached class results payload, or None if it no longer parses."""
    try:
        return ClassResults.model_validate(payload)
    except ValidationError as exc:
        logger.warning("Discarding unreadable cached class results: %s", exc)
        return None


# ── Pipeline ───────────────────────────────────────────────


class ResultsPipeline:
    """fetch -> diff -> dispatch -> cache write for one (competition, class)."""

    def __init__(
        self,
        client: LiveResultsClient,
        cache: SnapshotCache,
        followers: FollowerIndex,
        dispatcher: NotificationDispatcher,
    ) -> None:
        self.client = client
        self.cache = cache
        self.followers = followers
        self.dispatcher = dispatcher

    async def refresh_class(
        self,
        competition: int,
        class_name: str,
        baseline: CacheEntry | None,
        last_hash: str | None = None,
    ) -> FetchResult[ClassResults]:
        """Fetch one class and notify followers about what changed since *baseline*."""
        key = results_key(competition, class_name)
        result = await self.client.class_results(competition, class_name, last_hash)

        if isinstance(result, Unchanged):
            # Keep the baseline from ageing out.
            await self.cache.confirm(baseline, result.token)
            return result
        if isinstance(result, FetchFailed):
            return result

        new = result.payload
        old = load_class_results(baseline.payload) if baseline is not None else None
        if old is None:
            logger.info("First poll for %s/%s - establishing baseline", competition, class_name)
        else:
            try:
                await self.notify(competition, class_name, old, new)
            except Exception:
                logger.exception("Error processing result changes for %s/%s", competition, class_name)

        await self.cache.set(key, result.token, new.model_dump(mode="json"))
        return result

    async def notify(
        self, competition: int, class_name: str, old: ClassResults, new: ClassResults,
    ) -> DispatchReport:
        events = diff_results(old.results, new.results, new.split_controls)
        if not events:
            return DispatchReport()
        subscriptions = await self.followers.subscribers_of_class(competition, class_name)
        if not subscriptions:
            logger.info("No users following %s/%s", competition, class_name)
            return DispatchReport()
        logger.info("Detected %d events for %s/%s", len(events), competition, class_name)
        return await self.dispatcher.dispatch_all(events, subscriptions, competition, class_name)


# ── On-demand queries ──────────────────────────────────────


class QueryService:
    """Serves inbound queries from the cache, refreshing from upstream on a miss."""

    def __init__(
        self,
        client: LiveResultsClient,
        cache: SnapshotCache,
        pipeline: ResultsPipeline,
        settings: Settings,
    ) -> None:
        self.client = client
        self.cache = cache
        self.pipeline = pipeline
        self.settings = settings

    @log_service_call
    async def handle(
        self,
        method: str,
        params: Mapping[str, Any] | None = None,
        last_hash: str | None = None,
    ) -> QueryResponse:
        """Answer one query. Raises InvalidQueryError for bad method or params."""
        params = params or {}
        if method == "getclubs":
            return await self.clubs(competition_id(params.get("comp")), last_hash)
        if method == "getrunnersforclub":
            club = params.get("club")
            if not club:
                raise InvalidQueryError("Missing 'club' parameter for getrunnersforclub")
            return await self.runners_for_club(competition_id(params.get("comp")), str(club), last_hash)

        kind = parse_kind(method)
        required = require_params(kind, params)
        if "comp" in required:
            required["comp"] = str(competition_id(required["comp"]))
        return await self.query(kind, required, last_hash)

    async def query(
        self, kind: QueryKind, params: dict[str, str], last_hash: str | None = None,
    ) -> QueryResponse:
        key = self.cache.key(kind.value, params)
        cached = await self.cache.get(key, self.settings.ttl_for(kind))
        if cached is not None and last_hash and cached.token == last_hash:
            logger.info("Cache HIT (NOT MODIFIED) for %s", key)
            return QueryResponse(ResponseStatus.UNCHANGED, hash=cached.token)
        if cached is not None:
            logger.info("Cache HIT for %s", key)
            return QueryResponse(ResponseStatus.OK, hash=cached.token, data=cached.payload)

        logger.info("Cache MISS for %s - fetching fresh data", key)
        baseline = await self.cache.peek(key)
        if kind is QueryKind.CLASS_RESULTS:
            result = await self.pipeline.refresh_class(
                int(params["comp"]), params["class"], baseline, last_hash,
            )
        else:
            result = await self.client.fetch(kind, params, last_hash)
            if isinstance(result, Changed):
                await self.cache.set(key, result.token, result.payload.model_dump(mode="json"))
            elif isinstance(result, Unchanged):
                await self.cache.confirm(baseline, result.token)
        return self._respond(result, last_hash)

    @staticmethod
    def _respond(result: FetchResult[Any], last_hash: str | None) -> QueryResponse:
        if isinstance(result, Changed):
            return QueryResponse(ResponseStatus.OK, hash=result.token, data=result.payload.model_dump(mode="json"))
        if isinstance(result, Unchanged):
            return QueryResponse(ResponseStatus.UNCHANGED, hash=result.token or last_hash)
        return QueryResponse(ResponseStatus.ERROR, error=result.reason)

    # ── Aggregates ─────────────────────────────────────────

    async def _class_results(self, competition: int) -> tuple[list[tuple[str, ClassResults]], bool] | None:
        """Results of every class in *competition*.

        Returns None if the class list itself is unavailable; otherwise the
        classes that could be loaded and whether all of them were.
        """
        listing = await self.query(QueryKind.CLASSES, {"comp": str(competition)})
        if listing.status is not ResponseStatus.OK:
            return None
        class_names = [race_class.class_name for race_class in ClassList.model_validate(listing.data).classes]

        semaphore = asyncio.Semaphore(self.settings.sweep_concurrency)

        async def load(class_name: str) -> ClassResults | None:
            async with semaphore:
                response = await self.query(
                    QueryKind.CLASS_RESULTS, {"comp": str(competition), "class": class_name},
                )
            if response.status is not ResponseStatus.OK:
                logger.warning("Omitting class %s of %s from aggregate", class_name, competition)
                return None
            return load_class_results(response.data)

        loaded = await asyncio.gather(*(load(name) for name in class_names))
        found = [(name, results) for name, results in zip(class_names, loaded) if results is not None]
        return found, len(found) == len(class_names)

    async def _aggregate(
        self,
        key: str,
        last_hash: str | None,
        build: Callable[[list[tuple[str, ClassResults]]], Any],
        competition: int,
    ) -> QueryResponse:
        cached = await self.cache.get(key, self.settings.ttl_aggregates)
        if cached is not None:
            if last_hash and cached.token == last_hash:
                return QueryResponse(ResponseStatus.UNCHANGED, hash=cached.token)
            return QueryResponse(ResponseStatus.OK, hash=cached.token, data=cached.payload)

        source = await self._class_results(competition)
        if source is None:
            return QueryResponse(ResponseStatus.ERROR, error=f"Failed to fetch classes for {competition}")
        classes, complete = source
        data = build(classes)
        token = data_token(data)
        if complete:
            await self.cache.set(key, token, data)
        if last_hash and token == last_hash:
            return QueryResponse(ResponseStatus.UNCHANGED, hash=token)
        return QueryResponse(ResponseStatus.OK, hash=token, data=data)

    async def clubs(self, competition: int, last_hash: str | None = None) -> QueryResponse:
        """Clubs in a competition with their runner counts, sorted by name."""

        def build(classes: list[tuple[str, ClassResults]]) -> list[dict[str, Any]]:
            counts: Counter[str] = Counter()
            for _, results in classes:
                counts.update(runner.club for runner in results.results if runner.club)
            return [{"name": name, "runners": counts[name]} for name in sorted(counts)]

        key = self.cache.key("getclubs", {"comp": competition})
        return await self._aggregate(key, last_hash, build, competition)

    async def runners_for_club(
        self, competition: int, club: str, last_hash: str | None = None,
    ) -> QueryResponse:
        """Every runner from *club*, across all classes, tagged with their class."""

        def build(classes: list[tuple[str, ClassResults]]) -> list[dict[str, Any]]:
            return [
                {**runner.model_dump(mode="json"), "class_name": class_name}
                for class_name, results in classes
                for runner in results.runners_in_club(club)
            ]

        key = self.cache.key("getrunnersforclub", {"comp": competition, "club": club})
        return await self._aggregate(key, last_hash, build, competition)


# ── Scheduled sweep ────────────────────────────────────────


@dataclass(frozen=True)
class SweepReport:
    targets: int = 0
    outcomes: dict[str, int] = field(default_factory=dict)

    @property
    def failed(self) -> int:
        return self.outcomes.get("error", 0)


class ResultsSweeper:
    """Re-polls every (competition, class) that has live followers."""

    def __init__(
        self,
        pipeline: ResultsPipeline,
        followers: FollowerIndex,
        cache: SnapshotCache,
        settings: Settings,
        clock: Clock = utc_now,
    ) -> None:
        self.pipeline = pipeline
        self.followers = followers
        self.cache = cache
        self.settings = settings
        self.clock = clock

    @log_service_call
    async def sweep(self, now: dt.datetime | None = None) -> SweepReport:
        now = now or self.clock()
        targets = await self.followers.active_targets(
            now,
            self.settings.recency_window,
            self.settings.before_start,
            self.settings.after_start,
        )
        if not targets:
            logger.info("No active subscriptions to poll")
            return SweepReport()

        semaphore = asyncio.Semaphore(self.settings.sweep_concurrency)

        async def guarded(competition: int, class_name: str) -> str:
            async with semaphore:
                try:
                    return await self.poll_target(competition, class_name)
                except Exception:
                    logger.exception("Error polling %s/%s", competition, class_name)
                    return "error"

        statuses = await asyncio.gather(*(guarded(comp, cls) for comp, cls in targets))
        report = SweepReport(targets=len(targets), outcomes=dict(Counter(statuses)))
        logger.info("Sweep completed: %d targets, outcomes %s", report.targets, report.outcomes)
        return report

    async def poll_target(self, competition: int, class_name: str) -> str:
        key = results_key(competition, class_name)
        cached = await self.cache.get(key, self.settings.sweep_max_age)
        result = await self.pipeline.refresh_class(
            competition, class_name, cached, cached.token if cached else None,
        )
        if isinstance(result, Unchanged):
            logger.debug("No changes for %s/%s", competition, class_name)
        elif isinstance(result, FetchFailed):
            logger.warning("Failed to fetch results for %s/%s: %s", competition, class_name, result.reason)
        return result.status

    async def run_forever(self, interval: float | None = None) -> None:
        interval = interval or self.settings.sweep_interval
        logger.info("Sweep loop started (every %.0fs)", interval)
        while True:
            try:
                await self.sweep()
            except Exception:
                logger.exception("Sweep failed")
            await asyncio.sleep(interval)


# ── Maintenance ────────────────────────────────────────────


class Maintenance:
    """Retention jobs: old cache entries and old subscriptions."""

    def __init__(
        self,
        cache: SnapshotCache,
        subscriptions: SubscriptionStore,
        settings: Settings,
        clock: Clock = utc_now,
    ) -> None:
        self.cache = cache
        self.subscriptions = subscriptions
        self.settings = settings
        self.clock = clock

    async def evict_cache(self) -> int:
        return await self.cache.evict_older_than(self.settings.cache_retention)

    async def purge_subscriptions(self) -> int:
        cutoff = self.clock() - dt.timedelta(seconds=self.settings.subscription_retention)
        try:
            count = await self.subscriptions.delete_older_than(cutoff)
        except Exception as exc:
            logger.error("Error cleaning old subscriptions: %s", exc)
            return 0
        logger.info("Cleaned %d old subscriptions", count)
        return count

    async def run(self) -> tuple[int, int]:
        return await self.evict_cache(), await self.purge_subscriptions()

    async def run_forever(self, interval: float = 24 * 60 * 60) -> None:
        while True:
            await asyncio.sleep(interval)
            try:
                await self.run()
            except Exception:
                logger.exception("Maintenance failed")
