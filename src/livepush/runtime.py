"""Wiring of the long-lived components for one process."""

from __future__ import annotations

from dataclasses import dataclass

from livepush.cache import SnapshotCache
from livepush.client import LiveResultsClient
from livepush.config import Settings
from livepush.coordinator import Maintenance, QueryService, ResultsPipeline, ResultsSweeper
from livepush.followers import FollowerIndex
from livepush.notifications import LogPushGateway, NotificationDispatcher, PushGateway, WebhookPushGateway
from livepush.stores.base import CacheStore, SubscriptionStore


@dataclass
class Runtime:
    settings: Settings
    client: LiveResultsClient
    gateway: PushGateway
    cache: SnapshotCache
    subscriptions: SubscriptionStore
    service: QueryService
    sweeper: ResultsSweeper
    maintenance: Maintenance

    async def close(self) -> None:
        await self.client.close()
        await self.gateway.close()


def build_runtime(
    settings: Settings,
    cache_store: CacheStore,
    subscription_store: SubscriptionStore,
    client: LiveResultsClient | None = None,
    gateway: PushGateway | None = None,
) -> Runtime:
    """Construct every component once; all of them share one cache."""
    client = client or LiveResultsClient(base_url=settings.base_url, timeout=settings.request_timeout)
    if gateway is None:
        if settings.push_webhook_url:
            gateway = WebhookPushGateway(settings.push_webhook_url)
        else:
            gateway = LogPushGateway()

    cache = SnapshotCache(cache_store)
    followers = FollowerIndex(subscription_store)
    pipeline = ResultsPipeline(client, cache, followers, NotificationDispatcher(gateway))
    return Runtime(
        settings=settings,
        client=client,
        gateway=gateway,
        cache=cache,
        subscriptions=subscription_store,
        service=QueryService(client, cache, pipeline, settings),
        sweeper=ResultsSweeper(pipeline, followers, cache, settings),
        maintenance=Maintenance(cache, subscription_store, settings),
    )
