"""Who follows which runner."""

from __future__ import annotations

import datetime as dt
import logging

from livepush.models.subscription import Subscription
from livepush.stores.base import SubscriptionStore

logger = logging.getLogger(__name__)


def followers_of(subscriptions: list[Subscription], runner_name: str) -> list[Subscription]:
    """Subscriptions for *runner_name*, matched exactly and case-sensitively."""
    return [sub for sub in subscriptions if sub.runner_name == runner_name]


class FollowerIndex:
    """Read-only view over the subscription store.

    Store failures are logged and answered with an empty list.
    """

    def __init__(self, store: SubscriptionStore) -> None:
        self.store = store

    async def subscribers_of_class(self, competition_id: int, class_name: str) -> list[Subscription]:
        try:
            return await self.store.for_class(competition_id, class_name)
        except Exception as exc:
            logger.error("Error fetching subscriptions for %s/%s: %s", competition_id, class_name, exc)
            return []

    async def subscribers_of_runner(
        self, competition_id: int, runner_name: str, class_name: str | None = None,
    ) -> list[Subscription]:
        try:
            if class_name is None:
                subs = await self.store.for_competition(competition_id)
            else:
                subs = await self.store.for_class(competition_id, class_name)
        except Exception as exc:
            logger.error("Error fetching subscriptions for %s/%s: %s", competition_id, runner_name, exc)
            return []
        return followers_of(subs, runner_name)

    async def active_targets(
        self,
        now: dt.datetime,
        recency: dt.timedelta,
        before_start: dt.timedelta,
        after_start: dt.timedelta,
    ) -> list[tuple[int, str]]:
        """Distinct (competition, class) pairs with at least one live follower.

        A runner is followed from *before_start* ahead of their start until
        *after_start* past it. Subscriptions without a start time count while
        they are younger than *recency*. Older subscriptions are skipped here,
        deleting them is the retention job's work.
        """
        try:
            subs = await self.store.active(
                created_after=now - recency,
                start_from=now - after_start,
                start_until=now + before_start,
            )
        except Exception as exc:
            logger.error("Error fetching active subscriptions: %s", exc)
            return []
        targets = list(dict.fromkeys(sub.target for sub in subs))
        logger.info("%d active subscriptions across %d competition/class pairs", len(subs), len(targets))
        return targets
