"""Push notification building and fan-out delivery."""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass

import httpx
from pydantic import BaseModel, ConfigDict, Field

from livepush.exceptions import DeliveryError, InvalidTokenError
from livepush.followers import followers_of
from livepush.formatters import format_centiseconds, format_place, format_result, format_time_behind
from livepush.models.events import Finished, NotableEvent, SplitArrived, StatusProblem
from livepush.models.subscription import Subscription

logger = logging.getLogger(__name__)


class NotificationMessage(BaseModel):
    """What the push gateway delivers: title, body and deep-link data."""

    model_config = ConfigDict(frozen=True)

    title: str
    body: str
    data: dict[str, str] = Field(default_factory=dict)


def _split_body(event: SplitArrived) -> str:
    details: list[str] = []
    place = format_place(event.place)
    if place:
        details.append(f"place {place}")
    behind = format_time_behind(event.time_behind)
    if behind:
        details.append(behind)
    body = f"{event.control_name}: {format_centiseconds(event.time)}"
    if details:
        body += f" ({', '.join(details)})"
    return body


def _finished_body(event: Finished) -> str:
    body = f"Finished in {format_result(event.result_time) or 'unknown time'}"
    if event.place:
        body += f", place {event.place}"
    behind = format_result(event.time_behind)
    if behind:
        body += f" ({behind})"
    return body


def build_message(event: NotableEvent, competition_id: int, class_name: str) -> NotificationMessage:
    """Build the single message sent to every follower of *event*'s runner."""
    data = {
        "competitionId": str(competition_id),
        "className": class_name,
        "runnerName": event.runner,
        "event": event.kind,
    }
    if isinstance(event, SplitArrived):
        body = _split_body(event)
        data["controlId"] = event.control_id
        if event.is_leader:
            data["leader"] = "true"
    elif isinstance(event, Finished):
        body = _finished_body(event)
    elif isinstance(event, StatusProblem):
        body = f"Status: {event.status.text}"
        data["status"] = str(int(event.status))
    else:
        raise TypeError(f"Unsupported event: {event!r}")
    return NotificationMessage(title=f"{class_name}: {event.runner}", body=body, data=data)


# ── Gateways ───────────────────────────────────────────────


class PushGateway(ABC):
    """Transport that hands a message to a device token.

    ``send`` raises :class:`DeliveryError` (or :class:`InvalidTokenError`)
    when delivery fails.
    """

    @abstractmethod
    async def send(self, token: str, message: NotificationMessage) -> None: ...

    async def close(self) -> None:
        return None


class LogPushGateway(PushGateway):
    """Gateway that only logs, for deployments without a push endpoint."""

    async def send(self, token: str, message: NotificationMessage) -> None:
        logger.info("[dry-run] push to %s...: %s | %s", token[:10], message.title, message.body)


class WebhookPushGateway(PushGateway):
    """Posts ``{token, title, body, data}`` as JSON to a push relay endpoint."""

    def __init__(
        self,
        url: str,
        timeout: float = 10.0,
        headers: dict[str, str] | None = None,
    ) -> None:
        self.url = url
        self._client = httpx.AsyncClient(timeout=timeout, headers=headers or {})

    async def send(self, token: str, message: NotificationMessage) -> None:
        payload = {"token": token, **message.model_dump()}
        try:
            response = await self._client.post(self.url, json=payload)
        except httpx.HTTPError as exc:
            raise DeliveryError(token, str(exc)) from exc
        if response.status_code in (404, 410):
            raise InvalidTokenError(token, f"HTTP {response.status_code}: token not registered")
        if response.status_code >= 400:
            raise DeliveryError(token, f"HTTP {response.status_code}: {response.text[:200]}")

    async def close(self) -> None:
        await self._client.aclose()


# ── Dispatch ───────────────────────────────────────────────


@dataclass(frozen=True)
class DispatchReport:
    sent: int = 0
    failed: int = 0
    skipped: int = 0

    def __add__(self, other: DispatchReport) -> DispatchReport:
        return DispatchReport(
            sent=self.sent + other.sent,
            failed=self.failed + other.failed,
            skipped=self.skipped + other.skipped,
        )


class NotificationDispatcher:
    """Send one message per event to every follower, isolating failures.

    Deliveries run concurrently and are all awaited; one failed token never
    cancels or fails its siblings. No retries.
    """

    def __init__(self, gateway: PushGateway) -> None:
        self.gateway = gateway

    async def dispatch(
        self,
        event: NotableEvent,
        followers: Sequence[Subscription],
        competition_id: int,
        class_name: str,
    ) -> DispatchReport:
        message = build_message(event, competition_id, class_name)
        tokens = list(dict.fromkeys(sub.token for sub in followers if sub.token))
        skipped = len(followers) - sum(1 for sub in followers if sub.token)
        if not tokens:
            return DispatchReport(skipped=skipped)

        outcomes = await asyncio.gather(
            *(self.gateway.send(token, message) for token in tokens),
            return_exceptions=True,
        )
        failed = 0
        for token, outcome in zip(tokens, outcomes):
            if isinstance(outcome, InvalidTokenError):
                failed += 1
                logger.warning("Push token %s... is no longer valid", token[:10])
            elif isinstance(outcome, BaseException):
                failed += 1
                logger.error("Error sending notification to %s...: %s", token[:10], outcome)
        sent = len(tokens) - failed
        logger.info(
            "Dispatched %s for %s to %d/%d followers", event.kind, event.runner, sent, len(tokens),
        )
        return DispatchReport(sent=sent, failed=failed, skipped=skipped)

    async def dispatch_all(
        self,
        events: Sequence[NotableEvent],
        subscriptions: Sequence[Subscription],
        competition_id: int,
        class_name: str,
    ) -> DispatchReport:
        """Dispatch each event to the subscriptions following its runner."""
        report = DispatchReport()
        for event in events:
            followers = followers_of(list(subscriptions), event.runner)
            if not followers:
                continue
            report += await self.dispatch(event, followers, competition_id, class_name)
        return report
