"""Async client for the liveresultat.orientering.se results API."""

from __future__ import annotations

import hashlib
import logging
from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ValidationError

from livepush._http import DEFAULT_BASE_URL, DEFAULT_TIMEOUT, AsyncTransport, decode_body, sanitize_control_bytes
from livepush.call_logging import log_upstream_call
from livepush.exceptions import UpstreamError
from livepush.fetch import Changed, FetchFailed, FetchResult, Unchanged
from livepush.models.payloads import ClassList, ClassResults, CompetitionList, PassingList
from livepush.queries import QueryKind, build_query_params, parse_kind

logger = logging.getLogger(__name__)

NOT_MODIFIED = "NOT MODIFIED"

PAYLOAD_MODELS: dict[QueryKind, type[BaseModel]] = {
    QueryKind.COMPETITIONS: CompetitionList,
    QueryKind.CLASSES: ClassList,
    QueryKind.CLASS_RESULTS: ClassResults,
    QueryKind.LAST_PASSINGS: PassingList,
}


def content_token(raw: bytes) -> str:
    """Change token for responses the provider does not hash itself."""
    return hashlib.sha1(sanitize_control_bytes(raw)).hexdigest()


def interpret_body(
    kind: QueryKind,
    body: dict[str, Any],
    raw: bytes,
    prior_token: str | None = None,
) -> FetchResult[Any]:
    """Turn a decoded provider body into a tri-state fetch result."""
    token = body.get("hash")
    if str(body.get("status", "")).upper() == NOT_MODIFIED:
        return Unchanged(token=str(token) if token else prior_token)

    token = str(token) if token else content_token(raw)
    if prior_token and token == prior_token:
        return Unchanged(token=token)

    model = PAYLOAD_MODELS[kind]
    try:
        payload = model.model_validate(body)
    except ValidationError as exc:
        return FetchFailed(reason=f"Failed to validate {kind.value} response: {exc}")
    return Changed(token=token, payload=payload)


class LiveResultsClient:
    """Asynchronous client for the liveresultat API.

    ``fetch`` never raises for transport or decode problems; those come back
    as :class:`FetchFailed`. Unsupported kinds and missing identifiers raise
    :class:`InvalidQueryError` before any request is made.

    Usage:
        async with LiveResultsClient() as client:
            result = await client.class_results(10278, "H21")
            if isinstance(result, Changed):
                runners = result.payload.results
    """

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT,
        transport: AsyncTransport | None = None,
    ) -> None:
        self._transport = transport or AsyncTransport(base_url=base_url, timeout=timeout)

    async def __aenter__(self) -> LiveResultsClient:
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.close()

    async def close(self) -> None:
        """Close the underlying HTTP connection."""
        await self._transport.close()

    @log_upstream_call
    async def fetch(
        self,
        kind: QueryKind | str,
        params: Mapping[str, Any] | None = None,
        prior_token: str | None = None,
    ) -> FetchResult[Any]:
        """Fetch one query from the provider."""
        kind = parse_kind(kind)
        query = build_query_params(kind, params or {}, prior_token)
        try:
            raw = await self._transport.get_bytes(query)
            body = decode_body(raw)
        except UpstreamError as exc:
            logger.warning("Upstream %s failed: %s", kind.value, exc)
            return FetchFailed(reason=str(exc))

        result = interpret_body(kind, body, raw, prior_token)
        if isinstance(result, FetchFailed):
            logger.warning("Upstream %s returned an invalid payload: %s", kind.value, result.reason)
        return result

    # ── Query shapes ───────────────────────────────────────────

    async def competitions(self) -> FetchResult[CompetitionList]:
        """Get the list of competitions."""
        return await self.fetch(QueryKind.COMPETITIONS)

    async def classes(self, comp: int, last_hash: str | None = None) -> FetchResult[ClassList]:
        """Get the classes of a competition."""
        return await self.fetch(QueryKind.CLASSES, {"comp": comp}, last_hash)

    async def class_results(
        self, comp: int, class_name: str, last_hash: str | None = None,
    ) -> FetchResult[ClassResults]:
        """Get runner records and split controls for one class."""
        return await self.fetch(QueryKind.CLASS_RESULTS, {"comp": comp, "class": class_name}, last_hash)

    async def last_passings(self, comp: int, last_hash: str | None = None) -> FetchResult[PassingList]:
        """Get the most recent radio control passings of a competition."""
        return await self.fetch(QueryKind.LAST_PASSINGS, {"comp": comp}, last_hash)
