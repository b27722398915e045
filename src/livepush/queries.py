"""Upstream query kinds and query parameter building."""

from __future__ import annotations

from collections.abc import Mapping
from enum import Enum
from typing import Any

from livepush.exceptions import InvalidQueryError


class QueryKind(str, Enum):
    """Method names understood by the results provider."""

    COMPETITIONS = "getcompetitions"
    CLASSES = "getclasses"
    CLASS_RESULTS = "getclassresults"
    LAST_PASSINGS = "getlastpassings"

    @property
    def hash_aware(self) -> bool:
        """Whether the provider honours ``last_hash`` for this method."""
        return self is not QueryKind.COMPETITIONS


REQUIRED_PARAMS: dict[QueryKind, tuple[str, ...]] = {
    QueryKind.COMPETITIONS: (),
    QueryKind.CLASSES: ("comp",),
    QueryKind.CLASS_RESULTS: ("comp", "class"),
    QueryKind.LAST_PASSINGS: ("comp",),
}

# Times come back as centiseconds instead of preformatted strings.
_UNFORMATTED_TIMES = {QueryKind.CLASS_RESULTS, QueryKind.LAST_PASSINGS}


def parse_kind(method: str | QueryKind) -> QueryKind:
    """Return the QueryKind for a method name, or raise InvalidQueryError."""
    try:
        return QueryKind(method)
    except ValueError as exc:
        raise InvalidQueryError(f"Unsupported method: {method}") from exc


def require_params(kind: QueryKind, params: Mapping[str, Any]) -> dict[str, str]:
    """Check that *params* carries every identifier *kind* needs.

    Returns only the required parameters, stringified. Empty strings count
    as missing.
    """
    selected: dict[str, str] = {}
    for name in REQUIRED_PARAMS[kind]:
        value = params.get(name)
        if value is None or str(value).strip() == "":
            raise InvalidQueryError(f"Missing '{name}' parameter for {kind.value}")
        selected[name] = str(value)
    return selected


def build_query_params(
    kind: QueryKind,
    params: Mapping[str, Any],
    last_hash: str | None = None,
) -> list[tuple[str, str]]:
    """Build the provider query string for one request.

    Returns:
        List of (key, value) tuples suitable for httpx params.
    """
    query: list[tuple[str, str]] = [("method", kind.value)]
    query.extend(require_params(kind, params).items())
    if kind in _UNFORMATTED_TIMES:
        query.append(("unformattedTimes", "true"))
    if last_hash and kind.hash_aware:
        query.append(("last_hash", last_hash))
    return query
