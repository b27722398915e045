"""Tri-state outcome of one upstream fetch."""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar


@dataclass(frozen=True)
class Unchanged:
    """The provider's data matches the token the caller already holds."""

    status: ClassVar[str] = "unchanged"

    token: str | None = None


@dataclass(frozen=True)
class Changed[T]:
    """New data, together with the provider's change token for it."""

    status: ClassVar[str] = "changed"

    token: str
    payload: T


@dataclass(frozen=True)
class FetchFailed:
    """Transport or decode failure. Callers decide whether to retry."""

    status: ClassVar[str] = "error"

    reason: str


type FetchResult[T] = Unchanged | Changed[T] | FetchFailed

__all__ = ["Changed", "FetchFailed", "FetchResult", "Unchanged"]
