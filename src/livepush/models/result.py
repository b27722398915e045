"""Class result models: runner records, radio splits and split controls."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from livepush.models.status import RunnerStatus

FINISHED_PROGRESS = 100.0


def _as_int(value: Any) -> int | None:
    """Coerce a provider number (int, float or numeric string) to int, or None if empty."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    text = str(value).strip()
    if not text:
        return None
    try:
        return int(float(text))
    except (ValueError, OverflowError):
        return None


class SplitControl(BaseModel):
    """A radio control the provider reports intermediate times for."""

    model_config = ConfigDict(frozen=True)

    code: str
    name: str = ""

    @field_validator("code", "name", mode="before")
    @classmethod
    def _stringify(cls, value: Any) -> str:
        return "" if value is None else str(value)


class SplitTime(BaseModel):
    """A runner's passing of one radio control. Times are centiseconds."""

    model_config = ConfigDict(frozen=True)

    time: int
    place: int | None = None
    time_behind: int | None = None

    @property
    def is_leader(self) -> bool:
        return self.time_behind == 0


def normalize_splits(raw: Any) -> dict[str, SplitTime]:
    """Turn the provider's flat split layout into control id -> SplitTime.

    The provider sends ``{"1065": 26900, "1065_place": 2, "1065_timeplus": 1100}``
    (or ``[]`` when a runner has no splits). Already normalized mappings, as
    stored in the cache, pass through. Controls without a time are dropped.
    """
    if not raw or not isinstance(raw, dict):
        return {}
    splits: dict[str, SplitTime] = {}
    for key, value in raw.items():
        key = str(key)
        if "_" in key:
            continue
        if isinstance(value, SplitTime):
            splits[key] = value
            continue
        if isinstance(value, dict):
            time = _as_int(value.get("time"))
            place = _as_int(value.get("place"))
            behind = _as_int(value.get("time_behind"))
        else:
            time = _as_int(value)
            place = _as_int(raw.get(f"{key}_place"))
            behind = _as_int(raw.get(f"{key}_timeplus"))
        if time is None:
            continue
        splits[key] = SplitTime(time=time, place=place, time_behind=behind)
    return splits


class RunnerRecord(BaseModel):
    """One runner's race state within a class at one poll instant."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str
    club: str = ""
    place: str = ""
    result: str = ""
    time_behind: str = Field(default="", alias="timeplus")
    status: RunnerStatus = RunnerStatus.NOT_STARTED
    progress: float = 0.0
    start: int | None = None
    splits: dict[str, SplitTime] = Field(default_factory=dict)

    @field_validator("club", "place", "result", "time_behind", mode="before")
    @classmethod
    def _stringify(cls, value: Any) -> str:
        return "" if value is None else str(value)

    @field_validator("status", mode="before")
    @classmethod
    def _parse_status(cls, value: Any) -> RunnerStatus:
        return RunnerStatus.from_code(value)

    @field_validator("progress", mode="before")
    @classmethod
    def _parse_progress(cls, value: Any) -> float:
        if value is None or value == "":
            return 0.0
        try:
            return float(value)
        except (TypeError, ValueError):
            return 0.0

    @field_validator("start", mode="before")
    @classmethod
    def _parse_start(cls, value: Any) -> int | None:
        return _as_int(value)

    @field_validator("splits", mode="before")
    @classmethod
    def _parse_splits(cls, value: Any) -> dict[str, SplitTime]:
        return normalize_splits(value)

    @property
    def has_finished(self) -> bool:
        return self.progress >= FINISHED_PROGRESS


class ClassResults(BaseModel):
    """Results payload for one (competition, class) pair."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    class_name: str | None = Field(default=None, alias="className")
    split_controls: list[SplitControl] = Field(default_factory=list, alias="splitcontrols")
    results: list[RunnerRecord] = Field(default_factory=list)

    @field_validator("split_controls", "results", mode="before")
    @classmethod
    def _none_as_empty(cls, value: Any) -> Any:
        return value or []

    def runners_in_club(self, club: str) -> list[RunnerRecord]:
        return [runner for runner in self.results if runner.club == club]
