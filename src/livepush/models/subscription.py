"""Subscription model: one user following one runner."""

from __future__ import annotations

import datetime as dt

from pydantic import BaseModel, ConfigDict, field_validator


class Subscription(BaseModel):
    """A (user, runner) pairing with the device token to notify."""

    model_config = ConfigDict(frozen=True)

    user_id: str
    competition_id: int
    class_name: str
    runner_name: str
    token: str | None = None
    created_at: dt.datetime
    start_time: dt.datetime | None = None

    @field_validator("created_at", "start_time")
    @classmethod
    def _assume_utc(cls, value: dt.datetime | None) -> dt.datetime | None:
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=dt.timezone.utc)
        return value

    @property
    def target(self) -> tuple[int, str]:
        return self.competition_id, self.class_name

