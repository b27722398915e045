"""Competition and class list models."""

from __future__ import annotations

import datetime as dt

from pydantic import BaseModel, ConfigDict, Field


class Competition(BaseModel):
    """A competition listed by the provider."""

    model_config = ConfigDict(frozen=True)

    id: int
    name: str = ""
    organizer: str = ""
    date: dt.date | None = None
    timediff: float = 0.0


class RaceClass(BaseModel):
    """A class (course category) within a competition."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    class_name: str = Field(alias="className")
