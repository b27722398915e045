"""Typed variants for the four provider query shapes."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from livepush.models.competition import Competition, RaceClass
from livepush.models.passing import Passing
from livepush.models.result import ClassResults


class CompetitionList(BaseModel):
    model_config = ConfigDict(frozen=True)

    competitions: list[Competition] = Field(default_factory=list)


class ClassList(BaseModel):
    model_config = ConfigDict(frozen=True)

    classes: list[RaceClass] = Field(default_factory=list)


class PassingList(BaseModel):
    model_config = ConfigDict(frozen=True)

    passings: list[Passing] = Field(default_factory=list)


Payload = CompetitionList | ClassList | ClassResults | PassingList

__all__ = ["ClassList", "ClassResults", "CompetitionList", "PassingList", "Payload"]
