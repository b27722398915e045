"""Radio control passing model."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from livepush.models.result import _as_int


class Passing(BaseModel):
    """A recent passing of a radio control, as listed by getlastpassings."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    pass_time: str = Field(default="", alias="passtime")
    runner_name: str = Field(alias="runnerName")
    class_name: str = Field(default="", alias="class")
    control: str = ""
    control_name: str = Field(default="", alias="controlName")
    time: int | None = None

    @field_validator("control", mode="before")
    @classmethod
    def _stringify(cls, value: Any) -> str:
        return "" if value is None else str(value)

    @field_validator("time", mode="before")
    @classmethod
    def _parse_time(cls, value: Any) -> int | None:
        return _as_int(value)
