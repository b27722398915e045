"""Notable events produced by diffing two class snapshots."""

from __future__ import annotations

from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field

from livepush.models.status import RunnerStatus


class SplitArrived(BaseModel):
    """A runner's time at a radio control became available."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["split"] = "split"
    runner: str
    control_id: str
    control_name: str
    time: int
    place: int | None = None
    time_behind: int | None = None

    @property
    def is_leader(self) -> bool:
        """Zero time behind means the runner leads at this control."""
        return self.time_behind == 0


class Finished(BaseModel):
    """A runner crossed the finish with status OK."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["finished"] = "finished"
    runner: str
    result_time: str
    place: str | None = None
    time_behind: str | None = None


class StatusProblem(BaseModel):
    """A runner finished with, or was given mid-race, a non-OK status."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["status"] = "status"
    runner: str
    status: RunnerStatus


NotableEvent = Annotated[
    SplitArrived | Finished | StatusProblem,
    Field(discriminator="kind"),
]
