"""Runner status codes reported by the results provider."""

from __future__ import annotations

from enum import IntEnum

from livepush.exceptions import UnknownStatusError


class RunnerStatus(IntEnum):
    """Closed set of status codes used by liveresultat."""

    OK = 0
    DID_NOT_START = 1
    DID_NOT_FINISH = 2
    MISSING_PUNCH = 3
    DISQUALIFIED = 4
    OVER_TIME = 5
    NOT_STARTED = 9
    NOT_STARTED_ALT = 10
    WALKOVER = 11
    MOVED_UP = 12

    @classmethod
    def from_code(cls, code: object) -> RunnerStatus:
        """Parse a provider status code, rejecting anything outside the enumeration."""
        if isinstance(code, RunnerStatus):
            return code
        if isinstance(code, bool):
            raise UnknownStatusError(code)
        try:
            value = int(str(code).strip())
        except (TypeError, ValueError) as exc:
            raise UnknownStatusError(code) from exc
        try:
            return cls(value)
        except ValueError as exc:
            raise UnknownStatusError(code) from exc

    @property
    def is_not_started(self) -> bool:
        return self in (RunnerStatus.NOT_STARTED, RunnerStatus.NOT_STARTED_ALT)

    @property
    def is_problem(self) -> bool:
        """True for any status other than OK or one of the not-started variants."""
        return self is not RunnerStatus.OK and not self.is_not_started

    @property
    def text(self) -> str:
        return STATUS_TEXT[self]


STATUS_TEXT: dict[RunnerStatus, str] = {
    RunnerStatus.OK: "OK",
    RunnerStatus.DID_NOT_START: "Did not start",
    RunnerStatus.DID_NOT_FINISH: "Did not finish",
    RunnerStatus.MISSING_PUNCH: "Missing punch",
    RunnerStatus.DISQUALIFIED: "Disqualified",
    RunnerStatus.OVER_TIME: "Over max time",
    RunnerStatus.NOT_STARTED: "Not started",
    RunnerStatus.NOT_STARTED_ALT: "Not started",
    RunnerStatus.WALKOVER: "Walk over",
    RunnerStatus.MOVED_UP: "Moved up",
}
