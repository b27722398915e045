"""livepush data models."""

from livepush.models.competition import Competition, RaceClass
from livepush.models.events import Finished, NotableEvent, SplitArrived, StatusProblem
from livepush.models.passing import Passing
from livepush.models.payloads import ClassList, CompetitionList, PassingList, Payload
from livepush.models.result import ClassResults, RunnerRecord, SplitControl, SplitTime
from livepush.models.status import STATUS_TEXT, RunnerStatus
from livepush.models.subscription import Subscription

__all__ = [
    "ClassList",
    "ClassResults",
    "Competition",
    "CompetitionList",
    "Finished",
    "NotableEvent",
    "Passing",
    "PassingList",
    "Payload",
    "RaceClass",
    "RunnerRecord",
    "RunnerStatus",
    "STATUS_TEXT",
    "SplitArrived",
    "SplitControl",
    "SplitTime",
    "StatusProblem",
    "Subscription",
]
