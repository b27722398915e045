"""Shared test fixtures and sample provider responses."""

from __future__ import annotations

import datetime as dt
import logging
from typing import Any

import pytest

from livepush import call_logging
from livepush.notifications import NotificationMessage, PushGateway
from livepush.models.result import RunnerRecord
from livepush.models.subscription import Subscription

BASE_URL = "https://liveresultat.orientering.se/api.php"

T0 = dt.datetime(2024, 5, 11, 10, 0, tzinfo=dt.timezone.utc)


SAMPLE_COMPETITIONS = {
    "competitions": [
        {
            "id": 10278,
            "name": "Smålandskavlen",
            "organizer": "OK Gränsen",
            "date": "2024-05-11",
            "timediff": 0,
        },
        {
            "id": 10279,
            "name": "Nattsprint",
            "organizer": "IFK Göteborg",
            "date": "2024-05-12",
            "timediff": 1,
        },
    ]
}

SAMPLE_CLASSES = {
    "status": "OK",
    "classes": [{"className": "H21"}, {"className": "D21"}],
    "hash": "classes-hash-1",
}

SAMPLE_CLASS_RESULTS = {
    "status": "OK",
    "className": "H21",
    "splitcontrols": [{"code": 1065, "name": "Radio 1"}, {"code": 1090, "name": "Radio 2"}],
    "results": [
        {
            "place": "1",
            "name": "Anton Mörkfors",
            "club": "OK Ravinen",
            "result": "102200",
            "status": 0,
            "timeplus": "+0",
            "progress": 100,
            "start": 3600000,
            "splits": {
                "1065": 26900,
                "1065_status": 0,
                "1065_place": 1,
                "1065_timeplus": 0,
                "1090": 61200,
                "1090_status": 0,
                "1090_place": 1,
                "1090_timeplus": 0,
            },
        },
        {
            "place": "",
            "name": "Erik Svensson",
            "club": "IFK Lidingö",
            "result": "",
            "status": 9,
            "timeplus": "",
            "progress": 0,
            "start": 3660000,
            "splits": [],
        },
    ],
    "hash": "results-hash-1",
}

SAMPLE_PASSINGS = {
    "status": "OK",
    "passings": [
        {
            "passtime": "11:02:31",
            "runnerName": "Anton Mörkfors",
            "class": "H21",
            "control": 1065,
            "controlName": "Radio 1",
            "time": 26900,
        }
    ],
    "hash": "passings-hash-1",
}

NOT_MODIFIED = {"status": "NOT MODIFIED", "hash": "results-hash-1"}


def make_runner(name: str = "Anton Mörkfors", **fields: Any) -> RunnerRecord:
    """Build a RunnerRecord from provider-style fields."""
    data: dict[str, Any] = {
        "name": name,
        "club": "OK Ravinen",
        "status": 0,
        "progress": 0,
    }
    data.update(fields)
    return RunnerRecord.model_validate(data)


def make_subscription(
    token: str | None = "token-A",
    runner_name: str = "Anton Mörkfors",
    user_id: str = "user-1",
    competition_id: int = 10278,
    class_name: str = "H21",
    created_at: dt.datetime = T0,
    start_time: dt.datetime | None = None,
) -> Subscription:
    return Subscription(
        user_id=user_id,
        competition_id=competition_id,
        class_name=class_name,
        runner_name=runner_name,
        token=token,
        created_at=created_at,
        start_time=start_time,
    )


class RecordingGateway(PushGateway):
    """Gateway that records deliveries and fails for chosen tokens."""

    def __init__(self, failing: dict[str, Exception] | None = None) -> None:
        self.failing = failing or {}
        self.sent: list[tuple[str, NotificationMessage]] = []

    async def send(self, token: str, message: NotificationMessage) -> None:
        if token in self.failing:
            raise self.failing[token]
        self.sent.append((token, message))


class FakeClock:
    """Manually advanced UTC clock."""

    def __init__(self, start: dt.datetime = T0) -> None:
        self.now = start

    def __call__(self) -> dt.datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += dt.timedelta(seconds=seconds)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture(autouse=True)
def _call_log_in_tmp(tmp_path):
    """Keep the call log out of the working tree."""
    old_logger = call_logging._logger
    old_dir = call_logging._LOG_DIR
    old_file = call_logging._LOG_FILE

    named_logger = logging.getLogger("livepush.calls")
    named_logger.handlers.clear()
    call_logging._logger = None
    call_logging.configure(str(tmp_path))

    yield tmp_path

    for h in named_logger.handlers[:]:
        h.close()
        named_logger.removeHandler(h)
    call_logging._logger = old_logger
    call_logging._LOG_DIR = old_dir
    call_logging._LOG_FILE = old_file
