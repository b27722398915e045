"""Classify what changed between two snapshots of a class.

Pure functions, no I/O. A runner seen for the first time only establishes
a baseline and never produces events.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from livepush.models.events import Finished, NotableEvent, SplitArrived, StatusProblem
from livepush.models.result import RunnerRecord, SplitControl
from livepush.models.status import RunnerStatus


def index_by_name(records: Iterable[RunnerRecord]) -> dict[str, RunnerRecord]:
    """Map runner name to record. Later duplicates replace earlier ones."""
    return {record.name: record for record in records}


def control_order(
    split_controls: Sequence[SplitControl], record: RunnerRecord,
) -> list[tuple[str, str]]:
    """(control id, control name) pairs to check for *record*.

    Known controls come first in metadata order; controls the runner has
    splits for but the metadata does not list follow, sorted by id.
    """
    order = [(control.code, control.name or control.code) for control in split_controls]
    known = {code for code, _ in order}
    order.extend((code, code) for code in sorted(record.splits) if code not in known)
    return order


def diff_splits(
    old: RunnerRecord, new: RunnerRecord, split_controls: Sequence[SplitControl],
) -> list[SplitArrived]:
    events: list[SplitArrived] = []
    for code, name in control_order(split_controls, new):
        split = new.splits.get(code)
        if split is None or code in old.splits:
            continue
        events.append(
            SplitArrived(
                runner=new.name,
                control_id=code,
                control_name=name,
                time=split.time,
                place=split.place,
                time_behind=split.time_behind,
            )
        )
    return events


def crossed_finish(old: RunnerRecord, new: RunnerRecord) -> bool:
    return new.has_finished and not old.has_finished


def diff_runner(
    old: RunnerRecord, new: RunnerRecord, split_controls: Sequence[SplitControl],
) -> list[NotableEvent]:
    """Events for one runner present in both snapshots."""
    events: list[NotableEvent] = list(diff_splits(old, new, split_controls))

    if crossed_finish(old, new):
        if new.status is RunnerStatus.OK:
            events.append(
                Finished(
                    runner=new.name,
                    result_time=new.result,
                    place=new.place or None,
                    time_behind=new.time_behind or None,
                )
            )
        elif new.status.is_problem:
            events.append(StatusProblem(runner=new.name, status=new.status))
    elif new.status != old.status and new.status.is_problem:
        events.append(StatusProblem(runner=new.name, status=new.status))

    return events


def diff_results(
    old: Sequence[RunnerRecord],
    new: Sequence[RunnerRecord],
    split_controls: Sequence[SplitControl] = (),
) -> list[NotableEvent]:
    """Notable events between two snapshots of the same class, in *new* order."""
    previous = index_by_name(old)
    events: list[NotableEvent] = []
    for record in new:
        baseline = previous.get(record.name)
        if baseline is None:
            continue
        events.extend(diff_runner(baseline, record, split_controls))
    return events
