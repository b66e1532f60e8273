"""Pytest configuration and fixtures for diyplan tests."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from datetime import datetime, time
from typing import Any

import pytest

from diyplan.logger import reset_logger
from diyplan.scheduler import (
    BufferConfig,
    SchedulingConfig,
    SchedulingResult,
    Task,
)
from diyplan.workers import AvailabilityWindow, WorkerDefinition

# 2025-01-06 is a Monday
MONDAY = datetime(2025, 1, 6)
MONDAY_9AM = datetime(2025, 1, 6, 9, 0)
MONDAY_5PM = datetime(2025, 1, 6, 17, 0)
WEEKDAYS = range(5)


@pytest.fixture(autouse=True)
def clean_logger() -> None:
    """Reset the diyplan logger before each test for isolation."""
    reset_logger()


def make_task(
    task_id: str,
    hours: float = 2.0,
    requires: Sequence[str] = (),
    **kwargs: Any,
) -> Task:
    """Create a Task with short positional arguments for tests."""
    return Task(id=task_id, duration_hours=hours, predecessors=tuple(requires), **kwargs)


def make_worker(
    worker_id: str = "owner",
    *,
    days: Iterable[int] = WEEKDAYS,
    windows: Sequence[tuple[int, int]] = ((9, 17),),
    **kwargs: Any,
) -> WorkerDefinition:
    """Create a worker available in the given (start hour, end hour) windows."""
    availability = [
        AvailabilityWindow(day=day, start=time(start), end=time(end))
        for day in days
        for start, end in windows
    ]
    return WorkerDefinition(id=worker_id, availability=availability, **kwargs)


def unbuffered_config(**kwargs: Any) -> SchedulingConfig:
    """Scheduling config with duration buffers switched off, so hours are exact."""
    return SchedulingConfig(buffers=BufferConfig(enabled=False), **kwargs)


def assert_valid_schedule(result: SchedulingResult, tasks: Sequence[Task]) -> None:
    """Check the properties every schedule must have.

    - every task appears exactly once
    - confirmed tasks start after their predecessors end and finish by their latest completion
    - confirmed tasks of one worker never overlap
    """
    ids = [st.task_id for st in result.scheduled_tasks]
    assert sorted(ids) == sorted(task.id for task in tasks)
    assert len(ids) == len(set(ids))

    by_id = {st.task_id: st for st in result.scheduled_tasks}
    for task in tasks:
        scheduled = by_id[task.id]
        if not scheduled.is_confirmed:
            continue
        assert scheduled.start_time is not None
        assert scheduled.end_time is not None
        assert scheduled.start_time < scheduled.end_time
        assert scheduled.end_time <= scheduled.latest_completion
        for pred_id in task.predecessors:
            pred = by_id[pred_id]
            assert pred.is_confirmed
            assert pred.end_time is not None
            assert scheduled.start_time >= pred.end_time

    confirmed_by_worker: dict[str, list[tuple[datetime, datetime]]] = {}
    for st in result.confirmed:
        assert st.worker_id is not None
        assert st.start_time is not None and st.end_time is not None
        confirmed_by_worker.setdefault(st.worker_id, []).append((st.start_time, st.end_time))
    for slots in confirmed_by_worker.values():
        slots.sort()
        for (_, prev_end), (next_start, _) in zip(slots, slots[1:]):
            assert prev_end <= next_start
