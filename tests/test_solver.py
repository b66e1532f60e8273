"""Tests for WorkerAssignmentSolver used directly."""

from datetime import datetime, timedelta
from io import StringIO

from diyplan.logger import setup_logger
from diyplan.scheduler import (
    ConflictReason,
    CriticalPathAnalyzer,
    TaskStatus,
    WorkerAssignmentSolver,
    WorkerCalendar,
    build_dependency_graph,
)
from tests.conftest import MONDAY_9AM, make_task, make_worker, unbuffered_config


def _solve(tasks, workers, project_end_hours=8.0, search_end=None):
    graph = build_dependency_graph(tasks)
    durations = {task.id: task.duration_hours for task in tasks}
    critical_path = CriticalPathAnalyzer().process(graph, durations, project_end_hours)
    calendars = [WorkerCalendar(worker) for worker in workers]
    solver = WorkerAssignmentSolver(
        graph,
        critical_path,
        calendars,
        durations=durations,
        project_start=MONDAY_9AM,
        config=unbuffered_config(),
        search_end=search_end,
    )
    return solver, solver.solve()


def test_one_assignment_per_task_in_processing_order() -> None:
    tasks = [make_task("b", 1, ["a"]), make_task("a", 1), make_task("c", 3)]
    _, assignments = _solve(tasks, [make_worker()])

    assert [a.task_id for a in assignments] == ["c", "a", "b"]
    assert all(a.status == TaskStatus.CONFIRMED for a in assignments)


def test_confirmed_slots_are_booked() -> None:
    solver, assignments = _solve([make_task("a", 2), make_task("b", 2)], [make_worker()])

    calendar = solver.calendars[0]
    assert [booking for booking in calendar.bookings] == [a.slot for a in assignments]
    assert solver.assigned_hours == {"owner": 4.0}


def test_conflicts_are_not_booked() -> None:
    solver, assignments = _solve([make_task("a", 10)], [make_worker()])

    assert assignments[0].status == TaskStatus.CONFLICT
    assert assignments[0].reason == ConflictReason.LATE
    assert assignments[0].slot is not None
    assert solver.calendars[0].bookings == []
    assert solver.assigned_hours == {"owner": 0.0}


def test_successor_waits_for_predecessor_end() -> None:
    """Predecessor end can be later than the critical path earliest start."""
    worker = make_worker(windows=((9, 10), (12, 17)))
    _, assignments = _solve(
        [make_task("a", 2), make_task("b", 1, ["a"])], [worker], project_end_hours=24
    )

    a, b = assignments
    assert a.slot is not None and b.slot is not None
    assert a.slot.end == MONDAY_9AM + timedelta(hours=4)
    assert b.slot.start == a.slot.end


def test_logging_reports_assignments() -> None:
    stream = StringIO()
    setup_logger(2, stream)

    _solve([make_task("a", 1), make_task("wire", 1, required_skill="electrical")], [make_worker()])

    output = stream.getvalue()
    assert "Scheduled a on owner" in output
    assert "Conflict for wire: no_eligible_worker" in output
    assert "Considering a" in output
    assert datetime(2025, 1, 6, 9).isoformat(" ") in output


def test_search_end_turns_late_slots_into_no_capacity() -> None:
    _, late = _solve([make_task("a", 10)], [make_worker()])
    _, capped = _solve(
        [make_task("a", 10)], [make_worker()], search_end=MONDAY_9AM + timedelta(hours=8)
    )

    assert late[0].reason == ConflictReason.LATE
    assert capped[0].reason == ConflictReason.NO_CAPACITY
    assert capped[0].slot is None
