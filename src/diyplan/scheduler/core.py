"""Core dataclasses for the scheduling system."""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Any


class TaskStatus(str, Enum):
    """Outcome of scheduling a single task."""

    CONFIRMED = "confirmed"
    CONFLICT = "conflict"


class ConflictReason(str, Enum):
    """Why a task could not be confirmed."""

    NO_ELIGIBLE_WORKER = "no_eligible_worker"  # Nobody has the required skill
    NO_CAPACITY = "no_capacity"  # No slot within the look-ahead horizon
    LATE = "late"  # Earliest slot finishes after the latest completion
    BLOCKED_BY_PREDECESSOR = "blocked_by_predecessor"  # A predecessor is in conflict


@dataclass(frozen=True)
class Task:
    """A task to be scheduled."""

    id: str
    duration_hours: float
    title: str = ""
    phase_id: str | None = None
    predecessors: tuple[str, ...] = ()
    required_skill: str | None = None
    priority: float | None = None  # None means SchedulingConfig.default_priority
    confidence: float | None = None  # 0-1, drives the duration buffer
    min_contiguous_hours: float = 0.0  # Shortest working block the task can use
    tags: tuple[str, ...] = ()
    payload: Any = field(default=None, compare=False)  # Opaque, passed through untouched


@dataclass(frozen=True)
class TimeRange:
    """A half-open interval [start, end)."""

    start: datetime
    end: datetime

    @property
    def duration(self) -> timedelta:
        return self.end - self.start

    def overlaps(self, other: "TimeRange") -> bool:
        return self.start < other.end and other.start < self.end


@dataclass(frozen=True)
class TaskTiming:
    """Critical path values for one task, in hours relative to project start."""

    earliest_start: float
    earliest_finish: float
    latest_start: float
    latest_finish: float
    is_critical: bool = False

    @property
    def slack(self) -> float:
        return self.latest_start - self.earliest_start


@dataclass(frozen=True)
class ScheduledTask:
    """A task after scheduling, either confirmed or in conflict.

    Conflict tasks keep their best-effort slot so callers can still show where
    the task would land; the times are None when no slot exists at all.
    """

    task_id: str
    worker_id: str | None
    start_time: datetime | None
    end_time: datetime | None
    target_completion: datetime
    latest_completion: datetime
    status: TaskStatus
    phase_id: str | None = None
    duration_hours: float = 0.0  # Buffered duration actually planned
    slack_hours: float = 0.0
    is_critical: bool = False
    buffer_applied: float = 0.0  # Percent added to the raw estimate
    conflict_reason: ConflictReason | None = None
    payload: Any = field(default=None, compare=False)

    @property
    def is_confirmed(self) -> bool:
        return self.status == TaskStatus.CONFIRMED


@dataclass(frozen=True)
class NoCapacityConflict:
    """Non-fatal, per-task: the task could not be confirmed."""

    task_id: str
    reason: ConflictReason
    message: str


@dataclass(frozen=True)
class NegativeSlackWarning:
    """Non-fatal: the deadline is earlier than the task can finish."""

    task_id: str
    slack_hours: float
    target_completion: datetime
    latest_completion: datetime


@dataclass(frozen=True)
class PhaseMilestone:
    """Span of one phase across its scheduled tasks."""

    phase_id: str
    start: datetime | None
    end: datetime | None
    task_count: int
    conflict_count: int


@dataclass(frozen=True)
class RemediationSuggestion:
    """A possible fix for conflicts in a schedule."""

    type: str  # "add_helper" | "allow_night_work" | "extend_date"
    description: str
    hours_saved: float
    feasibility: float  # 0-1


@dataclass(frozen=True)
class SchedulingDiagnostics:
    """Global facts about a scheduling run."""

    conflict_count: int
    makespan_hours: float  # From project start to the last confirmed end
    project_end: datetime | None
    critical_path: tuple[str, ...]
    negative_slack: tuple[NegativeSlackWarning, ...] = ()
    conflicts: tuple[NoCapacityConflict, ...] = ()
    phases: tuple[PhaseMilestone, ...] = ()


@dataclass(frozen=True)
class SchedulingResult:
    """Complete, immutable output of one scheduling run."""

    scheduled_tasks: tuple[ScheduledTask, ...]
    diagnostics: SchedulingDiagnostics
    remediations: tuple[RemediationSuggestion, ...] = ()
    warnings: tuple[str, ...] = ()

    def get(self, task_id: str) -> ScheduledTask | None:
        """Look up the scheduled record of a task."""
        for scheduled in self.scheduled_tasks:
            if scheduled.task_id == task_id:
                return scheduled
        return None

    @property
    def confirmed(self) -> list[ScheduledTask]:
        return [st for st in self.scheduled_tasks if st.is_confirmed]

    @property
    def conflicts(self) -> list[ScheduledTask]:
        return [st for st in self.scheduled_tasks if not st.is_confirmed]

    def to_dict(self) -> dict[str, Any]:
        """Plain-data view of the result (stable key order, ISO timestamps).

        Task payloads are not included.
        """
        return {
            "scheduled_tasks": [_scheduled_task_dict(st) for st in self.scheduled_tasks],
            "diagnostics": {
                "conflict_count": self.diagnostics.conflict_count,
                "makespan_hours": round(self.diagnostics.makespan_hours, 4),
                "project_end": _iso(self.diagnostics.project_end),
                "critical_path": list(self.diagnostics.critical_path),
                "negative_slack": [
                    {
                        "task_id": w.task_id,
                        "slack_hours": round(w.slack_hours, 4),
                        "target_completion": _iso(w.target_completion),
                        "latest_completion": _iso(w.latest_completion),
                    }
                    for w in self.diagnostics.negative_slack
                ],
                "conflicts": [
                    {"task_id": c.task_id, "reason": c.reason.value, "message": c.message}
                    for c in self.diagnostics.conflicts
                ],
                "phases": [
                    {
                        "phase_id": p.phase_id,
                        "start": _iso(p.start),
                        "end": _iso(p.end),
                        "task_count": p.task_count,
                        "conflict_count": p.conflict_count,
                    }
                    for p in self.diagnostics.phases
                ],
            },
            "remediations": [
                {
                    "type": r.type,
                    "description": r.description,
                    "hours_saved": round(r.hours_saved, 4),
                    "feasibility": r.feasibility,
                }
                for r in self.remediations
            ],
            "warnings": list(self.warnings),
        }


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def _scheduled_task_dict(st: ScheduledTask) -> dict[str, Any]:
    return {
        "task_id": st.task_id,
        "worker_id": st.worker_id,
        "start_time": _iso(st.start_time),
        "end_time": _iso(st.end_time),
        "target_completion": _iso(st.target_completion),
        "latest_completion": _iso(st.latest_completion),
        "status": st.status.value,
        "phase_id": st.phase_id,
        "duration_hours": round(st.duration_hours, 4),
        "slack_hours": round(st.slack_hours, 4),
        "is_critical": st.is_critical,
        "buffer_applied": round(st.buffer_applied, 4),
        "conflict_reason": st.conflict_reason.value if st.conflict_reason else None,
    }


@dataclass(frozen=True)
class CriticalPathResult:
    """Forward/backward pass output, in hours relative to project start."""

    timings: dict[str, TaskTiming]
    makespan_hours: float
    project_end_hours: float
    critical_path: tuple[str, ...]

    def earliest_start(self, task_id: str, project_start: datetime) -> datetime:
        """Earliest start anchored to the calendar."""
        return _anchor(project_start, self.timings[task_id].earliest_start)

    def target_completion(self, task_id: str, project_start: datetime) -> datetime:
        """Optimistic completion (earliest finish) anchored to the calendar."""
        return _anchor(project_start, self.timings[task_id].earliest_finish)

    def latest_completion(self, task_id: str, project_start: datetime) -> datetime:
        """Deadline-driven completion (latest finish) anchored to the calendar."""
        return _anchor(project_start, self.timings[task_id].latest_finish)


@dataclass(frozen=True)
class BufferedDuration:
    """A task duration after confidence padding."""

    hours: float
    buffer_percent: float


@dataclass(frozen=True)
class Assignment:
    """Worker assignment decided by the solver for one task."""

    task_id: str
    worker_id: str | None
    slot: TimeRange | None
    status: TaskStatus
    reason: ConflictReason | None = None


def _anchor(project_start: datetime, hours: float) -> datetime:
    # Planned durations are whole minutes, so offsets are too (up to float noise)
    return project_start + timedelta(minutes=round(hours * 60))
