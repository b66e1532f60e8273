"""High-level scheduling service."""

from collections.abc import Sequence
from datetime import datetime, timedelta
from typing import Any

from diyplan.exceptions import ValidationError
from diyplan.logger import get_logger
from diyplan.workers import BlackoutPeriod, WorkerDefinition

from .aggregator import ResultAggregator
from .calendar import WorkerCalendar, duration_to_minutes
from .config import PlanningMode, SchedulingConfig
from .core import BufferedDuration, SchedulingResult, Task
from .graph import build_dependency_graph
from .preprocessors import CriticalPathAnalyzer, DurationBufferPreProcessor
from .solver import WorkerAssignmentSolver

logger = get_logger()

SIMULATABLE_FIELDS = (
    "tasks",
    "workers",
    "planning_mode",
    "project_start",
    "project_deadline",
    "config",
    "global_blackouts",
)


class SchedulingService:
    """High-level service for scheduling a project.

    This service coordinates:
    - build_dependency_graph (structural validation and ordering)
    - DurationBufferPreProcessor (confidence padding)
    - CriticalPathAnalyzer (target and latest completion bounds)
    - WorkerAssignmentSolver (greedy worker/slot assignment)
    - ResultAggregator (diagnostics, remediation suggestions, warnings)

    Every call to schedule() starts from fresh calendars, so a service can be
    run repeatedly and always gives the same answer for the same inputs.
    """

    def __init__(  # noqa: PLR0913 - needs multiple optional config params
        self,
        tasks: Sequence[Task],
        workers: Sequence[WorkerDefinition],
        planning_mode: PlanningMode | str,
        project_start: datetime,
        project_deadline: datetime | None = None,
        config: SchedulingConfig | None = None,
        global_blackouts: list[BlackoutPeriod] | None = None,
    ):
        """Initialize scheduling service.

        Args:
            tasks: Tasks to schedule, in caller order
            workers: Available workers; input order breaks ties between them
            planning_mode: Time granularity (quick, standard or detailed)
            project_start: Nothing is scheduled before this moment
            project_deadline: Optional project end used for latest completions
            config: Optional scheduling configuration
            global_blackouts: Optional blackouts that apply to every worker

        Raises:
            ValidationError: If the planning mode is unknown or the deadline is
                not after the project start
        """
        try:
            self.planning_mode = PlanningMode(planning_mode)
        except ValueError as e:
            raise ValidationError(f"Unknown planning mode: {planning_mode}") from e
        if project_deadline is not None and project_deadline <= project_start:
            raise ValidationError(
                f"Project deadline {project_deadline} must be after project start {project_start}"
            )

        self.tasks = list(tasks)
        self.workers = list(workers)
        self.project_start = project_start
        self.project_deadline = project_deadline
        self.config = config or SchedulingConfig()
        self.global_blackouts = global_blackouts or []

        worker_ids = [worker.id for worker in self.workers]
        if len(set(worker_ids)) != len(worker_ids):
            raise ValidationError(f"Duplicate worker ids in {worker_ids}")

    def _project_end_hours(self) -> float:
        """Project end relative to the start; the horizon when there is no deadline."""
        if self.project_deadline is not None:
            return (self.project_deadline - self.project_start).total_seconds() / 3600
        return self.config.horizon_days * 24.0

    def _search_end(self) -> datetime | None:
        """Without a deadline, slots past the implicit project end count as no capacity."""
        if self.project_deadline is not None:
            return None
        return self.project_start + timedelta(days=self.config.horizon_days)

    def _planned_durations(self) -> dict[str, BufferedDuration]:
        """Buffered durations, rounded up to the whole minutes the calendars book."""
        buffered = DurationBufferPreProcessor(self.config).process(self.tasks)
        return {
            task_id: BufferedDuration(
                hours=duration_to_minutes(duration.hours).total_seconds() / 3600,
                buffer_percent=duration.buffer_percent,
            )
            for task_id, duration in buffered.items()
        }

    def _create_calendars(self) -> list[WorkerCalendar]:
        return [
            WorkerCalendar(
                worker,
                mode=self.planning_mode,
                site=self.config.site,
                horizon_days=self.config.horizon_days,
                global_blackouts=self.global_blackouts,
            )
            for worker in self.workers
        ]

    def schedule(self) -> SchedulingResult:
        """Schedule all tasks.

        Returns:
            SchedulingResult with one ScheduledTask per task, diagnostics,
            remediation suggestions and warnings

        Raises:
            ValidationError: On structural input errors (duplicate ids, unknown
                predecessors, dependency cycles), before any scheduling happens
        """
        graph = build_dependency_graph(self.tasks)
        durations = self._planned_durations()

        logger.debug(f"Critical path for {len(graph)} tasks ({self.planning_mode.value} mode)")
        critical_path = CriticalPathAnalyzer().process(
            graph,
            {task_id: duration.hours for task_id, duration in durations.items()},
            project_end_hours=self._project_end_hours(),
        )

        solver = WorkerAssignmentSolver(
            graph,
            critical_path,
            self._create_calendars(),
            durations={task_id: duration.hours for task_id, duration in durations.items()},
            project_start=self.project_start,
            config=self.config,
            search_end=self._search_end(),
        )
        assignments = solver.solve()

        aggregator = ResultAggregator(
            graph,
            critical_path,
            durations=durations,
            project_start=self.project_start,
            project_deadline=self.project_deadline,
            config=self.config,
        )
        return aggregator.aggregate(assignments)

    def simulate_change(self, **changes: Any) -> SchedulingResult:
        """Schedule a what-if variant of this project without modifying it.

        Args:
            **changes: Replacement values for any of the constructor arguments
                (tasks, workers, planning_mode, project_start, project_deadline,
                config, global_blackouts)

        Returns:
            SchedulingResult of the changed project

        Raises:
            ValidationError: If a change names an unknown field
        """
        unknown = sorted(set(changes) - set(SIMULATABLE_FIELDS))
        if unknown:
            raise ValidationError(f"Cannot simulate changes to: {', '.join(unknown)}")

        current = {name: getattr(self, name) for name in SIMULATABLE_FIELDS}
        logger.changes(f"Simulating changes to: {', '.join(sorted(changes))}")
        return SchedulingService(**{**current, **changes}).schedule()


def schedule_project(  # noqa: PLR0913 - mirrors SchedulingService
    tasks: Sequence[Task],
    workers: Sequence[WorkerDefinition],
    planning_mode: PlanningMode | str,
    project_start: datetime,
    project_deadline: datetime | None = None,
    config: SchedulingConfig | None = None,
    global_blackouts: list[BlackoutPeriod] | None = None,
) -> SchedulingResult:
    """Schedule a project in one call."""
    return SchedulingService(
        tasks,
        workers,
        planning_mode,
        project_start,
        project_deadline=project_deadline,
        config=config,
        global_blackouts=global_blackouts,
    ).schedule()
