"""Greedy worker assignment over the dependency graph."""

from datetime import datetime, time

from diyplan.logger import get_logger

from .calendar import WorkerCalendar
from .config import SchedulingConfig
from .core import (
    Assignment,
    ConflictReason,
    CriticalPathResult,
    Task,
    TaskStatus,
    TimeRange,
)
from .graph import DependencyGraph

logger = get_logger()

# (slot, assigned hours of the worker, position of the worker in the input)
Candidate = tuple[TimeRange, float, int, WorkerCalendar]


class WorkerAssignmentSolver:
    """Assigns each task to a worker and a time slot in one deterministic pass.

    This solver:
    1. Orders tasks topologically, picking ready tasks by slack, then priority
    2. Starts each task no earlier than its earliest start and its predecessors' ends
    3. Asks every skilled worker for their next free slot
    4. Confirms the best slot that finishes by the task's latest completion

    Tasks that cannot be confirmed keep a best-effort slot (or none) and are
    reported as conflicts; their successors are blocked in turn.
    """

    def __init__(  # noqa: PLR0913 - Keyword-only parameters reduce API complexity
        self,
        graph: DependencyGraph,
        critical_path: CriticalPathResult,
        calendars: list[WorkerCalendar],
        *,
        durations: dict[str, float],
        project_start: datetime,
        config: SchedulingConfig | None = None,
        search_end: datetime | None = None,
    ):
        """Initialize the solver.

        Args:
            graph: Validated dependency graph
            critical_path: Timings from the critical path pre-processor
            calendars: One fresh calendar per worker, in worker input order
            durations: Planned (buffered) hours per task id
            project_start: Wall-clock anchor of the critical path offsets
            config: Optional scheduling configuration
            search_end: Optional moment every slot must end by (the project end
                when there is no deadline)
        """
        self.graph = graph
        self.critical_path = critical_path
        self.calendars = calendars
        self.durations = durations
        self.project_start = project_start
        self.config = config or SchedulingConfig()
        self.search_end = search_end
        self.assigned_hours: dict[str, float] = {cal.worker_id: 0.0 for cal in calendars}

    def _sort_key(self, task_id: str) -> tuple[float, float, str]:
        task = self.graph.tasks[task_id]
        priority = self.config.default_priority if task.priority is None else task.priority
        # Round slack so float noise does not override the priority tie-break
        slack = round(self.critical_path.timings[task_id].slack, 6)
        return (slack, -priority, task_id)

    def _latest_end_of_day(self, task: Task) -> time | None:
        site = self.config.site
        if site.noise_curfew is not None and site.noisy_tag in task.tags:
            return site.noise_curfew
        return None

    def solve(self) -> list[Assignment]:
        """Assign all tasks.

        Returns:
            One Assignment per task, in processing order
        """
        assignments: dict[str, Assignment] = {}

        for task_id in self.graph.topological_order(key=self._sort_key):
            task = self.graph.tasks[task_id]
            assignment = self._assign(task, assignments)
            assignments[task_id] = assignment

            if assignment.status == TaskStatus.CONFIRMED:
                assert assignment.slot is not None
                logger.changes(
                    f"Scheduled {task_id} on {assignment.worker_id}: "
                    f"{assignment.slot.start} - {assignment.slot.end}"
                )
            else:
                logger.changes(
                    f"Conflict for {task_id}: {assignment.reason.value if assignment.reason else ''}"
                )

        return list(assignments.values())

    def _not_before(self, task: Task, assignments: dict[str, Assignment]) -> datetime:
        not_before = self.critical_path.earliest_start(task.id, self.project_start)
        for pred_id in self.graph.predecessors[task.id]:
            slot = assignments[pred_id].slot
            if slot is not None:
                not_before = max(not_before, slot.end)
        return not_before

    def _assign(self, task: Task, assignments: dict[str, Assignment]) -> Assignment:
        preds = [assignments[pred_id] for pred_id in self.graph.predecessors[task.id]]
        blocked = any(pred.status == TaskStatus.CONFLICT for pred in preds)

        if blocked and any(pred.slot is None for pred in preds):
            # No idea when the predecessor would finish, so no best-effort slot either
            logger.checks(f"  {task.id}: predecessor has no slot, blocked")
            return Assignment(
                task.id, None, None, TaskStatus.CONFLICT, ConflictReason.BLOCKED_BY_PREDECESSOR
            )

        eligible = [
            (index, cal)
            for index, cal in enumerate(self.calendars)
            if cal.worker.can_perform(task.required_skill)
        ]
        if not eligible:
            logger.checks(f"  {task.id}: nobody has skill {task.required_skill!r}")
            return Assignment(
                task.id, None, None, TaskStatus.CONFLICT, ConflictReason.NO_ELIGIBLE_WORKER
            )

        not_before = self._not_before(task, assignments)
        latest = self.critical_path.latest_completion(task.id, self.project_start)
        logger.checks(
            f"  Considering {task.id} ({self.durations[task.id]:.2f}h, "
            f"not before {not_before}, latest {latest})"
        )

        candidates = self._find_candidates(task, not_before, eligible)
        if not candidates:
            reason = (
                ConflictReason.BLOCKED_BY_PREDECESSOR if blocked else ConflictReason.NO_CAPACITY
            )
            return Assignment(task.id, None, None, TaskStatus.CONFLICT, reason)

        on_time = [c for c in candidates if c[0].end <= latest]
        best = min(on_time or candidates, key=lambda c: (c[0].start, c[1], c[2]))
        slot, _, _, calendar = best

        if blocked:
            return Assignment(
                task.id,
                calendar.worker_id,
                slot,
                TaskStatus.CONFLICT,
                ConflictReason.BLOCKED_BY_PREDECESSOR,
            )
        if not on_time:
            logger.checks(f"    {task.id}: best slot ends {slot.end}, after {latest}")
            return Assignment(task.id, calendar.worker_id, slot, TaskStatus.CONFLICT, ConflictReason.LATE)

        calendar.reserve(slot)
        self.assigned_hours[calendar.worker_id] += self.durations[task.id]
        return Assignment(task.id, calendar.worker_id, slot, TaskStatus.CONFIRMED)

    def _find_candidates(
        self,
        task: Task,
        not_before: datetime,
        eligible: list[tuple[int, WorkerCalendar]],
    ) -> list[Candidate]:
        """Ask each eligible worker for their earliest slot."""
        latest_end = self._latest_end_of_day(task)
        candidates: list[Candidate] = []
        for index, calendar in eligible:
            slot = calendar.next_available_slot(
                not_before,
                self.durations[task.id],
                min_contiguous_hours=task.min_contiguous_hours,
                latest_end=latest_end,
                until=self.search_end,
            )
            if slot is None:
                logger.debug(f"        {calendar.worker_id}: no slot")
                continue
            logger.debug(f"        {calendar.worker_id}: {slot.start} - {slot.end}")
            candidates.append((slot, self.assigned_hours[calendar.worker_id], index, calendar))
        return candidates
