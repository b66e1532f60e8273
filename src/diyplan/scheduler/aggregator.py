"""Builds the final SchedulingResult from solver output and critical path bounds."""

from datetime import datetime

from diyplan.logger import get_logger

from .config import SchedulingConfig
from .core import (
    Assignment,
    BufferedDuration,
    ConflictReason,
    CriticalPathResult,
    NegativeSlackWarning,
    NoCapacityConflict,
    PhaseMilestone,
    ScheduledTask,
    SchedulingDiagnostics,
    SchedulingResult,
    TaskStatus,
)
from .graph import DependencyGraph
from .preprocessors.critical_path import SLACK_EPSILON
from .remediation import RemediationAdvisor

logger = get_logger()

CONFLICT_MESSAGES = {
    ConflictReason.NO_ELIGIBLE_WORKER: "No worker has the required skill",
    ConflictReason.NO_CAPACITY: "No worker has a free slot within the planning horizon",
    ConflictReason.LATE: "Earliest available slot finishes after the latest completion",
    ConflictReason.BLOCKED_BY_PREDECESSOR: "A predecessor could not be scheduled",
}


class ResultAggregator:
    """Merges assignments with critical path timings into an immutable result."""

    def __init__(  # noqa: PLR0913 - Keyword-only parameters reduce API complexity
        self,
        graph: DependencyGraph,
        critical_path: CriticalPathResult,
        *,
        durations: dict[str, BufferedDuration],
        project_start: datetime,
        project_deadline: datetime | None = None,
        config: SchedulingConfig | None = None,
    ):
        self.graph = graph
        self.critical_path = critical_path
        self.durations = durations
        self.project_start = project_start
        self.project_deadline = project_deadline
        self.config = config or SchedulingConfig()

    def build_scheduled_task(self, assignment: Assignment) -> ScheduledTask:
        task = self.graph.tasks[assignment.task_id]
        timing = self.critical_path.timings[task.id]
        return ScheduledTask(
            task_id=task.id,
            worker_id=assignment.worker_id,
            start_time=assignment.slot.start if assignment.slot else None,
            end_time=assignment.slot.end if assignment.slot else None,
            target_completion=self.critical_path.target_completion(task.id, self.project_start),
            latest_completion=self.critical_path.latest_completion(task.id, self.project_start),
            status=assignment.status,
            phase_id=task.phase_id,
            duration_hours=self.durations[task.id].hours,
            slack_hours=timing.slack,
            is_critical=timing.is_critical,
            buffer_applied=self.durations[task.id].buffer_percent,
            conflict_reason=assignment.reason,
            payload=task.payload,
        )

    def aggregate(self, assignments: list[Assignment]) -> SchedulingResult:
        """Combine everything into the final result.

        Args:
            assignments: Solver output, in processing order

        Returns:
            SchedulingResult with diagnostics, remediations and warnings
        """
        scheduled = [self.build_scheduled_task(a) for a in assignments]

        confirmed_ends = [st.end_time for st in scheduled if st.is_confirmed and st.end_time]
        project_end = max(confirmed_ends, default=None)
        makespan = (
            (project_end - self.project_start).total_seconds() / 3600 if project_end else 0.0
        )

        negative_slack = tuple(
            NegativeSlackWarning(
                task_id=st.task_id,
                slack_hours=st.slack_hours,
                target_completion=st.target_completion,
                latest_completion=st.latest_completion,
            )
            for st in scheduled
            if st.slack_hours < -SLACK_EPSILON
        )
        conflicts = tuple(
            NoCapacityConflict(
                task_id=st.task_id,
                reason=st.conflict_reason,
                message=CONFLICT_MESSAGES[st.conflict_reason],
            )
            for st in scheduled
            if st.status == TaskStatus.CONFLICT and st.conflict_reason is not None
        )

        diagnostics = SchedulingDiagnostics(
            conflict_count=sum(1 for st in scheduled if not st.is_confirmed),
            makespan_hours=makespan,
            project_end=project_end,
            critical_path=self.critical_path.critical_path,
            negative_slack=negative_slack,
            conflicts=conflicts,
            phases=tuple(self._phase_milestones(scheduled)),
        )
        remediations = RemediationAdvisor(self.config).suggest(scheduled, self.project_deadline)
        warnings = self._warnings(scheduled, diagnostics)
        for warning in warnings:
            logger.changes(f"Warning: {warning}")

        return SchedulingResult(
            scheduled_tasks=tuple(scheduled),
            diagnostics=diagnostics,
            remediations=tuple(remediations),
            warnings=tuple(warnings),
        )

    def _phase_milestones(self, scheduled: list[ScheduledTask]) -> list[PhaseMilestone]:
        """Span of each phase, phases in order of their first task in the input."""
        by_phase: dict[str, list[ScheduledTask]] = {}
        by_id = {st.task_id: st for st in scheduled}
        for task_id, task in self.graph.tasks.items():
            if task.phase_id is not None:
                by_phase.setdefault(task.phase_id, []).append(by_id[task_id])

        milestones = []
        for phase_id, members in by_phase.items():
            starts = [st.start_time for st in members if st.start_time is not None]
            ends = [st.end_time for st in members if st.end_time is not None]
            milestones.append(
                PhaseMilestone(
                    phase_id=phase_id,
                    start=min(starts, default=None),
                    end=max(ends, default=None),
                    task_count=len(members),
                    conflict_count=sum(1 for st in members if not st.is_confirmed),
                )
            )
        return milestones

    def _warnings(
        self, scheduled: list[ScheduledTask], diagnostics: SchedulingDiagnostics
    ) -> list[str]:
        warnings: list[str] = []
        if diagnostics.conflict_count:
            warnings.append(
                f"{diagnostics.conflict_count} task(s) cannot be scheduled within target date"
            )
        if diagnostics.negative_slack:
            warnings.append(
                f"{len(diagnostics.negative_slack)} task(s) cannot finish by the deadline "
                "even with unlimited workers"
            )

        site = self.config.site
        night_work = any(
            st.start_time.time() < site.day_start or st.end_time.time() > site.day_end
            for st in scheduled
            if st.is_confirmed and st.start_time and st.end_time
        )
        if night_work:
            warnings.append("Schedule includes evening/early morning work")
        return warnings
