"""Critical path pre-processor: forward and backward passes over the task graph."""

from typing import Any

from diyplan.logger import debug_enabled, get_logger

from ..core import CriticalPathResult, TaskTiming
from ..graph import DependencyGraph

logger = get_logger()

# Float tolerance (hours) when comparing slack values
SLACK_EPSILON = 1e-6


class CriticalPathAnalyzer:
    """Computes earliest/latest start and finish for every task.

    This pre-processor:
    1. Runs a forward pass in topological order (earliest start/finish)
    2. Runs a backward pass in reverse topological order (latest start/finish)
    3. Marks the tasks with minimal slack as the critical path
    """

    def __init__(self, config: dict[str, Any] | None = None):
        """Initialize the pre-processor.

        Args:
            config: Optional configuration; ``slack_epsilon`` overrides the
                tolerance used to decide which tasks are critical
        """
        self.config = config or {}
        self.epsilon = float(self.config.get("slack_epsilon", SLACK_EPSILON))

    def process(
        self,
        graph: DependencyGraph,
        durations: dict[str, float],
        project_end_hours: float | None = None,
    ) -> CriticalPathResult:
        """Run the forward and backward passes.

        Args:
            graph: Dependency graph (already validated, so this cannot fail)
            durations: Duration in hours per task id
            project_end_hours: Project end relative to project start; defaults to
                the forward-pass makespan. An end earlier than the makespan gives
                negative slack.

        Returns:
            CriticalPathResult with per-task timings
        """
        earliest_start: dict[str, float] = {}
        earliest_finish: dict[str, float] = {}
        for task_id in graph.order:
            start = max(
                (earliest_finish[pred_id] for pred_id in graph.predecessors[task_id]),
                default=0.0,
            )
            earliest_start[task_id] = start
            earliest_finish[task_id] = start + durations[task_id]

        makespan = max(earliest_finish.values(), default=0.0)
        project_end = makespan if project_end_hours is None else project_end_hours

        latest_start: dict[str, float] = {}
        latest_finish: dict[str, float] = {}
        for task_id in reversed(graph.order):
            finish = min(
                (latest_start[succ_id] for succ_id in graph.successors[task_id]),
                default=project_end,
            )
            latest_finish[task_id] = finish
            latest_start[task_id] = finish - durations[task_id]

        min_slack = min(
            (latest_start[t] - earliest_start[t] for t in graph.order),
            default=0.0,
        )

        timings: dict[str, TaskTiming] = {}
        critical: list[str] = []
        for task_id in graph.order:
            slack = latest_start[task_id] - earliest_start[task_id]
            is_critical = abs(slack - min_slack) <= self.epsilon
            if is_critical:
                critical.append(task_id)
            timings[task_id] = TaskTiming(
                earliest_start=earliest_start[task_id],
                earliest_finish=earliest_finish[task_id],
                latest_start=latest_start[task_id],
                latest_finish=latest_finish[task_id],
                is_critical=is_critical,
            )
            if debug_enabled():
                logger.debug(
                    f"  {task_id}: ES={earliest_start[task_id]:.2f}h "
                    f"EF={earliest_finish[task_id]:.2f}h "
                    f"LS={latest_start[task_id]:.2f}h LF={latest_finish[task_id]:.2f}h "
                    f"slack={slack:.2f}h{' (critical)' if is_critical else ''}"
                )

        return CriticalPathResult(
            timings=timings,
            makespan_hours=makespan,
            project_end_hours=project_end,
            critical_path=tuple(critical),
        )
