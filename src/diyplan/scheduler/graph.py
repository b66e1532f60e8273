"""Dependency graph construction, cycle detection and topological ordering."""

import heapq
from collections.abc import Callable, Iterator, Sequence
from typing import Any

from diyplan.exceptions import CyclicDependencyError, UnknownPredecessorError, ValidationError
from diyplan.logger import get_logger

from .core import Task

logger = get_logger()


class DependencyGraph:
    """Directed acyclic graph of tasks keyed by task id.

    Edges run from a predecessor to the tasks that require it. Instances are
    only created by build_dependency_graph(), which guarantees the graph is
    acyclic and every edge points at a known task.
    """

    def __init__(
        self,
        tasks: dict[str, Task],
        predecessors: dict[str, tuple[str, ...]],
        successors: dict[str, tuple[str, ...]],
    ):
        self.tasks = tasks
        self.predecessors = predecessors
        self.successors = successors
        self.order = self.topological_order()

    def __len__(self) -> int:
        return len(self.tasks)

    def __iter__(self) -> Iterator[str]:
        return iter(self.order)

    def topological_order(self, key: Callable[[str], Any] | None = None) -> list[str]:
        """Order tasks so every task comes after all of its predecessors.

        Uses Kahn's algorithm. Among tasks that are ready at the same time, the
        one with the smallest ``key`` goes first (input order by default).

        Args:
            key: Optional sort key for ready tasks

        Returns:
            List of task IDs in topological order
        """
        position = {task_id: index for index, task_id in enumerate(self.tasks)}
        sort_key = key or position.__getitem__

        in_degree = {task_id: len(preds) for task_id, preds in self.predecessors.items()}
        ready: list[tuple[Any, str]] = [
            (sort_key(task_id), task_id) for task_id, degree in in_degree.items() if degree == 0
        ]
        heapq.heapify(ready)

        result: list[str] = []
        while ready:
            _, task_id = heapq.heappop(ready)
            result.append(task_id)
            for succ_id in self.successors[task_id]:
                in_degree[succ_id] -= 1
                if in_degree[succ_id] == 0:
                    heapq.heappush(ready, (sort_key(succ_id), succ_id))

        # build_dependency_graph() rejects cycles, so every task is reachable
        assert len(result) == len(self.tasks)
        return result

    def sources(self) -> list[str]:
        """Tasks without predecessors, in topological order."""
        return [task_id for task_id in self.order if not self.predecessors[task_id]]

    def sinks(self) -> list[str]:
        """Tasks without successors, in topological order."""
        return [task_id for task_id in self.order if not self.successors[task_id]]


def build_dependency_graph(tasks: Sequence[Task]) -> DependencyGraph:
    """Convert a flat task list into a dependency graph.

    Args:
        tasks: Tasks in caller order

    Returns:
        The dependency graph

    Raises:
        ValidationError: On duplicate ids or non-positive durations
        UnknownPredecessorError: If a predecessor id is not in the input
        CyclicDependencyError: If a predecessor chain loops back on itself
    """
    task_dict: dict[str, Task] = {}
    for task in tasks:
        if task.id in task_dict:
            raise ValidationError(f"Duplicate task id: {task.id}")
        if task.duration_hours <= 0:
            raise ValidationError(
                f"Task {task.id} must have a positive duration, got {task.duration_hours}"
            )
        task_dict[task.id] = task

    predecessors: dict[str, tuple[str, ...]] = {}
    successors: dict[str, list[str]] = {task_id: [] for task_id in task_dict}
    for task in task_dict.values():
        # Repeated predecessor ids collapse to one edge
        preds = tuple(dict.fromkeys(task.predecessors))
        for pred_id in preds:
            if pred_id not in task_dict:
                raise UnknownPredecessorError(task.id, pred_id)
            successors[pred_id].append(task.id)
        predecessors[task.id] = preds

    cycle = _find_cycle(task_dict, predecessors)
    if cycle:
        raise CyclicDependencyError(cycle)

    graph = DependencyGraph(
        task_dict,
        predecessors,
        {task_id: tuple(succs) for task_id, succs in successors.items()},
    )
    logger.debug(f"Dependency graph: {len(graph)} tasks, order={graph.order}")
    return graph


def _find_cycle(
    tasks: dict[str, Task], predecessors: dict[str, tuple[str, ...]]
) -> list[str] | None:
    """Find a predecessor cycle with an iterative depth-first search.

    Returns:
        The cycle as a list of ids with the first id repeated at the end, or None
    """
    visited: set[str] = set()

    for root in tasks:
        if root in visited:
            continue

        visiting: set[str] = {root}
        path: list[str] = [root]
        stack: list[Iterator[str]] = [iter(predecessors[root])]

        while stack:
            next_id = next(stack[-1], None)
            if next_id is None:
                # All predecessors explored
                stack.pop()
                done = path.pop()
                visiting.discard(done)
                visited.add(done)
                continue

            if next_id in visiting:
                # Back edge into the current path
                return path[path.index(next_id) :] + [next_id]
            if next_id in visited:
                continue

            visiting.add(next_id)
            path.append(next_id)
            stack.append(iter(predecessors[next_id]))

    return None
