"""Tests for dependency graph construction and ordering."""

import pytest

from diyplan.exceptions import CyclicDependencyError, UnknownPredecessorError, ValidationError
from diyplan.scheduler import build_dependency_graph
from tests.conftest import make_task


class TestBuildDependencyGraph:
    """Test build_dependency_graph()."""

    def test_topological_order_places_predecessors_first(self) -> None:
        """Every task comes after all of its predecessors."""
        tasks = [
            make_task("paint", requires=["drywall"]),
            make_task("drywall", requires=["framing", "electrical"]),
            make_task("electrical", requires=["framing"]),
            make_task("framing"),
            make_task("cleanup", requires=["paint", "electrical"]),
        ]

        graph = build_dependency_graph(tasks)

        position = {task_id: index for index, task_id in enumerate(graph.order)}
        assert len(graph.order) == len(tasks)
        for task in tasks:
            for pred_id in task.predecessors:
                assert position[pred_id] < position[task.id]

    def test_independent_tasks_keep_input_order(self) -> None:
        graph = build_dependency_graph([make_task("b"), make_task("c"), make_task("a")])
        assert graph.order == ["b", "c", "a"]

    def test_custom_key_breaks_ties_among_ready_tasks(self) -> None:
        tasks = [make_task("b"), make_task("a"), make_task("c", requires=["a"])]
        graph = build_dependency_graph(tasks)

        assert graph.topological_order(key=lambda task_id: task_id) == ["a", "b", "c"]

    def test_successors_and_sources(self) -> None:
        tasks = [make_task("a"), make_task("b", requires=["a"]), make_task("c", requires=["a"])]
        graph = build_dependency_graph(tasks)

        assert graph.successors["a"] == ("b", "c")
        assert graph.sources() == ["a"]
        assert graph.sinks() == ["b", "c"]

    def test_repeated_predecessor_counts_once(self) -> None:
        graph = build_dependency_graph([make_task("a"), make_task("b", requires=["a", "a"])])
        assert graph.predecessors["b"] == ("a",)
        assert graph.successors["a"] == ("b",)

    def test_empty_input(self) -> None:
        graph = build_dependency_graph([])
        assert len(graph) == 0
        assert graph.order == []

    def test_unknown_predecessor(self) -> None:
        """A predecessor outside the input set is rejected."""
        with pytest.raises(UnknownPredecessorError) as exc_info:
            build_dependency_graph([make_task("tile", requires=["waterproofing"])])

        assert exc_info.value.task_id == "tile"
        assert exc_info.value.predecessor_id == "waterproofing"
        assert "waterproofing" in str(exc_info.value)

    def test_cycle_is_reported_with_path(self) -> None:
        tasks = [
            make_task("a", requires=["c"]),
            make_task("b", requires=["a"]),
            make_task("c", requires=["b"]),
        ]

        with pytest.raises(CyclicDependencyError) as exc_info:
            build_dependency_graph(tasks)

        cycle = exc_info.value.cycle
        assert cycle[0] == cycle[-1]
        assert set(cycle) == {"a", "b", "c"}
        assert "Circular dependency" in str(exc_info.value)

    def test_self_dependency_is_a_cycle(self) -> None:
        with pytest.raises(CyclicDependencyError) as exc_info:
            build_dependency_graph([make_task("a", requires=["a"])])
        assert exc_info.value.cycle == ["a", "a"]

    def test_cycle_not_reachable_from_first_task(self) -> None:
        tasks = [
            make_task("start"),
            make_task("x", requires=["y"]),
            make_task("y", requires=["x"]),
        ]
        with pytest.raises(CyclicDependencyError):
            build_dependency_graph(tasks)

    def test_structural_errors_are_validation_errors(self) -> None:
        with pytest.raises(ValidationError):
            build_dependency_graph([make_task("a", requires=["missing"])])

    def test_duplicate_task_id(self) -> None:
        with pytest.raises(ValidationError, match="Duplicate task id"):
            build_dependency_graph([make_task("a"), make_task("a")])

    def test_non_positive_duration(self) -> None:
        with pytest.raises(ValidationError, match="positive duration"):
            build_dependency_graph([make_task("a", hours=0)])
