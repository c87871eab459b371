"""Tests for dependence graph analysis."""

from collections.abc import Callable

import pytest

from opsched.exceptions import CyclicDependenceError
from opsched.models import Problem
from opsched.scheduler.analysis import (
    DependenceGraph,
    find_infeasible_cycle,
    minimum_initiation_interval,
    topological_order,
)


class TestTopologicalOrder:
    """Test the insertion-order-stable topological sort."""

    def test_independent_operations_keep_insertion_order(
        self, make_problem: Callable[..., Problem]
    ) -> None:
        problem = make_problem({"add": 1}, [("c", "add"), ("a", "add"), ("b", "add")])
        assert topological_order(problem) == ["c", "a", "b"]

    def test_edges_point_forward(self, diamond_problem: Problem) -> None:
        order = topological_order(diamond_problem)
        position = {name: i for i, name in enumerate(order)}

        assert sorted(order) == sorted(op.name for op in diamond_problem.operations)
        for dep in diamond_problem.dependences:
            assert position[dep.source] < position[dep.destination]

    def test_distance_edges_are_ignored(self, recurrence_problem: Problem) -> None:
        """Only distance-0 edges constrain the order."""
        assert topological_order(recurrence_problem) == ["A", "B"]

    def test_cycle_is_named(self, make_problem: Callable[..., Problem]) -> None:
        problem = make_problem(
            {"add": 1},
            [("entry", "add"), ("x", "add"), ("y", "add"), ("z", "add")],
            [("entry", "x"), ("x", "y"), ("y", "z"), ("z", "x")],
        )

        with pytest.raises(CyclicDependenceError) as exc_info:
            topological_order(problem)

        assert set(exc_info.value.entities) == {"x", "y", "z"}
        assert "entry" not in exc_info.value.message

    def test_self_loop_is_a_cycle(self, make_problem: Callable[..., Problem]) -> None:
        problem = make_problem({"add": 1}, [("a", "add")], [("a", "a")])

        with pytest.raises(CyclicDependenceError) as exc_info:
            topological_order(problem)

        assert exc_info.value.entities == ("a",)
        assert "a -> a" in exc_info.value.message


class TestInfeasibleCycle:
    """Test finding zero-distance cycles with positive latency."""

    def test_finds_cycle(self, make_problem: Callable[..., Problem]) -> None:
        problem = make_problem(
            {"op": 2}, [("A", "op"), ("B", "op")], [("A", "B", 0), ("B", "A", 0)]
        )
        assert find_infeasible_cycle(problem) == ["A", "B"]

    def test_distance_breaks_cycle(self, recurrence_problem: Problem) -> None:
        assert find_infeasible_cycle(recurrence_problem) is None

    def test_zero_latency_cycle_is_feasible(self, make_problem: Callable[..., Problem]) -> None:
        problem = make_problem(
            {"wire": 0}, [("A", "wire"), ("B", "wire")], [("A", "B"), ("B", "A")]
        )
        assert find_infeasible_cycle(problem) is None


class TestMinimumInitiationInterval:
    """Test the recurrence-constrained minimum II bound."""

    def test_two_operation_recurrence(self, recurrence_problem: Problem) -> None:
        """ceil((2 + 2) / 1) = 4."""
        assert minimum_initiation_interval(recurrence_problem) == 4

    def test_fractional_ratio_rounds_up(self, make_problem: Callable[..., Problem]) -> None:
        """A cycle with latency 5 over distance 2 needs II = ceil(2.5) = 3."""
        problem = make_problem(
            {"l3": 3, "l2": 2}, [("c", "l3"), ("d", "l2")], [("c", "d", 0), ("d", "c", 2)]
        )
        assert minimum_initiation_interval(problem) == 3

    def test_maximum_over_cycles(self, make_problem: Callable[..., Problem]) -> None:
        problem = make_problem(
            {"l1": 1, "l2": 2, "l3": 3, "l4": 4},
            [("a", "l1"), ("b", "l2"), ("c", "l3"), ("d", "l2"), ("acc", "l4")],
            [
                ("a", "b", 0),
                ("b", "a", 1),  # 3 / 1
                ("c", "d", 0),
                ("d", "c", 2),  # 5 / 2
                ("acc", "acc", 1),  # 4 / 1
            ],
        )
        assert minimum_initiation_interval(problem) == 4

    def test_acyclic_problem(self, chain_problem: Problem) -> None:
        assert minimum_initiation_interval(chain_problem) == 1

    def test_infeasible(self, make_problem: Callable[..., Problem]) -> None:
        problem = make_problem({"op": 1}, [("A", "op"), ("B", "op")], [("A", "B"), ("B", "A")])
        assert minimum_initiation_interval(problem) is None

    def test_empty_problem(self) -> None:
        """Without dependences there is no recurrence, so II = 1."""
        assert minimum_initiation_interval(Problem("empty")) == 1

    def test_operations_without_dependences(
        self, make_problem: Callable[..., Problem]
    ) -> None:
        problem = make_problem({"op": 3}, [("A", "op"), ("B", "op")])
        assert minimum_initiation_interval(problem) == 1


class TestDependenceGraph:
    """Test graph helpers."""

    def test_path(self, chain_problem: Problem) -> None:
        graph = DependenceGraph(chain_problem)
        assert graph.path("A", "C") == ["A", "B", "C"]
        assert graph.path("C", "A") is None

    def test_positive_cycle_detection(self, recurrence_problem: Problem) -> None:
        graph = DependenceGraph(recurrence_problem)
        assert graph.has_positive_cycle(3)
        assert not graph.has_positive_cycle(4)

    def test_empty_graph_has_no_cycle(self) -> None:
        assert not DependenceGraph(Problem("empty")).has_positive_cycle(1)
