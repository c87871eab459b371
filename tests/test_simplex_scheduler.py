"""Tests for the LP scheduler of the basic problem."""

from collections.abc import Callable

from opsched.exceptions import FailureKind
from opsched.models import Problem, ProblemVariant
from opsched.scheduler import (
    AlgorithmType,
    BasicSimplexScheduler,
    SchedulingConfig,
    SchedulingService,
    SimplexConfig,
    schedule_asap,
    schedule_simplex,
)
from opsched.scheduler.algorithms.simplex import start_variable
from tests.conftest import assert_precedence


class TestBasicSimplexScheduler:
    """Test minimizing the last operation's start time."""

    def test_chain(self, chain_problem: Problem) -> None:
        result = schedule_simplex(chain_problem, "C")

        assert result.ok
        assert result.variant == ProblemVariant.BASIC
        assert result.start_times == {"A": 0, "B": 1, "C": 3}
        assert chain_problem.get_end_time("C") == 6

    def test_independent_operations(self, make_problem: Callable[..., Problem]) -> None:
        problem = make_problem({"add": 1}, [("a", "add"), ("b", "add")])

        result = schedule_simplex(problem)

        assert result.start_times == {"a": 0, "b": 0}

    def test_matches_asap(self, diamond_problem: Problem) -> None:
        """The least LP schedule is the ASAP schedule."""
        expected = {"ld": 0, "m1": 2, "a1": 2, "a2": 3, "join": 5, "solo": 0}

        simplex = schedule_simplex(diamond_problem, "join")
        asap = schedule_asap(diamond_problem)

        assert simplex.start_times == expected
        assert asap.start_times == expected
        assert_precedence(diamond_problem, simplex.start_times)

    def test_default_last_operation(self, diamond_problem: Problem) -> None:
        """Without a last operation, the operation added last is minimized."""
        result = schedule_simplex(diamond_problem)

        assert result.algorithm_metadata["last_operation"] == "solo"
        assert result.start_times["solo"] == 0
        assert result.start_times["join"] == 5

    def test_without_sum_tie_break(self, diamond_problem: Problem) -> None:
        """Skipping the second solve still gives the optimal last-operation start."""
        scheduler = BasicSimplexScheduler(
            diamond_problem, "join", config=SimplexConfig(minimize_sum_of_starts=False)
        )

        result = scheduler.schedule()

        assert result.start_times["join"] == 5
        assert_precedence(diamond_problem, result.start_times)
        assert result.algorithm_metadata["solves"] == 1

    def test_metadata(self, chain_problem: Problem) -> None:
        result = schedule_simplex(chain_problem, "C")

        metadata = result.algorithm_metadata
        assert metadata["algorithm"] == "simplex"
        assert metadata["variant"] == "basic"
        assert metadata["last_operation"] == "C"
        assert metadata["solves"] == 2

    def test_build_program(self, chain_problem: Problem) -> None:
        """One variable per operation and one difference row per dependence."""
        program = BasicSimplexScheduler(chain_problem).build_program()

        assert program.variables == [start_variable(name) for name in ("A", "B", "C")]
        assert [c.label for c in program.constraints] == ["A -> B", "B -> C"]
        assert program.constraints[1].rhs == 2

    def test_empty_problem(self) -> None:
        result = schedule_simplex(Problem("empty"))

        assert result.ok
        assert result.start_times == {}

    def test_deterministic(self, diamond_problem: Problem) -> None:
        first = schedule_simplex(diamond_problem, "join")
        second = schedule_simplex(diamond_problem, "join")

        assert first.start_times == second.start_times
        assert first.algorithm_metadata["pivots"] == second.algorithm_metadata["pivots"]


class TestBasicSimplexFailures:
    """Test failures reported by the LP scheduler."""

    def test_cycle(self, make_problem: Callable[..., Problem]) -> None:
        problem = make_problem({"add": 1}, [("a", "add"), ("b", "add")], [("a", "b"), ("b", "a")])

        result = schedule_simplex(problem, variant=ProblemVariant.BASIC)

        assert result.failure_kind == FailureKind.CYCLIC_DEPENDENCE
        assert problem.start_times == {"a": None, "b": None}

    def test_unknown_last_operation(self, chain_problem: Problem) -> None:
        result = schedule_simplex(chain_problem, "Z")

        assert result.failure_kind == FailureKind.MALFORMED_PROBLEM
        assert result.failure is not None
        assert result.failure.entities == ("Z",)
        assert chain_problem.start_times == {"A": None, "B": None, "C": None}

    def test_dangling_dependence(self, make_problem: Callable[..., Problem]) -> None:
        problem = make_problem({"add": 1}, [("a", "add")], [("ghost", "a")])

        result = schedule_simplex(problem)

        assert result.failure_kind == FailureKind.MALFORMED_PROBLEM
        assert result.failure is not None
        assert "ghost" in result.failure.entities

    def test_asap_rejects_other_variants(self, recurrence_problem: Problem) -> None:
        config = SchedulingConfig(algorithm=AlgorithmType.ASAP, variant=ProblemVariant.CYCLIC)

        result = SchedulingService(recurrence_problem, config).schedule()

        assert result.failure_kind == FailureKind.MALFORMED_PROBLEM
        assert not result
