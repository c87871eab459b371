"""Pytest configuration and fixtures for opsched tests."""

from __future__ import annotations

from collections import Counter
from collections.abc import Callable, Iterator

import pytest

from opsched.logger import reset_logger
from opsched.models import Problem


@pytest.fixture(autouse=True)
def clean_logger() -> Iterator[None]:
    """Keep handlers installed by one test (or CLI run) from leaking into the next."""
    yield
    reset_logger()


def build_problem(
    operator_types: dict[str, int | tuple[int, int]],
    operations: list[tuple[str, str]],
    dependences: list[tuple[str, str] | tuple[str, str, int]] | None = None,
    name: str = "test",
) -> Problem:
    """Build a problem from compact literals.

    Args:
        operator_types: name -> latency, or name -> (latency, limit)
        operations: (name, operator type) pairs
        dependences: (src, dst) or (src, dst, distance) tuples
        name: Problem name
    """
    problem = Problem(name)
    for type_name, entry in operator_types.items():
        if isinstance(entry, tuple):
            problem.add_operator_type(type_name, entry[0], limit=entry[1])
        else:
            problem.add_operator_type(type_name, entry)
    for op_name, type_name in operations:
        problem.add_operation(type_name, name=op_name)
    for dep in dependences or []:
        problem.add_dependence(*dep)
    return problem


@pytest.fixture
def make_problem() -> Callable[..., Problem]:
    """Factory for problems from compact literals."""
    return build_problem


@pytest.fixture
def chain_problem() -> Problem:
    """A -> B -> C with latencies 1, 2 and 3."""
    return build_problem(
        {"l1": 1, "l2": 2, "l3": 3},
        [("A", "l1"), ("B", "l2"), ("C", "l3")],
        [("A", "B"), ("B", "C")],
        name="chain",
    )


@pytest.fixture
def diamond_problem() -> Problem:
    """Diamond with an unbalanced side branch and an isolated operation."""
    return build_problem(
        {"add": 1, "mul": 3, "load": 2},
        [
            ("ld", "load"),
            ("m1", "mul"),
            ("a1", "add"),
            ("a2", "add"),
            ("join", "add"),
            ("solo", "mul"),
        ],
        [("ld", "m1"), ("ld", "a1"), ("a1", "a2"), ("m1", "join"), ("a2", "join")],
        name="diamond",
    )


@pytest.fixture
def recurrence_problem() -> Problem:
    """A -> B within an iteration, B -> A across one iteration, latency 2 each."""
    return build_problem(
        {"op": 2},
        [("A", "op"), ("B", "op")],
        [("A", "B", 0), ("B", "A", 1)],
        name="recurrence",
    )


def assert_precedence(problem: Problem, start_times: dict[str, int], ii: int | None = None) -> None:
    """Assert every dependence holds (cyclic form when ii is given)."""
    for dep in problem.dependences:
        available = start_times[dep.source] + problem.latency_of(dep.source)
        if ii is not None:
            available -= ii * dep.distance
        assert start_times[dep.destination] >= available, str(dep)


def max_overlap(problem: Problem, start_times: dict[str, int], type_name: str) -> int:
    """Largest number of operations of one type occupying the same cycle."""
    operator_type = problem.get_operator_type(type_name)
    assert operator_type is not None
    usage: Counter[int] = Counter()
    for op in problem.operations_of_type(type_name):
        start = start_times[op.name]
        usage.update(range(start, start + operator_type.occupancy))
    return max(usage.values(), default=0)
