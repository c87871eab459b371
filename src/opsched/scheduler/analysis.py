"""Dependence graph analysis: topological order, cycle extraction and recurrence bounds."""

from __future__ import annotations

from collections import deque
from typing import TYPE_CHECKING

from opsched.exceptions import CyclicDependenceError
from opsched.logger import get_logger

if TYPE_CHECKING:
    from opsched.models import Dependence, Problem

logger = get_logger()


class DependenceGraph:
    """Adjacency view of a validated problem.

    Node order is the operation insertion order and edge order is the
    dependence insertion order, so every traversal below is deterministic.
    """

    def __init__(self, problem: Problem, *, zero_distance_only: bool = False):
        self.nodes: list[str] = [op.name for op in problem.operations]
        self.latencies: dict[str, int] = {
            op.name: problem.latency_of(op) for op in problem.operations
        }
        self.edges: list[Dependence] = [
            dep for dep in problem.dependences if not (zero_distance_only and dep.distance != 0)
        ]
        self.successors: dict[str, list[Dependence]] = {name: [] for name in self.nodes}
        self.predecessors: dict[str, list[Dependence]] = {name: [] for name in self.nodes}
        for dep in self.edges:
            self.successors[dep.source].append(dep)
            self.predecessors[dep.destination].append(dep)

    def topological_order(self) -> list[str]:
        """Order the nodes so that every edge points forward (Kahn's algorithm).

        Raises:
            CyclicDependenceError: naming the operations of one cycle
        """
        in_degree = {name: len(self.predecessors[name]) for name in self.nodes}
        queue = deque(name for name in self.nodes if in_degree[name] == 0)
        order: list[str] = []

        while queue:
            name = queue.popleft()
            order.append(name)
            for dep in self.successors[name]:
                in_degree[dep.destination] -= 1
                if in_degree[dep.destination] == 0:
                    queue.append(dep.destination)

        if len(order) != len(self.nodes):
            remaining = {name for name in self.nodes if in_degree[name] > 0}
            cycle = self._cycle_within(remaining)
            raise CyclicDependenceError(
                "Dependence graph contains a cycle: " + " -> ".join([*cycle, cycle[0]]),
                cycle,
            )

        return order

    def _cycle_within(self, remaining: set[str]) -> list[str]:
        """Extract one cycle from nodes left over by Kahn's algorithm.

        Every leftover node has a predecessor among the leftovers, so walking
        predecessors must revisit a node.
        """
        start = next(name for name in self.nodes if name in remaining)
        walk: list[str] = []
        position: dict[str, int] = {}
        current = start
        while current not in position:
            position[current] = len(walk)
            walk.append(current)
            current = next(
                dep.source for dep in self.predecessors[current] if dep.source in remaining
            )
        cycle = walk[position[current] :]
        cycle.reverse()
        return cycle

    def path(self, source: str, destination: str) -> list[str] | None:
        """Breadth-first path from source to destination, or None."""
        parents: dict[str, str | None] = {source: None}
        queue = deque([source])
        while queue:
            name = queue.popleft()
            if name == destination:
                result: list[str] = []
                node: str | None = name
                while node is not None:
                    result.append(node)
                    node = parents[node]
                result.reverse()
                return result
            for dep in self.successors[name]:
                if dep.destination not in parents:
                    parents[dep.destination] = name
                    queue.append(dep.destination)
        return None

    def has_positive_cycle(self, initiation_interval: int) -> bool:
        """Bellman-Ford check for a cycle of positive weight latency(src) - II * distance."""
        if not self.edges:
            return False
        distance = dict.fromkeys(self.nodes, 0)
        for _ in range(len(self.nodes)):
            changed = False
            for dep in self.edges:
                candidate = (
                    distance[dep.source]
                    + self.latencies[dep.source]
                    - initiation_interval * dep.distance
                )
                if candidate > distance[dep.destination]:
                    distance[dep.destination] = candidate
                    changed = True
            if not changed:
                return False
        return True


def topological_order(problem: Problem) -> list[str]:
    """Topological order of a validated problem's distance-0 dependence graph."""
    return DependenceGraph(problem, zero_distance_only=True).topological_order()


def find_infeasible_cycle(problem: Problem) -> list[str] | None:
    """Find a cycle of distance-0 dependences with positive total latency.

    No initiation interval can satisfy such a cycle.

    Returns:
        The operations along the cycle, starting at the operation whose latency
        makes it positive, or None if there is no such cycle
    """
    graph = DependenceGraph(problem, zero_distance_only=True)
    for dep in graph.edges:
        if graph.latencies[dep.source] <= 0:
            continue
        back = graph.path(dep.destination, dep.source)
        if back is not None:
            return [dep.source, *back[:-1]]
    return None


def minimum_initiation_interval(problem: Problem) -> int | None:
    """Compute the recurrence-constrained minimum initiation interval of a validated problem.

    This is the smallest integer II >= 1 for which no dependence cycle has
    positive weight under latency(src) - II * distance, i.e.
    ceil(max over cycles of sum(latency) / sum(distance)). The search is a
    binary search over [1, sum of all latencies], since feasibility is monotonic
    in II.

    Returns:
        The bound, or None if a zero-distance cycle has positive latency
    """
    graph = DependenceGraph(problem)
    upper = max(1, sum(graph.latencies.values()))
    if graph.has_positive_cycle(upper):
        return None

    lower = 1
    while lower < upper:
        middle = (lower + upper) // 2
        if graph.has_positive_cycle(middle):
            lower = middle + 1
        else:
            upper = middle

    logger.debug(f"Recurrence bound for problem '{problem.name}': II >= {lower}")
    return lower
