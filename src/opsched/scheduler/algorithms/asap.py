"""As-soon-as-possible list scheduler for acyclic, unconstrained problems."""

from opsched.logger import get_logger
from opsched.models import Problem

from ..analysis import DependenceGraph
from ..core import AlgorithmResult

logger = get_logger()


class ASAPScheduler:
    """Assign every operation its earliest possible start time.

    Operations are visited in topological order of the distance-0 dependence
    graph (ties resolved by insertion order), and each starts as soon as the
    results of all its predecessors are available. Operator limits are ignored,
    which makes the result optimal for every operation at once.
    """

    def __init__(self, problem: Problem):
        self.problem = problem

    def schedule(self) -> AlgorithmResult:
        """Schedule all operations.

        Raises:
            CyclicDependenceError: if the dependence graph has a cycle
        """
        graph = DependenceGraph(self.problem, zero_distance_only=True)
        order = graph.topological_order()

        start_times: dict[str, int] = {}
        for name in order:
            start = 0
            for dep in graph.predecessors[name]:
                start = max(start, start_times[dep.source] + graph.latencies[dep.source])
            start_times[name] = start
            logger.changes(f"Scheduled operation {name} at cycle {start}")

        return AlgorithmResult(
            start_times={name: start_times[name] for name in graph.nodes},
            algorithm_metadata={"algorithm": "asap"},
        )
