"""LP-based heuristic for acyclic problems with shared, limited operators."""

from opsched.exceptions import SolverInternalError
from opsched.logger import changes_enabled, checks_enabled, get_logger
from opsched.models import Problem

from ..analysis import DependenceGraph
from ..config import SimplexConfig
from ..core import AlgorithmResult
from ..resources import ReservationTable
from .simplex import BasicSimplexScheduler, start_variable

logger = get_logger()


class SharedOperatorsScheduler(BasicSimplexScheduler):
    """Schedule an acyclic problem whose operator types may have instance limits.

    Finding an optimal schedule is NP-hard, so this scheduler:
    1. Solves the basic problem, ignoring limits (a lower bound)
    2. Repeatedly takes the limited operation with the earliest current start
       time (ties: topological position), moves it to the first cycle at which
       an instance of its operator type is free for its whole latency, and
       pins it there with an equality constraint
    3. Pushes successors back after every move
    4. Re-solves the LP with every pin in place

    Between LP solves, start times come from a longest-path pass over the
    dependence graph with the pinned operations held in place. That is the
    least solution of the constraints, which is exactly what the LP returns
    once the sum of start times is minimized.

    The result respects every dependence and every limit but is not
    necessarily optimal.
    """

    variant_name = "shared_operators"

    def __init__(
        self,
        problem: Problem,
        last_operation: str | None = None,
        *,
        config: SimplexConfig | None = None,
    ):
        super().__init__(problem, last_operation, config=config)
        # Conflict resolution relies on every solve returning the least schedule
        self.minimize_sum = True

    def least_schedule(
        self, graph: DependenceGraph, order: list[str], pinned: dict[str, int]
    ) -> dict[str, int]:
        """Earliest start of every operation with the pinned operations held in place.

        Raises:
            SolverInternalError: if a pinned operation starts before its inputs are ready
        """
        start_times: dict[str, int] = {}
        for name in order:
            earliest = max(
                (
                    start_times[dep.source] + graph.latencies[dep.source]
                    for dep in graph.predecessors[name]
                ),
                default=0,
            )
            if name in pinned:
                if pinned[name] < earliest:
                    raise SolverInternalError(
                        f"Operation '{name}' was pinned to cycle {pinned[name]}, "
                        f"but its inputs are ready at cycle {earliest}",
                        [name],
                    )
                earliest = pinned[name]
            start_times[name] = earliest
        return start_times

    def schedule(self) -> AlgorithmResult:
        """Schedule all operations within the operator limits.

        Raises:
            CyclicDependenceError: if the dependence graph has a cycle
            SolverInternalError: if the simplex engine misbehaves
        """
        graph = DependenceGraph(self.problem, zero_distance_only=True)
        order = graph.topological_order()
        if self.last_operation is None:
            return AlgorithmResult(start_times={}, algorithm_metadata=self.metadata())

        rank = {name: position for position, name in enumerate(order)}
        program = self.build_program()
        start_times = self.decode(self.solve_for_last_operation(program))
        lower_bound = start_times[self.last_operation]
        logger.changes(
            f"Unconstrained start time of {self.last_operation}: cycle {lower_bound}"
        )

        tables = {
            operator_type.name: ReservationTable(operator_type)
            for operator_type in self.problem.operator_types
            if operator_type.limit is not None
        }
        operator_types = {op.name: op.operator_type for op in self.problem.operations}
        pending = [op.name for op in self.problem.operations if op.operator_type in tables]
        pinned: dict[str, int] = {}

        delayed = 0
        while pending:
            name = min(pending, key=lambda n: (start_times[n], rank[n]))
            pending.remove(name)
            table = tables[operator_types[name]]
            earliest = start_times[name]
            slot = table.next_available_time(earliest)
            if checks_enabled():
                logger.checks(
                    f"  Considering {name} ({operator_types[name]}) at cycle {earliest}"
                )
            table.reserve(name, slot)
            pinned[name] = slot
            program.fix({start_variable(name): 1}, slot, label=f"bind {name}")

            if slot != earliest:
                delayed += 1
                logger.changes(
                    f"Delayed operation {name} from cycle {earliest} to {slot} "
                    f"({operator_types[name]} limit {table.limit})"
                )
                start_times = self.least_schedule(graph, order, pinned)

        if delayed:
            solved = self.decode(self.solve_for_last_operation(program))
            if solved != start_times:
                raise SolverInternalError(
                    f"Linear program for problem '{self.problem.name}' disagrees with the "
                    "propagated schedule"
                )
            start_times = solved

        if changes_enabled():
            for name, start in start_times.items():
                logger.changes(f"Scheduled operation {name} at cycle {start}")

        return AlgorithmResult(
            start_times=start_times,
            algorithm_metadata=self.metadata(lower_bound=lower_bound, delayed_operations=delayed),
        )
