"""Linear programming scheduler for the cyclic problem with an initiation interval."""

import math
from collections import defaultdict

from opsched.exceptions import InfeasibleCycleError, SolverInternalError
from opsched.logger import changes_enabled, get_logger

from ..analysis import find_infeasible_cycle
from ..core import AlgorithmResult
from ..simplex import LinearProgram, Relation, SolveStatus
from .simplex import BasicSimplexScheduler, start_variable

logger = get_logger()

II_VARIABLE = "ii"


class CyclicSimplexScheduler(BasicSimplexScheduler):
    """Find the smallest initiation interval, then schedule for it.

    A dependence with distance d becomes
    start(dst) - start(src) + d * II >= latency(src). The objectives are solved
    in sequence: minimize II (the LP optimum is the largest latency/distance
    ratio of any cycle), round it up and fix it, then minimize the last
    operation's start time as in the basic problem.
    """

    variant_name = "cyclic"

    def build_program(self) -> LinearProgram:
        program = LinearProgram()
        for op in self.problem.operations:
            program.add_variable(start_variable(op.name))
        program.add_variable(II_VARIABLE)
        program.add_constraint({II_VARIABLE: 1}, Relation.GE, 1, label="ii >= 1")

        for dep in self.problem.dependences:
            coefficients: defaultdict[str, int] = defaultdict(int)
            coefficients[start_variable(dep.destination)] += 1
            coefficients[start_variable(dep.source)] -= 1
            coefficients[II_VARIABLE] += dep.distance
            program.add_constraint(
                dict(coefficients), Relation.GE, self.problem.latency_of(dep.source), label=str(dep)
            )
        return program

    def schedule(self) -> AlgorithmResult:
        """Schedule all operations and determine the initiation interval.

        Raises:
            InfeasibleCycleError: if a zero-distance cycle has positive latency
            SolverInternalError: if the simplex engine misbehaves
        """
        if self.last_operation is None:
            return AlgorithmResult(
                start_times={}, initiation_interval=1, algorithm_metadata=self.metadata()
            )

        program = self.build_program()
        solution = self.solve(program.copy(), {II_VARIABLE: 1}, "minimum initiation interval")
        if solution.status == SolveStatus.INFEASIBLE:
            cycle = find_infeasible_cycle(self.problem)
            if cycle is None:
                raise SolverInternalError(
                    f"Linear program for problem '{self.problem.name}' is infeasible, "
                    "but no zero-distance cycle explains it"
                )
            raise InfeasibleCycleError(
                "No initiation interval satisfies the zero-distance cycle "
                + " -> ".join([*cycle, cycle[0]]),
                cycle,
            )

        relaxed = solution.values[II_VARIABLE]
        initiation_interval = math.ceil(relaxed)
        logger.changes(
            f"Initiation interval {initiation_interval} (recurrence bound {relaxed})"
        )

        program.fix({II_VARIABLE: 1}, initiation_interval, label="fix ii")
        start_times = self.decode(self.solve_for_last_operation(program))
        if changes_enabled():
            for name, start in start_times.items():
                logger.changes(f"Scheduled operation {name} at cycle {start}")

        return AlgorithmResult(
            start_times=start_times,
            initiation_interval=initiation_interval,
            algorithm_metadata=self.metadata(relaxed_initiation_interval=str(relaxed)),
        )
