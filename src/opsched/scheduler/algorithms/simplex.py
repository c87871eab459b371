"""Linear programming scheduler for the basic acyclic problem."""

from opsched.exceptions import MalformedProblemError, SolverInternalError
from opsched.logger import changes_enabled, get_logger
from opsched.models import Problem

from ..analysis import topological_order
from ..config import SimplexConfig
from ..core import AlgorithmResult
from ..simplex import LinearProgram, LPSolution, SimplexSolver, SolveStatus

logger = get_logger()


def start_variable(op_name: str) -> str:
    """LP variable holding the start time of an operation."""
    return f"start:{op_name}"


def resolve_last_operation(problem: Problem, last_operation: str | None) -> str | None:
    """Pick the operation whose start time is minimized.

    Defaults to the operation registered last.

    Raises:
        MalformedProblemError: if the named operation is not part of the problem
    """
    if last_operation is None:
        operations = problem.operations
        return operations[-1].name if operations else None
    if problem.get_operation(last_operation) is None:
        raise MalformedProblemError(
            f"Last operation '{last_operation}' is not part of problem '{problem.name}'",
            [last_operation],
        )
    return last_operation


class BasicSimplexScheduler:
    """Solve the basic problem as a linear program.

    Every dependence becomes the difference constraint
    start(dst) - start(src) >= latency(src), and the objective is to minimize
    the start time of the last operation. Since the optimum for the last
    operation usually leaves other operations free to move, a second solve fixes
    it and minimizes the sum of all start times, which yields the unique least
    schedule. That schedule coincides with the ASAP schedule.
    """

    algorithm_name = "simplex"
    variant_name = "basic"

    def __init__(
        self,
        problem: Problem,
        last_operation: str | None = None,
        *,
        config: SimplexConfig | None = None,
    ):
        """Initialize the scheduler.

        Args:
            problem: Validated problem to schedule
            last_operation: Operation whose start time is minimized (default: last registered)
            config: Optional simplex configuration
        """
        self.problem = problem
        self.config = config or SimplexConfig()
        self.last_operation = resolve_last_operation(problem, last_operation)
        self.minimize_sum = self.config.minimize_sum_of_starts
        self.solves = 0
        self.pivots = 0

    def build_program(self) -> LinearProgram:
        program = LinearProgram()
        for op in self.problem.operations:
            program.add_variable(start_variable(op.name))
        for dep in self.problem.dependences:
            program.add_difference(
                start_variable(dep.destination),
                start_variable(dep.source),
                self.problem.latency_of(dep.source),
                label=str(dep),
            )
        return program

    def decode(self, solution: LPSolution) -> dict[str, int]:
        start_times: dict[str, int] = {}
        for op in self.problem.operations:
            value = solution.values[start_variable(op.name)]
            if value.denominator != 1:
                raise SolverInternalError(
                    f"Simplex produced non-integral start time {value} for operation '{op.name}'",
                    [op.name],
                )
            start_times[op.name] = int(value)
        return start_times

    def solve(self, program: LinearProgram, objective: dict[str, int], purpose: str) -> LPSolution:
        """Minimize objective over program.

        Raises:
            SolverInternalError: if the program is unbounded, which no scheduling
                formulation with non-negative start times can be
        """
        program.minimize(objective)
        logger.checks(
            f"  Solving for {purpose}: {len(program.variables)} variables, "
            f"{len(program.constraints)} constraints"
        )
        solution = SimplexSolver(program).solve()
        self.solves += 1
        self.pivots += solution.iterations
        if solution.status == SolveStatus.UNBOUNDED:
            raise SolverInternalError(
                f"Linear program for {purpose} of problem '{self.problem.name}' is unbounded"
            )
        return solution

    def _require_optimal(self, solution: LPSolution, purpose: str) -> LPSolution:
        if solution.status != SolveStatus.OPTIMAL:
            raise SolverInternalError(
                f"Linear program for {purpose} of problem '{self.problem.name}' "
                f"is {solution.status.value}"
            )
        return solution

    def solve_for_last_operation(self, program: LinearProgram) -> LPSolution:
        """Minimize the last operation's start time, then the sum of all start times.

        The given program is not modified.
        """
        assert self.last_operation is not None
        program = program.copy()
        last = start_variable(self.last_operation)

        solution = self._require_optimal(
            self.solve(program, {last: 1}, f"start time of {self.last_operation}"),
            "last operation",
        )
        if not self.minimize_sum:
            return solution

        program.fix({last: 1}, solution.values[last], label=f"fix {last}")
        objective = {start_variable(op.name): 1 for op in self.problem.operations}
        return self._require_optimal(
            self.solve(program, objective, "sum of start times"), "tie-break"
        )

    def metadata(self, **extra: object) -> dict[str, object]:
        return {
            "algorithm": self.algorithm_name,
            "variant": self.variant_name,
            "last_operation": self.last_operation,
            "solves": self.solves,
            "pivots": self.pivots,
            **extra,
        }

    def schedule(self) -> AlgorithmResult:
        """Schedule all operations.

        Raises:
            CyclicDependenceError: if the dependence graph has a cycle
            SolverInternalError: if the simplex engine misbehaves
        """
        topological_order(self.problem)
        if self.last_operation is None:
            return AlgorithmResult(start_times={}, algorithm_metadata=self.metadata())

        solution = self.solve_for_last_operation(self.build_program())
        start_times = self.decode(solution)
        if changes_enabled():
            for name, start in start_times.items():
                logger.changes(f"Scheduled operation {name} at cycle {start}")

        return AlgorithmResult(start_times=start_times, algorithm_metadata=self.metadata())
