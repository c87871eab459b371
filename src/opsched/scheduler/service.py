"""High-level scheduling service and entry points."""

from opsched.exceptions import InvalidScheduleError, OpschedError, SolverInternalError
from opsched.logger import get_logger
from opsched.models import Failure, Problem, ProblemVariant

from .algorithms import create_algorithm
from .config import AlgorithmType, SchedulingConfig
from .core import ScheduleResult

logger = get_logger()


class SchedulingService:
    """Validate, schedule, verify and store the schedule of one problem.

    This service coordinates:
    - Problem validation for the selected variant
    - The scheduling algorithm selected by the configuration
    - Verification of the computed start times

    Start times are written to the problem only when every step succeeds.
    Failures are returned as ScheduleResult values, never raised.
    """

    def __init__(self, problem: Problem, config: SchedulingConfig | None = None):
        """Initialize scheduling service.

        Args:
            problem: Problem to schedule
            config: Optional scheduling configuration (algorithm, variant, last operation)
        """
        self.problem = problem
        self.config = config or SchedulingConfig()

    def _resolve_variant(self) -> ProblemVariant:
        if self.config.variant is not None:
            return self.config.variant
        return self.problem.infer_variant()

    def schedule(self) -> ScheduleResult:
        """Schedule the problem.

        Returns:
            ScheduleResult with start times, or with a failure and no side effects
        """
        variant = self._resolve_variant()
        logger.changes(
            f"Scheduling problem '{self.problem.name}' ({variant.value} variant, "
            f"{self.config.algorithm.value})"
        )
        if variant == ProblemVariant.CYCLIC and self.problem.has_limits():
            logger.warning(
                f"Operator limits of problem '{self.problem.name}' "
                "are ignored by the cyclic variant"
            )

        try:
            self.problem.check(variant)
            algorithm = create_algorithm(
                self.config.algorithm,
                self.problem,
                variant=variant,
                last_operation=self.config.last_operation,
                config=self.config,
            )
            algorithm_result = algorithm.schedule()
            if self.config.verify_solution:
                self._verify(
                    algorithm_result.start_times, algorithm_result.initiation_interval, variant
                )
        except OpschedError as e:
            logger.changes(f"Scheduling failed: {e.message}")
            return ScheduleResult(variant=variant, failure=Failure.from_error(e))

        self.problem.apply_schedule(
            algorithm_result.start_times, algorithm_result.initiation_interval
        )
        return ScheduleResult(
            variant=variant,
            start_times=dict(algorithm_result.start_times),
            initiation_interval=algorithm_result.initiation_interval,
            algorithm_metadata=algorithm_result.algorithm_metadata,
        )

    def _verify(
        self, start_times: dict[str, int], initiation_interval: int | None, variant: ProblemVariant
    ) -> None:
        try:
            self.problem.check_schedule(dict(start_times), initiation_interval, variant)
        except InvalidScheduleError as e:
            raise SolverInternalError(
                f"Computed schedule is invalid: {e.message}", e.entities
            ) from e


def schedule_asap(problem: Problem) -> ScheduleResult:
    """Schedule an acyclic problem as soon as possible, ignoring operator limits."""
    config = SchedulingConfig(algorithm=AlgorithmType.ASAP, variant=ProblemVariant.BASIC)
    return SchedulingService(problem, config).schedule()


def schedule_simplex(
    problem: Problem,
    last_operation: str | None = None,
    *,
    variant: ProblemVariant | None = None,
) -> ScheduleResult:
    """Schedule a problem with the LP-based scheduler for its variant.

    Args:
        problem: Problem to schedule
        last_operation: Operation whose start time is minimized (default: last registered)
        variant: Variant to solve (default: inferred from the problem's extensions)

    Returns:
        ScheduleResult; for the cyclic variant it carries the initiation interval
    """
    config = SchedulingConfig(
        algorithm=AlgorithmType.SIMPLEX, variant=variant, last_operation=last_operation
    )
    return SchedulingService(problem, config).schedule()
