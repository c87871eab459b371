"""Algorithm factory and exports."""

from opsched.exceptions import MalformedProblemError
from opsched.models import Problem, ProblemVariant

from ..config import AlgorithmType, SchedulingConfig
from ..protocols import SchedulingAlgorithm
from .asap import ASAPScheduler
from .cyclic import CyclicSimplexScheduler
from .shared_operators import SharedOperatorsScheduler
from .simplex import BasicSimplexScheduler


def create_algorithm(
    algorithm_type: AlgorithmType,
    problem: Problem,
    *,
    variant: ProblemVariant,
    last_operation: str | None = None,
    config: SchedulingConfig | None = None,
) -> SchedulingAlgorithm:
    """Create a scheduling algorithm instance.

    Args:
        algorithm_type: Type of algorithm to create
        problem: Validated problem to schedule
        variant: Problem variant the algorithm must honor
        last_operation: Operation whose start time LP schedulers minimize
        config: Optional scheduling configuration

    Returns:
        Algorithm instance ready to schedule

    Raises:
        MalformedProblemError: if the algorithm cannot handle the variant
    """
    effective_config = config or SchedulingConfig()

    if algorithm_type == AlgorithmType.ASAP:
        if variant != ProblemVariant.BASIC:
            raise MalformedProblemError(
                f"ASAP scheduling only supports the basic variant, not {variant.value}"
            )
        return ASAPScheduler(problem)

    if algorithm_type == AlgorithmType.SIMPLEX:
        if variant == ProblemVariant.CYCLIC:
            return CyclicSimplexScheduler(
                problem, last_operation, config=effective_config.simplex
            )
        if variant == ProblemVariant.SHARED_OPERATORS:
            return SharedOperatorsScheduler(
                problem, last_operation, config=effective_config.simplex
            )
        return BasicSimplexScheduler(problem, last_operation, config=effective_config.simplex)

    msg = f"Unknown algorithm type: {algorithm_type}"
    raise ValueError(msg)


__all__ = [
    "ASAPScheduler",
    "BasicSimplexScheduler",
    "CyclicSimplexScheduler",
    "SharedOperatorsScheduler",
    "create_algorithm",
]
