"""Configuration classes for the scheduling system."""

from enum import Enum

from pydantic import BaseModel

from opsched.models import ProblemVariant


class AlgorithmType(str, Enum):
    """Available scheduling algorithms."""

    ASAP = "asap"
    SIMPLEX = "simplex"


class SimplexConfig(BaseModel):
    """Configuration for the LP-based schedulers."""

    # After minimizing the last operation's start time, fix it and minimize the
    # sum of all start times, which selects the least (ASAP-like) solution
    minimize_sum_of_starts: bool = True


class SchedulingConfig(BaseModel):
    """Configuration for algorithm selection."""

    algorithm: AlgorithmType = AlgorithmType.SIMPLEX
    variant: ProblemVariant | None = None  # None = infer from the problem
    last_operation: str | None = None  # None = last operation in insertion order
    verify_solution: bool = True  # Check the computed schedule before writing it back

    simplex: SimplexConfig = SimplexConfig()
