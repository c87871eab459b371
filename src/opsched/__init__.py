"""opsched - cycle-accurate operation scheduling.

Build a Problem, then call schedule_asap() or schedule_simplex():

    problem = Problem("example")
    add = problem.add_operator_type("add", latency=1)
    a = problem.add_operation(add, name="a")
    b = problem.add_operation(add, name="b")
    problem.add_dependence(a, b)
    result = schedule_simplex(problem, last_operation="b")
"""

from .exceptions import (
    CyclicDependenceError,
    FailureKind,
    InfeasibleCycleError,
    InvalidScheduleError,
    MalformedProblemError,
    OpschedError,
    ParseError,
    SolverInternalError,
)
from .models import (
    Dependence,
    Failure,
    Operation,
    OperatorType,
    Problem,
    ProblemVariant,
    Result,
)
from .scheduler import (
    ScheduleResult,
    SchedulingConfig,
    SchedulingService,
    schedule_asap,
    schedule_simplex,
)

__all__ = [
    "CyclicDependenceError",
    "Dependence",
    "Failure",
    "FailureKind",
    "InfeasibleCycleError",
    "InvalidScheduleError",
    "MalformedProblemError",
    "Operation",
    "OperatorType",
    "OpschedError",
    "ParseError",
    "Problem",
    "ProblemVariant",
    "Result",
    "ScheduleResult",
    "SchedulingConfig",
    "SchedulingService",
    "SolverInternalError",
    "schedule_asap",
    "schedule_simplex",
]
