"""Custom exceptions for opsched."""

from __future__ import annotations

from enum import Enum


class FailureKind(str, Enum):
    """Machine-readable reason a validation or solve failed."""

    MALFORMED_PROBLEM = "malformed_problem"
    CYCLIC_DEPENDENCE = "cyclic_dependence"
    INFEASIBLE_CYCLE = "infeasible_cycle"
    SOLVER_INTERNAL_ERROR = "solver_internal_error"
    INVALID_SCHEDULE = "invalid_schedule"


class OpschedError(Exception):
    """Base exception for all opsched errors."""

    kind: FailureKind = FailureKind.SOLVER_INTERNAL_ERROR

    def __init__(self, message: str, entities: tuple[str, ...] | list[str] = ()):
        super().__init__(message)
        self.message = message
        self.entities = tuple(entities)


class MalformedProblemError(OpschedError):
    """Raised when a problem violates a structural invariant."""

    kind = FailureKind.MALFORMED_PROBLEM


class CyclicDependenceError(OpschedError):
    """Raised when an acyclic-only algorithm meets a zero-distance cycle."""

    kind = FailureKind.CYCLIC_DEPENDENCE


class InfeasibleCycleError(OpschedError):
    """Raised when no finite initiation interval satisfies a cyclic problem."""

    kind = FailureKind.INFEASIBLE_CYCLE


class SolverInternalError(OpschedError):
    """Raised when the simplex engine reaches an outcome impossible for a well-formed input."""

    kind = FailureKind.SOLVER_INTERNAL_ERROR


class InvalidScheduleError(OpschedError):
    """Raised when computed start times violate a constraint of the problem."""

    kind = FailureKind.INVALID_SCHEDULE


class ParseError(Exception):
    """Raised when a YAML problem file cannot be parsed."""

    pass
