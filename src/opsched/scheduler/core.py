"""Core dataclasses for the scheduling system."""

from dataclasses import dataclass, field
from typing import Any

from opsched.exceptions import FailureKind
from opsched.models import Failure, ProblemVariant


def _default_dict() -> dict[str, Any]:
    return {}


@dataclass
class AlgorithmResult:
    """Result from a scheduling algorithm, before it is written back to the problem."""

    start_times: dict[str, int]
    initiation_interval: int | None = None
    algorithm_metadata: dict[str, Any] = field(default_factory=_default_dict)


@dataclass
class ScheduleResult:
    """Complete result of a scheduling operation.

    On success, start_times holds every operation's start cycle and the same
    values have been written to the problem. On failure, failure describes what
    went wrong and the problem is left untouched.
    """

    variant: ProblemVariant
    start_times: dict[str, int] = field(default_factory=dict)
    initiation_interval: int | None = None
    failure: Failure | None = None
    algorithm_metadata: dict[str, Any] = field(default_factory=_default_dict)

    @property
    def ok(self) -> bool:
        return self.failure is None

    @property
    def failure_kind(self) -> FailureKind | None:
        return self.failure.kind if self.failure else None

    def __bool__(self) -> bool:
        return self.ok
