"""Data models for opsched: operator types, operations, dependences and problems."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from enum import Enum

from .exceptions import (
    FailureKind,
    InvalidScheduleError,
    MalformedProblemError,
    OpschedError,
)


class ProblemVariant(str, Enum):
    """Which constraint extensions of a problem an algorithm takes into account."""

    BASIC = "basic"  # Distance-0 precedence only
    CYCLIC = "cyclic"  # Adds dependence distances and an initiation interval
    SHARED_OPERATORS = "shared_operators"  # Adds operator type limits


ACYCLIC_VARIANTS = (ProblemVariant.BASIC, ProblemVariant.SHARED_OPERATORS)


@dataclass(frozen=True)
class OperatorType:
    """A kind of operator, with its latency and optional instance limit."""

    name: str
    latency: int
    limit: int | None = None  # None = unlimited

    @property
    def occupancy(self) -> int:
        """Number of cycles an operation of this type holds an operator instance."""
        return max(self.latency, 1)


@dataclass
class Operation:
    """An operation to be scheduled.

    start_time is written by the scheduling algorithms only.
    """

    name: str
    operator_type: str
    start_time: int | None = None


@dataclass(frozen=True)
class Dependence:
    """A precedence edge between two operations.

    A distance of 0 means the destination depends on the source within the same
    iteration; a positive distance means it depends on the source from
    `distance` iterations earlier.
    """

    source: str
    destination: str
    distance: int = 0

    def __str__(self) -> str:
        if self.distance:
            return f"{self.source} -> {self.destination} @ {self.distance}"
        return f"{self.source} -> {self.destination}"


@dataclass(frozen=True)
class Failure:
    """Description of a failed validation or solve."""

    kind: FailureKind
    message: str
    entities: tuple[str, ...] = ()

    @classmethod
    def from_error(cls, error: OpschedError) -> Failure:
        return cls(kind=error.kind, message=error.message, entities=error.entities)

    def __str__(self) -> str:
        return f"{self.kind.value}: {self.message}"


@dataclass(frozen=True)
class Result:
    """Success, or a failure with its kind and description."""

    failure: Failure | None = None

    @property
    def ok(self) -> bool:
        return self.failure is None

    def __bool__(self) -> bool:
        return self.ok


def _is_int(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


class Problem:
    """A scheduling problem: operator types, operations and dependences.

    One container serves every problem variant. Dependence distances and
    operator type limits are optional extensions; algorithms pick the view they
    need through ProblemVariant instead of through subclasses.

    Registrations are recorded as given, including duplicates and dangling
    references, so that validate() can report them.
    """

    def __init__(self, name: str = "problem") -> None:
        self.name = name
        self._operator_types: list[OperatorType] = []
        self._operations: list[Operation] = []
        self._dependences: list[Dependence] = []
        self.initiation_interval: int | None = None

    # Construction

    def add_operator_type(self, name: str, latency: int, limit: int | None = None) -> OperatorType:
        """Register an operator type.

        Args:
            name: Unique operator type name
            latency: Cycles between the start of an operation and availability of its result
            limit: Maximum number of operations of this type in flight at once (None = unlimited)

        Returns:
            The registered OperatorType
        """
        operator_type = OperatorType(name=name, latency=latency, limit=limit)
        self._operator_types.append(operator_type)
        return operator_type

    def add_operation(
        self, operator_type: OperatorType | str, name: str | None = None
    ) -> Operation:
        """Register an operation of the given operator type.

        Args:
            operator_type: The operator type, or its name
            name: Unique operation name; generated as op<N> when omitted

        Returns:
            The registered Operation, which serves as its handle
        """
        type_name = operator_type.name if isinstance(operator_type, OperatorType) else operator_type
        if name is None:
            name = self._generate_name()
        operation = Operation(name=name, operator_type=type_name)
        self._operations.append(operation)
        return operation

    def add_dependence(
        self, source: Operation | str, destination: Operation | str, distance: int = 0
    ) -> Dependence:
        """Register a dependence from source to destination."""
        dependence = Dependence(
            source=source.name if isinstance(source, Operation) else source,
            destination=destination.name if isinstance(destination, Operation) else destination,
            distance=distance,
        )
        self._dependences.append(dependence)
        return dependence

    def _generate_name(self) -> str:
        taken = {op.name for op in self._operations}
        index = len(self._operations)
        while f"op{index}" in taken:
            index += 1
        return f"op{index}"

    # Access

    @property
    def operator_types(self) -> list[OperatorType]:
        return list(self._operator_types)

    @property
    def operations(self) -> list[Operation]:
        return list(self._operations)

    @property
    def dependences(self) -> list[Dependence]:
        return list(self._dependences)

    def get_operation(self, name: str) -> Operation | None:
        for op in self._operations:
            if op.name == name:
                return op
        return None

    def get_operator_type(self, name: str) -> OperatorType | None:
        for operator_type in self._operator_types:
            if operator_type.name == name:
                return operator_type
        return None

    def operator_type_of(self, op: Operation | str) -> OperatorType:
        """Return the operator type of an operation in a validated problem."""
        operation = op if isinstance(op, Operation) else self.get_operation(op)
        if operation is None:
            raise MalformedProblemError(f"Unknown operation '{op}'", [str(op)])
        operator_type = self.get_operator_type(operation.operator_type)
        if operator_type is None:
            raise MalformedProblemError(
                f"Operation '{operation.name}' uses unregistered operator type "
                f"'{operation.operator_type}'",
                [operation.name],
            )
        return operator_type

    def latency_of(self, op: Operation | str) -> int:
        return self.operator_type_of(op).latency

    def operations_of_type(self, type_name: str) -> list[Operation]:
        return [op for op in self._operations if op.operator_type == type_name]

    @property
    def start_times(self) -> dict[str, int | None]:
        """Snapshot of the current start time of every operation."""
        return {op.name: op.start_time for op in self._operations}

    def get_end_time(self, op: Operation | str) -> int | None:
        """Cycle at which the result of a scheduled operation becomes available."""
        operation = op if isinstance(op, Operation) else self.get_operation(op)
        if operation is None or operation.start_time is None:
            return None
        return operation.start_time + self.latency_of(operation)

    # Variants

    def has_distances(self) -> bool:
        return any(dep.distance != 0 for dep in self._dependences)

    def has_limits(self) -> bool:
        return any(t.limit is not None for t in self._operator_types)

    def infer_variant(self) -> ProblemVariant:
        """Pick the variant from the populated extensions.

        Nonzero distances select the cyclic variant (operator limits are then
        ignored); otherwise operator limits select the shared operators variant.
        """
        if self.has_distances():
            return ProblemVariant.CYCLIC
        if self.has_limits():
            return ProblemVariant.SHARED_OPERATORS
        return ProblemVariant.BASIC

    # Validation

    def check(self, variant: ProblemVariant | None = None) -> None:
        """Check the structural invariants of the problem.

        Raises:
            MalformedProblemError: listing every violation found
        """
        variant = variant or self.infer_variant()
        violations: list[str] = []
        entities: list[str] = []

        def report(message: str, *names: str) -> None:
            violations.append(message)
            entities.extend(names)

        for name, count in Counter(t.name for t in self._operator_types).items():
            if count > 1:
                report(f"operator type '{name}' is registered {count} times", name)
        for name, count in Counter(op.name for op in self._operations).items():
            if count > 1:
                report(f"operation '{name}' is registered {count} times", name)

        for operator_type in self._operator_types:
            if not _is_int(operator_type.latency) or operator_type.latency < 0:
                report(
                    f"operator type '{operator_type.name}' has invalid latency "
                    f"{operator_type.latency!r}",
                    operator_type.name,
                )
            limit = operator_type.limit
            if limit is not None and (not _is_int(limit) or limit < 1):
                report(
                    f"operator type '{operator_type.name}' has invalid limit {limit!r}",
                    operator_type.name,
                )

        type_names = {t.name for t in self._operator_types}
        for op in self._operations:
            if op.operator_type not in type_names:
                report(
                    f"operation '{op.name}' uses unregistered operator type '{op.operator_type}'",
                    op.name,
                )

        op_names = {op.name for op in self._operations}
        for dep in self._dependences:
            for endpoint in (dep.source, dep.destination):
                if endpoint not in op_names:
                    report(f"dependence {dep} references unknown operation '{endpoint}'", endpoint)
            if not _is_int(dep.distance) or dep.distance < 0:
                report(f"dependence {dep} has invalid distance {dep.distance!r}")
            elif dep.distance != 0 and variant in ACYCLIC_VARIANTS:
                report(
                    f"dependence {dep} has distance {dep.distance}, "
                    f"which the {variant.value} variant does not support"
                )

        if violations:
            raise MalformedProblemError(
                f"Problem '{self.name}' is malformed: " + "; ".join(violations),
                list(dict.fromkeys(entities)),
            )

    def validate(self, variant: ProblemVariant | None = None) -> Result:
        """Validate the problem, returning a Result instead of raising."""
        try:
            self.check(variant)
        except MalformedProblemError as e:
            return Result(Failure.from_error(e))
        return Result()

    def check_schedule(
        self,
        start_times: dict[str, int | None],
        initiation_interval: int | None = None,
        variant: ProblemVariant | None = None,
    ) -> None:
        """Check that candidate start times satisfy every constraint of the variant.

        Raises:
            InvalidScheduleError: on the first violated constraint
        """
        variant = variant or self.infer_variant()

        starts: dict[str, int] = {}
        for op in self._operations:
            start = start_times.get(op.name)
            if start is None:
                raise InvalidScheduleError(f"Operation '{op.name}' has no start time", [op.name])
            if start < 0:
                raise InvalidScheduleError(
                    f"Operation '{op.name}' starts at negative cycle {start}", [op.name]
                )
            starts[op.name] = start

        interval = 0
        if variant == ProblemVariant.CYCLIC:
            if initiation_interval is None or initiation_interval < 1:
                raise InvalidScheduleError(
                    f"Cyclic problem '{self.name}' has no valid initiation interval"
                )
            interval = initiation_interval

        for dep in self._dependences:
            available = starts[dep.source] + self.latency_of(dep.source)
            available -= interval * dep.distance
            destination_start = starts[dep.destination]
            if destination_start < available:
                raise InvalidScheduleError(
                    f"Dependence {dep} violated: '{dep.destination}' starts at "
                    f"{destination_start}, source result available at {available}",
                    [dep.source, dep.destination],
                )

        if variant == ProblemVariant.SHARED_OPERATORS:
            self._check_limits(starts)

    def _check_limits(self, start_times: dict[str, int]) -> None:
        for operator_type in self._operator_types:
            if operator_type.limit is None:
                continue
            usage: Counter[int] = Counter()
            for op in self.operations_of_type(operator_type.name):
                start = start_times[op.name]
                usage.update(range(start, start + operator_type.occupancy))
            for cycle, count in sorted(usage.items()):
                if count > operator_type.limit:
                    raise InvalidScheduleError(
                        f"Operator type '{operator_type.name}' is used {count} times in cycle "
                        f"{cycle}, limit is {operator_type.limit}",
                        [operator_type.name],
                    )

    def verify(self, variant: ProblemVariant | None = None) -> Result:
        """Verify the start times currently stored on the operations."""
        try:
            self.check(variant)
            self.check_schedule(self.start_times, self.initiation_interval, variant)
        except (MalformedProblemError, InvalidScheduleError) as e:
            return Result(Failure.from_error(e))
        return Result()

    # Results

    def apply_schedule(
        self, start_times: dict[str, int], initiation_interval: int | None = None
    ) -> None:
        """Store a complete, already verified schedule on the operations."""
        for op in self._operations:
            op.start_time = start_times[op.name]
        self.initiation_interval = initiation_interval

    def clear_schedule(self) -> None:
        """Forget all start times and the initiation interval."""
        for op in self._operations:
            op.start_time = None
        self.initiation_interval = None

    def __repr__(self) -> str:
        return (
            f"Problem(name={self.name!r}, operator_types={len(self._operator_types)}, "
            f"operations={len(self._operations)}, dependences={len(self._dependences)})"
        )
