"""Protocol definitions for the scheduling system."""

from typing import Protocol

from .core import AlgorithmResult
from .simplex import LinearProgram, LPSolution


class SchedulingAlgorithm(Protocol):
    """Protocol for scheduling algorithms."""

    def schedule(self) -> AlgorithmResult:
        """Run the scheduling algorithm.

        Returns:
            AlgorithmResult with a start time for every operation

        Raises:
            OpschedError: subclass describing why no schedule exists
        """
        ...


class LPBuilder(Protocol):
    """Protocol for translating a problem variant to and from a linear program."""

    def build_program(self) -> LinearProgram:
        """Emit the variables and constraints of the variant (no objective)."""
        ...

    def decode(self, solution: LPSolution) -> dict[str, int]:
        """Read integral start times back out of an optimal solution."""
        ...
