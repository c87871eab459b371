"""Operator reservation tracking for resource-limited scheduling."""

from collections import Counter

from opsched.logger import get_logger
from opsched.models import OperatorType

logger = get_logger()


class ReservationTable:
    """Tracks how many instances of one operator type are busy in each cycle.

    An operation started at cycle t occupies one instance during
    [t, t + occupancy), where occupancy is the operator latency (at least one
    cycle). The table never holds more than `limit` reservations in any cycle.
    """

    def __init__(self, operator_type: OperatorType) -> None:
        """Initialize an empty table.

        Args:
            operator_type: Operator type with a finite limit
        """
        if operator_type.limit is None:
            raise ValueError(f"Operator type '{operator_type.name}' has no limit")
        self.operator_type = operator_type
        self.limit: int = operator_type.limit
        self.usage: Counter[int] = Counter()
        self.reservations: dict[str, int] = {}

    def _window(self, start: int) -> range:
        return range(start, start + self.operator_type.occupancy)

    def is_available(self, start: int) -> bool:
        """Check if one more instance is free for the whole window starting at start."""
        return all(self.usage[cycle] < self.limit for cycle in self._window(start))

    def next_available_time(self, from_cycle: int) -> int:
        """Find the first cycle >= from_cycle at which a new operation fits.

        Args:
            from_cycle: Earliest acceptable start cycle

        Returns:
            Start cycle (may be from_cycle itself if nothing is in the way)
        """
        candidate = from_cycle
        while True:
            busy = [cycle for cycle in self._window(candidate) if self.usage[cycle] >= self.limit]
            if not busy:
                return candidate
            # Nothing fits until after the last full cycle in the window
            candidate = busy[-1] + 1

    def reserve(self, op_name: str, start: int) -> None:
        """Reserve an instance for op_name starting at start."""
        if not self.is_available(start):
            raise ValueError(
                f"Operator type '{self.operator_type.name}' is fully used at cycle {start}"
            )
        self.usage.update(self._window(start))
        self.reservations[op_name] = start
        logger.checks(
            f"    Reserved {self.operator_type.name} for {op_name} at cycles "
            f"{start}..{start + self.operator_type.occupancy - 1}"
        )
