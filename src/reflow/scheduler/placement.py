"""Calendar-aware placement of a single work order."""

from datetime import datetime

from reflow.logger import debug_enabled, get_logger

from .calendar import CalendarIndex
from .config import PlacementConfig
from .core import MINUTE, TimeSpan

logger = get_logger()


class CalendarPlacementEngine:
    """Finds the earliest feasible span for an order on its work center's calendar.

    Work is packed greedily into shift time, skipping maintenance windows, and
    an order may be split across several shifts or days. The recorded span
    runs from the first consumed minute to the instant after the last one.
    """

    def __init__(self, calendar: CalendarIndex, config: PlacementConfig | None = None):
        """Initialize the engine.

        Args:
            calendar: Shift and maintenance lookups for all work centers
            config: Iteration and horizon limits (defaults if omitted)
        """
        self.calendar = calendar
        self.config = config or PlacementConfig()

    def place(
        self, work_center_id: str, earliest_start: datetime, duration_minutes: int
    ) -> TimeSpan | None:
        """Place duration_minutes of work starting no earlier than earliest_start.

        Args:
            work_center_id: Work center whose calendar applies
            earliest_start: Earliest permissible start instant
            duration_minutes: Working minutes required (must be positive)

        Returns:
            The placed span, or None if the order cannot be placed within the
            configured horizon and iteration limits
        """
        if duration_minutes <= 0:
            return None

        pointer = earliest_start
        remaining = duration_minutes
        actual_start: datetime | None = None
        iterations = 0

        while remaining > 0:
            iterations += 1
            if iterations > self.config.max_iterations:
                logger.checks(
                    f"    {work_center_id}: gave up after {self.config.max_iterations} iterations "
                    f"with {remaining} minutes left"
                )
                return None

            shift = self.calendar.next_shift_range(
                work_center_id, pointer, self.config.horizon_days
            )
            if shift is None:
                return None

            blocked = self.calendar.next_maintenance_overlap(work_center_id, shift.start, shift.end)
            if blocked is not None and blocked.start <= shift.start:
                if debug_enabled():
                    logger.debug(
                        f"      {work_center_id}: maintenance until {blocked.end.isoformat()} "
                        f"covers shift start {shift.start.isoformat()}"
                    )
                pointer = blocked.end
                continue

            usable_end = min(shift.end, blocked.start) if blocked is not None else shift.end
            available = int((usable_end - shift.start) // MINUTE)
            consumed = min(remaining, available)

            if consumed > 0:
                if actual_start is None:
                    actual_start = shift.start
                remaining -= consumed
                if debug_enabled():
                    logger.debug(
                        f"      {work_center_id}: consumed {consumed} min from "
                        f"{shift.start.isoformat()}, {remaining} min left"
                    )

            pointer = shift.start + consumed * MINUTE
            if remaining > 0:
                # Nothing more fits in this segment; resume after it
                pointer = max(pointer, blocked.end if blocked is not None else shift.end)

        assert actual_start is not None
        return TimeSpan(actual_start, pointer)
