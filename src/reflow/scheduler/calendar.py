"""Per-work-center calendar lookups: weekly shifts and maintenance windows."""

import bisect
from collections import defaultdict
from datetime import datetime, time, timedelta, timezone
from zoneinfo import ZoneInfo

from reflow.logger import get_logger
from reflow.models import HOURS_PER_DAY, MaintenanceWindow, ShiftWindow

from .core import TimeSpan

logger = get_logger()

ONE_DAY = timedelta(days=1)
ISO_WEEKDAYS = range(1, 8)


class CalendarIndex:
    """Fast per-center lookup of shift and maintenance calendars.

    Shifts are grouped by work center and ISO weekday and sorted by start hour.
    Maintenance windows are grouped by work center and kept as a sorted list of
    non-overlapping intervals, which allows binary search by end time.
    """

    def __init__(
        self,
        shifts: list[ShiftWindow],
        maintenance_windows: list[MaintenanceWindow],
        zone: ZoneInfo | None = None,
    ) -> None:
        """Build the lookup tables.

        Args:
            shifts: Recurring weekly shift windows for all work centers
            maintenance_windows: Absolute maintenance windows for all work centers
            zone: Timezone in which shift hours and weekdays are interpreted
        """
        self.zone = zone or ZoneInfo("UTC")
        self._shifts: dict[str, dict[int, list[tuple[int, int]]]] = {}
        self._maintenance: dict[str, list[TimeSpan]] = {}
        # Centers with any shift definition, including ones whose shifts were all invalid
        self._scheduled_centers: set[str] = set()

        by_center: dict[str, dict[int, list[tuple[int, int]]]] = defaultdict(
            lambda: defaultdict(list)
        )
        for shift in shifts:
            self._scheduled_centers.add(shift.work_center_id)
            if not self._is_valid_shift(shift):
                logger.warning(
                    f"Ignoring invalid shift on {shift.work_center_id}: day={shift.day_of_week} "
                    f"{shift.start_hour}-{shift.end_hour}"
                )
                continue
            by_center[shift.work_center_id][shift.day_of_week].append(
                (shift.start_hour, shift.end_hour)
            )
        for center_id, days in by_center.items():
            self._shifts[center_id] = {day: sorted(hours) for day, hours in days.items()}

        periods: dict[str, list[TimeSpan]] = defaultdict(list)
        for window in maintenance_windows:
            if window.end_date <= window.start_date:
                continue
            periods[window.work_center_id].append(TimeSpan(window.start_date, window.end_date))
        for center_id, spans in periods.items():
            self._maintenance[center_id] = self._merge_periods(spans)

    @staticmethod
    def _is_valid_shift(shift: ShiftWindow) -> bool:
        return (
            shift.day_of_week in ISO_WEEKDAYS
            and 0 <= shift.start_hour < shift.end_hour <= HOURS_PER_DAY
        )

    @staticmethod
    def _merge_periods(periods: list[TimeSpan]) -> list[TimeSpan]:
        """Merge overlapping or touching periods into a sorted, non-overlapping list."""
        sorted_periods = sorted(periods, key=lambda p: p.start)
        merged: list[TimeSpan] = [sorted_periods[0]]

        for period in sorted_periods[1:]:
            last = merged[-1]
            if period.start <= last.end:
                merged[-1] = TimeSpan(last.start, max(last.end, period.end))
            else:
                merged.append(period)

        return merged

    def has_shifts(self, work_center_id: str) -> bool:
        """True if any shift is defined for the work center."""
        return work_center_id in self._scheduled_centers

    def maintenance_for(self, work_center_id: str) -> list[TimeSpan]:
        """Merged maintenance intervals for a work center, sorted by start."""
        return list(self._maintenance.get(work_center_id, []))

    def _shift_bounds(self, day: datetime, start_hour: int, end_hour: int) -> TimeSpan:
        """Convert a local day and hour pair to an absolute UTC span."""
        local_start = datetime.combine(day.date(), time(start_hour), tzinfo=self.zone)
        if end_hour == HOURS_PER_DAY:
            local_end = datetime.combine(day.date() + ONE_DAY, time(0), tzinfo=self.zone)
        else:
            local_end = datetime.combine(day.date(), time(end_hour), tzinfo=self.zone)
        return TimeSpan(local_start.astimezone(timezone.utc), local_end.astimezone(timezone.utc))

    def next_shift_range(
        self, work_center_id: str, pointer: datetime, horizon_days: int
    ) -> TimeSpan | None:
        """Find the shift span containing or following the pointer.

        A work center with no shifts is available around the clock, modeled as a
        24-hour window starting at the pointer. A center whose shifts were all
        invalid has no availability at all.

        Args:
            work_center_id: Work center to look up
            pointer: Instant from which to search
            horizon_days: Number of calendar days to scan before giving up

        Returns:
            Span from max(shift start, pointer) to shift end, or None if no shift
            ends after the pointer within the horizon
        """
        if not self.has_shifts(work_center_id):
            return TimeSpan(pointer, pointer + ONE_DAY)
        center_shifts = self._shifts.get(work_center_id, {})

        local_day = pointer.astimezone(self.zone)
        for day_offset in range(horizon_days):
            day = local_day + timedelta(days=day_offset)
            for start_hour, end_hour in center_shifts.get(day.isoweekday(), []):
                bounds = self._shift_bounds(day, start_hour, end_hour)
                if bounds.end <= pointer:
                    continue
                return TimeSpan(max(bounds.start, pointer), bounds.end)

        logger.debug(
            f"      {work_center_id}: no shift within {horizon_days} days of {pointer.isoformat()}"
        )
        return None

    def next_maintenance_overlap(
        self, work_center_id: str, range_start: datetime, range_end: datetime
    ) -> TimeSpan | None:
        """Find the first maintenance window overlapping [range_start, range_end).

        Uses binary search on window end; relies on the merged windows being
        sorted and non-overlapping.
        """
        windows = self._maintenance.get(work_center_id)
        if not windows:
            return None

        idx = bisect.bisect_right(windows, range_start, key=lambda w: w.end)
        if idx < len(windows) and windows[idx].start < range_end:
            return windows[idx]
        return None
