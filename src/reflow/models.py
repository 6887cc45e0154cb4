"""Data models for work orders, routings and work-center calendars."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

from .exceptions import ParseError

MINUTES_PER_HOUR = 60
HOURS_PER_DAY = 24


class WorkOrderStatus(str, Enum):
    """Lifecycle status of a work order."""

    OPEN = "open"
    IN_PROGRESS = "in-progress"
    COMPLETE = "complete"
    BLOCKED = "blocked"


def parse_timestamp(value: str | datetime) -> datetime:
    """Parse an ISO-8601 timestamp into a UTC-aware datetime.

    Naive timestamps are taken to be UTC. A trailing "Z" is accepted.

    Raises:
        ParseError: If the value is not a valid ISO-8601 timestamp
    """
    if isinstance(value, datetime):
        parsed = value
    else:
        text = str(value).strip()
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError as e:
            raise ParseError(f"Invalid timestamp '{value}': {e}") from e

    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def format_timestamp(value: datetime) -> str:
    """Format an instant as ``YYYY-MM-DDTHH:MM:SS.mmmZ`` in UTC."""
    utc = parse_timestamp(value)
    return f"{utc:%Y-%m-%dT%H:%M:%S}.{utc.microsecond // 1000:03d}Z"


def _default_str_list() -> list[str]:
    return []


@dataclass(frozen=True)
class WorkOrder:
    """A schedulable unit of work tied to one operation of a manufacturing order."""

    id: str
    work_order_number: str
    manufacturing_order_id: str
    operation_number: int
    operation_name: str
    work_center_id: str
    status: WorkOrderStatus
    start_date: datetime
    end_date: datetime
    duration_minutes: int
    setup_time_minutes: int | None = None
    is_maintenance: bool = False
    depends_on_work_order_ids: list[str] = field(default_factory=_default_str_list)


@dataclass(frozen=True)
class RoutingOperation:
    """One step of a routing; sequence defines precedence within the order."""

    sequence: int
    operation_number: int
    operation_name: str
    work_center_id: str


@dataclass(frozen=True)
class Routing:
    """Ordered operations required to complete a manufacturing order."""

    id: str
    routing_number: str
    manufacturing_order_id: str
    operations: list[RoutingOperation]


@dataclass(frozen=True)
class ManufacturingOrder:
    """A manufacturing order (carried in datasets, not used for scheduling)."""

    id: str
    manufacturing_order_number: str
    item_id: str
    quantity: int
    due_date: datetime


@dataclass(frozen=True)
class ShiftDefinition:
    """A recurring weekly availability rule for a single work center."""

    day_of_week: int  # ISO weekday: 1=Monday .. 7=Sunday
    start_hour: int
    end_hour: int  # 24 means midnight at the end of the day


@dataclass(frozen=True)
class ShiftWindow:
    """A shift definition bound to its work center."""

    work_center_id: str
    day_of_week: int
    start_hour: int
    end_hour: int


@dataclass(frozen=True)
class MaintenanceWindow:
    """An absolute interval during which a work center is unavailable."""

    id: str
    work_center_id: str
    start_date: datetime
    end_date: datetime
    reason: str = ""


@dataclass(frozen=True)
class WorkCenter:
    """A work center with its weekly shifts and maintenance windows."""

    id: str
    name: str
    shifts: list[ShiftDefinition]
    maintenance_windows: list[MaintenanceWindow]


def _default_routings() -> list[Routing]:
    return []


@dataclass(frozen=True)
class ReflowInput:
    """Everything the engine needs for one validation or reflow call."""

    work_orders: list[WorkOrder]
    shifts: list[ShiftWindow]
    maintenance_windows: list[MaintenanceWindow]
    routings: list[Routing] = field(default_factory=_default_routings)


@dataclass(frozen=True)
class ScheduleDataset:
    """A complete dataset as exchanged with the data-access layer."""

    work_centers: list[WorkCenter]
    manufacturing_orders: list[ManufacturingOrder]
    routings: list[Routing]
    work_orders: list[WorkOrder]

    @property
    def shift_windows(self) -> list[ShiftWindow]:
        """All work-center shifts flattened into shift windows."""
        return [
            ShiftWindow(
                work_center_id=center.id,
                day_of_week=shift.day_of_week,
                start_hour=shift.start_hour,
                end_hour=shift.end_hour,
            )
            for center in self.work_centers
            for shift in center.shifts
        ]

    @property
    def maintenance_windows(self) -> list[MaintenanceWindow]:
        """All work-center maintenance windows."""
        return [window for center in self.work_centers for window in center.maintenance_windows]

    def to_reflow_input(self) -> ReflowInput:
        """Build the engine input for this dataset."""
        return ReflowInput(
            work_orders=list(self.work_orders),
            routings=list(self.routings),
            shifts=self.shift_windows,
            maintenance_windows=self.maintenance_windows,
        )

    def with_work_orders(self, work_orders: list[WorkOrder]) -> ScheduleDataset:
        """Copy of this dataset with its work orders replaced (e.g. by a reflow result)."""
        return ScheduleDataset(
            work_centers=self.work_centers,
            manufacturing_orders=self.manufacturing_orders,
            routings=self.routings,
            work_orders=list(work_orders),
        )
