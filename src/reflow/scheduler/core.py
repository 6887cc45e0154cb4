"""Core dataclasses for the reflow engine."""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum

from reflow.models import WorkOrder

MINUTE = timedelta(minutes=1)


class IssueCode(str, Enum):
    """Categories of schedule problems."""

    OVERLAP = "OVERLAP"
    DEPENDENCY_BLOCKED = "DEPENDENCY_BLOCKED"
    DEPENDENCY_MISSING = "DEPENDENCY_MISSING"
    INVALID_DURATION = "INVALID_DURATION"
    CYCLE_DETECTED = "CYCLE_DETECTED"
    UNSCHEDULABLE = "UNSCHEDULABLE"


class Severity(str, Enum):
    """Issue severity. Only ERROR is currently emitted."""

    ERROR = "error"
    WARNING = "warning"


@dataclass(frozen=True)
class ScheduleIssue:
    """A domain-level problem found while validating or reflowing."""

    code: IssueCode
    message: str
    severity: Severity = Severity.ERROR
    work_order_id: str | None = None


@dataclass(frozen=True)
class TimeSpan:
    """A half-open [start, end) interval of absolute time."""

    start: datetime
    end: datetime

    @property
    def minutes(self) -> float:
        return (self.end - self.start) / MINUTE


def _default_issue_list() -> list[ScheduleIssue]:
    return []


@dataclass
class ScheduleValidationReport:
    """Result of validating a dataset without reflowing it."""

    ok: bool
    issues: list[ScheduleIssue] = field(default_factory=_default_issue_list)


@dataclass(frozen=True)
class ReflowChange:
    """How one work order moved during a reflow pass."""

    work_order_id: str
    work_order_number: str
    work_center_id: str
    original_start_date: datetime
    original_end_date: datetime
    new_start_date: datetime
    new_end_date: datetime
    delay_minutes: int  # Non-negative; measured on end-time movement


@dataclass(frozen=True)
class ReflowMetrics:
    """Aggregate numbers for a reflow pass."""

    total_orders: int
    moved_orders: int
    total_delay_minutes: int
    average_delay_minutes: int
    max_delay_minutes: int
    runtime_ms: float  # Informational only


@dataclass
class ReflowResult:
    """Complete result of a reflow pass."""

    work_orders: list[WorkOrder]
    issues: list[ScheduleIssue]
    changes: list[ReflowChange]
    metrics: ReflowMetrics

    @property
    def ok(self) -> bool:
        """True if the pass produced no issues."""
        return not self.issues
