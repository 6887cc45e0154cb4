"""High-level reflow service."""

import time
from dataclasses import replace
from datetime import datetime

from reflow.logger import changes_enabled, checks_enabled, get_logger
from reflow.models import ReflowInput, WorkOrder

from .calendar import CalendarIndex
from .config import SchedulingConfig
from .core import (
    MINUTE,
    IssueCode,
    ReflowChange,
    ReflowMetrics,
    ReflowResult,
    ScheduleIssue,
    Severity,
)
from .dependencies import build_effective_dependencies, topological_sort
from .placement import CalendarPlacementEngine
from .validator import missing_dependency_issue

logger = get_logger()


class ReflowService:
    """Recomputes a feasible schedule for a set of work orders.

    This service coordinates:
    - Dependency resolution (explicit and routing-derived)
    - Cycle-safe topological sequencing
    - Calendar placement per order behind a per-work-center cursor

    Orders keep their work center and relative order and only ever move later.
    Nothing is retained between calls; build a new service per dataset.
    """

    def __init__(self, reflow_input: ReflowInput, config: SchedulingConfig | None = None):
        """Initialize reflow service.

        Args:
            reflow_input: Work orders, routings and calendars to reflow
            config: Optional scheduling configuration (placement limits, timezone)
        """
        self.input = reflow_input
        self.config = config or SchedulingConfig()

    def reflow(self) -> ReflowResult:
        """Run one reflow pass.

        Returns:
            ReflowResult with the new schedule, issues, changes and metrics
        """
        started_at = time.perf_counter()
        work_orders = self.input.work_orders
        issues: list[ScheduleIssue] = []

        dependency_map = build_effective_dependencies(work_orders, self.input.routings)
        ordered, cycle_issue = topological_sort(work_orders, dependency_map)
        if cycle_issue is not None:
            logger.changes(f"Reflow aborted: {cycle_issue.message}")
            return ReflowResult(
                work_orders=list(work_orders),
                issues=[cycle_issue],
                changes=[],
                metrics=create_metrics(len(work_orders), [], started_at),
            )

        placement = self.config.placement
        engine = CalendarPlacementEngine(
            CalendarIndex(self.input.shifts, self.input.maintenance_windows, placement.zone),
            placement,
        )
        original_ids = {order.id for order in work_orders}
        scheduled_by_id: dict[str, WorkOrder] = {}
        work_center_cursor: dict[str, datetime] = {}

        for order in ordered:
            if order.duration_minutes <= 0:
                logger.changes(f"Skipped {order.id}: invalid duration {order.duration_minutes}")
                issues.append(
                    ScheduleIssue(
                        code=IssueCode.INVALID_DURATION,
                        severity=Severity.ERROR,
                        work_order_id=order.id,
                        message=(
                            f"Work order {order.work_order_number} has invalid duration "
                            "and cannot be scheduled."
                        ),
                    )
                )
                continue

            dependencies = dependency_map.get(order.id, [])
            for dependency_id in dependencies:
                if dependency_id not in original_ids:
                    issues.append(missing_dependency_issue(order, dependency_id))

            candidates = [order.start_date]
            candidates.extend(
                scheduled_by_id[dep_id].end_date
                for dep_id in dependencies
                if dep_id in scheduled_by_id
            )
            if order.work_center_id in work_center_cursor:
                candidates.append(work_center_cursor[order.work_center_id])
            earliest_start = max(candidates)

            if checks_enabled():
                logger.checks(
                    f"  {order.id} on {order.work_center_id}: earliest start "
                    f"{earliest_start.isoformat()}, {order.duration_minutes} min"
                )

            span = engine.place(order.work_center_id, earliest_start, order.duration_minutes)
            if span is None:
                logger.changes(f"Skipped {order.id}: cannot be placed on {order.work_center_id}")
                issues.append(
                    ScheduleIssue(
                        code=IssueCode.UNSCHEDULABLE,
                        severity=Severity.ERROR,
                        work_order_id=order.id,
                        message=(
                            f"Work order {order.work_order_number} cannot be scheduled "
                            "with current constraints."
                        ),
                    )
                )
                continue

            scheduled = replace(
                order,
                start_date=span.start,
                end_date=span.end,
                duration_minutes=max(1, round(span.minutes)),
            )
            scheduled_by_id[order.id] = scheduled
            work_center_cursor[order.work_center_id] = span.end

            if changes_enabled() and (span.start, span.end) != (order.start_date, order.end_date):
                logger.changes(
                    f"Moved {order.id}: {order.start_date.isoformat()} -> "
                    f"{span.start.isoformat()} (ends {span.end.isoformat()})"
                )

        # Orders that were never placed are carried through unchanged
        result_orders = [scheduled_by_id.get(order.id, order) for order in work_orders]
        changes = build_changes(work_orders, result_orders)

        return ReflowResult(
            work_orders=result_orders,
            issues=issues,
            changes=changes,
            metrics=create_metrics(len(work_orders), changes, started_at),
        )


def build_changes(original: list[WorkOrder], updated: list[WorkOrder]) -> list[ReflowChange]:
    """Diff two schedules, largest delay first.

    An order counts as changed if its start or end differs from the original or
    its end moved later. Delay is measured on end-time movement and never negative.
    """
    original_by_id = {order.id: order for order in original}
    changes: list[ReflowChange] = []

    for order in updated:
        previous = original_by_id.get(order.id)
        if previous is None:
            continue

        delay_minutes = max(0, round((order.end_date - previous.end_date) / MINUTE))
        if (
            delay_minutes == 0
            and previous.start_date == order.start_date
            and previous.end_date == order.end_date
        ):
            continue

        changes.append(
            ReflowChange(
                work_order_id=order.id,
                work_order_number=order.work_order_number,
                work_center_id=order.work_center_id,
                original_start_date=previous.start_date,
                original_end_date=previous.end_date,
                new_start_date=order.start_date,
                new_end_date=order.end_date,
                delay_minutes=delay_minutes,
            )
        )

    changes.sort(key=lambda change: change.delay_minutes, reverse=True)
    return changes


def create_metrics(
    total_orders: int, changes: list[ReflowChange], started_at: float
) -> ReflowMetrics:
    """Aggregate delay statistics and runtime for a pass.

    Args:
        total_orders: Number of orders in the input
        changes: Changes emitted by the pass
        started_at: time.perf_counter() value taken when the pass began
    """
    delays = [change.delay_minutes for change in changes]
    total_delay = sum(delays)
    moved = len(changes)
    runtime_ms = max(0.0, round((time.perf_counter() - started_at) * 1000, 2))

    return ReflowMetrics(
        total_orders=total_orders,
        moved_orders=moved,
        total_delay_minutes=total_delay,
        average_delay_minutes=round(total_delay / moved) if moved else 0,
        max_delay_minutes=max(delays, default=0),
        runtime_ms=runtime_ms,
    )


def build_reflow_schedule(
    reflow_input: ReflowInput, config: SchedulingConfig | None = None
) -> ReflowResult:
    """Reflow a dataset into a feasible schedule."""
    return ReflowService(reflow_input, config).reflow()
