"""Standalone validation of an already-dated schedule."""

from collections import defaultdict

from reflow.logger import get_logger
from reflow.models import ReflowInput, WorkOrder

from .core import IssueCode, ScheduleIssue, ScheduleValidationReport, Severity
from .dependencies import DependencyMap, build_effective_dependencies, detect_cycle

logger = get_logger()


def group_by_work_center(work_orders: list[WorkOrder]) -> dict[str, list[WorkOrder]]:
    """Group work orders by work center, preserving input order."""
    by_center: dict[str, list[WorkOrder]] = defaultdict(list)
    for order in work_orders:
        by_center[order.work_center_id].append(order)
    return dict(by_center)


class ScheduleValidator:
    """Checks a dataset against hard constraints without placing anything.

    Useful on its own to validate a manually edited schedule, and on a reflow
    result to confirm it is conflict-free.
    """

    def __init__(self, reflow_input: ReflowInput):
        """Initialize validator.

        Args:
            reflow_input: Dataset to validate; never mutated
        """
        self.input = reflow_input
        self.dependency_map: DependencyMap = build_effective_dependencies(
            reflow_input.work_orders, reflow_input.routings
        )

    def validate(self) -> ScheduleValidationReport:
        """Run all checks and collect their issues."""
        issues: list[ScheduleIssue] = []
        issues.extend(self.check_overlaps())
        issues.extend(self.check_durations_and_dependencies())

        cycle_issue = detect_cycle(self.input.work_orders, self.dependency_map)
        if cycle_issue is not None:
            issues.append(cycle_issue)

        logger.checks(
            f"Validated {len(self.input.work_orders)} work orders: {len(issues)} issue(s)"
        )
        return ScheduleValidationReport(ok=not issues, issues=issues)

    def check_overlaps(self) -> list[ScheduleIssue]:
        """Flag consecutive orders on a work center whose intervals overlap."""
        issues: list[ScheduleIssue] = []
        for work_center_id, orders in group_by_work_center(self.input.work_orders).items():
            ordered = sorted(orders, key=lambda order: order.start_date)
            for prev, curr in zip(ordered, ordered[1:]):
                if prev.end_date > curr.start_date:
                    issues.append(
                        ScheduleIssue(
                            code=IssueCode.OVERLAP,
                            severity=Severity.ERROR,
                            work_order_id=curr.id,
                            message=(
                                f"Work center {work_center_id} has overlap between "
                                f"{prev.work_order_number} and {curr.work_order_number}."
                            ),
                        )
                    )
        return issues

    def check_durations_and_dependencies(self) -> list[ScheduleIssue]:
        """Flag invalid durations, missing dependencies and dependencies ending too late."""
        issues: list[ScheduleIssue] = []
        by_id = {order.id: order for order in self.input.work_orders}

        for order in self.input.work_orders:
            if order.duration_minutes <= 0:
                issues.append(
                    ScheduleIssue(
                        code=IssueCode.INVALID_DURATION,
                        severity=Severity.ERROR,
                        work_order_id=order.id,
                        message=f"Work order {order.work_order_number} has invalid duration.",
                    )
                )

            for dependency_id in self.dependency_map.get(order.id, []):
                dependency = by_id.get(dependency_id)
                if dependency is None:
                    issues.append(missing_dependency_issue(order, dependency_id))
                    continue

                if dependency.end_date > order.start_date:
                    issues.append(
                        ScheduleIssue(
                            code=IssueCode.DEPENDENCY_BLOCKED,
                            severity=Severity.ERROR,
                            work_order_id=order.id,
                            message=(
                                f"Work order {order.work_order_number} starts before "
                                f"dependency {dependency.work_order_number} ends."
                            ),
                        )
                    )
        return issues


def missing_dependency_issue(order: WorkOrder, dependency_id: str) -> ScheduleIssue:
    """Issue for an order that depends on an order not in the dataset."""
    return ScheduleIssue(
        code=IssueCode.DEPENDENCY_MISSING,
        severity=Severity.ERROR,
        work_order_id=order.id,
        message=f"Work order {order.work_order_number} depends on missing order {dependency_id}.",
    )


def validate_schedule(reflow_input: ReflowInput) -> ScheduleValidationReport:
    """Validate a dataset for overlaps, invalid durations, dependency problems and cycles."""
    return ScheduleValidator(reflow_input).validate()
