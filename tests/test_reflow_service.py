"""Tests for the reflow service."""

import time
from dataclasses import replace

import pytest

from reflow.scheduler import (
    IssueCode,
    PlacementConfig,
    ReflowChange,
    ReflowService,
    SchedulingConfig,
    build_changes,
    build_reflow_schedule,
    create_metrics,
    validate_schedule,
)
from reflow.synthetic import generate_synthetic_reflow_input
from tests.conftest import make_order, maintenance, routing, simple_input, utc, weekday_shifts


def by_id(result) -> dict:
    return {order.id: order for order in result.work_orders}


class TestReflowPlacement:
    """Test where orders land after a reflow."""

    def test_dependent_order_waits_for_dependency(self) -> None:
        orders = [
            make_order("WO-1", utc(10, 8), 240),
            make_order("WO-2", utc(10, 9), 120, depends_on=["WO-1"]),
        ]

        result = build_reflow_schedule(simple_input(orders))

        assert result.ok
        scheduled = by_id(result)
        assert (scheduled["WO-1"].start_date, scheduled["WO-1"].end_date) == (
            utc(10, 8),
            utc(10, 12),
        )
        assert (scheduled["WO-2"].start_date, scheduled["WO-2"].end_date) == (
            utc(10, 12),
            utc(10, 14),
        )

        assert len(result.changes) == 1
        change = result.changes[0]
        assert change.work_order_id == "WO-2"
        assert change.original_start_date == utc(10, 9)
        assert change.new_start_date == utc(10, 12)
        assert change.delay_minutes == 180

        assert result.metrics.total_orders == 2
        assert result.metrics.moved_orders == 1
        assert result.metrics.total_delay_minutes == 180
        assert result.metrics.average_delay_minutes == 180
        assert result.metrics.max_delay_minutes == 180

    def test_dependency_on_other_work_center(self) -> None:
        orders = [
            make_order("WO-1", utc(10, 8), 240, work_center_id="WC-1"),
            make_order("WO-2", utc(10, 8), 60, work_center_id="WC-2", depends_on=["WO-1"]),
        ]
        shifts = weekday_shifts("WC-1") + weekday_shifts("WC-2")

        result = build_reflow_schedule(simple_input(orders, shifts=shifts))

        assert by_id(result)["WO-2"].start_date == utc(10, 12)
        assert by_id(result)["WO-2"].end_date == utc(10, 13)

    def test_routing_dependency_is_honored(self) -> None:
        orders = [
            make_order("WO-1", utc(10, 8), 240, work_center_id="WC-1", operation_number=10),
            make_order("WO-2", utc(10, 8), 60, work_center_id="WC-2", operation_number=20),
        ]
        shifts = weekday_shifts("WC-1") + weekday_shifts("WC-2")

        result = build_reflow_schedule(
            simple_input(orders, shifts=shifts, routings=[routing("MO-1", 10, 20)])
        )

        assert by_id(result)["WO-2"].start_date == utc(10, 12)

    def test_overlapping_orders_are_serialized(self) -> None:
        orders = [
            make_order("WO-1", utc(10, 8), 120),
            make_order("WO-2", utc(10, 9), 60),
        ]

        result = build_reflow_schedule(simple_input(orders))

        scheduled = by_id(result)
        assert scheduled["WO-1"].start_date == utc(10, 8)
        assert scheduled["WO-2"].start_date == utc(10, 10)
        assert scheduled["WO-2"].end_date == utc(10, 11)

    def test_orders_never_move_earlier(self) -> None:
        orders = [make_order("WO-1", utc(10, 14), 60)]

        result = build_reflow_schedule(simple_input(orders))

        assert result.work_orders == orders
        assert result.changes == []
        assert result.metrics.moved_orders == 0

    def test_order_outside_shift_moves_into_shift(self) -> None:
        orders = [make_order("WO-1", utc(10, 6), 60)]

        result = build_reflow_schedule(simple_input(orders))

        assert result.work_orders[0].start_date == utc(10, 8)
        assert result.changes[0].delay_minutes == 120

    def test_maintenance_pushes_order(self) -> None:
        orders = [make_order("WO-1", utc(10, 10), 60)]

        result = build_reflow_schedule(
            simple_input(orders, maintenance_windows=[maintenance(utc(10, 10), utc(10, 11))])
        )

        assert result.work_orders[0].start_date == utc(10, 11)
        assert result.work_orders[0].end_date == utc(10, 12)

    def test_duration_reflects_placed_span(self) -> None:
        orders = [make_order("WO-1", utc(10, 16), 120)]

        result = build_reflow_schedule(simple_input(orders))

        order = result.work_orders[0]
        assert order.end_date == utc(11, 9)
        # Wall-clock length of the span, including the overnight gap
        assert order.duration_minutes == 17 * 60

    def test_output_keeps_input_order(self) -> None:
        orders = [
            make_order("WO-2", utc(10, 8), 60, depends_on=["WO-1"]),
            make_order("WO-1", utc(10, 8), 120),
        ]

        result = build_reflow_schedule(simple_input(orders))

        assert [order.id for order in result.work_orders] == ["WO-2", "WO-1"]
        assert result.work_orders[0].start_date == utc(10, 10)

    def test_changes_sorted_by_delay(self) -> None:
        orders = [
            make_order("A", utc(10, 8), 60),
            make_order("B", utc(10, 8), 120),
            make_order("C", utc(10, 8), 60),
        ]

        result = build_reflow_schedule(simple_input(orders))

        assert [(c.work_order_id, c.delay_minutes) for c in result.changes] == [
            ("C", 180),
            ("B", 60),
        ]
        assert result.metrics.average_delay_minutes == 120

    def test_configured_timezone_is_used(self) -> None:
        orders = [make_order("WO-1", utc(10, 12), 60)]
        config = SchedulingConfig(placement=PlacementConfig(timezone="America/New_York"))

        result = ReflowService(simple_input(orders), config).reflow()

        # 08:00 EST is 13:00 UTC
        assert result.work_orders[0].start_date == utc(10, 13)


class TestReflowIssues:
    """Test issues reported by a reflow pass."""

    def test_cycle_aborts_pass(self) -> None:
        orders = [
            make_order("WO-A", utc(10, 6), 60, depends_on=["WO-B"]),
            make_order("WO-B", utc(10, 6), 60, depends_on=["WO-A"]),
        ]

        result = build_reflow_schedule(simple_input(orders))

        assert not result.ok
        assert [issue.code for issue in result.issues] == [IssueCode.CYCLE_DETECTED]
        assert result.work_orders == orders
        assert result.changes == []
        assert result.metrics.total_orders == 2
        assert result.metrics.moved_orders == 0

    def test_invalid_duration_is_skipped(self) -> None:
        orders = [
            make_order("WO-1", utc(10, 6), 0),
            make_order("WO-2", utc(10, 6), 60),
        ]

        result = build_reflow_schedule(simple_input(orders))

        assert [(i.code, i.work_order_id) for i in result.issues] == [
            (IssueCode.INVALID_DURATION, "WO-1")
        ]
        assert result.issues[0].message == (
            "Work order WO-1 has invalid duration and cannot be scheduled."
        )
        assert by_id(result)["WO-1"] == orders[0]
        assert by_id(result)["WO-2"].start_date == utc(10, 8)

    def test_missing_dependency_does_not_block(self) -> None:
        orders = [make_order("WO-1", utc(10, 6), 60, depends_on=["WO-GONE"])]

        result = build_reflow_schedule(simple_input(orders))

        assert [issue.code for issue in result.issues] == [IssueCode.DEPENDENCY_MISSING]
        assert result.work_orders[0].start_date == utc(10, 8)

    def test_unschedulable_order_is_left_unchanged(self) -> None:
        orders = [make_order("WO-1", utc(14, 10), 60)]
        config = SchedulingConfig(placement=PlacementConfig(horizon_days=1))

        result = build_reflow_schedule(simple_input(orders), config)

        assert [issue.code for issue in result.issues] == [IssueCode.UNSCHEDULABLE]
        assert result.issues[0].message == (
            "Work order WO-1 cannot be scheduled with current constraints."
        )
        assert result.work_orders == orders
        assert result.changes == []


class TestReflowProperties:
    """Test properties that hold for any successful pass."""

    def test_reflow_is_idempotent(self) -> None:
        orders = [
            make_order("WO-1", utc(10, 8), 240),
            make_order("WO-2", utc(10, 9), 120, depends_on=["WO-1"]),
            make_order("WO-3", utc(10, 7), 60, work_center_id="WC-2"),
        ]
        shifts = weekday_shifts("WC-1") + weekday_shifts("WC-2")

        first = build_reflow_schedule(simple_input(orders, shifts=shifts))
        second = build_reflow_schedule(simple_input(first.work_orders, shifts=shifts))

        assert second.ok
        assert second.changes == []
        assert second.work_orders == first.work_orders

    def test_reflowed_synthetic_dataset_validates(self) -> None:
        reflow_input = generate_synthetic_reflow_input(
            60, ["WC-1", "WC-2", "WC-3"], utc(5, 8, month=1)
        )

        result = build_reflow_schedule(reflow_input)
        reflowed = simple_input(
            result.work_orders, shifts=reflow_input.shifts, routings=reflow_input.routings
        )

        assert result.ok
        assert result.metrics.total_orders == 60
        assert validate_schedule(reflowed).ok

    def test_input_is_not_mutated(self) -> None:
        orders = [
            make_order("WO-1", utc(10, 8), 240),
            make_order("WO-2", utc(10, 9), 120, depends_on=["WO-1"]),
        ]
        reflow_input = simple_input(orders)
        snapshot = list(reflow_input.work_orders)

        build_reflow_schedule(reflow_input)

        assert reflow_input.work_orders == snapshot


class TestChangesAndMetrics:
    """Test the change diff and metrics helpers."""

    def test_build_changes_includes_unmoved_end_with_zero_delay(self) -> None:
        original = [make_order("WO-1", utc(10, 8), 120), make_order("WO-2", utc(10, 8), 60)]
        updated = [
            make_order("WO-1", utc(10, 7), 120),
            make_order("WO-2", utc(10, 8), 60),
            make_order("WO-NEW", utc(10, 8), 60),
        ]

        changes = build_changes(original, updated)

        assert [(c.work_order_id, c.delay_minutes) for c in changes] == [("WO-1", 0)]

    def test_create_metrics(self) -> None:
        changes = [
            ReflowChange("A", "A", "WC-1", utc(10, 8), utc(10, 9), utc(10, 8), utc(10, 9), delay)
            for delay in (10, 20, 25)
        ]

        metrics = create_metrics(5, changes, time.perf_counter())

        assert metrics.total_orders == 5
        assert metrics.moved_orders == 3
        assert metrics.total_delay_minutes == 55
        assert metrics.average_delay_minutes == 18
        assert metrics.max_delay_minutes == 25
        assert metrics.runtime_ms >= 0

    def test_create_metrics_without_changes(self) -> None:
        metrics = create_metrics(0, [], time.perf_counter())

        assert metrics.moved_orders == 0
        assert metrics.average_delay_minutes == 0
        assert metrics.max_delay_minutes == 0


@pytest.mark.parametrize("order_count", [0, 1, 26])
def test_synthetic_orders_reflow_without_issues(order_count: int) -> None:
    """Test reflowing synthetic chains of different sizes."""
    reflow_input = generate_synthetic_reflow_input(
        order_count, ["WC-1", "WC-2"], utc(5, 8, month=1)
    )

    result = build_reflow_schedule(reflow_input)

    assert result.ok
    assert len(result.work_orders) == order_count


def test_full_synthetic_dataset_reflows():
    """Test reflowing 1,500 chained orders across five work centers."""
    centers = [f"WC-{index}" for index in range(1, 6)]
    reflow_input = generate_synthetic_reflow_input(1500, centers, utc(5, 8, month=1))

    result = build_reflow_schedule(reflow_input)

    assert result.ok
    assert len(result.work_orders) == 1500
    assert result.metrics.total_orders == 1500
    assert validate_schedule(replace(reflow_input, work_orders=result.work_orders)).ok
