"""Deterministic synthetic datasets for load testing the reflow engine."""

from collections import defaultdict
from datetime import datetime, timedelta

from .models import (
    ReflowInput,
    Routing,
    RoutingOperation,
    ShiftWindow,
    WorkOrder,
    WorkOrderStatus,
    parse_timestamp,
)

WEEKDAYS = (1, 2, 3, 4, 5)
SHIFT_START_HOUR = 8
SHIFT_END_HOUR = 17
ORDERS_PER_MANUFACTURING_ORDER = 25
STATUS_CYCLE = (
    WorkOrderStatus.OPEN,
    WorkOrderStatus.IN_PROGRESS,
    WorkOrderStatus.COMPLETE,
    WorkOrderStatus.BLOCKED,
)


def generate_synthetic_reflow_input(
    order_count: int, work_center_ids: list[str], start_date: datetime
) -> ReflowInput:
    """Build a chained dataset of order_count work orders spread over work centers.

    Every center gets Monday-Friday 08:00-17:00 shifts. Orders round-robin over
    the centers, one day further out per round, and each order depends on the
    one before it. One routing per manufacturing order lists its operations in
    operation-number order.

    Args:
        order_count: Number of work orders to create
        work_center_ids: Centers to spread orders over (at least one)
        start_date: Day the first round of orders starts on

    Returns:
        ReflowInput with work orders, routings and shifts; no maintenance windows

    Raises:
        ValueError: If order_count is negative or no work centers are given
    """
    if order_count < 0:
        raise ValueError(f"order_count must be non-negative, got {order_count}")
    if not work_center_ids:
        raise ValueError("At least one work center id is required")

    base = parse_timestamp(start_date)
    shifts = [
        ShiftWindow(
            work_center_id=center_id,
            day_of_week=day,
            start_hour=SHIFT_START_HOUR,
            end_hour=SHIFT_END_HOUR,
        )
        for center_id in work_center_ids
        for day in WEEKDAYS
    ]

    work_orders: list[WorkOrder] = []
    for index in range(order_count):
        center_id = work_center_ids[index % len(work_center_ids)]
        day_offset = index // len(work_center_ids)
        start = (base + timedelta(days=day_offset)).replace(
            hour=SHIFT_START_HOUR + index % 3, minute=0, second=0, microsecond=0
        )
        duration_minutes = 60 + ((index % 5) + 1) * 30

        work_orders.append(
            WorkOrder(
                id=f"WO-B-{index + 1}",
                work_order_number=f"WO-B-{index + 1:05d}",
                manufacturing_order_id=f"MO-B-{index // ORDERS_PER_MANUFACTURING_ORDER + 1}",
                operation_number=(index % ORDERS_PER_MANUFACTURING_ORDER + 1) * 10,
                operation_name=f"Synthetic Op {index + 1}",
                work_center_id=center_id,
                status=STATUS_CYCLE[index % len(STATUS_CYCLE)],
                start_date=start,
                end_date=start + timedelta(minutes=duration_minutes),
                duration_minutes=duration_minutes,
                is_maintenance=False,
                depends_on_work_order_ids=[f"WO-B-{index}"] if index > 0 else [],
            )
        )

    return ReflowInput(
        work_orders=work_orders,
        routings=_build_routings(work_orders),
        shifts=shifts,
        maintenance_windows=[],
    )


def _build_routings(work_orders: list[WorkOrder]) -> list[Routing]:
    by_manufacturing_order: dict[str, list[WorkOrder]] = defaultdict(list)
    for order in work_orders:
        by_manufacturing_order[order.manufacturing_order_id].append(order)

    routings: list[Routing] = []
    for mo_id, orders in by_manufacturing_order.items():
        ordered = sorted(orders, key=lambda order: order.operation_number)
        operations = [
            RoutingOperation(
                sequence=(idx + 1) * 10,
                operation_number=order.operation_number,
                operation_name=order.operation_name,
                work_center_id=order.work_center_id,
            )
            for idx, order in enumerate(ordered)
        ]
        routings.append(
            Routing(
                id=f"RT-{mo_id}",
                routing_number=f"R-{mo_id}",
                manufacturing_order_id=mo_id,
                operations=operations,
            )
        )
    return routings
