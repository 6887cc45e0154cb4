"""Pytest configuration and helpers for reflow tests."""

from __future__ import annotations

from collections.abc import Iterator
from datetime import datetime, timedelta, timezone

import pytest

from reflow.logger import reset_logger
from reflow.models import (
    MaintenanceWindow,
    ReflowInput,
    Routing,
    RoutingOperation,
    ShiftWindow,
    WorkOrder,
    WorkOrderStatus,
)

WEEKDAYS = (1, 2, 3, 4, 5)


def utc(day: int, hour: int = 0, minute: int = 0, *, month: int = 2, year: int = 2026) -> datetime:
    """UTC instant, in February 2026 by default (Feb 10 is a Tuesday)."""
    return datetime(year, month, day, hour, minute, tzinfo=timezone.utc)


def make_order(  # noqa: PLR0913 - mirrors WorkOrder fields
    order_id: str,
    start: datetime,
    duration_minutes: int,
    *,
    work_center_id: str = "WC-1",
    depends_on: list[str] | None = None,
    manufacturing_order_id: str = "MO-1",
    operation_number: int = 10,
    end: datetime | None = None,
) -> WorkOrder:
    """Build a work order whose number equals its id."""
    if end is None:
        end = start + timedelta(minutes=max(duration_minutes, 0))
    return WorkOrder(
        id=order_id,
        work_order_number=order_id,
        manufacturing_order_id=manufacturing_order_id,
        operation_number=operation_number,
        operation_name=f"Op {operation_number}",
        work_center_id=work_center_id,
        status=WorkOrderStatus.OPEN,
        start_date=start,
        end_date=end,
        duration_minutes=duration_minutes,
        depends_on_work_order_ids=list(depends_on or []),
    )


def weekday_shifts(
    work_center_id: str = "WC-1", start_hour: int = 8, end_hour: int = 17
) -> list[ShiftWindow]:
    """Monday-Friday shifts for one work center."""
    return [
        ShiftWindow(
            work_center_id=work_center_id,
            day_of_week=day,
            start_hour=start_hour,
            end_hour=end_hour,
        )
        for day in WEEKDAYS
    ]


def maintenance(
    start: datetime, end: datetime, work_center_id: str = "WC-1", window_id: str = "MW-1"
) -> MaintenanceWindow:
    return MaintenanceWindow(
        id=window_id, work_center_id=work_center_id, start_date=start, end_date=end
    )


def routing(manufacturing_order_id: str, *operation_numbers: int) -> Routing:
    """Routing whose sequence follows the given operation numbers."""
    return Routing(
        id=f"RT-{manufacturing_order_id}",
        routing_number=f"R-{manufacturing_order_id}",
        manufacturing_order_id=manufacturing_order_id,
        operations=[
            RoutingOperation(
                sequence=(idx + 1) * 10,
                operation_number=operation_number,
                operation_name=f"Op {operation_number}",
                work_center_id="WC-1",
            )
            for idx, operation_number in enumerate(operation_numbers)
        ],
    )


def simple_input(
    work_orders: list[WorkOrder],
    *,
    shifts: list[ShiftWindow] | None = None,
    maintenance_windows: list[MaintenanceWindow] | None = None,
    routings: list[Routing] | None = None,
) -> ReflowInput:
    """Input with weekday 08:00-17:00 shifts on WC-1 unless shifts are given."""
    return ReflowInput(
        work_orders=work_orders,
        shifts=weekday_shifts() if shifts is None else shifts,
        maintenance_windows=list(maintenance_windows or []),
        routings=list(routings or []),
    )


@pytest.fixture(autouse=True)
def _clean_logger() -> Iterator[None]:
    """Drop any handlers a test (e.g. a CLI invocation) attached to the logger."""
    yield
    reset_logger()
