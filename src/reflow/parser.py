"""Loading and writing document-style schedule datasets (JSON or YAML)."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError as PydanticValidationError

from .exceptions import ParseError, ValidationError
from .models import (
    MaintenanceWindow,
    ManufacturingOrder,
    ReflowInput,
    Routing,
    RoutingOperation,
    ScheduleDataset,
    ShiftDefinition,
    WorkCenter,
    WorkOrder,
    format_timestamp,
    parse_timestamp,
)
from .schemas import (
    MaintenanceWindowSchema,
    ManufacturingOrderData,
    ManufacturingOrderDocument,
    RoutingData,
    RoutingDocument,
    RoutingOperationSchema,
    ScheduleDatasetSchema,
    ShiftSchema,
    WorkCenterData,
    WorkCenterDocument,
    WorkOrderData,
    WorkOrderDocument,
)


class DatasetParser:
    """Parser for dataset files.

    Maps the document wire format onto domain models: shifts and maintenance
    windows stay attached to their work center, routing operations are sorted
    by sequence and timestamps are normalized to UTC.
    """

    def parse_file(self, file_path: Path | str) -> ScheduleDataset:
        """Parse a JSON or YAML dataset file."""
        path = Path(file_path)
        if not path.exists():
            raise ParseError(f"File not found: {file_path}")

        try:
            with path.open(encoding="utf-8") as f:
                data: Any = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ParseError(f"Failed to parse {path.name}: {e}") from e

        if not isinstance(data, dict):
            raise ParseError("Dataset must contain a mapping at the root level")

        return self.parse_data(data)  # type: ignore[arg-type]

    def parse_data(self, data: dict[str, Any]) -> ScheduleDataset:
        """Validate and map already-loaded dataset data."""
        try:
            schema = ScheduleDatasetSchema.model_validate(data)
        except PydanticValidationError as e:
            raise ValidationError(f"Invalid dataset structure: {e}") from e

        return ScheduleDataset(
            work_centers=[self._work_center(doc) for doc in schema.work_centers],
            manufacturing_orders=[
                self._manufacturing_order(doc) for doc in schema.manufacturing_orders
            ],
            routings=[self._routing(doc) for doc in schema.routings],
            work_orders=[self._work_order(doc) for doc in schema.work_orders],
        )

    def _work_center(self, doc: WorkCenterDocument) -> WorkCenter:
        return WorkCenter(
            id=doc.doc_id,
            name=doc.data.name,
            shifts=[
                ShiftDefinition(
                    day_of_week=shift.day_of_week,
                    start_hour=shift.start_hour,
                    end_hour=shift.end_hour,
                )
                for shift in doc.data.shifts
            ],
            maintenance_windows=[
                MaintenanceWindow(
                    id=f"{doc.doc_id}-MW-{index}",
                    work_center_id=doc.doc_id,
                    start_date=parse_timestamp(window.start_date),
                    end_date=parse_timestamp(window.end_date),
                    reason=window.reason,
                )
                for index, window in enumerate(doc.data.maintenance_windows, start=1)
            ],
        )

    def _manufacturing_order(self, doc: ManufacturingOrderDocument) -> ManufacturingOrder:
        return ManufacturingOrder(
            id=doc.doc_id,
            manufacturing_order_number=doc.data.manufacturing_order_number,
            item_id=doc.data.item_id,
            quantity=doc.data.quantity,
            due_date=parse_timestamp(doc.data.due_date),
        )

    def _routing(self, doc: RoutingDocument) -> Routing:
        operations = sorted(doc.data.operations, key=lambda op: op.sequence)
        return Routing(
            id=doc.doc_id,
            routing_number=doc.data.routing_number,
            manufacturing_order_id=doc.data.manufacturing_order_id,
            operations=[
                RoutingOperation(
                    sequence=op.sequence,
                    operation_number=op.operation_number,
                    operation_name=op.operation_name,
                    work_center_id=op.work_center_id,
                )
                for op in operations
            ],
        )

    def _work_order(self, doc: WorkOrderDocument) -> WorkOrder:
        data = doc.data
        return WorkOrder(
            id=doc.doc_id,
            work_order_number=data.work_order_number,
            manufacturing_order_id=data.manufacturing_order_id,
            operation_number=data.operation_number,
            operation_name=data.operation_name,
            work_center_id=data.work_center_id,
            status=data.status,
            start_date=parse_timestamp(data.start_date),
            end_date=parse_timestamp(data.end_date),
            duration_minutes=data.duration_minutes,
            setup_time_minutes=data.setup_time_minutes,
            is_maintenance=data.is_maintenance,
            depends_on_work_order_ids=list(data.depends_on_work_order_ids),
        )


def load_dataset(path: Path | str) -> ScheduleDataset:
    """Load a dataset file into domain models."""
    return DatasetParser().parse_file(path)


def dump_dataset(dataset: ScheduleDataset) -> dict[str, Any]:
    """Map a dataset back to its camelCase document form."""
    schema = ScheduleDatasetSchema(
        work_centers=[
            WorkCenterDocument(
                doc_id=center.id,
                data=WorkCenterData(
                    name=center.name,
                    shifts=[
                        ShiftSchema(
                            day_of_week=shift.day_of_week,
                            start_hour=shift.start_hour,
                            end_hour=shift.end_hour,
                        )
                        for shift in center.shifts
                    ],
                    maintenance_windows=[
                        MaintenanceWindowSchema(
                            start_date=format_timestamp(window.start_date),
                            end_date=format_timestamp(window.end_date),
                            reason=window.reason,
                        )
                        for window in center.maintenance_windows
                    ],
                ),
            )
            for center in dataset.work_centers
        ],
        manufacturing_orders=[
            ManufacturingOrderDocument(
                doc_id=mo.id,
                data=ManufacturingOrderData(
                    manufacturing_order_number=mo.manufacturing_order_number,
                    item_id=mo.item_id,
                    quantity=mo.quantity,
                    due_date=format_timestamp(mo.due_date),
                ),
            )
            for mo in dataset.manufacturing_orders
        ],
        routings=[
            RoutingDocument(
                doc_id=routing.id,
                data=RoutingData(
                    routing_number=routing.routing_number,
                    manufacturing_order_id=routing.manufacturing_order_id,
                    operations=[
                        RoutingOperationSchema(
                            sequence=op.sequence,
                            operation_number=op.operation_number,
                            operation_name=op.operation_name,
                            work_center_id=op.work_center_id,
                        )
                        for op in routing.operations
                    ],
                ),
            )
            for routing in dataset.routings
        ],
        work_orders=[
            WorkOrderDocument(
                doc_id=order.id,
                data=WorkOrderData(
                    work_order_number=order.work_order_number,
                    manufacturing_order_id=order.manufacturing_order_id,
                    operation_number=order.operation_number,
                    operation_name=order.operation_name,
                    work_center_id=order.work_center_id,
                    status=order.status,
                    start_date=format_timestamp(order.start_date),
                    end_date=format_timestamp(order.end_date),
                    duration_minutes=order.duration_minutes,
                    setup_time_minutes=order.setup_time_minutes,
                    is_maintenance=order.is_maintenance,
                    depends_on_work_order_ids=list(order.depends_on_work_order_ids),
                ),
            )
            for order in dataset.work_orders
        ],
    )
    return schema.model_dump(mode="json", by_alias=True, exclude_none=True)


def write_dataset(path: Path | str, dataset: ScheduleDataset) -> None:
    """Write a dataset as JSON (.json suffix) or YAML (anything else)."""
    path = Path(path)
    document = dump_dataset(dataset)

    with path.open("w", encoding="utf-8") as f:
        if path.suffix.lower() == ".json":
            json.dump(document, f, indent=2)
            f.write("\n")
        else:
            yaml.safe_dump(document, f, default_flow_style=False, sort_keys=False)


def dataset_from_input(reflow_input: ReflowInput) -> ScheduleDataset:
    """Wrap an engine input (e.g. a synthetic one) as a dataset.

    Work centers are derived from every center id the input mentions, in order
    of first appearance, and named after their id.
    """
    center_ids: dict[str, None] = {}
    for shift in reflow_input.shifts:
        center_ids.setdefault(shift.work_center_id)
    for window in reflow_input.maintenance_windows:
        center_ids.setdefault(window.work_center_id)
    for order in reflow_input.work_orders:
        center_ids.setdefault(order.work_center_id)

    work_centers = [
        WorkCenter(
            id=center_id,
            name=center_id,
            shifts=[
                ShiftDefinition(
                    day_of_week=shift.day_of_week,
                    start_hour=shift.start_hour,
                    end_hour=shift.end_hour,
                )
                for shift in reflow_input.shifts
                if shift.work_center_id == center_id
            ],
            maintenance_windows=[
                window
                for window in reflow_input.maintenance_windows
                if window.work_center_id == center_id
            ],
        )
        for center_id in center_ids
    ]

    return ScheduleDataset(
        work_centers=work_centers,
        manufacturing_orders=[],
        routings=list(reflow_input.routings),
        work_orders=list(reflow_input.work_orders),
    )
