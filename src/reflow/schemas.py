"""Pydantic schemas for the document-style dataset format.

Field names are snake_case in Python and camelCase on the wire. Timestamps stay
raw here (YAML may already have turned them into datetimes); they are parsed
when mapping to domain models so that malformed values surface as ParseError.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from .models import WorkOrderStatus


class DocumentModel(BaseModel):
    """Base for all wire schemas: camelCase aliases, snake_case attributes."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ShiftSchema(DocumentModel):
    """Schema for one weekly shift of a work center."""

    day_of_week: int = Field(ge=1, le=7)
    start_hour: int = Field(ge=0, le=24)
    end_hour: int = Field(ge=0, le=24)

    @model_validator(mode="after")
    def validate_end_after_start(self) -> ShiftSchema:
        """Ensure the shift has positive length."""
        if self.end_hour <= self.start_hour:
            raise ValueError("endHour must be after startHour")
        return self


class MaintenanceWindowSchema(DocumentModel):
    """Schema for a maintenance window nested in a work center."""

    start_date: str | datetime
    end_date: str | datetime
    reason: str = ""


class WorkCenterData(DocumentModel):
    name: str
    shifts: list[ShiftSchema] = Field(default_factory=list)
    maintenance_windows: list[MaintenanceWindowSchema] = Field(default_factory=list)


class WorkCenterDocument(DocumentModel):
    doc_id: str
    doc_type: Literal["workCenter"] = "workCenter"
    data: WorkCenterData


class ManufacturingOrderData(DocumentModel):
    manufacturing_order_number: str
    item_id: str
    quantity: int
    due_date: str | datetime


class ManufacturingOrderDocument(DocumentModel):
    doc_id: str
    doc_type: Literal["manufacturingOrder"] = "manufacturingOrder"
    data: ManufacturingOrderData


class RoutingOperationSchema(DocumentModel):
    sequence: int
    operation_number: int
    operation_name: str
    work_center_id: str


class RoutingData(DocumentModel):
    routing_number: str
    manufacturing_order_id: str
    operations: list[RoutingOperationSchema] = Field(default_factory=list)


class RoutingDocument(DocumentModel):
    doc_id: str
    doc_type: Literal["routing"] = "routing"
    data: RoutingData


class WorkOrderData(DocumentModel):
    """Schema for the payload of a work order document."""

    work_order_number: str
    manufacturing_order_id: str
    operation_number: int
    operation_name: str
    work_center_id: str
    status: WorkOrderStatus = WorkOrderStatus.OPEN
    start_date: str | datetime
    end_date: str | datetime
    duration_minutes: int
    setup_time_minutes: int | None = None
    is_maintenance: bool = False
    depends_on_work_order_ids: list[str] = Field(default_factory=list)


class WorkOrderDocument(DocumentModel):
    doc_id: str
    doc_type: Literal["workOrder"] = "workOrder"
    data: WorkOrderData


class ScheduleDatasetSchema(DocumentModel):
    """Schema for a complete dataset file."""

    work_centers: list[WorkCenterDocument] = Field(default_factory=list)
    manufacturing_orders: list[ManufacturingOrderDocument] = Field(default_factory=list)
    routings: list[RoutingDocument] = Field(default_factory=list)
    work_orders: list[WorkOrderDocument] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def unwrap_schedule_dataset(cls, data: Any) -> Any:
        """Accept datasets wrapped as {"scheduleDataset": {...}}."""
        if isinstance(data, dict) and "scheduleDataset" in data:
            return data["scheduleDataset"]  # type: ignore[index]
        return data
