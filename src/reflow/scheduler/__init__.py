"""Scheduler package - work order validation and reflow.

This package provides:
- Dependency resolution from explicit dependencies and routings
- Cycle-safe topological sequencing
- Calendar-aware placement around shifts and maintenance windows
- Validation of an existing schedule and a high-level ReflowService

Main entry points:
- ReflowService / build_reflow_schedule: Recompute a feasible schedule
- ScheduleValidator / validate_schedule: Check a schedule without changing it

Configuration:
- SchedulingConfig: Main configuration
- PlacementConfig: Placement limits and calendar timezone
"""

# Calendar and placement
from .calendar import CalendarIndex

# Configuration
from .config import PlacementConfig, SchedulingConfig

# Core dataclasses
from .core import (
    IssueCode,
    ReflowChange,
    ReflowMetrics,
    ReflowResult,
    ScheduleIssue,
    ScheduleValidationReport,
    Severity,
    TimeSpan,
)

# Dependency graph
from .dependencies import (
    DependencyMap,
    build_effective_dependencies,
    detect_cycle,
    topological_sort,
)
from .placement import CalendarPlacementEngine

# High-level service
from .service import ReflowService, build_changes, build_reflow_schedule, create_metrics

# Validation
from .validator import ScheduleValidator, group_by_work_center, validate_schedule

__all__ = [
    # Core dataclasses
    "IssueCode",
    "Severity",
    "ScheduleIssue",
    "TimeSpan",
    "ScheduleValidationReport",
    "ReflowChange",
    "ReflowMetrics",
    "ReflowResult",
    # Configuration
    "SchedulingConfig",
    "PlacementConfig",
    # Dependency graph
    "DependencyMap",
    "build_effective_dependencies",
    "topological_sort",
    "detect_cycle",
    # Calendar and placement
    "CalendarIndex",
    "CalendarPlacementEngine",
    # Validation
    "ScheduleValidator",
    "group_by_work_center",
    "validate_schedule",
    # High-level service
    "ReflowService",
    "build_reflow_schedule",
    "build_changes",
    "create_metrics",
]
