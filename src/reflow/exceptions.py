"""Custom exceptions for the reflow engine.

Domain problems (overlaps, cycles, unschedulable orders) are reported as
ScheduleIssue entries and never raised. These exceptions cover input that
breaks the engine's contract.
"""


class ReflowError(Exception):
    """Base exception for all reflow errors."""

    pass


class ParseError(ReflowError):
    """Raised when a dataset file or timestamp cannot be parsed."""

    pass


class ValidationError(ReflowError):
    """Raised when a dataset document has an invalid structure."""

    pass
