"""Configuration classes for the reflow engine."""

from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, Field, field_validator

DEFAULT_MAX_ITERATIONS = 40_000
DEFAULT_HORIZON_DAYS = 370


class PlacementConfig(BaseModel):
    """Limits and calendar settings for the placement engine.

    max_iterations and horizon_days are termination guards. They are
    conservative safety limits, not capacity rules: a very long order on a
    thin calendar can exhaust max_iterations and be reported UNSCHEDULABLE
    even though it would fit within a year.
    """

    # Upper bound on shift segments examined while placing one order
    max_iterations: int = Field(default=DEFAULT_MAX_ITERATIONS, gt=0)
    # How many calendar days ahead to look for the next shift
    horizon_days: int = Field(default=DEFAULT_HORIZON_DAYS, gt=0)
    # IANA timezone in which shift hours and weekdays are interpreted
    timezone: str = "UTC"

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, value: str) -> str:
        """Ensure the timezone name is known to zoneinfo."""
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"Unknown timezone '{value}'") from e
        return value

    @property
    def zone(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)


class SchedulingConfig(BaseModel):
    """Configuration for a reflow pass."""

    placement: PlacementConfig = PlacementConfig()
