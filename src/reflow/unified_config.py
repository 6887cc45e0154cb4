"""Unified configuration loader for scheduler and generator settings.

This module provides a single configuration file format (reflow_config.yaml)
that combines reflow engine limits with synthetic dataset defaults.
"""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, field_validator

from .models import parse_timestamp
from .scheduler import SchedulingConfig

DEFAULT_CONFIG_NAME = "reflow_config.yaml"

# Set from the global --config option
_config_override: Path | None = None


def set_config_override(path: Path | None) -> None:
    global _config_override
    _config_override = path


def _default_work_center_ids() -> list[str]:
    return [f"WC-{index}" for index in range(1, 6)]


class GeneratorConfig(BaseModel):
    """Defaults for the synthetic dataset generator."""

    order_count: int = Field(default=1500, ge=0)
    work_center_ids: list[str] = Field(default_factory=_default_work_center_ids)
    start_date: datetime = datetime(2026, 1, 5, 8, tzinfo=timezone.utc)  # A Monday

    @field_validator("work_center_ids")
    @classmethod
    def validate_work_center_ids(cls, value: list[str]) -> list[str]:
        """Require at least one work center."""
        if not value:
            raise ValueError("generator.work_center_ids must not be empty")
        return value

    @field_validator("start_date", mode="after")
    @classmethod
    def normalize_start_date(cls, value: datetime) -> datetime:
        """Store the start date as a UTC instant."""
        return parse_timestamp(value)


class UnifiedConfig(BaseModel):
    """Unified configuration containing scheduler and generator settings."""

    scheduler: SchedulingConfig = SchedulingConfig()
    generator: GeneratorConfig = GeneratorConfig()


def load_unified_config(config_path: Path | str) -> UnifiedConfig:
    """Load unified configuration from YAML file.

    Args:
        config_path: Path to reflow_config.yaml file

    Returns:
        UnifiedConfig with defaults for any missing section

    Raises:
        FileNotFoundError: If config file doesn't exist
        ValueError: If config is invalid
    """
    config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with config_path.open() as f:
        data: dict[str, Any] | None = yaml.safe_load(f)

    if not data:
        raise ValueError("Empty configuration file")

    if not isinstance(data, dict):
        raise ValueError("Config must contain a mapping at the root level")

    unknown = set(data) - {"scheduler", "generator"}
    if unknown:
        raise ValueError(f"Unknown config section(s): {', '.join(sorted(unknown))}")

    # pydantic's ValidationError is a ValueError subclass
    scheduler_config = SchedulingConfig()
    if "scheduler" in data:
        scheduler_config = SchedulingConfig.model_validate(data["scheduler"] or {})

    generator_config = GeneratorConfig()
    if "generator" in data:
        generator_config = GeneratorConfig.model_validate(data["generator"] or {})

    return UnifiedConfig(scheduler=scheduler_config, generator=generator_config)


def resolve_config_path(dataset_path: Path | str | None = None) -> Path | None:
    """Find the config file to use.

    Priority: global --config option, then the dataset's directory, then the
    current directory.
    """
    if _config_override is not None:
        return _config_override

    candidates: list[Path] = []
    if dataset_path is not None:
        candidates.append(Path(dataset_path).parent / DEFAULT_CONFIG_NAME)
    candidates.append(Path(DEFAULT_CONFIG_NAME))

    for candidate in candidates:
        if candidate.exists():
            return candidate
    return None


def discover_unified_config(dataset_path: Path | str | None = None) -> UnifiedConfig:
    """Load the resolved config file, or defaults if there is none."""
    config_path = resolve_config_path(dataset_path)
    if config_path is None:
        return UnifiedConfig()
    return load_unified_config(config_path)
