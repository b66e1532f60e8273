"""Configuration file loader.

This module reads ``diyplan_config.yaml``, which combines the scheduler
settings with project-wide blackouts (holidays, site closures).
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError

from .exceptions import ParseError
from .scheduler import SchedulingConfig
from .workers import BlackoutPeriod

CONFIG_FILENAME = "diyplan_config.yaml"


class UnifiedConfig(BaseModel):
    """Scheduler settings plus blackouts that apply to every worker."""

    scheduler: SchedulingConfig = Field(default_factory=SchedulingConfig)
    global_blackouts: list[BlackoutPeriod] = Field(default_factory=list[BlackoutPeriod])


def load_unified_config(config_path: Path | str) -> UnifiedConfig:
    """Load configuration from a YAML file.

    Args:
        config_path: Path to diyplan_config.yaml

    Returns:
        UnifiedConfig; missing sections take their defaults

    Raises:
        FileNotFoundError: If the config file doesn't exist
        ParseError: If the file is not valid YAML or has invalid settings
    """
    config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    try:
        with config_path.open(encoding="utf-8") as f:
            data: Any = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ParseError(f"Failed to parse config {config_path}: {e}") from e

    if data is None:
        return UnifiedConfig()
    if not isinstance(data, dict):
        raise ParseError(f"Config {config_path} must contain a dictionary at the root level")

    try:
        return UnifiedConfig.model_validate(data)
    except PydanticValidationError as e:
        raise ParseError(f"Invalid config {config_path}: {e}") from e
