"""Configuration classes for the scheduling system."""

from datetime import time
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, field_validator, model_validator

from diyplan.workers import coerce_time


class PlanningMode(str, Enum):
    """Time granularity of a scheduling run."""

    QUICK = "quick"  # Phase/milestone level: tasks occupy whole working days
    STANDARD = "standard"  # Day level: tasks start a working day or follow earlier work
    DETAILED = "detailed"  # Minute level: exact start/end per worker


class RiskTolerance(str, Enum):
    """How aggressively to pad uncertain task estimates."""

    CONSERVATIVE = "conservative"
    MODERATE = "moderate"
    AGGRESSIVE = "aggressive"


class BufferConfig(BaseModel):
    """Confidence-based duration buffers.

    ``thresholds`` maps a minimum confidence to the fractional buffer applied to
    tasks at or above that confidence; the highest matching threshold wins.
    """

    enabled: bool = True
    default_confidence: float = Field(default=0.7, ge=0.0, le=1.0)
    thresholds: dict[float, float] = Field(
        default_factory=lambda: {0.9: 0.0, 0.75: 0.1, 0.6: 0.2, 0.0: 0.35}
    )
    risk_multipliers: dict[RiskTolerance, float] = Field(
        default_factory=lambda: {
            RiskTolerance.CONSERVATIVE: 1.5,
            RiskTolerance.MODERATE: 1.0,
            RiskTolerance.AGGRESSIVE: 0.7,
        }
    )


class SiteConstraints(BaseModel):
    """Rules of the job site that apply to every worker."""

    allow_night_work: bool = False
    day_start: time = time(7)  # Earliest work when night work is not allowed
    day_end: time = time(22)  # Latest work when night work is not allowed
    weekends_only: bool = False
    noise_curfew: time | None = None  # Tasks tagged "noisy" must stop by this time
    noisy_tag: str = "noisy"

    @field_validator("day_start", "day_end", "noise_curfew", mode="before")
    @classmethod
    def parse_time(cls, v: Any) -> Any:
        """Normalize YAML time values."""
        return coerce_time(v)

    @model_validator(mode="after")
    def validate_day_bounds(self) -> "SiteConstraints":
        """Ensure the allowed working day is not empty."""
        if self.day_end <= self.day_start:
            raise ValueError("day_end must be after day_start")
        return self


class SchedulingConfig(BaseModel):
    """Configuration for a scheduling run."""

    # Look-ahead horizon for slot searches and the default project end
    horizon_days: int = Field(default=180, gt=0)

    # Priority for tasks without an explicit weight (0-100)
    default_priority: float = 50.0

    risk_tolerance: RiskTolerance = RiskTolerance.MODERATE
    buffers: BufferConfig = Field(default_factory=BufferConfig)
    site: SiteConstraints = Field(default_factory=SiteConstraints)

    # Remediation estimates
    helper_hours_per_conflict: float = 8.0
    night_work_hours_per_conflict: float = 4.0
    night_work_penalty: float = 0.15  # Productivity lost working outside day hours
