"""Worker definitions and availability configuration.

This module handles loading and validating worker definitions including:
- Skills (matched against a task's required skill)
- Weekly availability windows and named availability presets
- Per-date availability exceptions (extra hours or days off)
- Blackout periods (vacations, deliveries, anything that blocks work)
"""

from __future__ import annotations

from datetime import date, datetime, time, timedelta
from typing import Any

from pydantic import BaseModel, Field, field_validator, model_validator

WEEKDAY_NAMES = ["mon", "tue", "wed", "thu", "fri", "sat", "sun"]
MINUTES_PER_HOUR = 60
ISO_DATE_LENGTH = 10


def coerce_time(value: Any) -> Any:
    """Accept "HH:MM" strings, time objects and YAML 1.1 sexagesimal ints.

    PyYAML reads an unquoted ``17:00`` as the base-60 integer 1020, i.e. the
    number of minutes since midnight.
    """
    if isinstance(value, int) and not isinstance(value, bool):
        hours, minutes = divmod(value, MINUTES_PER_HOUR)
        return time(hours, minutes)
    return value


def _coerce_weekday(value: Any) -> Any:
    """Accept weekday numbers (0=Monday) or names ("mon", "Monday")."""
    if isinstance(value, str):
        key = value.strip().lower()[:3]
        if key not in WEEKDAY_NAMES:
            raise ValueError(f"Unknown weekday: {value}")
        return WEEKDAY_NAMES.index(key)
    return value


class TimeWindow(BaseModel):
    """A working window within a single day."""

    start: time
    end: time

    @field_validator("start", "end", mode="before")
    @classmethod
    def parse_time(cls, v: Any) -> Any:
        """Normalize YAML time values."""
        return coerce_time(v)

    @model_validator(mode="after")
    def validate_end_after_start(self) -> TimeWindow:
        """Ensure end time is after start time."""
        if self.end <= self.start:
            raise ValueError("window end must be after window start")
        return self

    @property
    def hours(self) -> float:
        """Length of the window in hours."""
        start = datetime.combine(date.min, self.start)
        end = datetime.combine(date.min, self.end)
        return (end - start).total_seconds() / 3600


class AvailabilityWindow(TimeWindow):
    """A recurring weekly working window."""

    day: int = Field(ge=0, le=6)

    @field_validator("day", mode="before")
    @classmethod
    def parse_day(cls, v: Any) -> Any:
        """Allow weekday names."""
        return _coerce_weekday(v)


class AvailabilityException(BaseModel):
    """Replaces the weekly windows on one calendar date (empty = day off)."""

    day: date
    windows: list[TimeWindow] = Field(default_factory=list[TimeWindow])


class BlackoutPeriod(BaseModel):
    """An interval during which a worker cannot work.

    Date-only bounds cover whole days: a start date means midnight at the start
    of that day, an end date means midnight at the end of it.
    """

    start: datetime
    end: datetime

    @field_validator("start", mode="before")
    @classmethod
    def parse_start(cls, v: Any) -> Any:
        """Expand a bare date to the start of that day."""
        day = _as_bare_date(v)
        if day is not None:
            return datetime.combine(day, time.min)
        return v

    @field_validator("end", mode="before")
    @classmethod
    def parse_end(cls, v: Any) -> Any:
        """Expand a bare date to the end of that day."""
        day = _as_bare_date(v)
        if day is not None:
            return datetime.combine(day + timedelta(days=1), time.min)
        return v

    @model_validator(mode="after")
    def validate_end_after_start(self) -> BlackoutPeriod:
        """Ensure end is after start."""
        if self.end <= self.start:
            raise ValueError("end must be after start")
        return self


def _as_bare_date(value: Any) -> date | None:
    if isinstance(value, datetime):
        return None
    if isinstance(value, date):
        return value
    if isinstance(value, str) and len(value.strip()) == ISO_DATE_LENGTH:
        try:
            return date.fromisoformat(value.strip())
        except ValueError:
            return None
    return None


def _preset(days: range | list[int], start: time, end: time) -> list[AvailabilityWindow]:
    return [AvailabilityWindow(day=d, start=start, end=end) for d in days]


# Named schedules offered by the quick-setup screen of the host application
AVAILABILITY_PRESETS: dict[str, list[AvailabilityWindow]] = {
    "weekends": _preset([5, 6], time(9), time(17)),
    "evenings": _preset(range(5), time(17), time(21)) + _preset([5, 6], time(9), time(17)),
    "fulltime": _preset(range(5), time(8), time(17)),
    "sprint": _preset(range(7), time(7), time(19)),
}


class WorkerDefinition(BaseModel):
    """Definition of a single worker (homeowner, helper or contractor)."""

    id: str
    name: str | None = None
    skills: list[str] = Field(default_factory=list)
    availability: list[AvailabilityWindow] = Field(default_factory=list[AvailabilityWindow])
    availability_preset: str | None = None
    exceptions: list[AvailabilityException] = Field(
        default_factory=list[AvailabilityException]
    )
    blackouts: list[BlackoutPeriod] = Field(default_factory=list[BlackoutPeriod])

    @model_validator(mode="after")
    def expand_preset(self) -> WorkerDefinition:
        """Merge a named availability preset into the weekly windows."""
        if self.availability_preset is not None:
            if self.availability_preset not in AVAILABILITY_PRESETS:
                raise ValueError(
                    f"Unknown availability preset '{self.availability_preset}'. "
                    f"Valid presets: {', '.join(sorted(AVAILABILITY_PRESETS))}"
                )
            self.availability = [
                *AVAILABILITY_PRESETS[self.availability_preset],
                *self.availability,
            ]
        return self

    @property
    def display_name(self) -> str:
        """Name for reports, falling back to the id."""
        return self.name or self.id

    def can_perform(self, skill: str | None) -> bool:
        """Check whether this worker may be assigned a task needing ``skill``."""
        return skill is None or skill in self.skills

    def windows_for(self, day: date) -> list[tuple[time, time]]:
        """Get the working windows for a calendar date, sorted by start time."""
        for exception in self.exceptions:
            if exception.day == day:
                return sorted({(w.start, w.end) for w in exception.windows})
        weekday = day.weekday()
        return sorted({(w.start, w.end) for w in self.availability if w.day == weekday})

    def get_blackouts(
        self, global_blackouts: list[BlackoutPeriod] | None = None
    ) -> list[tuple[datetime, datetime]]:
        """Get blackout periods as (start, end) tuples.

        Merges project-wide blackouts (holidays, inspections) with the worker's
        own blackouts (vacations).
        """
        periods: list[tuple[datetime, datetime]] = []
        if global_blackouts:
            periods.extend((p.start, p.end) for p in global_blackouts)
        periods.extend((p.start, p.end) for p in self.blackouts)
        return periods
