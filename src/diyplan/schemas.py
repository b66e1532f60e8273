"""Pydantic schemas for project YAML validation."""

from __future__ import annotations

from datetime import date, datetime, time
from typing import Any

from pydantic import BaseModel, Field, field_validator, model_validator

from .scheduler import PlanningMode, Task
from .workers import AvailabilityException, AvailabilityWindow, BlackoutPeriod, WorkerDefinition


def _ensure_str_list(v: Any) -> list[str]:
    if v is None:
        return []
    if isinstance(v, list):
        return [str(item) for item in v]  # type: ignore[misc]
    return [str(v)]


class ProjectSettingsSchema(BaseModel):
    """Schema for the ``project`` section."""

    name: str | None = None
    start: datetime
    deadline: datetime | None = None
    mode: PlanningMode = PlanningMode.STANDARD

    @field_validator("start", "deadline", mode="before")
    @classmethod
    def expand_bare_date(cls, v: Any) -> Any:
        """A bare date means the start of that day."""
        if isinstance(v, date) and not isinstance(v, datetime):
            return datetime.combine(v, time.min)
        return v


class TaskSchema(BaseModel):
    """Schema for a single task entry."""

    title: str = ""
    phase: str | None = None
    hours: float = Field(gt=0)
    requires: list[str] = Field(default_factory=list)
    skill: str | None = None
    priority: float | None = Field(default=None, ge=0, le=100)
    confidence: float | None = Field(default=None, ge=0.0, le=1.0)
    min_contiguous_hours: float = Field(default=0.0, ge=0.0)
    tags: list[str] = Field(default_factory=list)
    meta: dict[str, Any] = Field(default_factory=dict)

    @field_validator("requires", "tags", mode="before")
    @classmethod
    def ensure_list(cls, v: Any) -> list[str]:
        """Ensure value is a list."""
        return _ensure_str_list(v)

    def to_task(self, task_id: str) -> Task:
        return Task(
            id=task_id,
            duration_hours=self.hours,
            title=self.title or task_id,
            phase_id=self.phase,
            predecessors=tuple(self.requires),
            required_skill=self.skill,
            priority=self.priority,
            confidence=self.confidence,
            min_contiguous_hours=self.min_contiguous_hours,
            tags=tuple(self.tags),
            payload=self.meta or None,
        )


class WorkerSchema(BaseModel):
    """Schema for a single worker entry."""

    name: str | None = None
    skills: list[str] = Field(default_factory=list)
    availability: list[AvailabilityWindow] = Field(default_factory=list[AvailabilityWindow])
    preset: str | None = None
    exceptions: list[AvailabilityException] = Field(
        default_factory=list[AvailabilityException]
    )
    blackouts: list[BlackoutPeriod] = Field(default_factory=list[BlackoutPeriod])

    @field_validator("skills", mode="before")
    @classmethod
    def ensure_list(cls, v: Any) -> list[str]:
        """Ensure value is a list."""
        return _ensure_str_list(v)

    def to_worker(self, worker_id: str) -> WorkerDefinition:
        return WorkerDefinition(
            id=worker_id,
            name=self.name,
            skills=self.skills,
            availability=self.availability,
            availability_preset=self.preset,
            exceptions=self.exceptions,
            blackouts=self.blackouts,
        )


class ProjectSchema(BaseModel):
    """Schema for the entire project YAML file."""

    project: ProjectSettingsSchema
    tasks: dict[str, TaskSchema] = Field(default_factory=dict)
    workers: dict[str, WorkerSchema] = Field(default_factory=dict)

    @field_validator("tasks", "workers", mode="before")
    @classmethod
    def stringify_keys(cls, v: Any) -> Any:
        """YAML may read ids like ``1`` or ``yes`` as non-strings."""
        if isinstance(v, dict):
            return {str(key): value for key, value in v.items()}  # type: ignore[misc]
        return v

    @model_validator(mode="after")
    def validate_deadline(self) -> ProjectSchema:
        """Ensure the deadline is after the start."""
        deadline = self.project.deadline
        if deadline is not None and deadline <= self.project.start:
            raise ValueError("project deadline must be after project start")
        return self
