"""diyplan - conflict-aware scheduling for DIY home-improvement projects."""

from .exceptions import (
    CyclicDependencyError,
    DiyplanError,
    ParseError,
    UnknownPredecessorError,
    ValidationError,
)
from .scheduler import PlanningMode, SchedulingConfig, SchedulingService, Task, schedule_project
from .workers import WorkerDefinition

__version__ = "0.1.0"

__all__ = [
    "CyclicDependencyError",
    "DiyplanError",
    "ParseError",
    "PlanningMode",
    "SchedulingConfig",
    "SchedulingService",
    "Task",
    "UnknownPredecessorError",
    "ValidationError",
    "WorkerDefinition",
    "schedule_project",
]
