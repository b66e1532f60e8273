"""Scheduler package - conflict-aware project scheduling.

This package provides:
- Dependency graph construction with cycle and unknown-predecessor detection
- Pre-processors (confidence buffers, critical path forward/backward passes)
- Worker calendars honoring availability, blackouts and site rules
- A greedy worker assignment solver
- High-level SchedulingService that ties everything together

Main entry points:
- SchedulingService: High-level service for scheduling a project
- schedule_project: One-call convenience wrapper
- build_dependency_graph: Validate and order tasks

Configuration:
- SchedulingConfig: Main configuration (horizon, priority, risk, buffers, site)
- PlanningMode: Time granularity of a run
"""

# Aggregation and remediation
from .aggregator import ResultAggregator

# Calendars
from .calendar import WorkerCalendar

# Configuration
from .config import (
    BufferConfig,
    PlanningMode,
    RiskTolerance,
    SchedulingConfig,
    SiteConstraints,
)

# Core dataclasses
from .core import (
    ConflictReason,
    CriticalPathResult,
    NegativeSlackWarning,
    NoCapacityConflict,
    PhaseMilestone,
    RemediationSuggestion,
    ScheduledTask,
    SchedulingDiagnostics,
    SchedulingResult,
    Task,
    TaskStatus,
    TimeRange,
)

# Dependency graph
from .graph import DependencyGraph, build_dependency_graph

# Pre-processors
from .preprocessors import CriticalPathAnalyzer, DurationBufferPreProcessor
from .remediation import RemediationAdvisor

# High-level service
from .service import SchedulingService, schedule_project

# Solver
from .solver import WorkerAssignmentSolver

__all__ = [
    # Core dataclasses
    "Task",
    "TimeRange",
    "ScheduledTask",
    "SchedulingResult",
    "SchedulingDiagnostics",
    "CriticalPathResult",
    "NoCapacityConflict",
    "NegativeSlackWarning",
    "PhaseMilestone",
    "RemediationSuggestion",
    "TaskStatus",
    "ConflictReason",
    # Configuration
    "SchedulingConfig",
    "BufferConfig",
    "SiteConstraints",
    "PlanningMode",
    "RiskTolerance",
    # Graph
    "DependencyGraph",
    "build_dependency_graph",
    # Pre-processors
    "CriticalPathAnalyzer",
    "DurationBufferPreProcessor",
    # Calendars and solver
    "WorkerCalendar",
    "WorkerAssignmentSolver",
    # Aggregation
    "ResultAggregator",
    "RemediationAdvisor",
    # High-level service
    "SchedulingService",
    "schedule_project",
]
