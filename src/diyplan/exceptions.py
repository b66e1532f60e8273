"""Custom exceptions for diyplan."""

from __future__ import annotations


class DiyplanError(Exception):
    """Base exception for all diyplan errors."""

    pass


class ValidationError(DiyplanError):
    """Raised when scheduling input fails structural validation."""

    pass


class CyclicDependencyError(ValidationError):
    """Raised when a predecessor chain loops back on itself."""

    def __init__(self, cycle: list[str]):
        self.cycle = cycle
        super().__init__(f"Circular dependency detected: {' -> '.join(cycle)}")


class UnknownPredecessorError(ValidationError):
    """Raised when a task names a predecessor that is not in the input set."""

    def __init__(self, task_id: str, predecessor_id: str):
        self.task_id = task_id
        self.predecessor_id = predecessor_id
        super().__init__(f"Task {task_id} requires unknown task: {predecessor_id}")


class ParseError(DiyplanError):
    """Raised when YAML parsing fails."""

    pass
