"""Project loading: YAML parsing, schema validation and config discovery."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError as PydanticValidationError

from . import context
from .exceptions import ParseError
from .scheduler import PlanningMode, SchedulingService, Task
from .schemas import ProjectSchema
from .unified_config import CONFIG_FILENAME, UnifiedConfig, load_unified_config
from .workers import WorkerDefinition


@dataclass
class Project:
    """A parsed project, ready to be scheduled."""

    start: datetime
    tasks: list[Task]
    workers: list[WorkerDefinition]
    mode: PlanningMode = PlanningMode.STANDARD
    deadline: datetime | None = None
    name: str | None = None
    config: UnifiedConfig = field(default_factory=UnifiedConfig)

    def create_service(
        self,
        *,
        mode: PlanningMode | None = None,
        start: datetime | None = None,
        deadline: datetime | None = None,
    ) -> SchedulingService:
        """Create a scheduling service, optionally overriding project settings."""
        return SchedulingService(
            self.tasks,
            self.workers,
            mode or self.mode,
            start or self.start,
            project_deadline=deadline or self.deadline,
            config=self.config.scheduler,
            global_blackouts=self.config.global_blackouts,
        )


def _discover_config(
    project_path: Path,
    config_path: Path | None = None,
) -> UnifiedConfig | None:
    """Discover the config file from various locations.

    Search order:
    1. Explicit config_path argument
    2. Global context (set via CLI --config)
    3. project directory / diyplan_config.yaml
    4. Current directory / diyplan_config.yaml
    """
    # 1. Explicit argument
    if config_path and config_path.exists():
        return load_unified_config(config_path)

    # 2. Global context
    ctx_config = context.get_config_path()
    if ctx_config and ctx_config.exists():
        return load_unified_config(ctx_config)

    # 3. Project directory
    dir_config = Path(project_path).parent / CONFIG_FILENAME
    if dir_config.exists():
        return load_unified_config(dir_config)

    # 4. Current directory
    cwd_config = Path(CONFIG_FILENAME)
    if cwd_config.exists():
        return load_unified_config(cwd_config)

    return None


def parse_project(data: dict[str, Any], config: UnifiedConfig | None = None) -> Project:
    """Convert loaded YAML data into a Project.

    Raises:
        ParseError: If the data does not match the project schema
    """
    try:
        schema = ProjectSchema.model_validate(data)
    except PydanticValidationError as e:
        raise ParseError(f"Invalid project structure: {e}") from e

    try:
        workers = [worker.to_worker(worker_id) for worker_id, worker in schema.workers.items()]
    except PydanticValidationError as e:
        raise ParseError(f"Invalid worker definition: {e}") from e

    return Project(
        start=schema.project.start,
        tasks=[task.to_task(task_id) for task_id, task in schema.tasks.items()],
        workers=workers,
        mode=schema.project.mode,
        deadline=schema.project.deadline,
        name=schema.project.name,
        config=config or UnifiedConfig(),
    )


def load_project(
    path: Path | str,
    config_path: Path | None = None,
    *,
    config: UnifiedConfig | None = None,
) -> Project:
    """Load a project YAML file.

    This only checks the file's shape. Dependency errors (unknown tasks,
    cycles) surface when the project is scheduled.

    Args:
        path: Path to the project YAML file
        config_path: Optional explicit path to the config file
        config: Optional explicit config (overrides discovery)

    Returns:
        Parsed Project

    Raises:
        ParseError: If the file is missing, is not YAML or has an invalid structure
    """
    path = Path(path)
    if not path.exists():
        raise ParseError(f"File not found: {path}")

    if config is None:
        config = _discover_config(path, config_path)

    try:
        with path.open(encoding="utf-8") as f:
            data: Any = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ParseError(f"Failed to parse YAML: {e}") from e

    if not isinstance(data, dict):
        raise ParseError("YAML must contain a dictionary at the root level")

    return parse_project(data, config)  # type: ignore[arg-type]
