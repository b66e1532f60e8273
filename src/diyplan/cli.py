"""Command-line interface for diyplan."""

from __future__ import annotations

import csv
from datetime import date, datetime, time
from pathlib import Path
from typing import Annotated

import typer
import yaml

from . import context
from .exceptions import DiyplanError
from .loader import Project, load_project
from .logger import changes_enabled, setup_logger
from .scheduler import (
    CriticalPathAnalyzer,
    PlanningMode,
    ScheduledTask,
    SchedulingResult,
    build_dependency_graph,
)

app = typer.Typer(
    name="diyplan",
    help="Conflict-aware scheduling for DIY home-improvement projects",
    add_completion=False,
)

TIME_FORMAT = "%H:%M"


@app.callback()
def main_callback(
    verbose: Annotated[
        int,
        typer.Option(
            "--verbose",
            "-v",
            help="Verbosity level: 0=silent (default), 1=show changes, 2=show all checks, 3=debug",
            min=0,
            max=3,
        ),
    ] = 0,
    config: Annotated[
        Path | None,
        typer.Option(
            "--config",
            "-c",
            help="Path to config file (default: diyplan_config.yaml)",
        ),
    ] = None,
) -> None:
    """Global options for diyplan commands."""
    setup_logger(verbose)
    context.set_config_path(config)


def _parse_datetime_option(value: str | None, option_name: str) -> datetime | None:
    """Parse a date or datetime string from a CLI option.

    Args:
        value: YYYY-MM-DD or an ISO datetime (YYYY-MM-DDTHH:MM), or None
        option_name: Name of the option for error messages

    Returns:
        Parsed datetime (midnight for a bare date) or None if value is None
    """
    if value is None:
        return None

    try:
        if "T" in value or " " in value.strip():
            return datetime.fromisoformat(value)
        return datetime.combine(date.fromisoformat(value), time.min)
    except ValueError:
        typer.echo(
            f"Error: Invalid --{option_name} '{value}'. Use YYYY-MM-DD or YYYY-MM-DDTHH:MM.",
            err=True,
        )
        raise typer.Exit(1) from None


def _load(file: Path) -> Project:
    try:
        return load_project(file)
    except (DiyplanError, FileNotFoundError) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1) from e


def _format_slot(scheduled: ScheduledTask, *, with_date: bool) -> str:
    if scheduled.start_time is None or scheduled.end_time is None:
        return "unscheduled"
    fmt = f"%Y-%m-%d {TIME_FORMAT}" if with_date else TIME_FORMAT
    return f"{scheduled.start_time.strftime(fmt)} - {scheduled.end_time.strftime(fmt)}"


def _format_task_line(project: Project, scheduled: ScheduledTask, *, with_date: bool) -> str:
    titles = {task.id: task.title for task in project.tasks}
    marker = "*" if scheduled.is_critical else " "
    line = (
        f"  {marker} {titles.get(scheduled.task_id) or scheduled.task_id} ({scheduled.task_id})"
        f"  {_format_slot(scheduled, with_date=with_date)}"
    )
    if scheduled.worker_id:
        line += f"  [{scheduled.worker_id}]"
    if not scheduled.is_confirmed:
        reason = scheduled.conflict_reason.value if scheduled.conflict_reason else "conflict"
        line += f"  CONFLICT ({reason})"
    return line


def _display_by_phase(project: Project, result: SchedulingResult) -> None:
    """Quick mode: one block per phase with its overall span."""
    tasks_by_phase: dict[str | None, list[ScheduledTask]] = {}
    for scheduled in result.scheduled_tasks:
        tasks_by_phase.setdefault(scheduled.phase_id, []).append(scheduled)

    for milestone in result.diagnostics.phases:
        span = (
            f"{milestone.start:%Y-%m-%d} - {milestone.end:%Y-%m-%d}"
            if milestone.start and milestone.end
            else "unscheduled"
        )
        typer.echo(f"{milestone.phase_id}  {span}")
        for scheduled in tasks_by_phase.get(milestone.phase_id, []):
            typer.echo(_format_task_line(project, scheduled, with_date=True))
        typer.echo("")

    if None in tasks_by_phase:
        typer.echo("(no phase)")
        for scheduled in tasks_by_phase[None]:
            typer.echo(_format_task_line(project, scheduled, with_date=True))
        typer.echo("")


def _display_by_day(project: Project, result: SchedulingResult) -> None:
    """Standard mode: one block per calendar day a task starts on."""
    by_day: dict[date | None, list[ScheduledTask]] = {}
    for scheduled in result.scheduled_tasks:
        day = scheduled.start_time.date() if scheduled.start_time else None
        by_day.setdefault(day, []).append(scheduled)

    for day in sorted(d for d in by_day if d is not None):
        typer.echo(f"{day:%A %Y-%m-%d}")
        for scheduled in sorted(by_day[day], key=lambda st: (st.start_time, st.task_id)):
            typer.echo(_format_task_line(project, scheduled, with_date=False))
        typer.echo("")

    if None in by_day:
        typer.echo("Unscheduled")
        for scheduled in by_day[None]:
            typer.echo(_format_task_line(project, scheduled, with_date=False))
        typer.echo("")


def _display_by_worker(project: Project, result: SchedulingResult) -> None:
    """Detailed mode: one timetable per worker."""
    for worker in project.workers:
        assigned = [st for st in result.scheduled_tasks if st.worker_id == worker.id]
        if not assigned:
            continue
        typer.echo(f"{worker.display_name} ({worker.id})")
        for scheduled in sorted(assigned, key=lambda st: (st.start_time, st.task_id)):
            typer.echo(_format_task_line(project, scheduled, with_date=True))
        typer.echo("")

    unassigned = [st for st in result.scheduled_tasks if st.worker_id is None]
    if unassigned:
        typer.echo("Unassigned")
        for scheduled in unassigned:
            typer.echo(_format_task_line(project, scheduled, with_date=True))
        typer.echo("")


def _display_schedule_results(
    project: Project, result: SchedulingResult, mode: PlanningMode
) -> None:
    """Display schedule results to stdout."""
    typer.echo(f"Schedule Results ({mode.value})")
    typer.echo("=" * 80)
    typer.echo("")

    if mode == PlanningMode.QUICK:
        _display_by_phase(project, result)
    elif mode == PlanningMode.STANDARD:
        _display_by_day(project, result)
    else:
        _display_by_worker(project, result)

    diagnostics = result.diagnostics
    typer.echo(f"Confirmed: {len(result.confirmed)}  Conflicts: {diagnostics.conflict_count}")
    if diagnostics.project_end:
        typer.echo(f"Project end: {diagnostics.project_end:%Y-%m-%d %H:%M}")
    typer.echo(f"Critical path: {' -> '.join(diagnostics.critical_path)}")

    if result.remediations:
        typer.echo("")
        typer.echo("Suggestions:")
        for suggestion in result.remediations:
            typer.echo(
                f"  - {suggestion.description} "
                f"(saves ~{suggestion.hours_saved:g}h, feasibility {suggestion.feasibility:.0%})"
            )


def _export_schedule_csv(project: Project, result: SchedulingResult, output_path: Path) -> None:
    """Export schedule results to CSV."""
    titles = {task.id: task.title for task in project.tasks}
    with output_path.open("w", newline="") as f:
        writer = csv.writer(f)
        writer.writerow(
            [
                "task_id",
                "title",
                "phase",
                "worker",
                "start",
                "end",
                "target_completion",
                "latest_completion",
                "status",
                "conflict_reason",
                "critical",
            ]
        )
        for st in result.scheduled_tasks:
            writer.writerow(
                [
                    st.task_id,
                    titles.get(st.task_id, ""),
                    st.phase_id or "",
                    st.worker_id or "",
                    st.start_time.isoformat() if st.start_time else "",
                    st.end_time.isoformat() if st.end_time else "",
                    st.target_completion.isoformat(),
                    st.latest_completion.isoformat(),
                    st.status.value,
                    st.conflict_reason.value if st.conflict_reason else "",
                    "yes" if st.is_critical else "",
                ]
            )


def _export_schedule_yaml(result: SchedulingResult, output_path: Path) -> None:
    """Export the full result (tasks and diagnostics) to YAML."""
    with output_path.open("w", encoding="utf-8") as f:
        yaml.safe_dump(result.to_dict(), f, default_flow_style=False, sort_keys=False)


@app.command()
def schedule(  # noqa: PLR0913 - CLI command needs multiple options
    file: Annotated[Path, typer.Argument(help="Path to the project YAML file")] = Path(
        "project.yaml"
    ),
    mode: Annotated[
        PlanningMode | None,
        typer.Option("--mode", "-m", help="Planning mode. Overrides the project file"),
    ] = None,
    start: Annotated[
        str | None,
        typer.Option("--start", help="Project start (YYYY-MM-DD or YYYY-MM-DDTHH:MM)"),
    ] = None,
    deadline: Annotated[
        str | None,
        typer.Option("--deadline", help="Project deadline (YYYY-MM-DD or YYYY-MM-DDTHH:MM)"),
    ] = None,
    output_csv: Annotated[
        Path | None,
        typer.Option("--output-csv", help="Export schedule results to CSV file"),
    ] = None,
    output_yaml: Annotated[
        Path | None,
        typer.Option("--output-yaml", help="Export full results and diagnostics to YAML file"),
    ] = None,
) -> None:
    """Schedule a project and display or export the results."""
    parsed_start = _parse_datetime_option(start, "start")
    parsed_deadline = _parse_datetime_option(deadline, "deadline")

    project = _load(file)
    effective_mode = mode or project.mode

    try:
        service = project.create_service(
            mode=effective_mode, start=parsed_start, deadline=parsed_deadline
        )
        result = service.schedule()
    except DiyplanError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1) from e

    if output_csv:
        _export_schedule_csv(project, result, output_csv)
        typer.echo(f"Schedule exported to {output_csv}")
    if output_yaml:
        _export_schedule_yaml(result, output_yaml)
        typer.echo(f"Schedule exported to {output_yaml}")
    if not output_csv and not output_yaml:
        _display_schedule_results(project, result, effective_mode)

    # Display warnings
    if result.warnings:
        typer.echo("\nWarnings:", err=True)
        for warning in result.warnings:
            typer.echo(f"  - {warning}", err=True)


@app.command()
def validate(
    file: Annotated[Path, typer.Argument(help="Path to the project YAML file")] = Path(
        "project.yaml"
    ),
) -> None:
    """Check a project's dependency graph without scheduling it."""
    project = _load(file)

    try:
        graph = build_dependency_graph(project.tasks)
    except DiyplanError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1) from e

    critical_path = CriticalPathAnalyzer().process(
        graph, {task.id: task.duration_hours for task in project.tasks}
    )

    typer.echo(f"Valid project: {len(project.tasks)} tasks, {len(project.workers)} workers")
    typer.echo(f"Order: {', '.join(graph.order)}")
    typer.echo(
        f"Critical path: {' -> '.join(critical_path.critical_path)} "
        f"({critical_path.makespan_hours:g}h of work)"
    )
    if changes_enabled():
        # Level 1+: slack of every task
        for task_id in graph.order:
            timing = critical_path.timings[task_id]
            marker = "*" if timing.is_critical else " "
            typer.echo(
                f"  {marker} {task_id}: ES {timing.earliest_start:g}h  "
                f"LF {timing.latest_finish:g}h  slack {timing.slack:g}h"
            )

    skills = {skill for worker in project.workers for skill in worker.skills}
    for task in project.tasks:
        if task.required_skill and task.required_skill not in skills:
            typer.echo(
                f"Warning: no worker has skill '{task.required_skill}' needed by {task.id}",
                err=True,
            )


def main() -> int:
    """Main entry point."""
    # Typer handles sys.exit() internally
    app()
    return 0


if __name__ == "__main__":
    main()
