"""Command-line interface for schedsim."""

from __future__ import annotations

import csv
import math
from contextlib import ExitStack
from datetime import date
from pathlib import Path
from typing import Annotated

import typer
from pydantic import ValidationError as PydanticValidationError

from .exceptions import SchedsimError
from .logger import VERBOSITY_DEBUG, VERBOSITY_SILENT, setup_logger
from .project_config import ProjectConfig, load_project_config
from .scheduler import (
    EstimatorType,
    ScheduleComparison,
    ScheduleResult,
    SchedulingService,
    StreamTraceSink,
)
from .workdays import WorkCalendar

app = typer.Typer(
    name="schedsim",
    help="Resource-constrained project scheduling with probabilistic task durations",
    add_completion=False,
)


@app.callback()
def main_callback(
    verbose: Annotated[
        int,
        typer.Option(
            "--verbose",
            "-v",
            help="Verbosity level: 0=silent (default), 1=show assignments, 2=show all checks, 3=debug",
            min=VERBOSITY_SILENT,
            max=VERBOSITY_DEBUG,
        ),
    ] = VERBOSITY_SILENT,
) -> None:
    """Global options for schedsim commands."""
    setup_logger(verbose)


def _load_project(file: Path) -> ProjectConfig:
    try:
        return load_project_config(file)
    except (SchedsimError, PydanticValidationError) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1) from None


def _parse_date_option(value: str, option_name: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError:
        typer.echo(f"Error: Invalid {option_name} format. Use YYYY-MM-DD", err=True)
        raise typer.Exit(1) from None


def _display_schedule(result: ScheduleResult) -> None:
    """Display one schedule to stdout, ordered by start."""
    typer.echo(f"Schedule at {result.confidence:.0%} confidence")
    typer.echo("=" * 80)
    typer.echo("")

    for task in sorted(result.graph.tasks, key=lambda t: (t.display_start, t.rank or 0)):
        typer.echo(f"{task.name} ({task.id})")
        typer.echo(f"  Start:    {result.start_date(task.id)}  (day {task.display_start})")
        typer.echo(f"  Finish:   {result.finish_date(task.id)}  (day {task.display_finish})")
        if task.can_be_scheduled:
            typer.echo(f"  Resource: {result.resource_name(task.id)}")
            typer.echo(f"  Duration: {task.duration_adjusted} days (planned {task.duration})")
        elif task.definition.is_milestone:
            typer.echo("  (milestone)")
        elif task.is_parent:
            typer.echo("  (parent)")
        if task.slack <= 0 and not task.is_parent:
            typer.echo("  Critical path")
        typer.echo("")

    finish = result.calendar.workday_to_date(max(0, result.project_finish - 1))
    typer.echo(f"Project finish: {finish} ({result.project_finish} work days)")


def _display_comparison(comparison: ScheduleComparison) -> None:
    """Display best/worst case dates per task."""
    best, worst = comparison.best, comparison.worst
    typer.echo(f"Schedule range {best.confidence:.0%} - {worst.confidence:.0%} confidence")
    typer.echo("=" * 80)
    typer.echo("")

    for task_id, task_range in comparison.ranges.items():
        task = best.tasks[task_id]
        typer.echo(f"{task.name} ({task_id})")
        typer.echo(f"  Start:  {task_range.best_start} .. {task_range.worst_start}")
        typer.echo(f"  Finish: {task_range.best_finish} .. {task_range.worst_finish}")
        if task_range.best_resource_id != task_range.worst_resource_id:
            typer.echo(
                f"  Resource: {task_range.best_resource_id} / {task_range.worst_resource_id}"
            )
        elif task_range.best_resource_id is not None:
            typer.echo(f"  Resource: {best.resource_name(task_id)}")
        typer.echo("")


def _export_schedule_csv(result: ScheduleResult, output_path: Path) -> None:
    """Export schedule results to CSV."""
    with output_path.open("w", newline="") as f:
        writer = csv.writer(f)
        writer.writerow(
            [
                "task_id",
                "task_name",
                "resource_id",
                "start_date",
                "finish_date",
                "start_day",
                "finish_day",
                "duration",
                "slack",
                "rank",
            ]
        )
        for task in sorted(result.graph.tasks, key=lambda t: (t.display_start, t.rank or 0)):
            writer.writerow(
                [
                    task.id,
                    task.name,
                    task.assigned_resource_id or "",
                    result.start_date(task.id).isoformat(),
                    result.finish_date(task.id).isoformat(),
                    task.display_start,
                    task.display_finish,
                    task.duration_adjusted,
                    "" if math.isinf(task.slack) else task.slack,
                    task.rank,
                ]
            )


@app.command()
def schedule(  # noqa: PLR0913 - CLI command needs multiple options
    file: Annotated[Path, typer.Argument(help="Path to the project YAML file")],
    confidence: Annotated[
        float,
        typer.Option("--confidence", help="Confidence level for task durations (0-1)", min=0, max=1),
    ] = 0.8,
    range_confidence: Annotated[
        float | None,
        typer.Option(
            "--range-confidence",
            help="Second confidence level; prints a best/worst case range",
            min=0,
            max=1,
        ),
    ] = None,
    estimator: Annotated[
        str | None,
        typer.Option(
            "--estimator",
            "-e",
            help="Duration estimator. Overrides config. Available: 'pert', 'monte_carlo', 'beta'",
        ),
    ] = None,
    seed: Annotated[
        int | None,
        typer.Option("--seed", help="Random seed for Monte Carlo estimators"),
    ] = None,
    output_csv: Annotated[
        Path | None,
        typer.Option("--output-csv", help="Export schedule results to CSV file"),
    ] = None,
    trace: Annotated[
        Path | None,
        typer.Option("--trace", help="Write a step-by-step scheduling trace to this file"),
    ] = None,
) -> None:
    """Schedule a project and display the results."""
    project = _load_project(file)
    scheduler_config = project.scheduler

    if estimator:
        try:
            estimator_type = EstimatorType(estimator)
        except ValueError:
            typer.echo(
                f"Error: Invalid estimator '{estimator}'. "
                f"Available: {', '.join(e.value for e in EstimatorType)}",
                err=True,
            )
            raise typer.Exit(1) from None
        scheduler_config = scheduler_config.model_copy(update={"estimator": estimator_type})

    if seed is not None:
        scheduler_config = scheduler_config.model_copy(update={"random_seed": seed})

    with ExitStack() as stack:
        trace_sink = None
        if trace is not None:
            trace_sink = StreamTraceSink(stack.enter_context(trace.open("w")))

        service = SchedulingService(
            project.tasks,
            project.resources,
            project.settings,
            config=scheduler_config,
            trace=trace_sink,
        )
        try:
            if range_confidence is not None:
                comparison = service.run_range(confidence, range_confidence)
                result = comparison.best if confidence <= range_confidence else comparison.worst
            else:
                comparison = None
                result = service.run(confidence)
        except (SchedsimError, ValueError) as e:
            typer.echo(f"Error: Scheduling failed: {e}", err=True)
            raise typer.Exit(1) from None

    if output_csv:
        _export_schedule_csv(result, output_csv)
        typer.echo(f"Schedule exported to {output_csv}")
    elif comparison is not None:
        _display_comparison(comparison)
    else:
        _display_schedule(result)

    if result.warnings:
        typer.echo("\nWarnings:", err=True)
        for warning in result.warnings:
            typer.echo(f"  - {warning}", err=True)


@app.command()
def workdays(
    file: Annotated[Path, typer.Argument(help="Path to the project YAML file")],
    offset: Annotated[
        int | None,
        typer.Option("--offset", "-n", help="Work-day offset to convert to a date", min=0),
    ] = None,
    on_date: Annotated[
        str | None,
        typer.Option("--date", "-d", help="Date (YYYY-MM-DD) to convert to a work-day offset"),
    ] = None,
) -> None:
    """Convert between work-day offsets and calendar dates."""
    if (offset is None) == (on_date is None):
        typer.echo("Error: Specify exactly one of --offset or --date", err=True)
        raise typer.Exit(1)

    project = _load_project(file)
    calendar = WorkCalendar(project.settings)

    if offset is not None:
        typer.echo(calendar.workday_to_date(offset).isoformat())
        return

    assert on_date is not None
    parsed = _parse_date_option(on_date, "date")
    day = calendar.date_to_workday(parsed)
    suffix = "" if calendar.is_working_day(parsed) else " (not a working day)"
    typer.echo(f"{day}{suffix}")


def main() -> int:
    """Main entry point."""
    # Typer handles sys.exit() internally
    app()
    return 0


if __name__ == "__main__":
    main()
