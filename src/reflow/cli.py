"""Command-line interface for the work order reflow engine."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer

from .exceptions import ParseError, ReflowError
from .logger import setup_logger
from .models import ScheduleDataset, format_timestamp, parse_timestamp
from .parser import dataset_from_input, load_dataset, write_dataset
from .scheduler import (
    ReflowChange,
    ReflowMetrics,
    ScheduleIssue,
    build_reflow_schedule,
    validate_schedule,
)
from .synthetic import generate_synthetic_reflow_input
from .unified_config import UnifiedConfig, discover_unified_config, set_config_override

app = typer.Typer(
    name="reflow",
    help="Work order reflow - validate and repair production schedules",
    add_completion=False,
)


@app.callback()
def main_callback(
    verbose: Annotated[
        int,
        typer.Option(
            "--verbose",
            "-v",
            help="0=silent (default), 1=moved orders, 2=placement checks, 3=calendar walk",
            min=0,
            max=3,
        ),
    ] = 0,
    config: Annotated[
        Path | None,
        typer.Option(
            "--config",
            "-c",
            help="Path to unified config file (default: reflow_config.yaml)",
        ),
    ] = None,
) -> None:
    """Global options for reflow commands."""
    setup_logger(verbose)
    set_config_override(config)


def _load_config(dataset_path: Path | None = None) -> UnifiedConfig:
    """Load the unified config, exiting with an error if it is invalid."""
    try:
        return discover_unified_config(dataset_path)
    except (FileNotFoundError, ValueError) as e:
        typer.echo(f"Error: Invalid config: {e}", err=True)
        raise typer.Exit(1) from None


def _load_dataset(file: Path) -> ScheduleDataset:
    try:
        return load_dataset(file)
    except ReflowError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1) from None


def _write_dataset(output: Path, dataset: ScheduleDataset) -> None:
    try:
        write_dataset(output, dataset)
    except OSError as e:
        typer.echo(f"Error: Cannot write {output}: {e}", err=True)
        raise typer.Exit(1) from None


def _echo_issues(issues: list[ScheduleIssue]) -> None:
    if not issues:
        typer.echo("No issues found.")
        return

    typer.echo(f"{len(issues)} issue(s):")
    for issue in issues:
        typer.echo(f"  [{issue.code.value}] {issue.message}")


def _echo_changes(changes: list[ReflowChange]) -> None:
    if not changes:
        typer.echo("No work orders moved.")
        return

    typer.echo(f"{len(changes)} work order(s) moved:")
    for change in changes:
        typer.echo(
            f"  {change.work_order_number} ({change.work_center_id}): "
            f"{format_timestamp(change.original_start_date)} -> "
            f"{format_timestamp(change.new_start_date)}, "
            f"delay {change.delay_minutes} min"
        )


def _echo_metrics(metrics: ReflowMetrics) -> None:
    typer.echo(
        f"Metrics: {metrics.moved_orders}/{metrics.total_orders} moved, "
        f"total delay {metrics.total_delay_minutes} min, "
        f"average {metrics.average_delay_minutes} min, "
        f"max {metrics.max_delay_minutes} min, "
        f"runtime {metrics.runtime_ms} ms"
    )


@app.command()
def validate(
    file: Annotated[Path, typer.Argument(help="Path to the dataset (JSON or YAML)")],
) -> None:
    """Validate a schedule without changing it."""
    dataset = _load_dataset(file)

    report = validate_schedule(dataset.to_reflow_input())
    _echo_issues(report.issues)

    if not report.ok:
        raise typer.Exit(1)


@app.command()
def run(
    file: Annotated[Path, typer.Argument(help="Path to the dataset (JSON or YAML)")],
    output: Annotated[
        Path | None,
        typer.Option("--output", "-o", help="Write the reflowed dataset to this file"),
    ] = None,
    revalidate: Annotated[
        bool,
        typer.Option("--validate", help="Validate the reflowed schedule afterwards"),
    ] = False,
) -> None:
    """Reflow a schedule around dependencies, shifts and maintenance."""
    dataset = _load_dataset(file)
    config = _load_config(file)

    result = build_reflow_schedule(dataset.to_reflow_input(), config.scheduler)

    _echo_issues(result.issues)
    _echo_changes(result.changes)
    _echo_metrics(result.metrics)

    reflowed = dataset.with_work_orders(result.work_orders)
    if output:
        _write_dataset(output, reflowed)
        typer.echo(f"Reflowed dataset written to {output}")

    if revalidate:
        report = validate_schedule(reflowed.to_reflow_input())
        typer.echo("Validation of reflowed schedule:")
        _echo_issues(report.issues)
        if not report.ok:
            raise typer.Exit(1)


@app.command()
def generate(
    output: Annotated[
        Path,
        typer.Option("--output", "-o", help="Where to write the dataset (.json or .yaml)"),
    ],
    orders: Annotated[
        int | None,
        typer.Option("--orders", "-n", help="Number of work orders", min=0),
    ] = None,
    work_centers: Annotated[
        str | None,
        typer.Option("--work-centers", help="Comma-separated work center ids"),
    ] = None,
    start_date: Annotated[
        str | None,
        typer.Option("--start-date", help="First day of orders (ISO-8601)"),
    ] = None,
) -> None:
    """Generate a synthetic chained dataset for load testing."""
    config = _load_config()
    generator = config.generator

    order_count = orders if orders is not None else generator.order_count
    center_ids = generator.work_center_ids
    if work_centers is not None:
        center_ids = [item.strip() for item in work_centers.split(",") if item.strip()]
        if not center_ids:
            typer.echo("Error: --work-centers must name at least one work center", err=True)
            raise typer.Exit(1)

    start = generator.start_date
    if start_date is not None:
        try:
            start = parse_timestamp(start_date)
        except ParseError as e:
            typer.echo(f"Error: {e}", err=True)
            raise typer.Exit(1) from None

    reflow_input = generate_synthetic_reflow_input(order_count, center_ids, start)
    _write_dataset(output, dataset_from_input(reflow_input))
    typer.echo(f"Generated {order_count} work orders to {output}")


def main() -> int:
    """Main entry point."""
    # Typer handles sys.exit() internally
    app()
    return 0


if __name__ == "__main__":
    main()
