"""Typer CLI for JVM memory budgets in pipeline task scripts."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer

from jvm_budget.budget import (
    FIXED_OVERHEAD_MB,
    calculate_heap_mb,
    evaluate_memory_budget,
    failure_from_error,
    heap_only_flags,
)
from jvm_budget.config import resolve_budget_config
from jvm_budget.errors import BudgetError
from jvm_budget.observability import CollectingSink
from jvm_budget.output import render_markdown_report, render_outcome_json, render_shell_flags
from jvm_budget.schema import BudgetFailure, BudgetOutcome
from jvm_budget.task_lifecycle import DEFAULT_OOM_EXIT_CODE, classify_exit_code, reclaim_inputs
from jvm_budget.units import parse_memory_mb

OUTPUT_FORMATS = ("flags", "json", "md")

app = typer.Typer(help="JVM memory budgets for resource-constrained pipeline tasks.")


@app.command("heap")
def heap_command(
    memory: Annotated[str, typer.Option(help="Task memory, e.g. '2 GB', '512.MB' or '2048'.")],
    fixed_overhead: Annotated[
        int, typer.Option(help="Memory in MB reserved outside the heap.")
    ] = FIXED_OVERHEAD_MB,
    flags: Annotated[bool, typer.Option(help="Print -Xms/-Xmx flags instead of MB.")] = False,
) -> None:
    """Print the heap size left after a fixed overhead."""
    try:
        heap_mb = calculate_heap_mb(parse_memory_mb(memory), fixed_overhead_mb=fixed_overhead)
    except BudgetError as error:
        typer.echo(f"Heap calculation failed: {error}", err=True)
        raise typer.Exit(code=1) from error

    typer.echo(heap_only_flags(heap_mb) if flags else str(heap_mb))


@app.command("budget")
def budget_command(
    memory: Annotated[str, typer.Option(help="Task memory, e.g. '2 GB', '512.MB' or '2048'.")],
    attempt: Annotated[int, typer.Option(help="1-based attempt number of the task.")] = 1,
    overhead_size: Annotated[
        int | None,
        typer.Option(
            help="Per-attempt misc overhead in MB. Defaults to JVM_BUDGET_OVERHEAD_SIZE or 64."
        ),
    ] = None,
    metaspace_size: Annotated[
        int | None,
        typer.Option(
            help="Per-attempt metaspace in MB. Defaults to JVM_BUDGET_METASPACE_SIZE or 128."
        ),
    ] = None,
    output_format: Annotated[str, typer.Option(help="Output format: flags|json|md.")] = "flags",
) -> None:
    """Print JVM flags for a task attempt, or the full budget as JSON or markdown."""
    if output_format not in OUTPUT_FORMATS:
        raise typer.BadParameter(
            f"Unsupported output format '{output_format}'. "
            f"Use one of: {', '.join(OUTPUT_FORMATS)}."
        )

    sink = CollectingSink()
    outcome: BudgetOutcome
    try:
        allocated_mb = parse_memory_mb(memory)
        config = resolve_budget_config(overhead_size=overhead_size, metaspace_size=metaspace_size)
    except BudgetError as error:
        outcome = failure_from_error(error)
    else:
        outcome = evaluate_memory_budget(allocated_mb, attempt, config, sink=sink)

    for warning in sink.warnings:
        typer.echo(f"Warning: {warning}", err=True)

    if output_format == "json":
        typer.echo(render_outcome_json(outcome))
    elif output_format == "md":
        typer.echo(render_markdown_report(outcome))
    elif isinstance(outcome, BudgetFailure):
        typer.echo(f"Memory budget failed: {outcome.message}", err=True)
    else:
        typer.echo(render_shell_flags(outcome.budget))

    if isinstance(outcome, BudgetFailure):
        raise typer.Exit(code=1)


@app.command("oom-check")
def oom_check_command(
    exit_code: Annotated[int, typer.Option(help="Exit code of the finished process.")],
    log: Annotated[Path, typer.Option(help="Process log to scan for OutOfMemoryError.")],
    oom_exit_code: Annotated[
        int, typer.Option(help="Exit code reported when the log shows an out-of-memory error.")
    ] = DEFAULT_OOM_EXIT_CODE,
) -> None:
    """Print the exit code, replaced by the OOM exit code when the log reports one."""
    typer.echo(str(classify_exit_code(exit_code, log, oom_exit_code=oom_exit_code)))


@app.command("reclaim-inputs")
def reclaim_inputs_command(
    paths: Annotated[list[Path], typer.Argument(help="Input files or links to remove.")],
    exit_code: Annotated[int, typer.Option(help="Exit code of the step that used the inputs.")],
    enabled: Annotated[
        bool, typer.Option("--enabled/--disabled", help="Whether input removal is switched on.")
    ] = False,
) -> None:
    """Delete inputs and their link targets after a successful step."""
    for removed in reclaim_inputs(paths, enabled=enabled, exit_code=exit_code):
        typer.echo(str(removed))


if __name__ == "__main__":
    app()
