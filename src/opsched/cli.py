"""Command-line interface for opsched."""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Annotated, Any

import typer
import yaml

from .exceptions import ParseError
from .loader import LoadedProblem, load_problem
from .logger import VERBOSITY_DEBUG, VERBOSITY_SILENT, setup_logger
from .models import Problem, ProblemVariant
from .scheduler import (
    AlgorithmType,
    ScheduleResult,
    SchedulingService,
    minimum_initiation_interval,
)

app = typer.Typer(
    name="opsched",
    help="Cycle-accurate operation scheduling with ASAP and simplex-based algorithms",
    add_completion=False,
)


class OutputFormat(str, Enum):
    """Output formats for the schedule command."""

    TEXT = "text"
    YAML = "yaml"


@app.callback()
def main_callback(
    verbose: Annotated[
        int,
        typer.Option(
            "--verbose",
            "-v",
            help="Verbosity level: 0=silent (default), 1=show changes, 2=show all checks, 3=debug",
            min=VERBOSITY_SILENT,
            max=VERBOSITY_DEBUG,
        ),
    ] = VERBOSITY_SILENT,
) -> None:
    """Global options for opsched commands."""
    setup_logger(verbose)


def _load(file: Path) -> LoadedProblem:
    try:
        return load_problem(file)
    except ParseError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1) from None


@app.command()
def schedule(  # noqa: PLR0913 - CLI command needs multiple options
    file: Annotated[Path, typer.Argument(help="Path to the problem YAML file")],
    *,
    algorithm: Annotated[
        AlgorithmType | None,
        typer.Option("--algorithm", "-a", help="Scheduling algorithm. Overrides the file"),
    ] = None,
    variant: Annotated[
        ProblemVariant | None,
        typer.Option("--variant", help="Problem variant to solve (default: inferred)"),
    ] = None,
    last_op: Annotated[
        str | None,
        typer.Option("--last-op", "-l", help="Operation whose start time is minimized"),
    ] = None,
    output_format: Annotated[
        OutputFormat, typer.Option("--format", "-f", help="Output format")
    ] = OutputFormat.TEXT,
    output: Annotated[Path | None, typer.Option("--output", "-o", help="Output file path")] = None,
) -> None:
    """Schedule a problem and print the start time of every operation."""
    loaded = _load(file)

    overrides: dict[str, Any] = {}
    if algorithm is not None:
        overrides["algorithm"] = algorithm
    if variant is not None:
        overrides["variant"] = variant
    if last_op is not None:
        overrides["last_operation"] = last_op
    config = loaded.config.model_copy(update=overrides)

    result = SchedulingService(loaded.problem, config).schedule()
    if not result.ok:
        assert result.failure is not None
        typer.echo(f"Error: {result.failure}", err=True)
        raise typer.Exit(1)

    if output_format == OutputFormat.YAML:
        text = yaml.dump(
            _schedule_to_dict(loaded.problem, result),
            default_flow_style=False,
            sort_keys=False,
        )
    else:
        text = _format_schedule(loaded.problem, result, config.algorithm)

    if output:
        output.write_text(text, encoding="utf-8")
        typer.echo(f"Schedule written to {output}")
    else:
        typer.echo(text.rstrip("\n"))


@app.command()
def validate(
    file: Annotated[Path, typer.Argument(help="Path to the problem YAML file")],
    variant: Annotated[
        ProblemVariant | None,
        typer.Option("--variant", help="Problem variant to validate for (default: inferred)"),
    ] = None,
) -> None:
    """Check a problem file for structural errors."""
    loaded = _load(file)
    result = loaded.problem.validate(variant or loaded.config.variant)
    if not result.ok:
        assert result.failure is not None
        typer.echo(f"Error: {result.failure}", err=True)
        raise typer.Exit(1)
    typer.echo("OK")


@app.command()
def bound(
    file: Annotated[Path, typer.Argument(help="Path to the problem YAML file")],
) -> None:
    """Print the recurrence-constrained minimum initiation interval."""
    loaded = _load(file)
    result = loaded.problem.validate(ProblemVariant.CYCLIC)
    if not result.ok:
        assert result.failure is not None
        typer.echo(f"Error: {result.failure}", err=True)
        raise typer.Exit(1)

    initiation_interval = minimum_initiation_interval(loaded.problem)
    if initiation_interval is None:
        typer.echo("Error: a zero-distance cycle has positive latency", err=True)
        raise typer.Exit(1)
    typer.echo(f"Minimum initiation interval: {initiation_interval}")


def _format_schedule(problem: Problem, result: ScheduleResult, algorithm: AlgorithmType) -> str:
    """Render a schedule as an aligned text table."""
    lines = [
        f"Schedule for problem '{problem.name}' ({result.variant.value} variant, {algorithm.value})"
    ]
    operations = problem.operations
    name_width = max((len(op.name) for op in operations), default=0)
    type_width = max((len(op.operator_type) for op in operations), default=0)
    for op in sorted(operations, key=lambda o: (result.start_times[o.name], o.name)):
        end = problem.get_end_time(op)
        lines.append(
            f"  {op.name:<{name_width}}  {op.operator_type:<{type_width}}  "
            f"start {result.start_times[op.name]:>3}  end {end:>3}"
        )
    if result.initiation_interval is not None:
        lines.append(f"Initiation interval: {result.initiation_interval}")
    return "\n".join(lines) + "\n"


def _schedule_to_dict(problem: Problem, result: ScheduleResult) -> dict[str, Any]:
    data: dict[str, Any] = {
        "problem": problem.name,
        "variant": result.variant.value,
    }
    if result.initiation_interval is not None:
        data["initiation_interval"] = result.initiation_interval
    data["operations"] = {
        op.name: {
            "type": op.operator_type,
            "start": result.start_times[op.name],
            "end": problem.get_end_time(op),
        }
        for op in problem.operations
    }
    return data


def main() -> int:
    """Main entry point."""
    # Typer handles sys.exit() internally
    app()
    return 0


if __name__ == "__main__":
    main()
