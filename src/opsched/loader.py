"""Loading scheduling problems from YAML files."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError as PydanticValidationError

from .exceptions import ParseError
from .models import Problem
from .schemas import ProblemSchema
from .scheduler.config import SchedulingConfig


@dataclass
class LoadedProblem:
    """A problem read from a file, with the scheduler settings stored alongside it."""

    problem: Problem
    config: SchedulingConfig


def build_problem(schema: ProblemSchema) -> Problem:
    """Convert a validated schema into a Problem.

    Structural problems (dangling references, duplicates, negative latencies)
    are carried over as-is so that Problem.validate() reports them.
    """
    problem = Problem(schema.name)
    for name, operator_type in schema.operator_types.items():
        problem.add_operator_type(name, operator_type.latency, operator_type.limit)
    for operation in schema.operations:
        problem.add_operation(operation.type, name=operation.name)
    for dependence in schema.dependences:
        problem.add_dependence(dependence.source, dependence.destination, dependence.distance)
    return problem


def parse_problem(data: dict[str, Any]) -> LoadedProblem:
    """Parse already-loaded YAML data into a problem and its scheduler settings."""
    try:
        schema = ProblemSchema(**data)
    except PydanticValidationError as e:
        raise ParseError(f"Invalid problem structure: {e}") from e

    config = schema.scheduler or SchedulingConfig()
    if config.last_operation is None and schema.last_operation is not None:
        config = config.model_copy(update={"last_operation": schema.last_operation})
    return LoadedProblem(problem=build_problem(schema), config=config)


def load_problem(path: Path | str) -> LoadedProblem:
    """Load a problem file.

    Args:
        path: Path to the YAML problem file

    Returns:
        The problem and the scheduler configuration found in the file

    Raises:
        ParseError: if the file is missing, is not valid YAML, or does not match the schema
    """
    path = Path(path)
    if not path.exists():
        raise ParseError(f"File not found: {path}")

    try:
        with path.open(encoding="utf-8") as f:
            data: Any = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ParseError(f"Failed to parse YAML: {e}") from e

    if not isinstance(data, dict):
        raise ParseError("YAML must contain a dictionary at the root level")

    loaded = parse_problem(data)  # type: ignore[arg-type]
    if loaded.problem.name == "problem":
        loaded.problem.name = path.stem
    return loaded
