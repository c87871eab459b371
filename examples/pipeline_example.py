"""Example of building and scheduling problems with the opsched library.

This file demonstrates:
- Building a problem incrementally
- Scheduling the same dataflow as a basic, shared-operators and cyclic problem
- Handling failures returned as result values

Usage:
    python examples/pipeline_example.py
    python examples/pipeline_example.py --verbose 2
"""

from typing import Annotated

import typer

from opsched import Problem, ProblemVariant, schedule_simplex
from opsched.logger import setup_logger


def build_butterfly(*, multiplier_limit: int | None = None) -> Problem:
    """Radix-2 butterfly: two products combined into a sum and a difference."""
    problem = Problem("butterfly")
    load = problem.add_operator_type("load", latency=1)
    mul = problem.add_operator_type("mul", latency=3, limit=multiplier_limit)
    add = problem.add_operator_type("add", latency=1)

    a = problem.add_operation(load, name="a")
    b = problem.add_operation(load, name="b")
    wa = problem.add_operation(mul, name="wa")
    wb = problem.add_operation(mul, name="wb")
    total = problem.add_operation(add, name="sum")
    diff = problem.add_operation(add, name="diff")

    problem.add_dependence(a, wa)
    problem.add_dependence(b, wb)
    for product in (wa, wb):
        problem.add_dependence(product, total)
        problem.add_dependence(product, diff)
    return problem


def print_schedule(problem: Problem) -> None:
    for op in sorted(problem.operations, key=lambda o: (o.start_time or 0, o.name)):
        typer.echo(f"  {op.name:<5} start {op.start_time:>2}  end {problem.get_end_time(op):>2}")


def main(
    verbose: Annotated[int, typer.Option("--verbose", "-v", min=0, max=3)] = 0,
) -> None:
    setup_logger(verbose)

    typer.echo("Unlimited multipliers:")
    problem = build_butterfly()
    schedule_simplex(problem, "diff")
    print_schedule(problem)

    typer.echo("One shared multiplier:")
    problem = build_butterfly(multiplier_limit=1)
    schedule_simplex(problem, "diff")
    print_schedule(problem)

    typer.echo("Pipelined, next butterfly reads this one's sum:")
    problem = build_butterfly()
    problem.add_dependence("sum", "a", distance=1)
    result = schedule_simplex(problem, "diff")
    print_schedule(problem)
    typer.echo(f"  initiation interval {result.initiation_interval}")

    typer.echo("Same-iteration feedback:")
    problem = build_butterfly()
    problem.add_dependence("sum", "a")
    result = schedule_simplex(problem, "diff", variant=ProblemVariant.CYCLIC)
    typer.echo(f"  {result.failure}")


if __name__ == "__main__":
    typer.run(main)
