"""Two-phase primal simplex solver for small linear programs.

The solver is written for scheduling formulations, which consist mostly of
difference constraints x_j - x_i >= c over non-negative variables, but it
accepts arbitrary linear constraints and objectives.

Arithmetic is exact (fractions.Fraction), and both the entering and the leaving
variable are chosen by Bland's lowest-index rule, so the pivoting cannot cycle.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from fractions import Fraction

from opsched.logger import debug_enabled, get_logger

logger = get_logger()

Number = int | Fraction


class Relation(str, Enum):
    """Comparison between a constraint's linear expression and its right-hand side."""

    GE = ">="
    LE = "<="
    EQ = "=="


class SolveStatus(str, Enum):
    """Outcome of a simplex solve."""

    OPTIMAL = "optimal"
    INFEASIBLE = "infeasible"
    UNBOUNDED = "unbounded"


@dataclass
class Constraint:
    """A linear constraint: sum(coefficient * variable) <relation> rhs."""

    coefficients: dict[str, Fraction]
    relation: Relation
    rhs: Fraction
    label: str = ""

    def __str__(self) -> str:
        terms = " + ".join(f"{c}*{v}" for v, c in self.coefficients.items()) or "0"
        text = f"{terms} {self.relation.value} {self.rhs}"
        return f"{text}  ({self.label})" if self.label else text


def _default_objective() -> dict[str, Fraction]:
    return {}


@dataclass
class LinearProgram:
    """Minimize an objective subject to linear constraints over non-negative variables."""

    variables: list[str] = field(default_factory=list)
    constraints: list[Constraint] = field(default_factory=list)
    objective: dict[str, Fraction] = field(default_factory=_default_objective)

    def add_variable(self, name: str) -> str:
        if name in self.variables:
            raise ValueError(f"Variable '{name}' already exists")
        self.variables.append(name)
        return name

    def add_constraint(
        self,
        coefficients: dict[str, Number],
        relation: Relation,
        rhs: Number,
        label: str = "",
    ) -> Constraint:
        """Add sum(coefficients[v] * v) <relation> rhs."""
        for name in coefficients:
            if name not in self.variables:
                raise ValueError(f"Constraint '{label}' uses unknown variable '{name}'")
        constraint = Constraint(
            coefficients={v: Fraction(c) for v, c in coefficients.items() if c != 0},
            relation=relation,
            rhs=Fraction(rhs),
            label=label,
        )
        self.constraints.append(constraint)
        return constraint

    def add_difference(
        self, later: str, earlier: str, bound: Number, label: str = ""
    ) -> Constraint:
        """Add the difference constraint later - earlier >= bound."""
        if later == earlier:
            return self.add_constraint({}, Relation.GE, bound, label)
        return self.add_constraint({later: 1, earlier: -1}, Relation.GE, bound, label)

    def fix(self, coefficients: dict[str, Number], value: Number, label: str = "") -> Constraint:
        """Constrain a linear expression to equal value."""
        return self.add_constraint(coefficients, Relation.EQ, value, label)

    def minimize(self, objective: dict[str, Number]) -> None:
        for name in objective:
            if name not in self.variables:
                raise ValueError(f"Objective uses unknown variable '{name}'")
        self.objective = {v: Fraction(c) for v, c in objective.items() if c != 0}

    def evaluate(self, values: dict[str, Fraction]) -> Fraction:
        return sum((c * values[v] for v, c in self.objective.items()), Fraction(0))

    def copy(self) -> LinearProgram:
        return LinearProgram(
            variables=list(self.variables),
            constraints=list(self.constraints),
            objective=dict(self.objective),
        )


@dataclass
class LPSolution:
    """Result of solving a LinearProgram."""

    status: SolveStatus
    values: dict[str, Fraction] = field(default_factory=dict)
    objective: Fraction | None = None
    iterations: int = 0

    @property
    def optimal(self) -> bool:
        return self.status == SolveStatus.OPTIMAL


class _Tableau:
    """Dense simplex tableau in canonical form with respect to the current basis.

    Row i reads x[basis[i]] + sum(rows[i][j] * x[j] for non-basic j) = rhs[i].
    The objective is tracked as value + sum(reduced[j] * x[j]).
    """

    def __init__(self, rows: list[list[Fraction]], rhs: list[Fraction], basis: list[int]):
        self.rows = rows
        self.rhs = rhs
        self.basis = basis
        self.reduced: list[Fraction] = []
        self.value = Fraction(0)
        self.iterations = 0

    def price(self, costs: list[Fraction]) -> None:
        """Express the objective with the given column costs in terms of non-basic columns."""
        self.reduced = list(costs)
        self.value = Fraction(0)
        for row, rhs, basic in zip(self.rows, self.rhs, self.basis, strict=True):
            cost = costs[basic]
            if cost:
                self.reduced = [r - cost * a for r, a in zip(self.reduced, row, strict=True)]
                self.value += cost * rhs

    def pivot(self, row_index: int, column: int) -> None:
        """Make column basic in row row_index.

        Rows are updated in place, touching only the nonzero entries of the
        pivot row; scheduling rows hold a handful of nonzeros each.
        """
        pivot_row = self.rows[row_index]
        pivot_value = pivot_row[column]
        nonzero: list[tuple[int, Fraction]] = []
        for j, a in enumerate(pivot_row):
            if a:
                a /= pivot_value
                pivot_row[j] = a
                nonzero.append((j, a))
        pivot_rhs = self.rhs[row_index] / pivot_value
        self.rhs[row_index] = pivot_rhs

        for i, row in enumerate(self.rows):
            factor = row[column]
            if i == row_index or not factor:
                continue
            for j, a in nonzero:
                row[j] -= factor * a
            self.rhs[i] -= factor * pivot_rhs

        factor = self.reduced[column]
        if factor:
            for j, a in nonzero:
                self.reduced[j] -= factor * a
            self.value += factor * pivot_rhs

        self.basis[row_index] = column
        self.iterations += 1

    def entering_column(self, allowed: list[bool]) -> int | None:
        """Lowest-index improving column (Bland's rule)."""
        for j, reduced in enumerate(self.reduced):
            if allowed[j] and reduced < 0:
                return j
        return None

    def leaving_row(self, column: int) -> int | None:
        """Row with the minimum ratio; ties go to the lowest basic column (Bland's rule)."""
        best: int | None = None
        best_ratio: Fraction | None = None
        for i, row in enumerate(self.rows):
            a = row[column]
            if a <= 0:
                continue
            ratio = self.rhs[i] / a
            if (
                best is None
                or best_ratio is None
                or ratio < best_ratio
                or (ratio == best_ratio and self.basis[i] < self.basis[best])
            ):
                best, best_ratio = i, ratio
        return best

    def optimize(self, allowed: list[bool]) -> SolveStatus:
        while True:
            column = self.entering_column(allowed)
            if column is None:
                return SolveStatus.OPTIMAL
            row = self.leaving_row(column)
            if row is None:
                return SolveStatus.UNBOUNDED
            if debug_enabled():
                logger.debug(
                    f"    pivot {self.iterations}: column {column} enters, "
                    f"column {self.basis[row]} leaves, objective {self.value}"
                )
            self.pivot(row, column)

    def drop_row(self, row_index: int) -> None:
        del self.rows[row_index]
        del self.rhs[row_index]
        del self.basis[row_index]


class SimplexSolver:
    """Solve a LinearProgram with the two-phase simplex method.

    Phase 1 starts from the slack basis. Rows whose slack cannot be basic at a
    non-negative value (equalities, and inequalities the origin violates) get
    an artificial variable, and the sum of artificials is minimized. A positive
    optimum means the program is infeasible. Phase 2 drops the artificials and
    minimizes the real objective.

    All working storage is allocated per solve() call.
    """

    def __init__(self, program: LinearProgram):
        self.program = program

    def solve(self) -> LPSolution:
        program = self.program
        n = len(program.variables)
        index = {name: j for j, name in enumerate(program.variables)}

        # Column layout: decision variables, then one slack per inequality,
        # then one artificial per row that needs it
        slack_count = sum(1 for c in program.constraints if c.relation != Relation.EQ)
        entries: list[tuple[list[Fraction], Fraction, int | None, bool]] = []
        slack_column = n
        for constraint in program.constraints:
            row = [Fraction(0)] * n
            for name, coefficient in constraint.coefficients.items():
                row[index[name]] += coefficient
            rhs = constraint.rhs
            slack: int | None = None
            slack_sign = 0
            if constraint.relation == Relation.GE:
                slack, slack_sign = slack_column, -1
                slack_column += 1
            elif constraint.relation == Relation.LE:
                slack, slack_sign = slack_column, 1
                slack_column += 1
            # Negating a row with rhs 0 lets a >= row keep its slack basic
            if rhs < 0 or (rhs == 0 and slack_sign == -1):
                row = [-a for a in row]
                rhs = -rhs
                slack_sign = -slack_sign
            entries.append((row, rhs, slack, slack_sign == 1))

        artificial_count = sum(1 for _, _, slack, basic in entries if not basic)
        width = n + slack_count + artificial_count
        rows: list[list[Fraction]] = []
        rhs_column: list[Fraction] = []
        basis: list[int] = []
        artificial_column = n + slack_count
        for (decision, rhs, slack, slack_is_basic), constraint in zip(
            entries, program.constraints, strict=True
        ):
            row = decision + [Fraction(0)] * (width - n)
            if slack is not None:
                row[slack] = Fraction(1) if slack_is_basic else Fraction(-1)
            if slack_is_basic:
                assert slack is not None
                basis.append(slack)
            else:
                row[artificial_column] = Fraction(1)
                basis.append(artificial_column)
                artificial_column += 1
            rows.append(row)
            rhs_column.append(rhs)

        logger.debug(
            f"  simplex: {n} variables, {len(rows)} constraints, "
            f"{artificial_count} artificial variables"
        )

        tableau = _Tableau(rows, rhs_column, basis)
        is_artificial = [j >= n + slack_count for j in range(width)]

        if artificial_count:
            tableau.price([Fraction(1) if a else Fraction(0) for a in is_artificial])
            status = tableau.optimize([True] * width)
            if status != SolveStatus.OPTIMAL or tableau.value > 0:
                logger.debug(f"  simplex: infeasible, phase 1 objective {tableau.value}")
                return LPSolution(SolveStatus.INFEASIBLE, iterations=tableau.iterations)
            self._evict_artificials(tableau, is_artificial)

        costs = [Fraction(0)] * width
        for name, coefficient in program.objective.items():
            costs[index[name]] = coefficient
        tableau.price(costs)
        status = tableau.optimize([not a for a in is_artificial])
        if status == SolveStatus.UNBOUNDED:
            logger.debug("  simplex: unbounded")
            return LPSolution(SolveStatus.UNBOUNDED, iterations=tableau.iterations)

        values = dict.fromkeys(program.variables, Fraction(0))
        for basic, rhs in zip(tableau.basis, tableau.rhs, strict=True):
            if basic < n:
                values[program.variables[basic]] = rhs
        logger.debug(
            f"  simplex: optimal objective {tableau.value} after {tableau.iterations} pivots"
        )
        return LPSolution(
            SolveStatus.OPTIMAL,
            values=values,
            objective=tableau.value,
            iterations=tableau.iterations,
        )

    @staticmethod
    def _evict_artificials(tableau: _Tableau, is_artificial: list[bool]) -> None:
        """Pivot zero-valued artificials out of the basis after phase 1.

        A row whose artificial cannot be replaced by any real column is a
        linear combination of the other rows and is dropped.
        """
        i = 0
        while i < len(tableau.basis):
            if not is_artificial[tableau.basis[i]]:
                i += 1
                continue
            row = tableau.rows[i]
            column = next(
                (j for j, a in enumerate(row) if a and not is_artificial[j]),
                None,
            )
            if column is None:
                tableau.drop_row(i)
                continue
            tableau.pivot(i, column)
            i += 1
