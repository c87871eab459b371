"""Scheduler package - cycle-accurate operation scheduling.

This package provides:
- An ASAP list scheduler for acyclic, unconstrained problems
- A handwritten two-phase simplex solver
- LP-based schedulers for the basic, cyclic and shared-operators variants
- A SchedulingService that validates, schedules, verifies and stores results

Main entry points:
- schedule_asap / schedule_simplex: one-call scheduling of a Problem
- SchedulingService: configurable scheduling with result values
- SimplexSolver / LinearProgram: the generic LP engine
"""

# Algorithms
from .algorithms import (
    ASAPScheduler,
    BasicSimplexScheduler,
    CyclicSimplexScheduler,
    SharedOperatorsScheduler,
    create_algorithm,
)

# Graph analysis
from .analysis import (
    DependenceGraph,
    find_infeasible_cycle,
    minimum_initiation_interval,
    topological_order,
)

# Configuration
from .config import AlgorithmType, SchedulingConfig, SimplexConfig

# Core dataclasses
from .core import AlgorithmResult, ScheduleResult

# Protocols
from .protocols import LPBuilder, SchedulingAlgorithm

# Resource utilities
from .resources import ReservationTable

# High-level service
from .service import SchedulingService, schedule_asap, schedule_simplex

# LP engine
from .simplex import LinearProgram, LPSolution, Relation, SimplexSolver, SolveStatus

__all__ = [
    # Core dataclasses
    "AlgorithmResult",
    "ScheduleResult",
    # Configuration
    "AlgorithmType",
    "SchedulingConfig",
    "SimplexConfig",
    # Protocols
    "LPBuilder",
    "SchedulingAlgorithm",
    # High-level service
    "SchedulingService",
    "schedule_asap",
    "schedule_simplex",
    # Graph analysis
    "DependenceGraph",
    "find_infeasible_cycle",
    "minimum_initiation_interval",
    "topological_order",
    # Resource utilities
    "ReservationTable",
    # LP engine
    "LinearProgram",
    "LPSolution",
    "Relation",
    "SimplexSolver",
    "SolveStatus",
    # Algorithms
    "ASAPScheduler",
    "BasicSimplexScheduler",
    "CyclicSimplexScheduler",
    "SharedOperatorsScheduler",
    "create_algorithm",
]
