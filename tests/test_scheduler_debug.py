"""Tests for scheduler debug output at different verbosity levels."""

from io import StringIO

from opsched.logger import (
    VERBOSITY_CHANGES,
    VERBOSITY_CHECKS,
    VERBOSITY_DEBUG,
    VERBOSITY_SILENT,
    changes_enabled,
    checks_enabled,
    debug_enabled,
    reset_logger,
    setup_logger,
)
from opsched.models import Problem
from opsched.scheduler import schedule_asap, schedule_simplex
from tests.conftest import build_problem


def _shared_problem() -> Problem:
    return build_problem(
        {"mul": (2, 1), "add": 1},
        [("m1", "mul"), ("m2", "mul"), ("sum", "add")],
        [("m1", "sum"), ("m2", "sum")],
    )


def _run_simplex(verbosity: int) -> str:
    output_stream = StringIO()
    setup_logger(verbosity, stream=output_stream)
    try:
        schedule_simplex(_shared_problem())
        return output_stream.getvalue()
    finally:
        reset_logger()


def test_verbosity_0_silent():
    """Test that verbosity 0 produces no debug output."""
    assert _run_simplex(0) == ""


def test_verbosity_1_shows_assignments():
    """Test that verbosity 1 shows start times and delays."""
    output = _run_simplex(1)

    assert "Scheduling problem 'test'" in output
    assert "Delayed operation m2 from cycle 0 to 2" in output
    assert "Scheduled operation sum at cycle 4" in output
    # Should NOT show solver details
    assert "Solving for" not in output
    assert "pivot" not in output


def test_verbosity_2_shows_solves_and_reservations():
    """Test that verbosity 2 shows each LP solve and operator reservation."""
    output = _run_simplex(2)

    assert "Solving for start time of sum" in output
    assert "Solving for sum of start times" in output
    assert "Reserved mul for m1 at cycles 0..1" in output
    assert "Considering m2" in output
    assert "pivot" not in output


def test_verbosity_3_shows_pivots():
    """Test that verbosity 3 shows simplex pivots."""
    output = _run_simplex(3)

    assert "simplex:" in output
    assert "pivot 0:" in output
    assert "Scheduled operation" in output


def test_asap_verbosity():
    """Test that the ASAP scheduler reports its assignments at verbosity 1."""
    problem = build_problem({"add": 1}, [("a", "add"), ("b", "add")], [("a", "b")])
    output_stream = StringIO()
    setup_logger(1, stream=output_stream)
    try:
        schedule_asap(problem)
        output = output_stream.getvalue()
    finally:
        reset_logger()

    assert "Scheduled operation a at cycle 0" in output
    assert "Scheduled operation b at cycle 1" in output


def test_failure_is_reported():
    """Test that failed solves are reported at verbosity 1."""
    problem = build_problem({"add": 1}, [("a", "add")], [("a", "ghost")])
    output_stream = StringIO()
    setup_logger(1, stream=output_stream)
    try:
        result = schedule_asap(problem)
        output = output_stream.getvalue()
    finally:
        reset_logger()

    assert not result.ok
    assert "Scheduling failed" in output
    assert "ghost" in output


def test_level_queries_follow_verbosity():
    """Test that the enabled checks match each verbosity level."""
    expected = {
        VERBOSITY_SILENT: (False, False, False),
        VERBOSITY_CHANGES: (True, False, False),
        VERBOSITY_CHECKS: (True, True, False),
        VERBOSITY_DEBUG: (True, True, True),
    }
    try:
        for verbosity, enabled in expected.items():
            setup_logger(verbosity, stream=StringIO())
            assert (changes_enabled(), checks_enabled(), debug_enabled()) == enabled
    finally:
        reset_logger()

    assert not changes_enabled()


def test_verbosity_above_debug_is_clamped():
    """Test that verbosity beyond the last level behaves like debug."""
    try:
        setup_logger(VERBOSITY_DEBUG + 2, stream=StringIO())
        assert debug_enabled()
    finally:
        reset_logger()
