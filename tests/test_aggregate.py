"""Unit tests for worst-wins aggregation."""

from __future__ import annotations

import itertools

import pytest

from vigil.health.aggregate import aggregate, worst_severity
from vigil.health.models import CheckResult

ORDERED = ["OK", "WARNING", "CRITICAL"]


def _result(name: str, severity: str) -> CheckResult:
    return CheckResult(name=name, severity=severity, message=f"{name.upper()}:1:{severity}")


@pytest.mark.parametrize("first,second", list(itertools.product(ORDERED, repeat=2)))
def test_worst_severity_pairs(first, second) -> None:
    """The worse of two known severities always wins, in either order."""
    expected = ORDERED[max(ORDERED.index(first), ORDERED.index(second))]
    assert worst_severity([first, second]) == expected
    assert worst_severity([second, first]) == expected


@pytest.mark.parametrize("position", [0, 1, 2])
def test_unknown_overrides_everything(position) -> None:
    """UNKNOWN anywhere in the input makes the run UNKNOWN."""
    severities = ["CRITICAL", "WARNING", "OK"]
    severities.insert(position, "UNKNOWN")
    assert worst_severity(severities) == "UNKNOWN"


def test_aggregate_empty_is_ok() -> None:
    """No results aggregate to OK with no messages."""
    run = aggregate([])
    assert run.severity == "OK"
    assert run.messages == []


def test_aggregate_preserves_input_order() -> None:
    """Messages follow input order even when a later check is worse."""
    results = [
        _result("connections", "OK"),
        _result("deadlocks", "CRITICAL"),
        _result("slow_queries", "WARNING"),
    ]
    run = aggregate(results)
    assert run.severity == "CRITICAL"
    assert run.messages == [
        "CONNECTIONS:1:OK",
        "DEADLOCKS:1:CRITICAL",
        "SLOW_QUERIES:1:WARNING",
    ]


def test_aggregate_is_repeatable() -> None:
    """Aggregating the same input twice gives equal output."""
    results = [_result("a", "WARNING"), _result("b", "UNKNOWN")]
    assert aggregate(results) == aggregate(results)
    assert aggregate(results).severity == "UNKNOWN"


def test_aggregate_severity_independent_of_order() -> None:
    """Overall severity is the same for every permutation of the input."""
    results = [_result("a", "OK"), _result("b", "WARNING"), _result("c", "CRITICAL")]
    severities = {aggregate(list(p)).severity for p in itertools.permutations(results)}
    assert severities == {"CRITICAL"}
