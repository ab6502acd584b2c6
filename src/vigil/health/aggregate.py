"""Worst-wins aggregation of per-check results."""

from __future__ import annotations

from typing import Iterable, Sequence

from .models import SEVERITY_RANK, CheckResult, RunResult, Severity


def worst_severity(severities: Iterable[Severity]) -> Severity:
    """Return the worst severity under OK < WARNING < CRITICAL.

    Any UNKNOWN forces UNKNOWN regardless of position.  An empty input
    is OK.
    """
    worst: Severity = "OK"
    for severity in severities:
        if severity == "UNKNOWN":
            return "UNKNOWN"
        if SEVERITY_RANK[severity] > SEVERITY_RANK[worst]:
            worst = severity
    return worst


def aggregate(results: Sequence[CheckResult]) -> RunResult:
    """Reduce per-check results to one overall result.

    Messages keep the input order.  The function has no side effects and
    returns equal output for equal input.
    """
    return RunResult(
        severity=worst_severity(result.severity for result in results),
        messages=[result.message for result in results],
    )
