"""Threshold evaluation and status aggregation engine.

This package turns raw metric observations into a single Nagios verdict:
:mod:`.rules` maps an observation to a severity, :mod:`.runner` drives
the enabled checks against a metric source, :mod:`.aggregate` reduces the
per-check results, and :mod:`.report` renders the final line and exit
code.
"""

from .models import (
    CheckResult,
    CheckSpec,
    Observation,
    RunResult,
    Severity,
    ThresholdSet,
)
from .rules import evaluate
from .runner import run_checks
from .aggregate import aggregate
from .report import render

__all__ = [
    "CheckResult",
    "CheckSpec",
    "Observation",
    "RunResult",
    "Severity",
    "ThresholdSet",
    "evaluate",
    "run_checks",
    "aggregate",
    "render",
]
