"""Check runner for vigil probes.

The runner walks the enabled check specs in declaration order, fetches
one observation per check from a metric source, evaluates it and
renders a per-check message.  A fetch or parse failure for one check is
recorded as an UNKNOWN result and never aborts the remaining checks.
"""

from __future__ import annotations

from typing import Callable, Dict, Iterable, List

import structlog

from ..exceptions import MetricFetchError
from .aggregate import aggregate
from .models import CheckResult, CheckSpec, Observation, RunResult, Severity
from .rules import evaluate

log = structlog.get_logger(__name__)

MessageFormatter = Callable[[CheckSpec, Observation, Severity], str]


def _format_bound(value: float | None) -> str:
    if value is None:
        return ""
    return str(int(value)) if float(value).is_integer() else str(value)


def format_compact(spec: CheckSpec, observation: Observation, severity: Severity) -> str:
    """Render ``LABEL:<value><unit>:SEVERITY``."""
    return f"{spec.label}:{observation.value}{spec.thresholds.unit}:{severity}"


def format_memory(spec: CheckSpec, observation: Observation, severity: Severity) -> str:
    """Render the memory usage sentence."""
    used = observation.details.get("used", "")
    unit = observation.details.get("unit", spec.thresholds.unit)
    tail = f"{used}{unit} used ({observation.value}% of total)."
    if severity == "CRITICAL":
        bound = _format_bound(spec.thresholds.critical)
        return f"Memory usage is above critical threshold ({bound}%). {tail}"
    if severity == "WARNING":
        bound = _format_bound(spec.thresholds.warning)
        return f"Memory usage is above warning threshold ({bound}%). {tail}"
    return f"Memory usage is within bounds. {tail}"


MESSAGE_FORMATTERS: Dict[str, MessageFormatter] = {
    "memory": format_memory,
}


def unknown_result(spec: CheckSpec, cause: str) -> CheckResult:
    """Build the UNKNOWN result recorded when a check cannot be evaluated."""
    cause = " ".join(str(cause).split())
    return CheckResult(
        name=spec.name,
        severity="UNKNOWN",
        message=f"{spec.label}:UNKNOWN:{cause}",
    )


def run_check(spec: CheckSpec, source) -> CheckResult:
    """Fetch, evaluate and render a single check."""
    try:
        observation = source.fetch(spec.name)
        severity = evaluate(observation, spec.thresholds)
    except MetricFetchError as exc:
        log.warning("check_fetch_failed", check=spec.name, error=str(exc))
        return unknown_result(spec, str(exc))
    formatter = MESSAGE_FORMATTERS.get(spec.name, format_compact)
    log.debug("check_evaluated", check=spec.name, observation=observation.value, severity=severity)
    return CheckResult(
        name=spec.name,
        observation=observation.value,
        severity=severity,
        message=formatter(spec, observation, severity),
    )


def collect_results(specs: Iterable[CheckSpec], source) -> List[CheckResult]:
    """Run every enabled spec in order and return the per-check results."""
    return [run_check(spec, source) for spec in specs if spec.enabled]


def run_checks(specs: Iterable[CheckSpec], source) -> RunResult:
    """Run the enabled checks against ``source`` and aggregate the results.

    With no enabled checks the result is OK with no messages.
    """
    return aggregate(collect_results(specs, source))
