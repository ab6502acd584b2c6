"""Threshold rules for vigil checks.

The comparison operator and the severity reached on a trip are fixed
per check type; only the bound itself is configurable.  The policy is
deliberately not uniform:

* connections, slow queries, sleeping processes and execution time
  compare with ``>`` against one bound and can only reach WARNING;
* deadlocks ignore any configured bound, and any count above zero is
  CRITICAL;
* memory compares with ``>=`` against a warning and a critical bound
  and is the only check that reaches CRITICAL through a comparison.
"""

from __future__ import annotations

import math
from typing import Dict, List, Mapping, Optional, Union

from ..config import (
    DEFAULT_CONNECTIONS_THRESHOLD,
    DEFAULT_EXECUTION_TIME_THRESHOLD,
    DEFAULT_SLEEPING_PROCESSES_THRESHOLD,
    DEFAULT_SLOW_QUERIES_THRESHOLD,
    MEMORY_UNITS,
)
from ..exceptions import ConfigurationError, InvalidObservation
from .models import CheckSpec, Observation, Severity, ThresholdSet

Number = Union[int, float]

# Declaration order of the MySQL checks.  Verdict messages always follow
# this order regardless of the order flags were given on the command line.
MYSQL_CHECKS: List[str] = [
    "connections",
    "slow_queries",
    "deadlocks",
    "sleeping_processes",
    "execution_time",
]

MYSQL_DEFAULT_THRESHOLDS: Dict[str, float] = {
    "connections": DEFAULT_CONNECTIONS_THRESHOLD,
    "slow_queries": DEFAULT_SLOW_QUERIES_THRESHOLD,
    "sleeping_processes": DEFAULT_SLEEPING_PROCESSES_THRESHOLD,
    "execution_time": DEFAULT_EXECUTION_TIME_THRESHOLD,
}


def parse_observation(observation: Union[Observation, str, Number, None]) -> float:
    """Return the numeric value of an observation.

    Raises:
        InvalidObservation: if the value is missing, not numeric, or NaN.
    """
    raw = observation.value if isinstance(observation, Observation) else observation
    if raw is None:
        raise InvalidObservation("no value")
    try:
        value = float(str(raw).strip())
    except ValueError:
        raise InvalidObservation(f"not a number: {raw!r}") from None
    if math.isnan(value):
        raise InvalidObservation(f"not a number: {raw!r}")
    return value


def _trips(value: float, bound: float, comparison: str) -> bool:
    if comparison == ">=":
        return value >= bound
    return value > bound


def evaluate(observation: Union[Observation, str, Number], thresholds: ThresholdSet) -> Severity:
    """Map an observation to a severity under the given thresholds.

    Raises:
        InvalidObservation: if the observation cannot be parsed.
    """
    value = parse_observation(observation)
    if thresholds.presence:
        return "CRITICAL" if value > 0 else "OK"
    if thresholds.critical is not None and _trips(value, thresholds.critical, thresholds.comparison):
        return "CRITICAL"
    if thresholds.warning is not None and _trips(value, thresholds.warning, thresholds.comparison):
        return "WARNING"
    return "OK"


def parse_threshold(name: str, raw: Union[str, Number, None], default: Optional[float] = None) -> float:
    """Parse a threshold flag value, accepting an optional trailing ``%``.

    Raises:
        ConfigurationError: if the value is not numeric.
    """
    if raw is None or (isinstance(raw, str) and not raw.strip()):
        if default is None:
            raise ConfigurationError(f"{name} threshold is required")
        return float(default)
    text = str(raw).strip()
    if text.endswith("%"):
        text = text[:-1].strip()
    try:
        value = float(text)
    except ValueError:
        raise ConfigurationError(f"invalid {name} threshold: {raw!r}") from None
    if math.isnan(value) or math.isinf(value):
        raise ConfigurationError(f"invalid {name} threshold: {raw!r}")
    return value


def validate_unit(unit: str) -> str:
    """Return ``unit`` if it is a supported memory display unit."""
    if unit not in MEMORY_UNITS:
        allowed = ", ".join(f"'{u}'" for u in MEMORY_UNITS)
        raise ConfigurationError(f"Unknown unit {unit}. Must be one of {allowed}.")
    return unit


def mysql_thresholds(name: str, bound: float) -> ThresholdSet:
    """Build the fixed-policy threshold set for one MySQL check."""
    if name == "deadlocks":
        return ThresholdSet(critical=0, comparison=">", presence=True)
    if name not in MYSQL_DEFAULT_THRESHOLDS:
        raise ConfigurationError(f"unknown check: {name}")
    unit = "sec" if name == "execution_time" else ""
    return ThresholdSet(warning=bound, comparison=">", unit=unit)


def mysql_check_specs(
    enabled: Mapping[str, bool],
    thresholds: Mapping[str, Union[str, Number, None]],
) -> List[CheckSpec]:
    """Build the enabled MySQL check specs in declaration order.

    ``thresholds`` maps check names to raw flag values; missing or empty
    entries fall back to the defaults.  A deadlock threshold, if given,
    is ignored.
    """
    specs: List[CheckSpec] = []
    for name in MYSQL_CHECKS:
        if not enabled.get(name):
            continue
        bound = 0.0
        if name in MYSQL_DEFAULT_THRESHOLDS:
            bound = parse_threshold(
                name.replace("_", "-"), thresholds.get(name), MYSQL_DEFAULT_THRESHOLDS[name]
            )
        specs.append(
            CheckSpec(name=name, label=name.upper(), thresholds=mysql_thresholds(name, bound))
        )
    return specs


def memory_check_spec(warning: float, critical: float, unit: str = "M") -> CheckSpec:
    """Build the memory usage check spec (inclusive, two bounds)."""
    return CheckSpec(
        name="memory",
        label="MEMORY",
        thresholds=ThresholdSet(
            warning=warning,
            critical=critical,
            comparison=">=",
            unit=validate_unit(unit),
        ),
    )
