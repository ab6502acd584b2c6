"""Pydantic models for the vigil threshold engine.

These models describe one probe invocation from configuration to
verdict.  A :class:`CheckSpec` names a check and carries its
:class:`ThresholdSet`; a metric source produces an :class:`Observation`
for each enabled spec; evaluating it yields a :class:`CheckResult`; and
the aggregator folds all results into a single :class:`RunResult`.
Every model is frozen: nothing outlives one run and nothing is updated
in place once created.
"""

from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field

# Health levels in the Nagios plugin sense.  OK < WARNING < CRITICAL is a
# total order; UNKNOWN sits outside it and overrides everything during
# aggregation because a partial picture cannot be trusted.
Severity = Literal["OK", "WARNING", "CRITICAL", "UNKNOWN"]

SEVERITY_RANK: Dict[str, int] = {
    "OK": 0,
    "WARNING": 1,
    "CRITICAL": 2,
}

Comparison = Literal[">", ">="]


class ThresholdSet(BaseModel):
    """Bounds and comparison policy for one check.

    Attributes:
        warning: Bound that trips WARNING, if any.
        critical: Bound that trips CRITICAL, if any.
        comparison: ``">"`` (strict) or ``">="`` (inclusive).
        unit: Suffix appended to the observation in rendered messages.
        presence: When set, any observation above zero is CRITICAL and
            the bounds are ignored.
    """

    warning: Optional[float] = None
    critical: Optional[float] = None
    comparison: Comparison = ">"
    unit: str = ""
    presence: bool = False

    class Config:
        frozen = True


class CheckSpec(BaseModel):
    """Configuration identifying one monitoring check.

    ``name`` is the lower-case identifier used to look up the metric in a
    source; ``label`` is the upper-case tag printed in the verdict line.
    """

    name: str
    label: str
    enabled: bool = True
    thresholds: ThresholdSet

    class Config:
        frozen = True


class Observation(BaseModel):
    """A raw metric value fetched for one check.

    ``value`` keeps the textual form reported by the source (e.g.
    ``"80.00"``) so the rendered message shows exactly what was
    compared.  ``details`` carries extra context used for rendering.
    """

    value: str
    details: Dict[str, Any] = Field(default_factory=dict)

    class Config:
        frozen = True


class CheckResult(BaseModel):
    """Outcome of evaluating one check."""

    name: str
    observation: Optional[str] = None
    severity: Severity
    message: str

    class Config:
        frozen = True


class RunResult(BaseModel):
    """Overall verdict of one probe invocation.

    ``messages`` follows check declaration order, never severity order.
    """

    severity: Severity
    messages: List[str] = Field(default_factory=list)

    class Config:
        frozen = True
