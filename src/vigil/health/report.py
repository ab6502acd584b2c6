"""Rendering of the final verdict line and exit code.

Monitoring orchestrators parse exactly one line from standard output
and read the process exit code, so every path through a probe ends in
one of the functions below.
"""

from __future__ import annotations

from typing import Tuple

from ..config import EXIT_CODES
from .models import RunResult

CONNECTIVITY_FAILURE_MESSAGE = "Cannot connect to MySQL."


def render(run_result: RunResult) -> Tuple[str, int]:
    """Return the verdict line and the exit code for a run.

    The line is ``"<SEVERITY>: "`` followed by the per-check messages
    joined with ``", "``.  With no messages the line is ``"OK: "``,
    trailing space included.
    """
    line = f"{run_result.severity}: " + ", ".join(run_result.messages)
    return line, EXIT_CODES[run_result.severity]


def render_connectivity_failure(message: str = CONNECTIVITY_FAILURE_MESSAGE) -> Tuple[str, int]:
    """Fast-fail verdict when the subsystem cannot be reached at all."""
    return f"CRITICAL: {message}", EXIT_CODES["CRITICAL"]


def render_usage_error(message: str) -> Tuple[str, int]:
    """Verdict for a malformed invocation or an internal failure."""
    # Collapse to one line; consumers read a single line only.
    single = " ".join(str(message).split())
    return f"UNKNOWN: {single}", EXIT_CODES["UNKNOWN"]
