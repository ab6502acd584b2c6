"""Exception hierarchy for the vigil probes.

Errors fall into two groups.  Startup failures (bad configuration, an
unreachable server) are fatal and short-circuit the run.  Fetch failures
are raised by metric sources for a single check and are recovered by the
check runner as an UNKNOWN result for that check only.
"""

from __future__ import annotations


class VigilError(Exception):
    """Base exception for all vigil errors."""


class ConfigurationError(VigilError):
    """Malformed flags or thresholds, detected before any check runs."""


class ConnectivityError(VigilError):
    """The monitored subsystem could not be reached at all."""


class MetricFetchError(VigilError):
    """A metric could not be fetched for one check (query error, timeout, I/O)."""


class InvalidObservation(MetricFetchError):
    """A fetched metric could not be parsed or is semantically invalid."""
