"""Abstract base class for metric sources.

A metric source produces one :class:`~vigil.health.models.Observation`
per check name.  Sources are created per run and closed once the
verdict has been rendered.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from ..health.models import Observation


class MetricSource(ABC):
    """Abstract metric source used by the check runner."""

    #: Checks this source knows how to fetch, in declaration order.
    checks: tuple[str, ...] = ()

    def ping(self) -> None:
        """Verify the monitored subsystem is reachable.

        Raises :class:`~vigil.exceptions.ConnectivityError` on failure.
        Sources without a remote endpoint need not override this.
        """

    @abstractmethod
    def fetch(self, name: str) -> Observation:
        """Fetch the observation for the named check.

        Raises:
            MetricFetchError: if the metric cannot be obtained.
            InvalidObservation: if the value is malformed or invalid.
        """

    def close(self) -> None:
        """Release any resources held by the source."""
