"""Metric sources for vigil probes."""

from .base import MetricSource
from .meminfo import MemoryMetricSource
from .mysql import MySQLConnectionConfig, MySQLMetricSource

__all__ = [
    "MetricSource",
    "MemoryMetricSource",
    "MySQLConnectionConfig",
    "MySQLMetricSource",
]
