"""
Configuration constants for the vigil probes.

This module centralises default thresholds, connection settings and the
Nagios exit code table used across the application.  New values should
be added here deliberately; the command-line interface reads its
defaults from these names.
"""

from typing import Final

PROJECT_NAME: Final[str] = "vigil"

# Nagios plugin exit codes (https://nagios-plugins.org/doc/guidelines.html).
# The numbering is fixed by the plugin convention and must not change.
EXIT_CODES: Final[dict[str, int]] = {
    "OK": 0,
    "WARNING": 1,
    "CRITICAL": 2,
    "UNKNOWN": 3,
}

# MySQL connection defaults.  Credentials have no default: when they are
# not supplied explicitly the driver reads them from the defaults file.
DEFAULT_MYSQL_HOST: Final[str] = "localhost"
DEFAULT_MYSQL_PORT: Final[int] = 3306
DEFAULT_MYSQL_DEFAULTS_FILE: Final[str] = "~/.my.cnf"

# Upper bound in seconds for every round trip to an external data source.
DEFAULT_TIMEOUT_SECONDS: Final[float] = 10.0

# MySQL check thresholds
DEFAULT_CONNECTIONS_THRESHOLD: Final[float] = 75  # percent of max_connections
DEFAULT_SLOW_QUERIES_THRESHOLD: Final[float] = 100
DEFAULT_SLEEPING_PROCESSES_THRESHOLD: Final[float] = 10
DEFAULT_EXECUTION_TIME_THRESHOLD: Final[float] = 300  # seconds

# Memory check thresholds, as a percentage of used memory
DEFAULT_MEMORY_WARNING: Final[float] = 80
DEFAULT_MEMORY_CRITICAL: Final[float] = 90
DEFAULT_MEMORY_UNIT: Final[str] = "M"
MEMINFO_PATH: Final[str] = "/proc/meminfo"

# Divisors applied to a byte count for each supported display unit.
# Conversion uses integer division, one factor of 1024 per step.
MEMORY_UNITS: Final[dict[str, int]] = {
    "b": 1,
    "K": 1024,
    "M": 1024 * 1024,
    "G": 1024 * 1024 * 1024,
}

DEFAULT_LOG_LEVEL: Final[str] = "WARNING"

__all__ = [
    "PROJECT_NAME",
    "EXIT_CODES",
    "DEFAULT_MYSQL_HOST",
    "DEFAULT_MYSQL_PORT",
    "DEFAULT_MYSQL_DEFAULTS_FILE",
    "DEFAULT_TIMEOUT_SECONDS",
    "DEFAULT_CONNECTIONS_THRESHOLD",
    "DEFAULT_SLOW_QUERIES_THRESHOLD",
    "DEFAULT_SLEEPING_PROCESSES_THRESHOLD",
    "DEFAULT_EXECUTION_TIME_THRESHOLD",
    "DEFAULT_MEMORY_WARNING",
    "DEFAULT_MEMORY_CRITICAL",
    "DEFAULT_MEMORY_UNIT",
    "MEMINFO_PATH",
    "MEMORY_UNITS",
    "DEFAULT_LOG_LEVEL",
]
