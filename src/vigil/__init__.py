"""Top-level package for the vigil monitoring probes.

This package provides Nagios-compatible command-line probes via
:mod:`vigil.cli`, the threshold evaluation engine in
:mod:`vigil.health`, and metric collectors in :mod:`vigil.sources`.
"""

__version__ = "0.1.0"

__all__ = [
    "cli",
    "health",
    "sources",
    "db",
]
