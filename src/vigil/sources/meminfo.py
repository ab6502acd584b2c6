"""Host memory metric source.

Reads the kernel memory information pseudo-file and derives the memory
usage percentage used by the ``memory`` probe.  Available memory is the
sum of free, buffer and page cache memory; used memory is the total
minus that sum.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Union

from ..config import MEMINFO_PATH, MEMORY_UNITS
from ..exceptions import InvalidObservation, MetricFetchError
from ..health.models import Observation
from .base import MetricSource

REQUIRED_FIELDS = ("MemTotal", "MemFree", "Buffers", "Cached")


def parse_meminfo(text: str) -> Dict[str, int]:
    """Parse meminfo text into a mapping of field name to bytes.

    Values in the file are reported in kB; lines that do not carry a
    numeric value are skipped.
    """
    fields: Dict[str, int] = {}
    for line in text.splitlines():
        key, sep, rest = line.partition(":")
        if not sep:
            continue
        parts = rest.split()
        if not parts or not parts[0].isdigit():
            continue
        multiplier = 1024 if len(parts) > 1 and parts[1].lower() == "kb" else 1
        fields[key.strip()] = int(parts[0]) * multiplier
    return fields


def convert_memory(value_bytes: int, unit: str) -> int:
    """Convert a byte count to ``unit`` using integer division."""
    return value_bytes // MEMORY_UNITS[unit]


@dataclass(frozen=True)
class MemorySnapshot:
    """Point-in-time memory figures, in bytes."""

    total: int
    free: int
    buffers: int
    cached: int

    @classmethod
    def from_fields(cls, fields: Dict[str, int]) -> "MemorySnapshot":
        missing = [name for name in REQUIRED_FIELDS if name not in fields]
        if missing:
            raise InvalidObservation(f"meminfo lacks {', '.join(missing)}")
        return cls(
            total=fields["MemTotal"],
            free=fields["MemFree"],
            buffers=fields["Buffers"],
            cached=fields["Cached"],
        )

    @property
    def available(self) -> int:
        return self.free + self.buffers + self.cached

    @property
    def used(self) -> int:
        return self.total - self.available

    @property
    def usage_percentage(self) -> int:
        """Whole-number percentage of memory in use."""
        if self.total <= 0:
            raise InvalidObservation("MemTotal is zero")
        return 100 - (self.available * 100 // self.total)


class MemoryMetricSource(MetricSource):
    """Read memory usage from a meminfo file."""

    checks = ("memory",)

    def __init__(self, path: Union[str, Path] = MEMINFO_PATH, unit: str = "M") -> None:
        self.path = Path(path)
        self.unit = unit

    def snapshot(self) -> MemorySnapshot:
        try:
            text = self.path.read_text(encoding="utf-8")
        except OSError as exc:
            raise MetricFetchError(f"cannot read {self.path}: {exc.strerror or exc}") from exc
        return MemorySnapshot.from_fields(parse_meminfo(text))

    def fetch(self, name: str) -> Observation:
        if name != "memory":
            raise MetricFetchError(f"unsupported check: {name}")
        snap = self.snapshot()
        return Observation(
            value=str(snap.usage_percentage),
            details={
                "used": convert_memory(snap.used, self.unit),
                "total": convert_memory(snap.total, self.unit),
                "unit": self.unit,
            },
        )
