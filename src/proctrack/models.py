"""Data models for proctrack."""

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType


@dataclass(slots=True, frozen=True)
class ProcessRecord:
    """Raw sample of one process as read from the OS process table."""

    pid: int
    name: str
    owner: str
    resident_memory: int  # Bytes
    cpu_time: float  # Seconds of user + system time since process start
    sampled_at: float  # Engine clock, seconds


@dataclass(slots=True, frozen=True)
class ProcessSnapshot:
    """Immutable, display-ready view of a process."""

    pid: int
    name: str
    owner: str
    cpu_percent: float  # 0.0 - 100.0 * core_count
    memory_percent: float  # 0.0 - 100.0
    resident_memory: int  # Bytes


@dataclass(slots=True, frozen=True)
class Enumeration:
    """Result of one pass over the OS process table."""

    records: list[ProcessRecord]
    total_memory: int  # Bytes of physical memory
    core_count: int


@dataclass(slots=True, frozen=True)
class SampleGeneration:
    """
    One complete process-table sample taken at a single point in time.

    The records mapping is read-only so a generation can be shared with
    readers without copying.
    """

    timestamp: float
    records: Mapping[int, ProcessRecord] = field(default_factory=dict)
    total_memory: int = 0
    core_count: int = 1

    @classmethod
    def from_enumeration(cls, timestamp: float, enumeration: Enumeration) -> "SampleGeneration":
        """Build a generation keyed by pid from an enumeration pass."""
        records = {record.pid: record for record in enumeration.records}
        return cls(
            timestamp=timestamp,
            records=MappingProxyType(records),
            total_memory=enumeration.total_memory,
            core_count=enumeration.core_count,
        )
