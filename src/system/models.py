"""
Raw local-host readings as produced by a system collector.
"""

from dataclasses import dataclass, field
from datetime import datetime


@dataclass(frozen=True)
class MemoryStats:
    """Memory and swap usage of the host"""

    total_bytes: int
    used_bytes: int
    available_bytes: int
    usage_percent: float  # 0.0 - 100.0
    swap_total_bytes: int
    swap_used_bytes: int
    timestamp: datetime


@dataclass(frozen=True)
class DiskStats:
    """Usage of a single mounted filesystem"""

    mount_point: str
    filesystem_type: str
    total_bytes: int
    used_bytes: int
    available_bytes: int
    usage_percent: float
    timestamp: datetime


@dataclass(frozen=True)
class ProcessInfo:
    """One entry of the top-N process list"""

    pid: int
    name: str
    cpu_percent: float
    memory_bytes: int


@dataclass(frozen=True)
class ProcessSummary:
    """Total process count plus the heaviest processes by CPU"""

    process_count: int
    top: tuple[ProcessInfo, ...]
    timestamp: datetime


@dataclass(frozen=True)
class SystemSnapshot:
    """Everything collected from the host in one pass

    `memory` or `processes` is None when that collection is disabled.
    """

    hostname: str
    memory: MemoryStats | None
    disks: tuple[DiskStats, ...] = field(default_factory=tuple)
    processes: ProcessSummary | None = None
