"""
Local host telemetry acquisition.
"""

from .collector import CollectorError, PsutilCollector, SystemCollector
from .models import DiskStats, MemoryStats, ProcessInfo, ProcessSummary, SystemSnapshot

__all__ = [
    "CollectorError",
    "DiskStats",
    "MemoryStats",
    "ProcessInfo",
    "ProcessSummary",
    "PsutilCollector",
    "SystemCollector",
    "SystemSnapshot",
]
